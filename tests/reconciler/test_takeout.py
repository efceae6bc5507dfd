"""End-to-end tests for takeout reconciliation."""

import json
import threading
import zipfile
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from takeout_assembler.reconciler.assets import AssetGroup, GroupKind
from takeout_assembler.reconciler.config import TakeoutConfig
from takeout_assembler.reconciler.errors import CancelledError
from takeout_assembler.reconciler.events import EventCode
from takeout_assembler.reconciler.filesystem import ZipFileSystem
from takeout_assembler.reconciler.takeout import Takeout

UTC = timezone.utc
YEAR = "Takeout/Google Photos/Photos from 2017"
ALBUM = "Takeout/Google Photos/Mariage"


def browse(builder, recorder, cancel=None, **policy):
    config = TakeoutConfig(filename_timezone="UTC", queue_maxsize=2, **policy)
    takeout = Takeout(config, recorder, [builder.filesystem()])
    return list(takeout.browse(cancel))


class TestBrowse:
    """Tests for Takeout.browse."""

    def test_heic_jpg_without_sidecars(self, takeout_builder, recorder):
        mtime = datetime(2021, 3, 4, 5, 6, 7, tzinfo=UTC)
        takeout_builder.media("Photos/IMG_1.HEIC", b"heic", mtime=mtime)
        takeout_builder.media("Photos/IMG_1.JPG", b"jpeg", mtime=mtime)

        [group] = browse(takeout_builder, recorder, keep_json_less=True)

        assert group.kind is GroupKind.HEIC_JPG
        assert sorted(a.base for a in group) == ["IMG_1.HEIC", "IMG_1.JPG"]
        assert all(a.capture_date == mtime for a in group)

    def test_json_less_dropped_by_default(self, takeout_builder, recorder):
        takeout_builder.media("Photos/IMG_1.HEIC")

        assert browse(takeout_builder, recorder) == []
        assert recorder.count(EventCode.ANALYSIS_MISSING_ASSOCIATED_METADATA) == 1

    def test_full_takeout(self, takeout_builder, recorder):
        taken = datetime(2017, 11, 11, 3, 0, 39, tzinfo=UTC)
        burst = [
            "00000IMG_00000_BURST20171111030039_COVER.jpg",
            "00001IMG_00001_BURST20171111030039.jpg",
        ]
        for name in burst:
            takeout_builder.media(f"{YEAR}/{name}", name.encode())
            takeout_builder.sidecar(f"{YEAR}/{name}.json", name, taken=taken)
        takeout_builder.media(f"{YEAR}/PXL_20171111_100000000.MP.jpg", b"still")
        takeout_builder.media(f"{YEAR}/PXL_20171111_100000000.MP", b"video")
        takeout_builder.sidecar(
            f"{YEAR}/PXL_20171111_100000000.MP.jpg.supplemental-metadata.json",
            "PXL_20171111_100000000.MP.jpg", taken=taken,
        )
        takeout_builder.media(f"{YEAR}/IMG_5.jpg", b"in album too")
        takeout_builder.sidecar(f"{YEAR}/IMG_5.jpg.json", "IMG_5.jpg", taken=taken)
        takeout_builder.media(f"{ALBUM}/IMG_5.jpg", b"in album too")
        takeout_builder.sidecar(f"{ALBUM}/IMG_5.jpg.json", "IMG_5.jpg", taken=taken)
        takeout_builder.album(ALBUM, "Mariage")

        groups = browse(takeout_builder, recorder)

        assert all(isinstance(g, AssetGroup) for g in groups)
        by_kind = {g.kind: g for g in groups}
        assert set(by_kind) == {GroupKind.MOTION_PHOTO, GroupKind.BURST, GroupKind.NONE}
        assert len(groups) == 3

        motion = by_kind[GroupKind.MOTION_PHOTO]
        assert [a.base for a in motion] == ["PXL_20171111_100000000.MP", "PXL_20171111_100000000.MP.jpg"]
        assert motion.cover.base == "PXL_20171111_100000000.MP.jpg"

        assert by_kind[GroupKind.BURST].cover.base == burst[0]

        single = by_kind[GroupKind.NONE]
        assert len(single) == 1
        assert [album.title for album in single.albums] == ["Mariage"]

        assert recorder.count(EventCode.EMITTED) == 5
        assert recorder.count(EventCode.ANALYSIS_LOCAL_DUPLICATE) == 1

    def test_zip_source(self, tmp_path, recorder):
        path = tmp_path / "takeout-001.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr(f"{YEAR}/IMG_1.jpg", b"jpeg")
            zf.writestr(f"{YEAR}/IMG_1.jpg.json", json.dumps({
                "title": "IMG_1.jpg",
                "url": "https://photos.google.com/photo/x",
                "photoTakenTime": {"timestamp": "1510369239"},
            }))

        with ZipFileSystem(path) as fsys:
            takeout = Takeout(TakeoutConfig(filename_timezone="UTC"), recorder, [fsys])
            [group] = list(takeout.browse())

            assert group.kind is GroupKind.NONE
            assert group.cover.capture_date == datetime(2017, 11, 11, 3, 0, 39, tzinfo=UTC)
            with group.cover.open() as f:
                assert f.read() == b"jpeg"

    def test_prepare_is_done_once(self, takeout_builder, recorder):
        takeout_builder.media("Photos/IMG_1.jpg")
        takeout_builder.sidecar("Photos/IMG_1.jpg.json", "IMG_1.jpg")
        takeout = Takeout(TakeoutConfig(filename_timezone="UTC"), recorder, [takeout_builder.filesystem()])

        takeout.prepare()
        takeout.prepare()

        assert recorder.count(EventCode.DISCOVERED_IMAGE) == 1


class TestCancellation:
    """Tests for cancellation and failures."""

    def test_cancel_before_start(self, takeout_builder, recorder):
        takeout_builder.media("Photos/IMG_1.jpg")
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(CancelledError):
            browse(takeout_builder, recorder, cancel)

    def test_early_close(self, takeout_builder, recorder):
        """Test that abandoning the stream stops the stages."""
        for i in range(20):
            takeout_builder.media(f"Photos {i:02d}/IMG_{i:02d}.jpg")
            takeout_builder.sidecar(f"Photos {i:02d}/IMG_{i:02d}.jpg.json", f"IMG_{i:02d}.jpg")
        cancel = threading.Event()
        takeout = Takeout(
            TakeoutConfig(filename_timezone="UTC", queue_maxsize=1),
            recorder,
            [takeout_builder.filesystem()],
        )

        stream = takeout.browse(cancel)
        first = next(stream)
        stream.close()

        assert isinstance(first, AssetGroup)
        assert cancel.is_set()
        assert recorder.count(EventCode.EMITTED) < 20

    def test_stage_error_raised(self, takeout_builder, recorder):
        takeout_builder.media("Photos/IMG_1.jpg")
        takeout_builder.sidecar("Photos/IMG_1.jpg.json", "IMG_1.jpg")
        takeout = Takeout(TakeoutConfig(filename_timezone="UTC"), recorder, [takeout_builder.filesystem()])

        with patch.object(takeout.emitter, "emit_directory", side_effect=RuntimeError("emitter broke")):
            with pytest.raises(RuntimeError, match="emitter broke"):
                list(takeout.browse())

    def test_failed_stage_stops_producer(self, takeout_builder, recorder):
        """Test that the emitter blocked on a full queue stops when grouping fails."""
        for i in range(30):
            takeout_builder.media(f"Photos/IMG_{i:02d}.jpg", f"pixels {i}".encode())
            takeout_builder.sidecar(f"Photos/IMG_{i:02d}.jpg.json", f"IMG_{i:02d}.jpg")
        cancel = threading.Event()
        takeout = Takeout(
            TakeoutConfig(filename_timezone="UTC", queue_maxsize=1),
            recorder,
            [takeout_builder.filesystem()],
        )
        errors = []

        def consume():
            try:
                list(takeout.browse(cancel))
            except Exception as e:
                errors.append(e)

        with patch.object(takeout.grouping, "run", side_effect=RuntimeError("grouping broke")):
            consumer = threading.Thread(target=consume, daemon=True)
            consumer.start()
            consumer.join(timeout=10)

        assert not consumer.is_alive()
        assert [str(e) for e in errors] == ["grouping broke"]
        assert cancel.is_set()
