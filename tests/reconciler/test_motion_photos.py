"""Tests for motion photo pairing."""

from datetime import datetime, timezone

import pytest

from takeout_assembler.reconciler.catalog import AssetFile
from takeout_assembler.reconciler.edge_cases import link_motion_pairs
from takeout_assembler.reconciler.media_types import DEFAULT_SUPPORTED_MEDIA


@pytest.fixture
def make_files(takeout_builder):
    fsys = takeout_builder.filesystem()

    def make(*names):
        files = {}
        for name in names:
            files[name] = AssetFile(
                fsys=fsys,
                path=f"Photos/{name}",
                directory="Photos",
                base=name,
                size=10,
                mtime=datetime(2023, 1, 1, tzinfo=timezone.utc),
                media_type=DEFAULT_SUPPORTED_MEDIA.type_from_ext("." + name.rsplit(".", 1)[-1]),
            )
        return files
    return make


class TestLinkMotionPairs:
    """Tests for link_motion_pairs."""

    def test_live_photo(self, make_files):
        pairs = link_motion_pairs(make_files("IMG_1234.HEIC", "IMG_1234.MOV"))

        assert list(pairs) == ["IMG_1234.HEIC"]
        pair = pairs["IMG_1234.HEIC"]
        assert pair.is_motion_photo
        assert pair.video.base == "IMG_1234.MOV"

    def test_samsung_motion_photo(self, make_files):
        pairs = link_motion_pairs(make_files("20231227_152817.jpg", "20231227_152817.MP4"))
        assert pairs["20231227_152817.jpg"].video.base == "20231227_152817.MP4"

    def test_pixel_motion_photo(self, make_files):
        pairs = link_motion_pairs(make_files("PXL_20231118_035751175.MP.jpg", "PXL_20231118_035751175.MP"))

        pair = pairs["PXL_20231118_035751175.MP.jpg"]
        assert pair.is_motion_photo
        assert pair.video.base == "PXL_20231118_035751175.MP"

    def test_pixel_numbered_marker(self, make_files):
        """Test that .MP~2 images only pair with .MP~2 videos."""
        pairs = link_motion_pairs(make_files(
            "PXL_1.MP.jpg", "PXL_1.MP",
            "PXL_1.MP~2.jpg", "PXL_1.MP~2",
        ))

        assert pairs["PXL_1.MP.jpg"].video.base == "PXL_1.MP"
        assert pairs["PXL_1.MP~2.jpg"].video.base == "PXL_1.MP~2"
        assert len(pairs) == 2

    def test_lone_files(self, make_files):
        pairs = link_motion_pairs(make_files("IMG_1.jpg", "VID_2.mp4"))

        assert not pairs["IMG_1.jpg"].is_motion_photo
        assert pairs["IMG_1.jpg"].video is None
        assert pairs["VID_2.mp4"].image is None
        assert pairs["VID_2.mp4"].video.base == "VID_2.mp4"

    def test_video_links_once(self, make_files):
        """Test that a second image with the same stem stays alone."""
        pairs = link_motion_pairs(make_files("IMG_1.HEIC", "IMG_1.JPG", "IMG_1.MOV"))

        linked = [p for p in pairs.values() if p.is_motion_photo]
        assert len(linked) == 1
        assert linked[0].image.base == "IMG_1.HEIC"
        assert pairs["IMG_1.JPG"].video is None

    def test_every_file_in_one_pair(self, make_files):
        files = make_files("IMG_1.HEIC", "IMG_1.MOV", "IMG_2.jpg", "VID_3.mp4", "IMG_2.mp4")
        pairs = link_motion_pairs(files)

        members = [f.base for p in pairs.values() for f in (p.image, p.video) if f is not None]
        assert sorted(members) == sorted(files)
