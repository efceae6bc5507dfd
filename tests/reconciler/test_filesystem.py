"""Tests for takeout sources."""

import zipfile
from datetime import datetime

import pytest

from takeout_assembler.common import UnsupportedFormatError
from takeout_assembler.reconciler.errors import WalkError
from takeout_assembler.reconciler.filesystem import (
    DirFileSystem,
    ZipFileSystem,
    open_filesystems,
)


@pytest.fixture
def zip_part(tmp_path):
    path = tmp_path / "takeout-001.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(zipfile.ZipInfo("Takeout/Google Photos/Album/", date_time=(2020, 1, 1, 0, 0, 0)), "")
        zf.writestr(zipfile.ZipInfo("Takeout/Google Photos/Album/b.jpg", date_time=(2020, 1, 2, 3, 4, 6)), b"bb")
        zf.writestr(zipfile.ZipInfo("Takeout/Google Photos/Album/a.jpg", date_time=(2020, 1, 2, 3, 4, 6)), b"a")
    return path


class TestDirFileSystem:
    """Tests for DirFileSystem."""

    def test_sorted_walk(self, takeout_builder):
        takeout_builder.media("b/2.jpg", b"22")
        takeout_builder.media("b/1.jpg", b"1")
        takeout_builder.media("a.jpg", b"a")

        fsys = takeout_builder.filesystem()
        entries = list(fsys.walk())

        assert [e.path for e in entries] == ["a.jpg", "b/1.jpg", "b/2.jpg"]
        assert entries[2].size == 2
        assert entries[0].mtime.tzinfo is not None
        assert fsys.name == "takeout"

    def test_open_and_stat(self, takeout_builder):
        takeout_builder.media("a/x.jpg", b"content")
        fsys = takeout_builder.filesystem()

        with fsys.open("a/x.jpg") as f:
            assert f.read() == b"content"
        assert fsys.stat("a/x.jpg").size == 7
        assert fsys.local_path("a/x.jpg") == takeout_builder.root / "a" / "x.jpg"

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(WalkError):
            DirFileSystem(tmp_path / "missing")


class TestZipFileSystem:
    """Tests for ZipFileSystem."""

    def test_walk_skips_directories(self, zip_part):
        with ZipFileSystem(zip_part) as fsys:
            entries = list(fsys.walk())

        assert [e.path for e in entries] == [
            "Takeout/Google Photos/Album/a.jpg",
            "Takeout/Google Photos/Album/b.jpg",
        ]
        assert entries[1].size == 2
        assert entries[1].mtime == datetime(2020, 1, 2, 3, 4, 6).astimezone()

    def test_open_and_stat(self, zip_part):
        with ZipFileSystem(zip_part) as fsys:
            with fsys.open("Takeout/Google Photos/Album/b.jpg") as f:
                assert f.read() == b"bb"
            assert fsys.local_path("Takeout/Google Photos/Album/b.jpg") is None
            with pytest.raises(FileNotFoundError):
                fsys.stat("missing.jpg")

    def test_bad_archive(self, tmp_path):
        path = tmp_path / "bad.zip"
        path.write_bytes(b"not a zip")

        with pytest.raises(WalkError):
            ZipFileSystem(path)


class TestOpenFilesystems:
    """Tests for open_filesystems."""

    def test_mixed_sources(self, takeout_builder, zip_part):
        filesystems = open_filesystems([takeout_builder.root, zip_part])
        try:
            assert isinstance(filesystems[0], DirFileSystem)
            assert isinstance(filesystems[1], ZipFileSystem)
        finally:
            for fsys in filesystems:
                fsys.close()

    def test_missing_source(self, tmp_path):
        with pytest.raises(WalkError):
            open_filesystems([tmp_path / "nowhere"])

    def test_unsupported_file(self, tmp_path, zip_part):
        other = tmp_path / "takeout.tgz"
        other.write_bytes(b"\x1f\x8b")

        with pytest.raises(UnsupportedFormatError):
            open_filesystems([zip_part, other])
