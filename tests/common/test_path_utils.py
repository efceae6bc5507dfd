"""Tests for path utilities."""

import unicodedata
from pathlib import PurePosixPath

from takeout_assembler.common.path_utils import normalize_path, split_path


class TestNormalizePath:
    """Tests for normalize_path function."""

    def test_forward_slashes(self):
        """Test that backslashes are converted to forward slashes."""
        result = normalize_path(r"Takeout\Google Photos\Photos from 2023\IMG_1.jpg")
        assert result == "Takeout/Google Photos/Photos from 2023/IMG_1.jpg"

    def test_unicode_normalization(self):
        """Test that decomposed names are composed (NFC)."""
        decomposed = unicodedata.normalize('NFD', "Vacances à la mer/café.jpg")
        assert normalize_path(decomposed) == "Vacances à la mer/café.jpg"

    def test_path_input(self):
        """Test that Path objects are accepted."""
        assert normalize_path(PurePosixPath("photos/2023/image.jpg")) == "photos/2023/image.jpg"

    def test_already_normalized(self):
        """Test that normalized paths are unchanged."""
        assert normalize_path("a/b/c.jpg") == "a/b/c.jpg"


class TestSplitPath:
    """Tests for split_path function."""

    def test_nested_file(self):
        """Test splitting a nested path."""
        assert split_path("Takeout/Google Photos/Album/IMG_1.jpg") == (
            "Takeout/Google Photos/Album", "IMG_1.jpg"
        )

    def test_top_level_file(self):
        """Test that a top-level file gets the '.' directory."""
        assert split_path("IMG_1.jpg") == (".", "IMG_1.jpg")

    def test_backslashes(self):
        """Test that Windows separators are handled."""
        assert split_path(r"Album\IMG_1.jpg") == ("Album", "IMG_1.jpg")
