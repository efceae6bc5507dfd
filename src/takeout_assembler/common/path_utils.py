"""Path utilities for consistent path handling across packages."""

import posixpath
import unicodedata
from pathlib import Path
from typing import Tuple


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for storage and comparison.

    Applies Unicode NFC normalization (macOS filesystems and some zip
    writers produce decomposed names) and converts backslashes to forward
    slashes so that directory and archive paths compare equal.

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized path string

    Examples:
        >>> normalize_path("Takeout\\\\Google Photos\\\\cafe\\u0301")
        'Takeout/Google Photos/café'
    """
    normalized = unicodedata.normalize('NFC', str(path))
    return normalized.replace('\\', '/')


def split_path(path: str) -> Tuple[str, str]:
    """Split a normalized path into ``(directory, base_name)``.

    The directory of a top-level entry is ``"."`` so that every file has
    a non-empty directory key.
    """
    directory, base = posixpath.split(normalize_path(path))
    return (directory or "."), base
