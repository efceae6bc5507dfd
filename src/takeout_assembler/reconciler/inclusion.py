"""Banned file patterns."""

import fnmatch
import posixpath
from typing import Iterable, List

from takeout_assembler.common import normalize_path


class BannedFiles:
    """Glob patterns of files that are never imported.

    A pattern ending with ``/`` bans every file below a directory of that
    name, at any depth. Other patterns are matched against the base name.
    Matching is case-insensitive.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self.dir_patterns: List[str] = []
        self.name_patterns: List[str] = []
        for pattern in patterns:
            pattern = normalize_path(pattern.strip()).lower()
            if not pattern:
                continue
            if pattern.endswith('/'):
                self.dir_patterns.append(pattern.rstrip('/'))
            else:
                self.name_patterns.append(pattern)

    def match(self, path: str) -> bool:
        """True if ``path`` (relative, forward slashes) is banned."""
        path = normalize_path(path).lower()
        directory, base = posixpath.split(path)
        if any(fnmatch.fnmatchcase(base, p) for p in self.name_patterns):
            return True
        if not self.dir_patterns or not directory:
            return False
        parts = directory.split('/')
        return any(fnmatch.fnmatchcase(part, p) for part in parts for p in self.dir_patterns)
