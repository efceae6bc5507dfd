"""Read-only views over takeout sources.

A takeout arrives either extracted into a directory or as one or more
zip parts. Both expose the same small interface: a sorted walk over
files, ``open`` for reading content and ``stat``.
"""

import logging
import os
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional

from takeout_assembler.common import UnsupportedFormatError
from .errors import WalkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A file inside a FileSystem.

    ``path`` is relative to the filesystem root, uses forward slashes and
    keeps the original spelling so that it can be passed back to ``open``.
    """
    path: str
    size: int
    mtime: datetime


class FileSystem(ABC):
    """Interface of a takeout source."""

    name: str

    @abstractmethod
    def walk(self) -> Iterator[FileEntry]:
        """Yield every regular file, in sorted path order.

        Raises:
            WalkError: If the source cannot be enumerated
        """

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Open a file for binary reading."""

    @abstractmethod
    def stat(self, path: str) -> FileEntry:
        """Size and modification time of a file."""

    def local_path(self, path: str) -> Optional[Path]:
        """Path on the local disk, when the file has one."""
        return None

    def close(self) -> None:
        pass

    def __enter__(self) -> "FileSystem":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class DirFileSystem(FileSystem):
    """An extracted takeout directory."""

    def __init__(self, root: Path) -> None:
        root = Path(root)
        if not root.is_dir():
            raise WalkError("Not a directory", path=str(root))
        self.root = root
        self.name = root.name or str(root)

    def walk(self) -> Iterator[FileEntry]:
        def on_error(err: OSError) -> None:
            raise WalkError("Cannot list directory", path=str(err.filename), error=str(err)) from err

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=on_error):
            dirnames.sort()
            for filename in sorted(filenames):
                full_path = Path(dirpath) / filename
                if not full_path.is_file():
                    continue
                yield self._entry(full_path.relative_to(self.root).as_posix(), full_path)

    def open(self, path: str) -> BinaryIO:
        return open(self.root / path, 'rb')

    def stat(self, path: str) -> FileEntry:
        return self._entry(path, self.root / path)

    def local_path(self, path: str) -> Optional[Path]:
        return self.root / path

    def _entry(self, rel_path: str, full_path: Path) -> FileEntry:
        try:
            st = full_path.stat()
        except OSError as e:
            raise WalkError("Cannot stat file", path=str(full_path), error=str(e)) from e
        return FileEntry(
            path=rel_path,
            size=st.st_size,
            mtime=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )


class ZipFileSystem(FileSystem):
    """One zip part of a takeout."""

    def __init__(self, archive_path: Path) -> None:
        archive_path = Path(archive_path)
        try:
            self._zip = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise WalkError("Cannot open archive", path=str(archive_path), error=str(e)) from e
        self.archive_path = archive_path
        self.name = archive_path.name

    def walk(self) -> Iterator[FileEntry]:
        for info in sorted(self._zip.infolist(), key=lambda i: i.filename):
            if info.is_dir():
                continue
            yield self._entry(info)

    def open(self, path: str) -> BinaryIO:
        return self._zip.open(path, 'r')

    def stat(self, path: str) -> FileEntry:
        try:
            return self._entry(self._zip.getinfo(path))
        except KeyError as e:
            raise FileNotFoundError(f"{path} not in {self.name}") from e

    def close(self) -> None:
        self._zip.close()

    @staticmethod
    def _entry(info: zipfile.ZipInfo) -> FileEntry:
        # zip timestamps are local wall time without zone
        return FileEntry(
            path=info.filename,
            size=info.file_size,
            mtime=datetime(*info.date_time).astimezone(),
        )


def open_filesystems(paths: Iterable[Path]) -> List[FileSystem]:
    """Open every path as a DirFileSystem or a ZipFileSystem.

    Raises:
        WalkError: If a path does not exist
        UnsupportedFormatError: If a file is not a zip archive
    """
    filesystems: List[FileSystem] = []
    try:
        for path in paths:
            path = Path(path)
            if path.is_dir():
                filesystems.append(DirFileSystem(path))
            elif path.is_file():
                if not zipfile.is_zipfile(path):
                    raise UnsupportedFormatError("Unsupported takeout source", path=str(path))
                filesystems.append(ZipFileSystem(path))
            else:
                raise WalkError("Takeout source not found", path=str(path))
    except Exception:
        for fsys in filesystems:
            fsys.close()
        raise

    logger.info(f"Opened takeout sources: {{'count': {len(filesystems)}, 'names': {[f.name for f in filesystems]!r}}}")
    return filesystems
