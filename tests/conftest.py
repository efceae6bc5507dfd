"""Shared fixtures for takeout_assembler tests."""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

from takeout_assembler.reconciler.config import TakeoutConfig
from takeout_assembler.reconciler.events import EventRecorder
from takeout_assembler.reconciler.filesystem import DirFileSystem


class TakeoutBuilder:
    """Writes a fake extracted takeout below ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def media(
        self,
        rel_path: str,
        content: bytes = b"\x00not-really-media\x00",
        mtime: Optional[datetime] = None,
    ) -> Path:
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if mtime is not None:
            os.utime(path, (mtime.timestamp(), mtime.timestamp()))
        return path

    def sidecar(
        self,
        rel_path: str,
        title: str,
        taken: Optional[datetime] = None,
        **fields: Any,
    ) -> Path:
        data: dict = {"title": title, "url": "https://photos.google.com/photo/AF1Qip"}
        if taken is not None:
            data["photoTakenTime"] = {"timestamp": str(int(taken.timestamp()))}
        data.update(fields)
        return self._write_json(rel_path, data)

    def album(self, directory: str, title: str, **fields: Any) -> Path:
        data: dict = {"title": title, "date": {"timestamp": "1577836800"}}
        data.update(fields)
        return self._write_json(f"{directory}/metadata.json", data)

    def raw_json(self, rel_path: str, data: Any) -> Path:
        return self._write_json(rel_path, data)

    def filesystem(self) -> DirFileSystem:
        return DirFileSystem(self.root)

    def _write_json(self, rel_path: str, data: Any) -> Path:
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path


@pytest.fixture
def takeout_builder(tmp_path):
    """Builder for a takeout directory inside tmp_path."""
    root = tmp_path / "takeout"
    root.mkdir()
    return TakeoutBuilder(root)


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def config():
    """Default policy with a fixed filename timezone."""
    return TakeoutConfig(filename_timezone="UTC")


@pytest.fixture
def utc_time():
    """Factory for aware UTC datetimes."""
    def make(*args: int) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)
    return make
