"""Per-directory catalogs and the cross-directory file tracker.

``TakeoutStore`` is built by the first pass over the takeout sources and
then refined by the puzzle solver and the asset emitter:

- one ``DirectoryCatalog`` per directory, holding sidecars and media files
- one ``Album`` per directory that carries an album descriptor
- one ``TrackedFile`` per ``(base name, size)`` identity, listing every
  directory where the same file was seen. Google exports a photo once per
  album it belongs to, so this is how album memberships are recovered.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from .assets import Album
from .events import EventCode, file_ref
from .filenames import split_ext
from .filesystem import FileSystem
from .media_types import MediaType
from .metadata import Metadata

# Suffixes the Google Photos editor appends, per interface language
EDITED_SUFFIXES = ("-edited", "-bearbeitet", "-modifié", "-redigert", "-bewerkt", "-editado", "-modificato")

ClaimSlot = Tuple[MediaType, bool]


def is_edited_variant(base: str) -> bool:
    """True for the edited rendition of a photo, e.g. ``IMG_1-edited.jpg``."""
    stem = split_ext(base)[0].lower()
    return any(suffix in stem for suffix in EDITED_SUFFIXES)


@dataclass(frozen=True)
class TrackerKey:
    """Identity of a media file across directories."""
    base_name: str
    size: int


@dataclass
class TrackedFile:
    """Every sighting of one file identity."""
    paths: List[str] = field(default_factory=list)
    count: int = 0
    metadata: Optional[Metadata] = None
    status: Optional[EventCode] = None


@dataclass
class AssetFile:
    """A media file found by the walk.

    ``path`` keeps the source spelling for ``open``; ``directory`` and
    ``base`` are the normalized keys used for matching.
    """
    fsys: FileSystem
    path: str
    directory: str
    base: str
    size: int
    mtime: datetime
    media_type: MediaType
    metadata: Optional[Metadata] = None
    sidecar: Optional[str] = None

    @property
    def key(self) -> TrackerKey:
        return TrackerKey(self.base, self.size)

    @property
    def ref(self) -> str:
        return file_ref(self.fsys.name, self.path)

    @property
    def claim_slot(self) -> ClaimSlot:
        return self.media_type, is_edited_variant(self.base)


@dataclass
class Sidecar:
    """An asset sidecar waiting for its media file(s)."""
    name: str
    metadata: Metadata
    ref: str
    claims: Set[ClaimSlot] = field(default_factory=set)

    def can_claim(self, file: AssetFile) -> bool:
        """A sidecar serves at most one file per media type and edit state."""
        return file.claim_slot not in self.claims


@dataclass
class DirectoryCatalog:
    """Sidecars and media files of one directory, keyed by base name."""
    directory: str
    sidecars: Dict[str, Sidecar] = field(default_factory=dict)
    unmatched: Dict[str, AssetFile] = field(default_factory=dict)
    matched: Dict[str, AssetFile] = field(default_factory=dict)

    def bind(self, base: str, sidecar: Optional[Sidecar]) -> AssetFile:
        """
        Move a file from ``unmatched`` to ``matched``.

        Args:
            base: Base name of an unmatched file
            sidecar: Sidecar bound to the file, None to keep it without metadata

        Raises:
            KeyError: If the file is not unmatched
        """
        file = self.unmatched.pop(base)
        if sidecar is not None:
            file.metadata = sidecar.metadata
            file.sidecar = sidecar.name
            sidecar.claims.add(file.claim_slot)
        self.matched[base] = file
        return file


class TakeoutStore:
    """All catalogs, albums and tracked identities of one takeout."""

    def __init__(self) -> None:
        self.catalogs: Dict[str, DirectoryCatalog] = {}
        self.albums: Dict[str, Album] = {}
        self.tracker: Dict[TrackerKey, TrackedFile] = {}

    def catalog(self, directory: str) -> DirectoryCatalog:
        """Catalog of ``directory``, created on first use."""
        catalog = self.catalogs.get(directory)
        if catalog is None:
            catalog = self.catalogs[directory] = DirectoryCatalog(directory)
        return catalog

    def directories(self) -> List[str]:
        return sorted(self.catalogs)

    def track(self, key: TrackerKey, directory: str) -> TrackedFile:
        """Record one more sighting of ``key`` in ``directory``."""
        tracked = self.tracker.get(key)
        if tracked is None:
            tracked = self.tracker[key] = TrackedFile()
        tracked.paths.append(directory)
        tracked.count += 1
        return tracked

    def tracked(self, key: TrackerKey) -> TrackedFile:
        """Tracker entry of ``key``; raises KeyError for unknown identities."""
        return self.tracker[key]

    def albums_of(self, key: TrackerKey) -> List[Tuple[str, Optional[Album]]]:
        """``(directory, album or None)`` for every directory ``key`` was seen in."""
        tracked = self.tracker.get(key)
        if tracked is None:
            return []
        seen: Dict[str, Optional[Album]] = {}
        for directory in tracked.paths:
            seen.setdefault(directory, self.albums.get(directory))
        return list(seen.items())
