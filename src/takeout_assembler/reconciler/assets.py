"""Assets and asset groups handed to the downstream ingestion service."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import BinaryIO, Iterable, List, Optional

from .filenames import NameInfo, NameKind, split_ext
from .filesystem import FileSystem
from .events import file_ref


class GroupKind(str, Enum):
    """Why assets were grouped. ``NONE`` is a standalone asset."""
    NONE = "none"
    MOTION_PHOTO = "motion_photo"
    BURST = "burst"
    RAW_JPG = "raw_jpg"
    HEIC_JPG = "heic_jpg"


@dataclass
class Album:
    """An album an asset belongs to."""
    title: str
    path: str = ""
    description: str = ""
    latitude: float = 0.0
    longitude: float = 0.0

    def has_location(self) -> bool:
        return self.latitude != 0.0 or self.longitude != 0.0


@dataclass
class LogicalAsset:
    """One media file with its reconciled metadata."""
    fsys: FileSystem
    file_name: str
    file_size: int
    file_date: datetime
    title: str
    capture_date: datetime
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    description: str = ""
    trashed: bool = False
    archived: bool = False
    favorite: bool = False
    from_partner: bool = False
    stars: int = 0
    albums: List[Album] = field(default_factory=list)
    name_info: Optional[NameInfo] = None

    @property
    def base(self) -> str:
        return self.file_name.rsplit('/', 1)[-1]

    @property
    def ext(self) -> str:
        return split_ext(self.base)[1].lower()

    @property
    def radical(self) -> str:
        """Grouping key: the name convention radical, else the stem."""
        if self.name_info is not None:
            return self.name_info.radical
        return split_ext(self.base)[0]

    @property
    def kind(self) -> NameKind:
        return self.name_info.kind if self.name_info is not None else NameKind.PLAIN

    @property
    def is_cover(self) -> bool:
        return self.name_info is not None and self.name_info.is_cover

    @property
    def ref(self) -> str:
        return file_ref(self.fsys.name, self.file_name)

    def add_album(self, album: Album) -> None:
        if all(a.title != album.title for a in self.albums):
            self.albums.append(album)

    def open(self) -> BinaryIO:
        return self.fsys.open(self.file_name)

    def __repr__(self) -> str:
        return f"LogicalAsset({self.ref!r}, capture_date={self.capture_date.isoformat()!r})"


@dataclass
class AssetGroup:
    """Ordered assets that the ingestion service stacks together.

    A group of kind ``NONE`` holds exactly one standalone asset; any other
    kind holds at least two.
    """
    kind: GroupKind = GroupKind.NONE
    assets: List[LogicalAsset] = field(default_factory=list)
    cover_index: int = 0

    @classmethod
    def single(cls, asset: LogicalAsset) -> "AssetGroup":
        return cls(kind=GroupKind.NONE, assets=[asset])

    def add_asset(self, asset: LogicalAsset) -> None:
        self.assets.append(asset)

    @property
    def cover(self) -> LogicalAsset:
        """Cover asset; the first one when the cover index does not fit."""
        if 0 <= self.cover_index < len(self.assets):
            return self.assets[self.cover_index]
        return self.assets[0]

    @property
    def albums(self) -> List[Album]:
        """Union of the members' albums, first seen first."""
        albums: List[Album] = []
        for asset in self.assets:
            for album in asset.albums:
                if all(a.title != album.title for a in albums):
                    albums.append(album)
        return albums

    def validate(self) -> None:
        """
        Check the group invariants.

        Raises:
            ValueError: If the group is empty, or grouped with fewer than two assets
        """
        if not self.assets:
            raise ValueError("Asset group is empty")
        if self.kind is not GroupKind.NONE and len(self.assets) < 2:
            raise ValueError(f"Group of kind {self.kind.value} needs at least 2 assets, got {len(self.assets)}")
        if self.kind is GroupKind.NONE and len(self.assets) != 1:
            raise ValueError(f"Ungrouped assets must be emitted one by one, got {len(self.assets)}")

    def __len__(self) -> int:
        return len(self.assets)

    def __iter__(self):
        return iter(self.assets)


def sort_key(asset: LogicalAsset):
    """Order used between the emitter and the grouping engine."""
    return asset.radical, asset.capture_date, asset.base


def sorted_assets(assets: Iterable[LogicalAsset]) -> List[LogicalAsset]:
    return sorted(assets, key=sort_key)
