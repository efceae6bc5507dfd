"""Google Photos Takeout reconciler.

Associates media files with their JSON sidecars, links motion photos,
applies the import policy and stacks related captures into asset groups.
"""

from .assets import Album, AssetGroup, GroupKind, LogicalAsset
from .config import AssemblerConfig, DateRange, TakeoutConfig
from .events import EventCode, EventRecorder
from .filenames import NameClassifier, NameInfo, NameKind
from .filesystem import DirFileSystem, FileSystem, ZipFileSystem, open_filesystems
from .grouping import GroupingEngine
from .takeout import Takeout

__all__ = [
    'Album',
    'AssetGroup',
    'GroupKind',
    'LogicalAsset',
    'AssemblerConfig',
    'DateRange',
    'TakeoutConfig',
    'EventCode',
    'EventRecorder',
    'NameClassifier',
    'NameInfo',
    'NameKind',
    'DirFileSystem',
    'FileSystem',
    'ZipFileSystem',
    'open_filesystems',
    'GroupingEngine',
    'Takeout',
]
