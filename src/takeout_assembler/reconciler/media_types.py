"""Supported media extensions and type lookup."""

from enum import Enum
from typing import Dict, Iterable, Optional


class MediaType(str, Enum):
    """Coarse media type derived from a file extension."""
    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


RAW_EXTENSIONS = frozenset({
    '.3fr', '.ari', '.arw', '.cap', '.cin', '.cr2', '.cr3', '.crw', '.dcr',
    '.dng', '.erf', '.fff', '.iiq', '.k25', '.kdc', '.mrw', '.nef', '.orf',
    '.ori', '.pef', '.raf', '.raw', '.rw2', '.rwl', '.sr2', '.srf', '.srw',
    '.x3f',
})

IMAGE_EXTENSIONS = RAW_EXTENSIONS | frozenset({
    '.avif', '.bmp', '.gif', '.heic', '.heif', '.hif', '.insp', '.jpe',
    '.jpeg', '.jpg', '.jxl', '.png', '.psd', '.tif', '.tiff', '.webp',
})

# .mp is the video half of a Pixel motion photo (PXL_x.MP.jpg + PXL_x.MP)
VIDEO_EXTENSIONS = frozenset({
    '.3gp', '.avi', '.flv', '.insv', '.m2ts', '.m4v', '.mkv', '.mov', '.mp',
    '.mp4', '.mpg', '.mts', '.webm', '.wmv',
})

JPEG_EXTENSIONS = frozenset({'.jpg', '.jpeg'})


class SupportedMedia:
    """Extension table used by the classifier, the matchers and the walk."""

    def __init__(
        self,
        images: Iterable[str] = IMAGE_EXTENSIONS,
        videos: Iterable[str] = VIDEO_EXTENSIONS,
        raws: Iterable[str] = RAW_EXTENSIONS,
    ) -> None:
        self._types: Dict[str, MediaType] = {}
        for ext in images:
            self._types[ext.lower()] = MediaType.IMAGE
        for ext in videos:
            self._types[ext.lower()] = MediaType.VIDEO
        self._raws = frozenset(ext.lower() for ext in raws)

    def type_from_ext(self, ext: Optional[str]) -> MediaType:
        """Media type of an extension (with leading dot, any case)."""
        if not ext:
            return MediaType.UNKNOWN
        ext = ext.lower()
        if ext.startswith('.mp~'):
            # Pixel numbers repeated motion-photo videos .MP~2, .MP~3...
            return MediaType.VIDEO
        return self._types.get(ext, MediaType.UNKNOWN)

    def is_media(self, ext: Optional[str]) -> bool:
        return self.type_from_ext(ext) is not MediaType.UNKNOWN

    def is_raw(self, ext: Optional[str]) -> bool:
        return bool(ext) and ext.lower() in self._raws

    def is_extension_prefix(self, ext: Optional[str]) -> bool:
        """True if ``ext`` is a strict prefix of a known media extension.

        The exporter truncates long sidecar names, which can cut an
        extension short (``photo.jp.json``).
        """
        if not ext or len(ext) < 2:
            return False
        ext = ext.lower()
        return any(known.startswith(ext) and len(known) > len(ext) for known in self._types)


DEFAULT_SUPPORTED_MEDIA = SupportedMedia()
