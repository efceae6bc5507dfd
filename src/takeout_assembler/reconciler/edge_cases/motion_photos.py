"""Motion photo pairing.

Phones store a motion photo (Pixel, Samsung) or a live photo (iPhone) as
a still image plus a short video sharing its name:

- ``IMG_1234.HEIC`` + ``IMG_1234.MOV``
- ``20231227_152817.jpg`` + ``20231227_152817.MP4``
- ``PXL_20231118_035751175.MP.jpg`` + ``PXL_20231118_035751175.MP``

The ingestion service stores such pairs as one asset with a motion part.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..catalog import AssetFile
from ..filenames import split_ext
from ..media_types import DEFAULT_SUPPORTED_MEDIA, MediaType, SupportedMedia

logger = logging.getLogger(__name__)

# Intermediate extension of Pixel motion photos: PXL_x.MP.jpg, PXL_x.MP~2.jpg
MOTION_MARKER = ".MP"


@dataclass
class LinkedPair:
    """A still image and/or the video of the same capture."""
    base: str
    image: Optional[AssetFile] = None
    video: Optional[AssetFile] = None

    @property
    def is_motion_photo(self) -> bool:
        return self.image is not None and self.video is not None


def _is_motion_marker(ext: str) -> bool:
    ext = ext.upper()
    return ext == MOTION_MARKER or ext.startswith(MOTION_MARKER + "~")


def link_motion_pairs(
    files: Dict[str, AssetFile],
    supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
) -> Dict[str, LinkedPair]:
    """
    Pair the videos of a directory with the images they belong to.

    Every image opens a pair keyed by its own name. Each video then joins
    the first image pair (in name order) without video whose stem, after
    dropping a ``.MP`` marker that agrees with the video extension, equals
    the video stem. Videos without such an image get a pair of their own.

    Args:
        files: Matched files of one directory, keyed by base name

    Returns:
        Pairs keyed by the image name, or by the video name for lone videos
    """
    pairs: Dict[str, LinkedPair] = {}

    for name in sorted(files):
        file = files[name]
        if supported_media.type_from_ext(split_ext(name)[1]) is MediaType.IMAGE:
            pairs[name] = LinkedPair(base=name, image=file)

    for name in sorted(files):
        file = files[name]
        video_stem, video_ext = split_ext(name)
        if supported_media.type_from_ext(video_ext) is not MediaType.VIDEO:
            continue

        linked = False
        for key in sorted(pairs):
            pair = pairs[key]
            if pair.image is None or pair.video is not None:
                continue
            stem = split_ext(pair.image.base)[0]
            stem_without_marker, marker = split_ext(stem)
            if _is_motion_marker(marker):
                if marker.upper() != video_ext.upper():
                    continue
                stem = stem_without_marker
            if stem == video_stem:
                pair.video = file
                linked = True
                logger.debug(
                    f"Linked motion photo: {{'image': {pair.image.base!r}, 'video': {name!r}}}"
                )
                break

        if not linked:
            pairs[name] = LinkedPair(base=name, video=file)

    return pairs
