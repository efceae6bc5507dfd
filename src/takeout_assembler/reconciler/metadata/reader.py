"""Metadata of media files that have no JSON sidecar.

Dates come from the file name (see ``NameClassifier``) and/or from the
embedded EXIF block, in the order given by the configured date method.
Embedded metadata is read with Pillow for image formats it understands
(detected from magic bytes with filetype) and optionally with ExifTool
for everything else, when the file has a local path.
"""

import json
import logging
import shutil
import subprocess
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Tuple

import filetype
from PIL import Image
from PIL.ExifTags import GPSTAGS

from takeout_assembler.common import ToolNotFoundError
from ..errors import MetadataReadError
from ..filenames import NameClassifier
from ..filesystem import FileSystem
from .model import Metadata

logger = logging.getLogger(__name__)

# filetype needs at most this many bytes to recognise a format
HEADER_SIZE = 261

EXIF_IFD = 0x8769
GPS_IFD = 0x8825
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867
TAG_RATING = 0x4746

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

# Pillow has no decoder for these without extra plugins
PILLOW_UNSUPPORTED_MIMES = frozenset({'image/heic', 'image/heif', 'image/avif'})

DATE_SOURCES = {
    "none": (),
    "name": ("name",),
    "exif": ("exif",),
    "name-exif": ("name", "exif"),
    "exif-name": ("exif", "name"),
}


def check_exiftool() -> None:
    """
    Make sure exiftool is installed.

    Raises:
        ToolNotFoundError: If exiftool is not on PATH
    """
    if shutil.which('exiftool') is None:
        logger.error("Tool not found: {'tool': 'exiftool', 'required': True}")
        raise ToolNotFoundError(
            "Tool 'exiftool' is enabled in config but not available. "
            "Install it from https://exiftool.org/ or disable use_exiftool.",
            tool='exiftool',
        )
    logger.info("Tool available: {'tool': 'exiftool', 'capability': 'embedded metadata extraction'}")


class MetadataReader:
    """Reads the metadata of a file without sidecar.

    Args:
        method: Date method, one of ``DATE_SOURCES``
        classifier: Name classifier used for name-based dates
        tz: Timezone of EXIF wall-clock times, None for local time
        use_exiftool: Fall back to ExifTool for files Pillow cannot read

    Raises:
        ToolNotFoundError: If ``use_exiftool`` is set but exiftool is missing
    """

    def __init__(
        self,
        method: str = "name-exif",
        classifier: Optional[NameClassifier] = None,
        tz: Optional[tzinfo] = None,
        use_exiftool: bool = False,
    ) -> None:
        if method not in DATE_SOURCES:
            raise ValueError(f"Unknown date method: {method!r}")
        self.sources = DATE_SOURCES[method]
        self.classifier = classifier or NameClassifier(tz)
        self.tz = tz
        self.use_exiftool = use_exiftool
        if use_exiftool:
            check_exiftool()

    def read(self, fsys: FileSystem, path: str, base: str) -> Metadata:
        """
        Resolve metadata for one file.

        Args:
            fsys: Source holding the file
            path: Path of the file inside ``fsys``
            base: File name

        Returns:
            Metadata with ``date_taken`` left None when no source knows it

        Raises:
            MetadataReadError: If ExifTool fails on the file
            OSError: If the file cannot be opened
        """
        md = Metadata(file_name=base)
        embedded: Optional[Metadata] = None

        if "exif" in self.sources:
            embedded = self.read_embedded(fsys, path)
            md.latitude = embedded.latitude
            md.longitude = embedded.longitude
            md.altitude = embedded.altitude
            md.rating = embedded.rating

        for source in self.sources:
            if source == "name":
                md.date_taken = self.classifier.taken_time(base)
            elif embedded is not None:
                md.date_taken = embedded.date_taken
            if md.date_taken is not None:
                break

        return md

    def read_embedded(self, fsys: FileSystem, path: str) -> Metadata:
        """Embedded date, GPS position and rating of a file."""
        with fsys.open(path) as f:
            header = f.read(HEADER_SIZE)
            kind = filetype.guess(header)
            mime = kind.mime if kind is not None else 'application/octet-stream'
            if mime.startswith('image/') and mime not in PILLOW_UNSUPPORTED_MIMES:
                f.seek(0)
                md = self._read_with_pillow(f, path)
                if md is not None:
                    return md

        local_path = fsys.local_path(path)
        if self.use_exiftool and local_path is not None:
            return self._read_with_exiftool(local_path)

        logger.debug(f"No embedded metadata reader for file: {{'file': {path!r}, 'mime': {mime!r}}}")
        return Metadata()

    def _read_with_pillow(self, stream: BinaryIO, path: str) -> Optional[Metadata]:
        try:
            with Image.open(stream) as img:
                exif = img.getexif()
                md = Metadata()
                if not exif:
                    return md
                raw_date = exif.get_ifd(EXIF_IFD).get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)
                md.date_taken = self._parse_exif_datetime(raw_date)
                rating = exif.get(TAG_RATING)
                if isinstance(rating, int):
                    md.rating = max(0, min(5, rating))
                md.latitude, md.longitude, md.altitude = _gps_position(exif.get_ifd(GPS_IFD))
                return md
        except (OSError, ValueError, SyntaxError) as e:
            logger.warning(f"Failed to read EXIF with Pillow: {{'file': {path!r}, 'error': {str(e)!r}}}")
            return None

    def _read_with_exiftool(self, file_path: Path) -> Metadata:
        try:
            result = subprocess.run(
                [
                    'exiftool',
                    '-json',
                    '-n',
                    '-DateTimeOriginal',
                    '-CreateDate',
                    '-GPSLatitude',
                    '-GPSLongitude',
                    '-GPSAltitude',
                    '-Rating',
                    str(file_path),
                ],
                capture_output=True,
                text=True,
                check=True,
                timeout=30,
            )
            data = json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            raise MetadataReadError("exiftool failed", file=str(file_path), error=e.stderr) from e
        except subprocess.TimeoutExpired as e:
            raise MetadataReadError("exiftool timed out", file=str(file_path)) from e
        except json.JSONDecodeError as e:
            raise MetadataReadError("Unreadable exiftool output", file=str(file_path), error=str(e)) from e

        md = Metadata()
        if not data:
            return md
        tags: Dict[str, Any] = data[0]
        md.date_taken = self._parse_exif_datetime(
            tags.get('DateTimeOriginal') or tags.get('CreateDate')
        )
        md.latitude = _as_float(tags.get('GPSLatitude'))
        md.longitude = _as_float(tags.get('GPSLongitude'))
        md.altitude = _as_float(tags.get('GPSAltitude'))
        md.rating = int(_as_float(tags.get('Rating')))
        return md

    def _parse_exif_datetime(self, value: Any) -> Optional[datetime]:
        """Parse ``"2020:01:01 12:00:00"`` (sub-seconds and offsets ignored)."""
        if not isinstance(value, str) or len(value) < 19:
            return None
        try:
            wall = datetime.strptime(value[:19], EXIF_DATETIME_FORMAT)
        except ValueError:
            return None
        if self.tz is None:
            return wall.astimezone()
        return wall.replace(tzinfo=self.tz)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _gps_position(gps_ifd: Dict[int, Any]) -> Tuple[float, float, float]:
    """Decimal latitude, longitude and altitude from a Pillow GPS IFD."""
    if not gps_ifd:
        return 0.0, 0.0, 0.0
    tags = {GPSTAGS.get(tag_id, tag_id): value for tag_id, value in gps_ifd.items()}

    latitude = _dms_to_decimal(tags.get('GPSLatitude'))
    if tags.get('GPSLatitudeRef') == 'S':
        latitude = -latitude
    longitude = _dms_to_decimal(tags.get('GPSLongitude'))
    if tags.get('GPSLongitudeRef') == 'W':
        longitude = -longitude
    altitude = _as_float(tags.get('GPSAltitude'))
    if tags.get('GPSAltitudeRef') in (1, b'\x01'):
        altitude = -altitude
    return latitude, longitude, altitude


def _dms_to_decimal(value: Any) -> float:
    if not isinstance(value, tuple) or len(value) < 3:
        return 0.0
    degrees, minutes, seconds = (_as_float(v) for v in value[:3])
    return degrees + minutes / 60.0 + seconds / 3600.0
