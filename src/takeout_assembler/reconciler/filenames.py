"""Camera filename conventions.

Phones encode the capture time, and for bursts the burst membership, in
the file name. ``NameClassifier`` recognises these conventions:

- Nexus/Pixel bursts: ``00015IMG_00015_BURST20171111030039_COVER.jpg``
- Samsung bursts: ``20231207_101605_031.jpg``
- Pixel camera: ``PXL_20231026_210642603.jpg`` (time is UTC)
- anything carrying ``YYYYMMDD_HHMMSS`` (separators optional) in its stem

Schemes are tried in that order. The first scheme whose pattern matches
decides: if its date fails validation the name is not classified at all.
"""

import logging
import posixpath
import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Callable, Optional, Tuple

from .media_types import DEFAULT_SUPPORTED_MEDIA, MediaType, SupportedMedia

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2200

NEXUS_BURST_RE = re.compile(
    r'^(?P<index>\d+)(?P<label>\D*?)_(?P<seq>\d+)_BURST(?P<stamp>\d{14})(?P<extra>\d*)'
    r'(?P<cover>_COVER)?(?P<ext>\.\w+)$'
)
SAMSUNG_BURST_RE = re.compile(r'^(?P<date>\d{8})_(?P<time>\d{6})_(?P<index>\d{3})(?P<ext>\.\w+)$')
PIXEL_RE = re.compile(r'^PXL_(?P<date>\d{8})_(?P<time>\d{6})\d*')
PLAIN_TIMESTAMP_RE = re.compile(
    r'(?<!\d)(?P<y>\d{4})[-_.]?(?P<mo>\d{2})[-_.]?(?P<d>\d{2})[-_. T]?'
    r'(?P<h>\d{2})[-_.:]?(?P<mi>\d{2})[-_.:]?(?P<s>\d{2})'
)


class NameKind(str, Enum):
    """Whether a name belongs to a burst or stands alone."""
    PLAIN = "plain"
    BURST = "burst"


@dataclass(frozen=True)
class NameInfo:
    """What a file name says about its content.

    Attributes:
        radical: Key shared by every file of the same capture
        base: File name without directory
        ext: Lower-cased extension with leading dot
        media_type: Media type of ``ext``
        kind: Burst or plain
        is_cover: True for the designated cover of a burst
        index: Position inside a burst (0 for plain names)
        taken: Capture time, timezone aware
    """
    radical: str
    base: str
    ext: str
    media_type: MediaType
    kind: NameKind
    is_cover: bool
    index: int
    taken: datetime


def split_ext(name: str) -> Tuple[str, str]:
    """Split ``name`` at its last dot: ``("IMG.MP", ".jpg")``."""
    pos = name.rfind('.')
    if pos < 0:
        return name, ''
    return name[:pos], name[pos:]


class NameClassifier:
    """Classifies file names against the known camera conventions.

    Args:
        tz: Timezone of the wall-clock times encoded in names, ``None``
            for the local timezone of this machine
        supported_media: Extension table used for ``media_type``
    """

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        supported_media: SupportedMedia = DEFAULT_SUPPORTED_MEDIA,
    ) -> None:
        self.tz = tz
        self.supported_media = supported_media
        self._schemes: Tuple[Callable[[str], Optional[NameInfo]], ...] = (
            self._nexus_burst,
            self._samsung_burst,
            self._pixel,
            self._plain,
        )

    def classify(self, name: str) -> Optional[NameInfo]:
        """Classify a file name.

        Args:
            name: File name, with or without directory

        Returns:
            NameInfo, or None if no convention applies or the encoded date is invalid
        """
        base = posixpath.basename(name)
        for scheme in self._schemes:
            try:
                info = scheme(base)
            except ValueError as e:
                logger.debug(f"Invalid timestamp in file name: {{'name': {base!r}, 'error': {str(e)!r}}}")
                return None
            if info is not None:
                return info
        return None

    def taken_time(self, name: str) -> Optional[datetime]:
        """Capture time encoded in ``name``, if any."""
        info = self.classify(name)
        return info.taken if info else None

    def _nexus_burst(self, base: str) -> Optional[NameInfo]:
        m = NEXUS_BURST_RE.match(base)
        if m is None:
            return None
        ext = m.group('ext').lower()
        return NameInfo(
            radical=f"BURST{m.group('stamp')}{m.group('extra')}",
            base=base,
            ext=ext,
            media_type=self.supported_media.type_from_ext(ext),
            kind=NameKind.BURST,
            is_cover=m.group('cover') is not None,
            index=int(m.group('index')),
            taken=self._decode(m.group('stamp'), self.tz),
        )

    def _samsung_burst(self, base: str) -> Optional[NameInfo]:
        m = SAMSUNG_BURST_RE.match(base)
        if m is None:
            return None
        ext = m.group('ext').lower()
        return NameInfo(
            radical=f"{m.group('date')}_{m.group('time')}",
            base=base,
            ext=ext,
            media_type=self.supported_media.type_from_ext(ext),
            kind=NameKind.BURST,
            is_cover=False,
            index=int(m.group('index')),
            taken=self._decode(m.group('date') + m.group('time'), self.tz),
        )

    def _pixel(self, base: str) -> Optional[NameInfo]:
        m = PIXEL_RE.match(base)
        if m is None:
            return None
        return self._plain_info(base, self._decode(m.group('date') + m.group('time'), timezone.utc))

    def _plain(self, base: str) -> Optional[NameInfo]:
        stem, _ = split_ext(base)
        m = PLAIN_TIMESTAMP_RE.search(stem)
        if m is None:
            return None
        stamp = "".join(m.group(k) for k in ('y', 'mo', 'd', 'h', 'mi', 's'))
        return self._plain_info(base, self._decode(stamp, self.tz))

    def _plain_info(self, base: str, taken: datetime) -> NameInfo:
        stem, ext = split_ext(base)
        ext = ext.lower()
        return NameInfo(
            radical=stem,
            base=base,
            ext=ext,
            media_type=self.supported_media.type_from_ext(ext),
            kind=NameKind.PLAIN,
            is_cover=False,
            index=0,
            taken=taken,
        )

    @staticmethod
    def _decode(stamp: str, tz: Optional[tzinfo]) -> datetime:
        """Decode ``YYYYMMDDHHMMSS`` as wall time in ``tz`` (local when None).

        Raises:
            ValueError: If any field is out of range
        """
        year = int(stamp[0:4])
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValueError(f"year {year} out of range")
        wall = datetime(
            year, int(stamp[4:6]), int(stamp[6:8]),
            int(stamp[8:10]), int(stamp[10:12]), int(stamp[12:14]),
        )
        if tz is None:
            return wall.astimezone()
        return wall.replace(tzinfo=tz)
