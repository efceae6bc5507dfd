"""Configuration models for the takeout reconciler."""

import calendar
from datetime import datetime, timezone, tzinfo
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from takeout_assembler.common import LoggingConfig

DEFAULT_BANNED_FILES = [
    '@eaDir/',
    '@__thumb/',
    'SYNOFILE_THUMB_*.*',
    'Lightroom Catalog/',
    'thumbnails/',
    '.DS_Store',
    '._*.*',
]

DateMethod = Literal["none", "name", "exif", "name-exif", "exif-name"]


def _period_bounds(text: str) -> tuple[datetime, datetime]:
    """Start and exclusive end of ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``."""
    parts = text.strip().split('-')
    if not 1 <= len(parts) <= 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid date {text!r}, expected YYYY, YYYY-MM or YYYY-MM-DD")
    year = int(parts[0])
    if len(parts) == 1:
        return datetime(year, 1, 1), datetime(year + 1, 1, 1)
    month = int(parts[1])
    if len(parts) == 2:
        start = datetime(year, month, 1)
        if month == 12:
            return start, datetime(year + 1, 1, 1)
        return start, datetime(year, month + 1, 1)
    day = int(parts[2])
    start = datetime(year, month, day)
    last_day = calendar.monthrange(year, month)[1]
    if day < last_day:
        return start, datetime(year, month, day + 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()


class DateRange(BaseModel):
    """Capture-date window. ``after`` is inclusive, ``before`` exclusive.

    Accepts a string: ``2023``, ``2023-06``, ``2023-06-14`` or two of
    those separated by a comma. Naive bounds are in local time.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    after: Optional[datetime] = None
    before: Optional[datetime] = None

    @model_validator(mode='before')
    @classmethod
    def parse_text(cls, value):
        if isinstance(value, int):
            # a bare year coming from an environment override
            value = str(value)
        if not isinstance(value, str):
            return value
        text = value.strip()
        if not text:
            return {}
        if ',' in text:
            first, _, last = text.partition(',')
            return {'after': _period_bounds(first)[0], 'before': _period_bounds(last)[1]}
        after, before = _period_bounds(text)
        return {'after': after, 'before': before}

    @model_validator(mode='after')
    def check_order(self) -> 'DateRange':
        if self.after and self.before and _as_aware(self.after) >= _as_aware(self.before):
            raise ValueError("date range end must be after its start")
        return self

    def is_set(self) -> bool:
        return self.after is not None or self.before is not None

    def contains(self, moment: datetime) -> bool:
        """True if ``moment`` lies inside the window."""
        moment = _as_aware(moment)
        if self.after is not None and moment < _as_aware(self.after):
            return False
        if self.before is not None and moment >= _as_aware(self.before):
            return False
        return True


class TakeoutConfig(BaseModel):
    """Import policy applied while reconciling a takeout."""

    model_config = ConfigDict(extra='forbid')

    included_extensions: List[str] = Field(
        default_factory=list,
        description="Only import these extensions (empty: all supported media)"
    )
    excluded_extensions: List[str] = Field(
        default_factory=list,
        description="Never import these extensions"
    )
    banned_files: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BANNED_FILES),
        description="Glob patterns of files to ignore; a trailing '/' bans a directory"
    )
    date_range: DateRange = Field(
        default_factory=DateRange,
        description="Only import assets captured inside this window"
    )
    keep_untitled_albums: bool = Field(
        default=False,
        description="Keep albums without title, named after their directory"
    )
    keep_json_less: bool = Field(
        default=False,
        description="Import media files for which no JSON sidecar was found"
    )
    keep_archived: bool = Field(default=True, description="Import archived assets")
    keep_partner: bool = Field(default=True, description="Import assets shared by a partner")
    keep_trashed: bool = Field(default=False, description="Import trashed assets")
    create_albums: bool = Field(
        default=True,
        description="Attach album memberships to emitted assets"
    )
    import_from_album: Optional[str] = Field(
        default=None,
        description="Only import assets belonging to this album"
    )
    import_into_album: Optional[str] = Field(
        default=None,
        description="Put every imported asset into this album instead of its own albums"
    )
    partner_shared_album: Optional[str] = Field(
        default=None,
        description="Also put assets shared by a partner into this album"
    )
    date_method: DateMethod = Field(
        default="name-exif",
        description="How to date files that have no JSON sidecar"
    )
    filename_timezone: str = Field(
        default="local",
        description="Timezone of times encoded in file names: 'local', 'UTC' or an IANA name"
    )
    use_exiftool: bool = Field(
        default=False,
        description="Read embedded metadata with exiftool when Pillow cannot. Optional tool."
    )
    queue_maxsize: int = Field(
        default=16,
        ge=1,
        description="Capacity of the queues between pipeline stages"
    )

    @field_validator('included_extensions', 'excluded_extensions', mode='before')
    @classmethod
    def normalize_extensions(cls, v):
        """Lower-case extensions and add the leading dot."""
        if isinstance(v, str):
            v = v.split(',')
        if not isinstance(v, list):
            return v
        normalized = []
        for ext in v:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith('.') else f'.{ext}')
        return normalized

    @field_validator('date_method', mode='before')
    @classmethod
    def normalize_date_method(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('import_from_album', 'import_into_album', 'partner_shared_album', mode='before')
    @classmethod
    def empty_album_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('filename_timezone')
    @classmethod
    def check_timezone(cls, v: str) -> str:
        if v.lower() in ('local', 'utc'):
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {v!r}") from e
        return v

    def filename_tz(self) -> Optional[tzinfo]:
        """Resolved ``filename_timezone``; None means the local timezone."""
        name = self.filename_timezone
        if name.lower() == 'local':
            return None
        if name.lower() == 'utc':
            return timezone.utc
        return ZoneInfo(name)

    def is_extension_included(self, ext: str) -> bool:
        return not self.included_extensions or ext.lower() in self.included_extensions

    def is_extension_excluded(self, ext: str) -> bool:
        return ext.lower() in self.excluded_extensions


class AssemblerConfig(BaseModel):
    """Root configuration for takeout-assembler."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    takeout: TakeoutConfig = Field(default_factory=TakeoutConfig)
