"""Per-file event recording.

Every decision taken about a file (discovered, discarded, matched to a
sidecar, emitted...) is recorded here. Events feed the logs and the final
report; the reconciler never reads them back to take decisions.
"""

import logging
import threading
from collections import Counter
from enum import Enum
from typing import Any, Dict

logger = logging.getLogger(__name__)


class EventCode(str, Enum):
    """What happened to a file."""
    DISCOVERED_IMAGE = "discovered_image"
    DISCOVERED_VIDEO = "discovered_video"
    DISCOVERED_SIDECAR = "discovered_sidecar"
    DISCOVERED_ALBUM = "discovered_album"
    DISCOVERED_DISCARDED = "discovered_discarded"
    DISCOVERED_UNSUPPORTED = "discovered_unsupported"
    ANALYSIS_ASSOCIATED_METADATA = "analysis_associated_metadata"
    ANALYSIS_MISSING_ASSOCIATED_METADATA = "analysis_missing_associated_metadata"
    ANALYSIS_LOCAL_DUPLICATE = "analysis_local_duplicate"
    DISCARDED_ARCHIVED = "discarded_archived"
    DISCARDED_PARTNER = "discarded_partner"
    DISCARDED_TRASHED = "discarded_trashed"
    DISCARDED_DATE_RANGE = "discarded_date_range"
    DISCARDED_ALBUM = "discarded_album"
    EMITTED = "emitted"
    ERROR = "error"


WARNING_CODES = frozenset({
    EventCode.DISCOVERED_UNSUPPORTED,
    EventCode.ANALYSIS_MISSING_ASSOCIATED_METADATA,
})


def file_ref(fsys_name: str, path: str) -> str:
    """Printable reference of a file inside a takeout source."""
    return f"{fsys_name}:{path}"


class EventRecorder:
    """Thread-safe event counter that logs every event."""

    def __init__(self) -> None:
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def record(self, code: EventCode, file: str, **attrs: Any) -> None:
        """Record one event.

        Args:
            code: Event code
            file: File reference (see ``file_ref``)
            **attrs: Structured details (reason, matcher, sidecar...)
        """
        with self._lock:
            self._counts[code] += 1

        fields: Dict[str, Any] = {'event': code.value, 'file': file}
        fields.update(attrs)
        if code is EventCode.ERROR:
            level = logging.ERROR
        elif code in WARNING_CODES:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        if logger.isEnabledFor(level):
            logger.log(level, f"File event: {fields!r}", extra={'extra_fields': fields})

    def count(self, code: EventCode) -> int:
        with self._lock:
            return self._counts[code]

    def summary(self) -> Dict[str, int]:
        """Counts per event code, in declaration order, zeros included."""
        with self._lock:
            return {code.value: self._counts[code] for code in EventCode}

    def report(self) -> None:
        """Log the summary at INFO level."""
        summary = {k: v for k, v in self.summary().items() if v}
        logger.info(f"Takeout summary: {summary!r}", extra={'extra_fields': {'summary': summary}})
