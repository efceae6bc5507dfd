"""Error classes for the takeout reconciler."""

from takeout_assembler.common import (
    TakeoutError,
    ParseError,
    UnsupportedFormatError,
    ToolNotFoundError,
)


class ReconcilerError(TakeoutError):
    """Base error for reconciliation operations."""
    pass


class WalkError(ReconcilerError):
    """A filesystem or archive could not be enumerated. Fatal."""
    pass


class SidecarError(ReconcilerError, ParseError):
    """A JSON sidecar is malformed. The file is recorded and skipped."""
    pass


class MetadataReadError(ReconcilerError):
    """Embedded metadata of a file could not be read."""
    pass


class CancelledError(ReconcilerError):
    """The shared cancellation signal fired."""

    def __init__(self, message: str = "Operation cancelled", **context) -> None:
        super().__init__(message, **context)


def classify_error(exception: Exception) -> str:
    """
    Classify an exception into an error category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'cancelled', 'walk', 'parse', 'metadata',
        'unsupported', 'tool_missing', 'permission', 'io' or 'unknown'
    """
    if isinstance(exception, CancelledError):
        return 'cancelled'
    elif isinstance(exception, WalkError):
        return 'walk'
    elif isinstance(exception, ParseError):
        return 'parse'
    elif isinstance(exception, MetadataReadError):
        return 'metadata'
    elif isinstance(exception, UnsupportedFormatError):
        return 'unsupported'
    elif isinstance(exception, ToolNotFoundError):
        return 'tool_missing'
    elif isinstance(exception, PermissionError):
        return 'permission'
    elif isinstance(exception, OSError):
        return 'io'
    elif isinstance(exception, (ValueError, KeyError, TypeError)):
        return 'parse'
    else:
        return 'unknown'
