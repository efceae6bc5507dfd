"""Base error definitions shared by takeout_assembler packages."""

from typing import Any, Dict


class TakeoutError(Exception):
    """Base exception for all takeout_assembler errors.

    Keyword arguments are kept in ``context`` so that callers can log or
    record them as structured fields.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(TakeoutError):
    """Configuration could not be loaded or is inconsistent."""
    pass


class FileProcessingError(TakeoutError):
    """Base exception for errors tied to a single file."""
    pass


class ParseError(FileProcessingError):
    """File content could not be decoded."""
    pass


class UnsupportedFormatError(FileProcessingError):
    """File or archive format is not supported."""
    pass


class ToolNotFoundError(FileProcessingError):
    """Required external tool is not available."""
    pass
