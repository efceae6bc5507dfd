"""Common utilities for takeout_assembler packages."""

from .config import ConfigLoader
from .logging import setup_logging, setup_logging_from_config, LogContext
from .logging_config import LoggingConfig
from .errors import (
    TakeoutError, ConfigurationError, FileProcessingError,
    ParseError, UnsupportedFormatError, ToolNotFoundError,
)
from .path_utils import normalize_path, split_path

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'setup_logging_from_config',
    'LogContext',
    'TakeoutError',
    'ConfigurationError',
    'FileProcessingError',
    'ParseError',
    'UnsupportedFormatError',
    'ToolNotFoundError',
    'normalize_path',
    'split_path',
]
