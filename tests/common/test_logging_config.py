"""Tests for logging configuration validation."""

import pytest
from pydantic import ValidationError

from takeout_assembler.common.logging_config import LoggingConfig


class TestLoggingConfigValidation:
    """Tests for LoggingConfig field validation."""

    def test_valid_log_levels(self):
        """Test that all valid log levels are accepted."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            config = LoggingConfig(level=level)
            assert config.level == level

    def test_log_level_any_case(self):
        """Test that log levels are upper-cased."""
        assert LoggingConfig(level="debug").level == "DEBUG"
        assert LoggingConfig(level=" Warning ").level == "WARNING"

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            LoggingConfig(level="VERBOSE")
        assert "level" in str(exc_info.value)

    def test_valid_formats(self):
        """Test that all valid formats are accepted."""
        for fmt in ["simple", "detailed", "json"]:
            assert LoggingConfig(format=fmt).format == fmt

    def test_format_any_case(self):
        """Test that format names are lower-cased."""
        assert LoggingConfig(format="JSON").format == "json"

    def test_invalid_format(self):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_defaults(self):
        """Test default values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "json"
        assert config.file is None

    def test_empty_file_is_none(self):
        """Test that an empty log file path disables file logging."""
        assert LoggingConfig(file="").file is None
        assert LoggingConfig(file="  ").file is None

    def test_file_path_kept(self):
        """Test that a log file path is kept as given."""
        assert LoggingConfig(file="logs/run.log").file == "logs/run.log"

    def test_extra_fields_forbidden(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(colour=True)
