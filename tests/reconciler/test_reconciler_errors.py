"""Tests for reconciler errors."""

import pytest

from takeout_assembler.common import (
    FileProcessingError,
    ParseError,
    TakeoutError,
    ToolNotFoundError,
    UnsupportedFormatError,
)
from takeout_assembler.reconciler.errors import (
    CancelledError,
    MetadataReadError,
    ReconcilerError,
    SidecarError,
    WalkError,
    classify_error,
)


class TestErrorHierarchy:
    """Tests for the error classes."""

    def test_base(self):
        assert issubclass(ReconcilerError, TakeoutError)
        assert issubclass(WalkError, ReconcilerError)
        assert issubclass(MetadataReadError, ReconcilerError)

    def test_sidecar_error_is_parse_error(self):
        assert issubclass(SidecarError, ReconcilerError)
        assert issubclass(SidecarError, ParseError)
        assert issubclass(SidecarError, FileProcessingError)

    def test_context(self):
        error = WalkError("Cannot list directory", path="/takeout", error="denied")

        assert error.message == "Cannot list directory"
        assert error.context == {"path": "/takeout", "error": "denied"}
        assert str(error) == "Cannot list directory (path='/takeout', error='denied')"

    def test_no_context(self):
        assert str(ReconcilerError("plain")) == "plain"

    def test_cancelled_default_message(self):
        error = CancelledError(queue="assets")
        assert error.message == "Operation cancelled"
        assert error.context == {"queue": "assets"}


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize("error,category", [
        (CancelledError(), "cancelled"),
        (WalkError("x"), "walk"),
        (SidecarError("x"), "parse"),
        (ParseError("x"), "parse"),
        (MetadataReadError("x"), "metadata"),
        (UnsupportedFormatError("x"), "unsupported"),
        (ToolNotFoundError("x"), "tool_missing"),
        (PermissionError("x"), "permission"),
        (FileNotFoundError("x"), "io"),
        (ValueError("x"), "parse"),
        (RuntimeError("x"), "unknown"),
    ])
    def test_categories(self, error, category):
        assert classify_error(error) == category
