"""Tests for bypass/exceptions.py."""

import pytest

from bypass.exceptions import (
    ApiError,
    BypassError,
    ConfigurationError,
    InvalidInputError,
    NameNotFoundError,
    TemplateError,
    TransportError,
    UnsupportedFormatError,
)


class TestHierarchy:
    """Every error should be catchable as BypassError."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("c"),
            TransportError("t"),
            ApiError(500, "a"),
            NameNotFoundError("user", "x"),
            InvalidInputError("i"),
            UnsupportedFormatError("json"),
            TemplateError("tpl"),
        ],
    )
    def test_base_class(self, error):
        assert isinstance(error, BypassError)
        assert error.message

    def test_unsupported_format_is_invalid_input(self):
        assert issubclass(UnsupportedFormatError, InvalidInputError)


class TestMessages:
    """Tests for formatted messages."""

    def test_api_error(self):
        error = ApiError(404, "Resource not found")
        assert error.status == 404
        assert error.message == "Resource not found"
        assert str(error) == "Shortcut API error (HTTP 404): Resource not found"

    def test_name_not_found_without_hint(self):
        error = NameNotFoundError("epic", "Retry")
        assert str(error) == "Name not found – no epic named 'Retry' in this workspace"

    def test_name_not_found_with_hint(self):
        error = NameNotFoundError("team", "Nowhere", "Core, Platform")
        assert str(error) == "Name not found – no team named 'Nowhere' in this workspace. Available: Core, Platform"

    def test_name_not_found_empty_hint(self):
        error = NameNotFoundError("user", "x", "")
        assert error.message.endswith("Available: (none)")

    def test_unsupported_format(self):
        error = UnsupportedFormatError("json")
        assert error.extension == "json"
        assert str(error) == "Unsupported file format '.json': use .yaml, .yml, .csv, or .xlsx"
