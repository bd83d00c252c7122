"""Tests for error message formatting."""

from atcompile.utils.error_format import FRIENDLY_MESSAGES
from atcompile.utils.error_format import escape_markup
from atcompile.utils.error_format import format_error_message


def test_message_includes_type():
    """Exceptions with text are prefixed by their type name."""
    assert format_error_message(ValueError("bad")) == "ValueError: bad"
    assert format_error_message(ValueError("bad"), include_type=False) == "bad"


def test_empty_file_errors_get_friendly_text():
    """File errors raised without text fall back to a friendly message."""
    assert format_error_message(FileNotFoundError()) == "FileNotFoundError: File not found."
    assert format_error_message(IsADirectoryError(), include_type=False) == "Path is a directory, not a file."


def test_only_file_errors_have_friendly_messages():
    """Nothing the compiler never raises is mapped to friendly text."""
    assert set(FRIENDLY_MESSAGES) == {FileNotFoundError, IsADirectoryError, PermissionError, UnicodeDecodeError}
    assert format_error_message(KeyboardInterrupt()) == "KeyboardInterrupt: (no additional details)"


def test_escape_markup():
    assert escape_markup("[red]notes.md") == "\\[red]notes.md"
