"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when
their str() representation is empty.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

# Friendly messages for exception types that usually carry no text of their own
FRIENDLY_MESSAGES: dict[type, str] = {
    FileNotFoundError: "File not found.",
    IsADirectoryError: "Path is a directory, not a file.",
    PermissionError: "Permission denied.",
    UnicodeDecodeError: "File is not valid UTF-8 text.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Args:
        e: The exception to format
        include_type: Whether to include the exception type name

    Returns:
        A non-empty, user-friendly error message

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'

        >>> format_error_message(PermissionError())
        'PermissionError: Permission denied.'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}" if include_type else friendly_msg

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Prevents Rich from interpreting brackets in file paths or
    error messages as markup tags.
    """
    return _escape_markup(str(value))
