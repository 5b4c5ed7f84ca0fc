"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when their
str() representation is empty, and that dynamic text (paths, exception
messages) cannot be parsed as Rich markup.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

from ..errors import EvaluationError
from ..errors import ScopedImportError

# Friendly messages for exception types known to have empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    RecursionError: "Maximum recursion depth exceeded while evaluating a module.",
    MemoryError: "Out of memory while evaluating a module.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Import errors already carry a complete message and are shown without
    their type name. Evaluation errors also name the module's own exception.

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
    """
    if isinstance(e, EvaluationError):
        return f"Failed to evaluate module {e.path}: {format_error_message(e.error)}"

    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if isinstance(e, ScopedImportError) or not include_type or error_type in error_str:
            return error_str
        return f"{error_type}: {error_str}"

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Args:
        value: Any value to escape (will be converted to str)

    Returns:
        String safe for interpolation into Rich markup f-strings
    """
    return _escape_markup(str(value))
