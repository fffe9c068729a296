"""Caller input validation errors with remediation hints."""

from typing import Final

from pydantic import ValidationError


ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "This parameter is required.",
    "string_type": "This parameter must be a text string.",
    "float_type": "This parameter must be a number of seconds.",
    "greater_than": "The value must be greater than zero.",
    "less_than_equal": "The value is too large. Check the maximum allowed.",
    "value_error": "Check the value format.",
}

FIELD_HINTS: Final[dict[str, str]] = {
    "target_url": "Must be an absolute HTTP/HTTPS URL (e.g., 'https://api.example.com/data').",
    "base_url": "Must be an absolute HTTP/HTTPS URL when given (e.g., 'https://www.example.com').",
    "total_budget_seconds": "Must be a positive number of seconds, at most 600 (e.g., 20).",
    "attempt_timeout_seconds": "Must be a positive number of seconds, at most 300 (e.g., 15).",
    "max_attempts": "Must be a whole number from 1 to 10.",
}

DEFAULT_HINT = "Check the request parameters."


class RequestValidationError(ValueError):
    """Raised when retrieval input is missing or malformed.

    Raised before any deadline is started or strategy is attempted.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        """Initialize the validation error.

        Args:
            message: Summary message.
            errors: Formatted per-field errors.
        """
        self.errors = errors or []
        detail = "\n".join(self.errors)
        super().__init__(f"{message}\n{detail}" if detail else message)

    @classmethod
    def from_pydantic(
        cls,
        error: ValidationError,
        message: str = "Invalid retrieval request",
        default_location: str = "request",
    ) -> "RequestValidationError":
        """Build from a pydantic ValidationError.

        Args:
            error: The pydantic error.
            message: Summary message.
            default_location: Location shown for model-level errors.

        Returns:
            RequestValidationError with one formatted line per field error.
        """
        formatted = [
            format_validation_error(
                location=(
                    ".".join(str(part) for part in item["loc"]) or default_location
                ),
                message=item["msg"],
                error_type=item["type"],
            )
            for item in error.errors()
        ]
        return cls(message, formatted)


def settings_error(error: ValidationError) -> RequestValidationError:
    """Build the error for settings loaded from the environment.

    Args:
        error: The pydantic error raised while loading or applying settings.

    Returns:
        RequestValidationError naming the offending settings.
    """
    return RequestValidationError.from_pydantic(
        error,
        message="Invalid configuration (check SESSIONFETCH_* environment variables)",
        default_location="settings",
    )


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Get a user-friendly hint for a validation error.

    Args:
        error_type: The pydantic error type (e.g., 'missing').
        field_name: Optional field name for field-specific hints.

    Returns:
        A user-friendly hint string.
    """
    if field_name:
        simple_field = field_name.split(".")[-1]
        if simple_field in FIELD_HINTS:
            return FIELD_HINTS[simple_field]

    return ERROR_HINTS.get(error_type, DEFAULT_HINT)


def format_validation_error(location: str, message: str, error_type: str) -> str:
    """Format a validation error with its hint.

    Args:
        location: The error location (e.g., 'target_url').
        message: The original error message.
        error_type: The error type.

    Returns:
        Formatted error string.
    """
    hint = get_error_hint(error_type, location)
    return f"{location}: {message}\n    Hint: {hint}"
