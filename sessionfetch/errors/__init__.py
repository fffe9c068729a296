"""Error taxonomy, classification and input validation errors."""

from sessionfetch.errors.classifier import classify, classify_failure
from sessionfetch.errors.models import (
    REASON_TEXT_MAP,
    REMEDIATION_HINT_MAP,
    ClassifiedError,
    ErrorKind,
)
from sessionfetch.errors.validation import RequestValidationError, settings_error


__all__ = [
    "ClassifiedError",
    "ErrorKind",
    "REASON_TEXT_MAP",
    "REMEDIATION_HINT_MAP",
    "RequestValidationError",
    "classify",
    "classify_failure",
    "settings_error",
]
