"""Terminal failure classification.

Maps the last strategy failure to a caller-facing ErrorKind. Messages from
executors are free text, so the mapping falls back to keyword matching
when no status code or failure kind settles it. Extend by adding rules,
not by branching on callers.
"""

from sessionfetch.errors.models import REMEDIATION_HINT_MAP, ClassifiedError, ErrorKind
from sessionfetch.fetch.constants import HTTP_STATUS_FORBIDDEN, HTTP_STATUS_UNAUTHORIZED
from sessionfetch.fetch.models import Failure, FailureKind


_TIMEOUT_KINDS = frozenset({FailureKind.TIMEOUT, FailureKind.DEADLINE_EXCEEDED})

_TIMEOUT_WORDS = ("timed out", "timeout", "deadline")
_ACCESS_DENIED_WORDS = ("forbidden", "access denied")
_UNAUTHORIZED_WORDS = ("unauthorized", "unauthorised")
_NETWORK_WORDS = ("connection", "network", "dns", "unreachable")

NO_ATTEMPT_MESSAGE = "No retrieval attempt was made"


def classify_failure(failure: Failure | None) -> ErrorKind:
    """Map a failure to an error kind.

    Args:
        failure: Last failure, or None if nothing ran.

    Returns:
        The error kind; UNKNOWN when no rule matches.
    """
    if failure is None:
        return ErrorKind.UNKNOWN

    message = failure.message.lower()

    if failure.kind in _TIMEOUT_KINDS:
        return ErrorKind.TIMEOUT
    if failure.status_code == HTTP_STATUS_FORBIDDEN:
        return ErrorKind.ACCESS_DENIED
    if failure.status_code == HTTP_STATUS_UNAUTHORIZED:
        return ErrorKind.UNAUTHORIZED
    if any(word in message for word in _TIMEOUT_WORDS):
        return ErrorKind.TIMEOUT
    if any(word in message for word in _ACCESS_DENIED_WORDS):
        return ErrorKind.ACCESS_DENIED
    if any(word in message for word in _UNAUTHORIZED_WORDS):
        return ErrorKind.UNAUTHORIZED
    if failure.kind == FailureKind.TRANSPORT_ERROR:
        return ErrorKind.NETWORK_ERROR
    if any(word in message for word in _NETWORK_WORDS):
        return ErrorKind.NETWORK_ERROR

    return ErrorKind.UNKNOWN


def classify(
    failure: Failure | None,
    origin_url: str,
    strategy_name: str | None = None,
) -> ClassifiedError:
    """Build the caller-facing error for a terminal failure.

    Args:
        failure: Last failure encountered, or None if nothing ran.
        origin_url: Target URL of the retrieval.
        strategy_name: Strategy that produced the failure.

    Returns:
        ClassifiedError with kind, message and remediation hint.
    """
    kind = classify_failure(failure)
    return ClassifiedError(
        kind=kind,
        message=failure.message if failure else NO_ATTEMPT_MESSAGE,
        origin_url=origin_url,
        hint=REMEDIATION_HINT_MAP[kind],
        status_code=failure.status_code if failure else None,
        strategy_name=strategy_name,
    )
