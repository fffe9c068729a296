"""Redaction helpers so session credentials never reach the logs."""

import re

from sessionfetch.fetch.constants import SESSION_HEADER_ALLOWLIST
from sessionfetch.fetch.models import SessionState


# Headers that must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "cookie",
        "set-cookie",
        "proxy-authorization",
        *SESSION_HEADER_ALLOWLIST,
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS = re.compile(r"(https?://)([^:/@]+):([^@]+)@")


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name is sensitive.

    Args:
        header_name: The header name to check.

    Returns:
        True if the header should be redacted.
    """
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive header values for logging.

    Args:
        headers: Original headers dictionary.

    Returns:
        New dictionary with sensitive values replaced by [REDACTED].
    """
    return {
        key: REDACTED_VALUE if is_sensitive_header(key) else value
        for key, value in headers.items()
    }


def redact_url_credentials(url: str) -> str:
    """Redact `user:password@` credentials from a URL.

    Args:
        url: URL that may contain credentials.

    Returns:
        URL with credentials redacted.
    """
    return _URL_CREDENTIALS.sub(r"\1[REDACTED]:[REDACTED]@", url)


def describe_session(session: SessionState) -> dict[str, list[str]]:
    """Summarize a session by names only.

    Args:
        session: Session to describe.

    Returns:
        Cookie names and header names, without any values.
    """
    return {
        "cookie_names": session.cookie_names,
        "header_names": sorted(session.extra_headers),
    }
