"""Fetch layer: session extraction and strategy executors.

This module provides the single-attempt retrieval building blocks:
- Set-Cookie and session header extraction into a SessionState
- The StrategyExecutor protocol
- A plain HTTP executor (httpx) and a browser executor (Playwright)
- Header redaction for logging
"""

from sessionfetch.fetch.browser_executor import BrowserExecutor, BrowserMode
from sessionfetch.fetch.cookies import extract_session, parse_cookie_pair, split_set_cookie
from sessionfetch.fetch.executor import StrategyExecutor
from sessionfetch.fetch.http_executor import HttpExecutor
from sessionfetch.fetch.models import (
    AttemptResult,
    Content,
    Failure,
    FailureKind,
    SessionState,
    StrategyError,
)
from sessionfetch.fetch.redact import (
    describe_session,
    redact_headers,
    redact_url_credentials,
)


__all__ = [
    # Executors
    "StrategyExecutor",
    "HttpExecutor",
    "BrowserExecutor",
    "BrowserMode",
    # Extraction
    "extract_session",
    "parse_cookie_pair",
    "split_set_cookie",
    # Models
    "AttemptResult",
    "Content",
    "Failure",
    "FailureKind",
    "SessionState",
    "StrategyError",
    # Redaction
    "describe_session",
    "redact_headers",
    "redact_url_credentials",
]
