"""Data models for the fetch layer."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from sessionfetch.fetch.constants import (
    COOKIE_HEADER,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)


class FailureKind(str, Enum):
    """Classification of a single strategy attempt failure.

    - TIMEOUT: The attempt exceeded its own timeout
    - DEADLINE_EXCEEDED: The request-wide budget ran out
    - HTTP_ERROR: The server answered with a non-2xx status
    - TRANSPORT_ERROR: Connection, protocol or browser failure
    - RESPONSE_TOO_LARGE: Body exceeded the configured size cap
    - INVALID_REQUEST: The executor rejected the URL itself
    - UNKNOWN: Unclassified error raised by an executor
    """

    TIMEOUT = "TIMEOUT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    HTTP_ERROR = "HTTP_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    RESPONSE_TOO_LARGE = "RESPONSE_TOO_LARGE"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN = "UNKNOWN"


_RETRYABLE_KINDS = frozenset(
    {
        FailureKind.TIMEOUT,
        FailureKind.HTTP_ERROR,
        FailureKind.TRANSPORT_ERROR,
    }
)

# Kinds that end the whole orchestration, not just the current strategy
_FATAL_KINDS = frozenset(
    {
        FailureKind.DEADLINE_EXCEEDED,
        FailureKind.INVALID_REQUEST,
    }
)


class Failure(BaseModel):
    """Typed failure from one strategy attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: FailureKind = Field(description="Classification of the failure")
    message: Annotated[str, Field(min_length=1, description="Human-readable message")]
    status_code: int | None = Field(
        default=None, description="HTTP status code if a response arrived"
    )
    url: str | None = Field(default=None, description="URL the attempt targeted")

    @property
    def is_retryable(self) -> bool:
        """Check if another attempt of the same strategy may succeed."""
        return self.kind in _RETRYABLE_KINDS

    @property
    def is_fatal(self) -> bool:
        """Check if the failure must stop escalation to later strategies."""
        return self.kind in _FATAL_KINDS


class StrategyError(Exception):
    """Raised by a strategy executor when its single attempt fails."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the strategy error.

        Args:
            kind: Classification of the failure.
            message: Human-readable error message.
            status_code: HTTP status code, if a response arrived.
            url: URL the attempt targeted.
        """
        super().__init__(message)
        self.failure = Failure(
            kind=kind,
            message=message,
            status_code=status_code,
            url=url,
        )

    @property
    def kind(self) -> FailureKind:
        """Get the failure kind."""
        return self.failure.kind


class Content(BaseModel):
    """Content returned by a successful strategy attempt.

    The body is passed to the caller verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    body: bytes = Field(default=b"", description="Raw response body")
    content_type: str | None = Field(
        default=None, description="Declared content type, if any"
    )
    status_code: int = Field(default=200, ge=100, le=599)
    final_url: Annotated[
        str, Field(min_length=1, description="Final URL after redirects")
    ]
    headers: tuple[tuple[str, str], ...] = Field(
        default=(), description="Response headers, multi-valued entries kept"
    )
    strategy_name: str | None = Field(
        default=None, description="Strategy that produced the content"
    )

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def text(self) -> str:
        """Decode the body as UTF-8, replacing undecodable bytes."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def body_size(self) -> int:
        """Get the size of the body in bytes."""
        return len(self.body)


class SessionState(BaseModel):
    """Session artifacts harvested from the base URL.

    Cookies keep their arrival order; duplicate names are allowed and the
    last value wins when the Cookie header is assembled.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cookies: tuple[tuple[str, str], ...] = Field(default=())
    extra_headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """Check if no cookie or header was captured."""
        return not self.cookies and not self.extra_headers

    @property
    def cookie_names(self) -> list[str]:
        """Get cookie names in arrival order, without duplicates."""
        return list(dict.fromkeys(name for name, _ in self.cookies))

    def cookie_header(self) -> str:
        """Assemble the Cookie header value.

        Returns:
            `name=value` pairs joined by `; `, or an empty string.
        """
        merged = self.cookie_pairs()
        return "; ".join(f"{name}={value}" for name, value in merged.items())

    def cookie_pairs(self) -> dict[str, str]:
        """Get the effective cookies after last-wins merging."""
        merged: dict[str, str] = {}
        for name, value in self.cookies:
            merged[name] = value
        return merged

    def request_headers(self) -> dict[str, str]:
        """Build the headers to inject into a follow-up request.

        Returns:
            Allow-listed session headers plus the Cookie header.
        """
        headers = dict(self.extra_headers)
        cookie = self.cookie_header()
        if cookie:
            headers[COOKIE_HEADER] = cookie
        return headers

    def with_header(self, name: str, value: str) -> "SessionState":
        """Return a copy with one extra header set, unless already present."""
        if any(key.lower() == name.lower() for key in self.extra_headers):
            return self
        headers = dict(self.extra_headers)
        headers[name] = value
        return SessionState(cookies=self.cookies, extra_headers=headers)


class AttemptResult(BaseModel):
    """Record of one strategy attempt, used for logging and decisions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy_name: Annotated[str, Field(min_length=1)]
    attempt_number: Annotated[int, Field(ge=1)]
    url: str
    failure: Failure | None = None
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def succeeded(self) -> bool:
        """Check if the attempt produced content."""
        return self.failure is None
