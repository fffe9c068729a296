"""Caller-facing error taxonomy."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Kind of a terminal retrieval failure.

    - TIMEOUT: The request budget or an attempt timed out
    - ACCESS_DENIED: The target refused access (403, bot detection)
    - UNAUTHORIZED: The target required credentials (401)
    - NETWORK_ERROR: Connection or transport failure
    - UNKNOWN: Anything else
    """

    TIMEOUT = "TIMEOUT"
    ACCESS_DENIED = "ACCESS_DENIED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


REASON_TEXT_MAP: dict[ErrorKind, str] = {
    ErrorKind.TIMEOUT: "The request did not complete within its time budget.",
    ErrorKind.ACCESS_DENIED: "The target denied access to the resource.",
    ErrorKind.UNAUTHORIZED: "The target rejected the request as unauthorized.",
    ErrorKind.NETWORK_ERROR: "The target could not be reached.",
    ErrorKind.UNKNOWN: "The content could not be retrieved.",
}

REMEDIATION_HINT_MAP: dict[ErrorKind, str] = {
    ErrorKind.TIMEOUT: "Retry later or increase the total budget.",
    ErrorKind.ACCESS_DENIED: "Wait before retrying; the target may be rate limiting or blocking automated clients.",
    ErrorKind.UNAUTHORIZED: "Provide a base URL that establishes a session, or check that the session is still valid.",
    ErrorKind.NETWORK_ERROR: "Check network connectivity and DNS resolution for the target host.",
    ErrorKind.UNKNOWN: "Check the target URL and retry; inspect logs for the last failure.",
}


class ClassifiedError(BaseModel):
    """The single error surfaced to a caller when retrieval fails."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ErrorKind = Field(description="Error classification")
    message: Annotated[str, Field(min_length=1, description="Error message")]
    origin_url: str = Field(description="Target URL of the failed retrieval")
    hint: str = Field(description="Remediation hint for the caller")
    status_code: int | None = Field(
        default=None, description="Last HTTP status seen, if any"
    )
    strategy_name: str | None = Field(
        default=None, description="Strategy whose failure was classified"
    )

    @property
    def reason_text(self) -> str:
        """Get the fixed human-readable reason for the kind."""
        return REASON_TEXT_MAP[self.kind]

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert to a dictionary for logging/serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "origin_url": self.origin_url,
            "hint": self.hint,
            "status_code": self.status_code,
            "strategy_name": self.strategy_name,
        }
