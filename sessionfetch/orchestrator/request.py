"""Inbound retrieval request model."""

from typing import Annotated
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sessionfetch.errors.validation import RequestValidationError


VALID_URL_SCHEMES = ("http", "https")


def _validate_absolute_url(value: str) -> str:
    value = value.strip()
    parts = urlsplit(value)
    if parts.scheme.lower() not in VALID_URL_SCHEMES or not parts.netloc:
        msg = f"'{value}' is not an absolute http(s) URL"
        raise ValueError(msg)
    return value


class FetchRequest(BaseModel):
    """One inbound retrieval, immutable after creation.

    The deadline instant is not stored here: it is started by the
    orchestrator when the run leaves IDLE, so validation never consumes
    budget.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_url: Annotated[str, Field(min_length=1, description="URL to retrieve")]
    base_url: str | None = Field(
        default=None, description="URL visited first to establish a session"
    )
    total_budget_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = 20.0

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        """Require an absolute http(s) target URL."""
        return _validate_absolute_url(v)

    @field_validator("base_url", mode="before")
    @classmethod
    def validate_base_url(cls, v: object) -> object:
        """Treat a blank base URL as absent; otherwise require http(s)."""
        if v is None:
            return None
        if isinstance(v, str):
            if not v.strip():
                return None
            return _validate_absolute_url(v)
        return v


def build_request(
    target_url: str | None,
    base_url: str | None = None,
    total_budget_seconds: float = 20.0,
) -> FetchRequest:
    """Validate caller input into a FetchRequest.

    Args:
        target_url: URL to retrieve.
        base_url: Optional URL to bootstrap the session from.
        total_budget_seconds: Total time budget.

    Returns:
        The validated request.

    Raises:
        RequestValidationError: If any input is missing or malformed.
    """
    try:
        return FetchRequest(
            target_url=target_url,  # type: ignore[arg-type]
            base_url=base_url,
            total_budget_seconds=total_budget_seconds,
        )
    except ValidationError as e:
        raise RequestValidationError.from_pydantic(e) from e
