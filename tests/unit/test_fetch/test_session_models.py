"""Unit tests for fetch-layer models."""

import pytest
from pydantic import ValidationError

from sessionfetch.fetch.models import (
    AttemptResult,
    Content,
    Failure,
    FailureKind,
    SessionState,
    StrategyError,
)


class TestFailure:
    """Tests for Failure retry and fatality flags."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind",
        [FailureKind.TIMEOUT, FailureKind.HTTP_ERROR, FailureKind.TRANSPORT_ERROR],
    )
    def test_retryable_kinds(self, kind: FailureKind) -> None:
        """Test kinds that allow another attempt."""
        failure = Failure(kind=kind, message="failed")

        assert failure.is_retryable is True
        assert failure.is_fatal is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind", [FailureKind.DEADLINE_EXCEEDED, FailureKind.INVALID_REQUEST]
    )
    def test_fatal_kinds(self, kind: FailureKind) -> None:
        """Test kinds that stop the whole run."""
        failure = Failure(kind=kind, message="failed")

        assert failure.is_retryable is False
        assert failure.is_fatal is True

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind", [FailureKind.RESPONSE_TOO_LARGE, FailureKind.UNKNOWN]
    )
    def test_escalate_without_retry(self, kind: FailureKind) -> None:
        """Test kinds that move on to the next strategy immediately."""
        failure = Failure(kind=kind, message="failed")

        assert failure.is_retryable is False
        assert failure.is_fatal is False

    @pytest.mark.unit
    def test_message_required(self) -> None:
        """Test that an empty message is rejected."""
        with pytest.raises(ValidationError):
            Failure(kind=FailureKind.UNKNOWN, message="")


class TestStrategyError:
    """Tests for StrategyError."""

    @pytest.mark.unit
    def test_carries_failure(self) -> None:
        """Test that the exception wraps a typed Failure."""
        error = StrategyError(
            FailureKind.HTTP_ERROR,
            "HTTP 401: Unauthorized",
            status_code=401,
            url="https://api.example.com/data",
        )

        assert error.kind == FailureKind.HTTP_ERROR
        assert error.failure.status_code == 401
        assert error.failure.url == "https://api.example.com/data"
        assert str(error) == "HTTP 401: Unauthorized"


class TestContent:
    """Tests for Content."""

    @pytest.mark.unit
    def test_body_passed_verbatim(self) -> None:
        """Test that body bytes are kept as given."""
        content = Content(body=b'{"x":1}', final_url="https://api.example.com/data")

        assert content.body == b'{"x":1}'
        assert content.text == '{"x":1}'
        assert content.body_size == 7
        assert content.is_success is True

    @pytest.mark.unit
    def test_text_replaces_invalid_utf8(self) -> None:
        """Test that undecodable bytes do not raise."""
        content = Content(body=b"\xff\xfeok", final_url="https://x.example")

        assert content.text.endswith("ok")

    @pytest.mark.unit
    def test_is_frozen(self) -> None:
        """Test that content cannot be mutated."""
        content = Content(final_url="https://x.example")

        with pytest.raises(ValidationError):
            content.body = b"changed"  # type: ignore[misc]


class TestSessionState:
    """Tests for SessionState."""

    @pytest.mark.unit
    def test_empty_state(self) -> None:
        """Test the empty session."""
        session = SessionState()

        assert session.is_empty
        assert session.cookie_header() == ""
        assert session.request_headers() == {}

    @pytest.mark.unit
    def test_cookie_header_last_wins(self) -> None:
        """Test that a repeated name keeps its last value and first position."""
        session = SessionState(cookies=(("a", "1"), ("b", "2"), ("a", "3")))

        assert session.cookie_header() == "a=3; b=2"
        assert session.cookie_names == ["a", "b"]

    @pytest.mark.unit
    def test_request_headers_include_cookie_and_extras(self) -> None:
        """Test the headers injected into follow-up requests."""
        session = SessionState(
            cookies=(("sid", "abc123"),),
            extra_headers={"X-CSRF-Token": "tok"},
        )

        assert session.request_headers() == {
            "X-CSRF-Token": "tok",
            "Cookie": "sid=abc123",
        }

    @pytest.mark.unit
    def test_with_header_adds_missing(self) -> None:
        """Test that with_header returns a new state with the header."""
        session = SessionState(cookies=(("sid", "1"),))

        updated = session.with_header("Referer", "https://www.example.com")

        assert updated.extra_headers == {"Referer": "https://www.example.com"}
        assert updated.cookies == session.cookies
        assert session.extra_headers == {}

    @pytest.mark.unit
    def test_with_header_keeps_existing(self) -> None:
        """Test that a header already present is not overwritten."""
        session = SessionState(extra_headers={"referer": "https://a.example"})

        updated = session.with_header("Referer", "https://b.example")

        assert updated.extra_headers == {"referer": "https://a.example"}


class TestAttemptResult:
    """Tests for AttemptResult."""

    @pytest.mark.unit
    def test_succeeded_without_failure(self) -> None:
        """Test that an attempt without failure succeeded."""
        attempt = AttemptResult(
            strategy_name="http", attempt_number=1, url="https://x.example"
        )

        assert attempt.succeeded is True

    @pytest.mark.unit
    def test_attempt_number_starts_at_one(self) -> None:
        """Test that attempt numbers are 1-indexed."""
        with pytest.raises(ValidationError):
            AttemptResult(strategy_name="http", attempt_number=0, url="https://x")
