"""Unit tests for terminal failure classification."""

import pytest

from sessionfetch.errors.classifier import NO_ATTEMPT_MESSAGE, classify, classify_failure
from sessionfetch.errors.models import REMEDIATION_HINT_MAP, ErrorKind
from sessionfetch.fetch.models import Failure, FailureKind


ORIGIN = "https://api.example.com/data"


class TestClassifyFailure:
    """Tests for classify_failure rules."""

    @pytest.mark.unit
    def test_none_is_unknown(self) -> None:
        """Test that a missing failure is UNKNOWN."""
        assert classify_failure(None) == ErrorKind.UNKNOWN

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind", [FailureKind.TIMEOUT, FailureKind.DEADLINE_EXCEEDED]
    )
    def test_timeout_kinds(self, kind: FailureKind) -> None:
        """Test that attempt and deadline timeouts are TIMEOUT."""
        assert classify_failure(Failure(kind=kind, message="x")) == ErrorKind.TIMEOUT

    @pytest.mark.unit
    def test_403_is_access_denied(self) -> None:
        """Test that HTTP 403 is ACCESS_DENIED."""
        failure = Failure(
            kind=FailureKind.HTTP_ERROR, message="HTTP 403: Forbidden", status_code=403
        )
        assert classify_failure(failure) == ErrorKind.ACCESS_DENIED

    @pytest.mark.unit
    def test_401_is_unauthorized(self) -> None:
        """Test that HTTP 401 is UNAUTHORIZED."""
        failure = Failure(kind=FailureKind.HTTP_ERROR, message="HTTP 401", status_code=401)
        assert classify_failure(failure) == ErrorKind.UNAUTHORIZED

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Navigation timeout of 3000 ms exceeded", ErrorKind.TIMEOUT),
            ("Request timed out", ErrorKind.TIMEOUT),
            ("Access Denied by edge", ErrorKind.ACCESS_DENIED),
            ("forbidden", ErrorKind.ACCESS_DENIED),
            ("User is Unauthorized", ErrorKind.UNAUTHORIZED),
            ("network unreachable", ErrorKind.NETWORK_ERROR),
            ("DNS lookup failed", ErrorKind.NETWORK_ERROR),
            ("something odd happened", ErrorKind.UNKNOWN),
        ],
    )
    def test_keyword_matching(self, message: str, expected: ErrorKind) -> None:
        """Test message keywords when kind and status settle nothing."""
        failure = Failure(kind=FailureKind.UNKNOWN, message=message)
        assert classify_failure(failure) == expected

    @pytest.mark.unit
    def test_transport_error_is_network_error(self) -> None:
        """Test that transport failures are NETWORK_ERROR."""
        failure = Failure(kind=FailureKind.TRANSPORT_ERROR, message="Browser error: boom")
        assert classify_failure(failure) == ErrorKind.NETWORK_ERROR

    @pytest.mark.unit
    def test_status_wins_over_keywords(self) -> None:
        """Test that a 401 status beats a misleading message."""
        failure = Failure(
            kind=FailureKind.HTTP_ERROR, message="forbidden area", status_code=401
        )
        assert classify_failure(failure) == ErrorKind.UNAUTHORIZED

    @pytest.mark.unit
    def test_other_status_is_unknown(self) -> None:
        """Test that a 500 without keywords is UNKNOWN."""
        failure = Failure(
            kind=FailureKind.HTTP_ERROR,
            message="HTTP 500: Internal Server Error",
            status_code=500,
        )
        assert classify_failure(failure) == ErrorKind.UNKNOWN


class TestClassify:
    """Tests for building the caller-facing error."""

    @pytest.mark.unit
    def test_builds_classified_error(self) -> None:
        """Test that the classified error carries origin, hint and status."""
        failure = Failure(
            kind=FailureKind.HTTP_ERROR, message="HTTP 401: Unauthorized", status_code=401
        )

        error = classify(failure, ORIGIN, strategy_name="http")

        assert error.kind == ErrorKind.UNAUTHORIZED
        assert error.message == "HTTP 401: Unauthorized"
        assert error.origin_url == ORIGIN
        assert error.hint == REMEDIATION_HINT_MAP[ErrorKind.UNAUTHORIZED]
        assert error.status_code == 401
        assert error.strategy_name == "http"

    @pytest.mark.unit
    def test_without_failure(self) -> None:
        """Test classification when nothing ran."""
        error = classify(None, ORIGIN)

        assert error.kind == ErrorKind.UNKNOWN
        assert error.message == NO_ATTEMPT_MESSAGE
        assert error.status_code is None

    @pytest.mark.unit
    def test_every_kind_has_hint_and_reason(self) -> None:
        """Test that no kind is left without caller guidance."""
        for kind in ErrorKind:
            error = classify(None, ORIGIN).model_copy(update={"kind": kind})
            assert error.reason_text
            assert REMEDIATION_HINT_MAP[kind]

    @pytest.mark.unit
    def test_to_dict(self) -> None:
        """Test serialization for logs and the CLI."""
        error = classify(
            Failure(kind=FailureKind.TIMEOUT, message="Attempt timed out"), ORIGIN
        )

        assert error.to_dict() == {
            "kind": "TIMEOUT",
            "message": "Attempt timed out",
            "origin_url": ORIGIN,
            "hint": REMEDIATION_HINT_MAP[ErrorKind.TIMEOUT],
            "status_code": None,
            "strategy_name": None,
        }
