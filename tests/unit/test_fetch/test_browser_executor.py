"""Unit tests for the Playwright-based strategy executor.

Playwright is replaced by small fakes so no browser is launched.
"""

import asyncio
import base64
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from sessionfetch.config.models import BackoffKind, OrchestratorConfig, RetryPolicy
from sessionfetch.fetch.browser_executor import BrowserExecutor, BrowserMode
from sessionfetch.fetch.models import Content, FailureKind, SessionState, StrategyError
from sessionfetch.orchestrator import EscalationOrchestrator
from sessionfetch.orchestrator.metrics import RetrievalMetrics
from tests.helpers.executors import ScriptedExecutor, make_content


TARGET_URL = "https://api.example.com/v1/data?x=1"


def _b64(body: bytes) -> str:
    return base64.b64encode(body).decode("ascii")


@dataclass
class FakeResponse:
    status: int = 200
    status_text: str = "OK"
    url: str = TARGET_URL
    body_bytes: bytes = b"<html>ok</html>"
    header_items: list[tuple[str, str]] = field(
        default_factory=lambda: [("content-type", "text/html")]
    )

    @property
    def headers(self) -> dict[str, str]:
        return {name.lower(): value for name, value in self.header_items}

    async def body(self) -> bytes:
        return self.body_bytes

    async def headers_array(self) -> list[dict[str, str]]:
        return [{"name": name, "value": value} for name, value in self.header_items]


@dataclass
class FakeBrowserState:
    """Everything the fakes observed, plus scripted behaviour."""

    response: FakeResponse | None = field(default_factory=FakeResponse)
    evaluate_result: dict[str, Any] | None = None
    goto_error: Exception | None = None
    store_cookies: list[dict[str, str]] = field(default_factory=list)
    added_cookies: list[dict[str, str]] = field(default_factory=list)
    extra_headers: dict[str, str] = field(default_factory=dict)
    gotos: list[str] = field(default_factory=list)
    evaluated_urls: list[str] = field(default_factory=list)
    default_timeout_ms: int | None = None
    user_agent: str | None = None
    closed: bool = False


class FakePage:
    def __init__(self, state: FakeBrowserState) -> None:
        self._state = state

    def set_default_timeout(self, timeout_ms: int) -> None:
        self._state.default_timeout_ms = timeout_ms

    async def goto(self, url: str, wait_until: str, timeout: int) -> FakeResponse | None:
        self._state.gotos.append(url)
        if self._state.goto_error is not None:
            raise self._state.goto_error
        return self._state.response

    async def evaluate(self, script: str, url: str) -> dict[str, Any] | None:
        self._state.evaluated_urls.append(url)
        return self._state.evaluate_result


class FakeContext:
    def __init__(self, state: FakeBrowserState) -> None:
        self._state = state

    async def add_cookies(self, cookies: list[dict[str, str]]) -> None:
        self._state.added_cookies.extend(cookies)

    async def set_extra_http_headers(self, headers: dict[str, str]) -> None:
        self._state.extra_headers.update(headers)

    async def new_page(self) -> FakePage:
        return FakePage(self._state)

    async def cookies(self) -> list[dict[str, str]]:
        return list(self._state.store_cookies)


class FakeBrowser:
    def __init__(self, state: FakeBrowserState) -> None:
        self._state = state

    async def new_context(self, user_agent: str) -> FakeContext:
        self._state.user_agent = user_agent
        return FakeContext(self._state)

    async def close(self) -> None:
        self._state.closed = True


class FakeChromium:
    def __init__(self, state: FakeBrowserState) -> None:
        self._state = state

    async def launch(self, headless: bool, args: list[str]) -> FakeBrowser:
        return FakeBrowser(self._state)


class FakePlaywright:
    def __init__(self, state: FakeBrowserState) -> None:
        self.chromium = FakeChromium(state)


def _factory(state: FakeBrowserState) -> Any:
    @asynccontextmanager
    async def factory() -> AsyncIterator[FakePlaywright]:
        yield FakePlaywright(state)

    return factory


def _execute(
    state: FakeBrowserState,
    mode: BrowserMode = BrowserMode.NAVIGATE,
    session: SessionState | None = None,
) -> Content:
    executor = BrowserExecutor(
        name="browser" if mode == BrowserMode.NAVIGATE else "browser_fetch",
        mode=mode,
        user_agent="test-agent/1.0",
        playwright_factory=_factory(state),
    )
    return asyncio.run(executor.execute(TARGET_URL, session or SessionState(), 2.5))


class TestNavigateMode:
    """Tests for top-level navigation."""

    @pytest.mark.unit
    def test_returns_page_content(self) -> None:
        """Test a successful navigation."""
        state = FakeBrowserState()

        content = _execute(state)

        assert content.body == b"<html>ok</html>"
        assert content.content_type == "text/html"
        assert content.strategy_name == "browser"
        assert state.gotos == [TARGET_URL]
        assert state.default_timeout_ms == 2500
        assert state.user_agent == "test-agent/1.0"
        assert state.closed is True

    @pytest.mark.unit
    def test_installs_session(self) -> None:
        """Test that cookies and headers are installed in the context."""
        state = FakeBrowserState()
        session = SessionState(
            cookies=(("sid", "old"), ("sid", "abc123")),
            extra_headers={"X-CSRF-Token": "tok"},
        )

        _execute(state, session=session)

        assert state.added_cookies == [
            {"name": "sid", "value": "abc123", "url": TARGET_URL}
        ]
        assert state.extra_headers == {"X-CSRF-Token": "tok"}

    @pytest.mark.unit
    def test_cookie_store_becomes_set_cookie_headers(self) -> None:
        """Test that browser cookies are reported as Set-Cookie entries."""
        state = FakeBrowserState(
            response=FakeResponse(
                header_items=[
                    ("content-type", "text/html"),
                    ("set-cookie", "raw=ignored"),
                ]
            ),
            store_cookies=[{"name": "sid", "value": "abc123"}],
        )

        content = _execute(state)

        assert ("set-cookie", "sid=abc123") in content.headers
        assert ("set-cookie", "raw=ignored") not in content.headers

    @pytest.mark.unit
    def test_non_2xx_is_http_error(self) -> None:
        """Test that a 403 page is an HTTP_ERROR and the browser is closed."""
        state = FakeBrowserState(
            response=FakeResponse(status=403, status_text="Forbidden")
        )

        with pytest.raises(StrategyError) as exc_info:
            _execute(state)

        assert exc_info.value.kind == FailureKind.HTTP_ERROR
        assert exc_info.value.failure.status_code == 403
        assert exc_info.value.failure.message == "HTTP 403: Forbidden"
        assert state.closed is True

    @pytest.mark.unit
    def test_no_response_is_transport_error(self) -> None:
        """Test that a navigation without a response fails."""
        state = FakeBrowserState(response=None)

        with pytest.raises(StrategyError) as exc_info:
            _execute(state)

        assert exc_info.value.kind == FailureKind.TRANSPORT_ERROR

    @pytest.mark.unit
    def test_playwright_timeout(self) -> None:
        """Test that Playwright timeouts map to TIMEOUT."""
        state = FakeBrowserState(goto_error=PlaywrightTimeoutError("Timeout 2500ms"))

        with pytest.raises(StrategyError) as exc_info:
            _execute(state)

        assert exc_info.value.kind == FailureKind.TIMEOUT
        assert state.closed is True

    @pytest.mark.unit
    def test_playwright_error(self) -> None:
        """Test that other Playwright errors map to TRANSPORT_ERROR."""
        state = FakeBrowserState(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

        with pytest.raises(StrategyError) as exc_info:
            _execute(state)

        assert exc_info.value.kind == FailureKind.TRANSPORT_ERROR
        assert "ERR_NAME_NOT_RESOLVED" in exc_info.value.failure.message


class TestInPageFetchMode:
    """Tests for fetch() from inside the page."""

    @pytest.mark.unit
    def test_loads_origin_then_fetches(self) -> None:
        """Test that the origin is loaded before the in-page fetch."""
        state = FakeBrowserState(
            evaluate_result={
                "status": 200,
                "statusText": "OK",
                "url": TARGET_URL,
                "contentType": "application/json",
                "bodyBase64": _b64(b'{"ok":true}'),
            }
        )

        content = _execute(state, mode=BrowserMode.IN_PAGE_FETCH)

        assert state.gotos == ["https://api.example.com/"]
        assert state.evaluated_urls == [TARGET_URL]
        assert content.body == b'{"ok":true}'
        assert content.content_type == "application/json"
        assert content.strategy_name == "browser_fetch"

    @pytest.mark.unit
    def test_in_page_401(self) -> None:
        """Test that a 401 from the in-page fetch is an HTTP_ERROR."""
        state = FakeBrowserState(
            evaluate_result={
                "status": 401,
                "statusText": "Unauthorized",
                "url": TARGET_URL,
                "contentType": None,
                "bodyBase64": "",
            }
        )

        with pytest.raises(StrategyError) as exc_info:
            _execute(state, mode=BrowserMode.IN_PAGE_FETCH)

        assert exc_info.value.failure.status_code == 401
        assert exc_info.value.failure.message == "HTTP 401: Unauthorized"

    @pytest.mark.unit
    def test_binary_body_is_verbatim(self) -> None:
        """Test that non-UTF-8 bytes come back unchanged."""
        raw = b"\x89PNG\r\n\x1a\n\xff\xfe\x00latin-1 caf\xe9"
        state = FakeBrowserState(
            evaluate_result={
                "status": 200,
                "statusText": "OK",
                "url": TARGET_URL,
                "contentType": "application/octet-stream",
                "bodyBase64": _b64(raw),
            }
        )

        content = _execute(state, mode=BrowserMode.IN_PAGE_FETCH)

        assert content.body == raw

    @pytest.mark.unit
    def test_reports_cookie_store_and_headers(self) -> None:
        """Test that the cookie store and response headers are returned."""
        state = FakeBrowserState(
            evaluate_result={
                "status": 200,
                "statusText": "OK",
                "url": TARGET_URL,
                "contentType": "text/html",
                "headers": [
                    ["content-type", "text/html"],
                    ["x-csrf-token", "tok-1"],
                ],
                "bodyBase64": _b64(b"<html></html>"),
            },
            store_cookies=[
                {"name": "sid", "value": "abc123"},
                {"name": "lang", "value": "en"},
            ],
        )

        content = _execute(state, mode=BrowserMode.IN_PAGE_FETCH)

        assert ("x-csrf-token", "tok-1") in content.headers
        assert ("set-cookie", "sid=abc123") in content.headers
        assert ("set-cookie", "lang=en") in content.headers


class TestInPageFetchBootstrap:
    """Tests for the in-page fetch strategy used as the session bootstrap."""

    def setup_method(self) -> None:
        """Reset metrics before each test."""
        RetrievalMetrics.reset()

    @pytest.mark.unit
    def test_bootstrap_cookies_reach_target(self) -> None:
        """Test that cookies the base page set are sent to the target."""
        state = FakeBrowserState(
            evaluate_result={
                "status": 200,
                "statusText": "OK",
                "url": "https://www.example.com/",
                "contentType": "text/html",
                "headers": [["x-csrf-token", "tok-1"]],
                "bodyBase64": _b64(b"<html>home</html>"),
            },
            store_cookies=[{"name": "sid", "value": "abc123"}],
        )
        browser = BrowserExecutor(
            name="browser_fetch",
            mode=BrowserMode.IN_PAGE_FETCH,
            playwright_factory=_factory(state),
        )
        http = ScriptedExecutor("http", [make_content(b'{"ok":true}')])
        config = OrchestratorConfig(
            total_budget_seconds=5.0,
            bootstrap_strategy="browser_fetch",
            retry_policy=RetryPolicy(
                max_attempts=1, backoff=BackoffKind.FIXED, base_delay_ms=0
            ),
        )
        orchestrator = EscalationOrchestrator([http, browser], config)

        result = asyncio.run(
            orchestrator.retrieve(
                "https://api.example.com/data", "https://www.example.com/"
            )
        )

        assert result.is_success
        assert state.evaluated_urls == ["https://www.example.com/"]
        sent = http.calls[0].session
        assert sent.cookies == (("sid", "abc123"),)
        assert sent.extra_headers["x-csrf-token"] == "tok-1"
        assert sent.extra_headers["Referer"] == "https://www.example.com/"
