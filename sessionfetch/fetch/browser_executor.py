"""Rendering-engine strategy executor built on Playwright."""

import base64
from collections.abc import Callable
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from sessionfetch.fetch.constants import (
    DEFAULT_USER_AGENT,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    SET_COOKIE_HEADER,
)
from sessionfetch.fetch.models import (
    Content,
    FailureKind,
    SessionState,
    StrategyError,
)
from sessionfetch.fetch.redact import describe_session, redact_url_credentials


logger = structlog.get_logger()

DEFAULT_LAUNCH_ARGS = ("--disable-dev-shm-usage", "--no-sandbox")

# Runs inside the page so the request carries the page's origin and cookies
_IN_PAGE_FETCH_JS = """
async (url) => {
  const resp = await fetch(url, {
    credentials: "include",
    headers: {"Accept": "application/json, text/plain, */*"},
  });
  // Body crosses back as base64 so binary and non-UTF-8 bytes survive
  const bytes = new Uint8Array(await resp.arrayBuffer());
  let binary = "";
  for (let i = 0; i < bytes.length; i += 0x8000) {
    binary += String.fromCharCode.apply(null, bytes.subarray(i, i + 0x8000));
  }
  return {
    status: resp.status,
    statusText: resp.statusText,
    url: resp.url,
    contentType: resp.headers.get("content-type"),
    headers: Array.from(resp.headers.entries()),
    bodyBase64: btoa(binary),
  };
}
"""


class BrowserMode(str, Enum):
    """How the browser retrieves the target.

    - NAVIGATE: Load the URL as a top-level page
    - IN_PAGE_FETCH: Load the URL's origin, then call fetch() from the page
    """

    NAVIGATE = "navigate"
    IN_PAGE_FETCH = "in_page_fetch"


class BrowserExecutor:
    """Retrieve a URL with headless Chromium.

    Each attempt launches its own browser and closes it in `finally`,
    including when the attempt is cancelled by the request deadline.
    """

    def __init__(
        self,
        name: str = "browser",
        mode: BrowserMode = BrowserMode.NAVIGATE,
        user_agent: str = DEFAULT_USER_AGENT,
        headless: bool = True,
        launch_args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        """Initialize the browser executor.

        Args:
            name: Strategy name used in logs and results.
            mode: Navigation or in-page fetch.
            user_agent: User agent for the browser context.
            headless: Whether to run without a window.
            launch_args: Extra Chromium arguments.
            playwright_factory: Returns an async context manager yielding
                a Playwright instance.
        """
        self.name = name
        self._mode = mode
        self._user_agent = user_agent
        self._headless = headless
        self._launch_args = list(launch_args)
        self._playwright_factory = playwright_factory
        self._log = logger.bind(component="browser", strategy=name, mode=mode.value)

    async def execute(
        self,
        url: str,
        session: SessionState,
        timeout: float,
    ) -> Content:
        """Retrieve a URL once in a fresh browser.

        Args:
            url: URL to retrieve.
            session: Session artifacts installed into the browser context.
            timeout: Seconds available for this attempt.

        Returns:
            Content of the 2xx response.

        Raises:
            StrategyError: On timeout, browser failure or non-2xx status.
        """
        timeout_ms = max(1, int(timeout * 1000))
        self._log.debug(
            "browser_attempt",
            url=redact_url_credentials(url),
            timeout_ms=timeout_ms,
            **describe_session(session),
        )

        try:
            async with self._playwright_factory() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self._headless,
                    args=self._launch_args,
                )
                try:
                    context = await browser.new_context(user_agent=self._user_agent)
                    await self._install_session(context, session, url)
                    page = await context.new_page()
                    page.set_default_timeout(timeout_ms)

                    if self._mode == BrowserMode.IN_PAGE_FETCH:
                        return await self._fetch_in_page(context, page, url, timeout_ms)
                    return await self._navigate(context, page, url, timeout_ms)
                finally:
                    await browser.close()

        except PlaywrightTimeoutError as e:
            raise StrategyError(
                FailureKind.TIMEOUT,
                f"Browser timed out after {timeout_ms}ms: {e}",
                url=url,
            ) from e

        except PlaywrightError as e:
            raise StrategyError(
                FailureKind.TRANSPORT_ERROR,
                f"Browser error: {e}",
                url=url,
            ) from e

    async def _install_session(
        self,
        context: Any,
        session: SessionState,
        url: str,
    ) -> None:
        cookies = [
            {"name": name, "value": value, "url": url}
            for name, value in session.cookie_pairs().items()
        ]
        if cookies:
            await context.add_cookies(cookies)
        if session.extra_headers:
            await context.set_extra_http_headers(dict(session.extra_headers))

    async def _navigate(
        self,
        context: Any,
        page: Any,
        url: str,
        timeout_ms: int,
    ) -> Content:
        response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        if response is None:
            raise StrategyError(
                FailureKind.TRANSPORT_ERROR,
                "Navigation produced no response",
                url=url,
            )

        self._check_status(response.status, response.status_text, url)

        body = await response.body()
        headers = [
            (item["name"], item["value"])
            for item in await response.headers_array()
            if item["name"].lower() != SET_COOKIE_HEADER
        ]
        headers.extend(await self._cookie_headers(context))

        return Content(
            body=body,
            content_type=response.headers.get("content-type"),
            status_code=response.status,
            final_url=response.url or url,
            headers=tuple(headers),
            strategy_name=self.name,
        )

    async def _fetch_in_page(
        self,
        context: Any,
        page: Any,
        url: str,
        timeout_ms: int,
    ) -> Content:
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}/"
        await page.goto(origin, wait_until="domcontentloaded", timeout=timeout_ms)

        result = await page.evaluate(_IN_PAGE_FETCH_JS, url)
        status = int(result["status"])
        self._check_status(status, result.get("statusText") or "", url)

        # fetch() never exposes Set-Cookie, so cookies come from the store
        headers = [
            (str(name), str(value))
            for name, value in result.get("headers") or []
            if str(name).lower() != SET_COOKIE_HEADER
        ]
        headers.extend(await self._cookie_headers(context))

        return Content(
            body=base64.b64decode(result.get("bodyBase64") or ""),
            content_type=result.get("contentType"),
            status_code=status,
            final_url=result.get("url") or url,
            headers=tuple(headers),
            strategy_name=self.name,
        )

    async def _cookie_headers(self, context: Any) -> list[tuple[str, str]]:
        """Report the browser cookie store as Set-Cookie entries.

        The store includes cookies set by scripts and redirects, which the
        response headers alone would miss.
        """
        return [
            (SET_COOKIE_HEADER, f"{cookie['name']}={cookie['value']}")
            for cookie in await context.cookies()
        ]

    def _check_status(self, status: int, status_text: str, url: str) -> None:
        if not HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX:
            raise StrategyError(
                FailureKind.HTTP_ERROR,
                f"HTTP {status}: {status_text}".rstrip(": "),
                status_code=status,
                url=url,
            )
