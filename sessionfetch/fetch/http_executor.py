"""Plain HTTP strategy executor built on httpx."""

from io import BytesIO

import httpx
import structlog

from sessionfetch.fetch.constants import (
    DEFAULT_BROWSER_HEADERS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_USER_AGENT,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)
from sessionfetch.fetch.models import (
    Content,
    FailureKind,
    SessionState,
    StrategyError,
)
from sessionfetch.fetch.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()


class HttpExecutor:
    """Issue one protocol-level GET with session headers injected.

    A fresh `httpx.AsyncClient` is opened per attempt and closed on every
    exit path, so no connection or cookie state outlives the attempt.
    """

    def __init__(
        self,
        name: str = "http",
        user_agent: str = DEFAULT_USER_AGENT,
        default_headers: dict[str, str] | None = None,
        max_response_size_bytes: int = DEFAULT_MAX_RESPONSE_SIZE_BYTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP executor.

        Args:
            name: Strategy name used in logs and results.
            user_agent: User-Agent header value.
            default_headers: Headers sent on every request; defaults to
                browser-like navigation headers.
            max_response_size_bytes: Body size cap.
            transport: Optional httpx transport (used by tests).
        """
        self.name = name
        self._user_agent = user_agent
        self._default_headers = (
            dict(DEFAULT_BROWSER_HEADERS)
            if default_headers is None
            else dict(default_headers)
        )
        self._max_response_size_bytes = max_response_size_bytes
        self._transport = transport
        self._log = logger.bind(component="fetch", strategy=name)

    def _build_headers(self, session: SessionState) -> dict[str, str]:
        headers: dict[str, str] = {"User-Agent": self._user_agent}
        headers.update(self._default_headers)
        headers.update(session.request_headers())
        return headers

    async def execute(
        self,
        url: str,
        session: SessionState,
        timeout: float,
    ) -> Content:
        """Fetch a URL once.

        Args:
            url: URL to fetch.
            session: Session artifacts to inject.
            timeout: Seconds available for this attempt.

        Returns:
            Content of the 2xx response.

        Raises:
            StrategyError: On timeout, transport failure or non-2xx status.
        """
        headers = self._build_headers(session)
        log = self._log.bind(url=redact_url_credentials(url))
        log.debug("http_request", headers=redact_headers(headers), timeout=timeout)

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, headers=headers) as response:
                    return await self._read_response(response, url)

        except httpx.TimeoutException as e:
            raise StrategyError(
                FailureKind.TIMEOUT,
                f"Request timed out after {timeout:.2f}s: {e}",
                url=url,
            ) from e

        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise StrategyError(
                FailureKind.INVALID_REQUEST,
                f"Invalid request URL: {e}",
                url=url,
            ) from e

        except httpx.ConnectError as e:
            raise StrategyError(
                FailureKind.TRANSPORT_ERROR,
                f"Connection failed: {e}",
                url=url,
            ) from e

        except httpx.RequestError as e:
            raise StrategyError(
                FailureKind.TRANSPORT_ERROR,
                f"Transport error: {e}",
                url=url,
            ) from e

    async def _read_response(self, response: httpx.Response, url: str) -> Content:
        status = response.status_code

        if not HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX:
            raise StrategyError(
                FailureKind.HTTP_ERROR,
                f"HTTP {status}: {response.reason_phrase}",
                status_code=status,
                url=url,
            )

        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self._max_response_size_bytes:
                raise StrategyError(
                    FailureKind.RESPONSE_TOO_LARGE,
                    f"Response size {size} exceeds limit "
                    f"{self._max_response_size_bytes}",
                    status_code=status,
                    url=url,
                )

        body = await self._read_body_with_limit(response, url)

        return Content(
            body=body,
            content_type=response.headers.get("content-type"),
            status_code=status,
            final_url=str(response.url),
            headers=tuple(response.headers.multi_items()),
            strategy_name=self.name,
        )

    async def _read_body_with_limit(self, response: httpx.Response, url: str) -> bytes:
        buffer = BytesIO()
        total_read = 0

        async for chunk in response.aiter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > self._max_response_size_bytes:
                raise StrategyError(
                    FailureKind.RESPONSE_TOO_LARGE,
                    f"Response size exceeded limit of "
                    f"{self._max_response_size_bytes} bytes (read {total_read} bytes)",
                    status_code=response.status_code,
                    url=url,
                )
            buffer.write(chunk)

        return buffer.getvalue()
