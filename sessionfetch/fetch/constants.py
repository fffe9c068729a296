"""HTTP constants for the fetch layer.

Centralizes status ranges, size limits and the session header allow-list.
"""

from typing import Final


# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

SET_COOKIE_HEADER = "set-cookie"
COOKIE_HEADER = "Cookie"
REFERER_HEADER = "Referer"

# Non-cookie response headers carried forward to the follow-up request
SESSION_HEADER_ALLOWLIST: Final[frozenset[str]] = frozenset(
    {
        "authorization",
        "x-csrf-token",
        "x-csrf",
        "csrf-token",
        "x-xsrf-token",
        "authenticity-token",
        "x-requested-with",
        "x-api-key",
        "x-auth-token",
        "x-session-id",
    }
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36"
)

# Browser-like navigation headers sent by the plain HTTP executor
DEFAULT_BROWSER_HEADERS: Final[dict[str, str]] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "max-age=0",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}
