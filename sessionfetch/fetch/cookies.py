"""Session artifact extraction from response headers.

Turns the `Set-Cookie` entries and allow-listed auth headers of a base URL
response into a `SessionState` for exactly one follow-up request. No cookie
jar is kept, so cookie attributes (Path, Domain, Expires, ...) are dropped.
"""

import re
from collections.abc import Iterable, Mapping, Sequence

from sessionfetch.fetch.constants import SESSION_HEADER_ALLOWLIST, SET_COOKIE_HEADER
from sessionfetch.fetch.models import SessionState


# A comma starts a new cookie only when followed by `token=`
_COOKIE_START = re.compile(r"^\s*[!#$%&'*+\-.^_`|~0-9A-Za-z]+=")

HeaderInput = Mapping[str, str | Sequence[str]] | Iterable[tuple[str, str]]


def split_set_cookie(value: str) -> list[str]:
    """Split a possibly comma-joined Set-Cookie value into cookie strings.

    Commas inside attribute values (e.g. `Expires=Wed, 09-Jun-2025 ...`)
    are kept, since the text after them does not look like `name=`.

    Args:
        value: Raw Set-Cookie header value.

    Returns:
        Individual cookie strings, attributes included.
    """
    cookies: list[str] = []
    current = ""

    for part in value.split(","):
        if _COOKIE_START.match(part):
            if current.strip():
                cookies.append(current.strip())
            current = part
        else:
            current = f"{current},{part}" if current else part

    if current.strip():
        cookies.append(current.strip())

    return cookies


def parse_cookie_pair(cookie: str) -> tuple[str, str] | None:
    """Reduce a cookie string to its `(name, value)` pair.

    Args:
        cookie: Single cookie string such as `sid=abc; Path=/; HttpOnly`.

    Returns:
        The name/value pair, or None if the cookie has no name.
    """
    pair = cookie.split(";", 1)[0].strip()
    name, sep, value = pair.partition("=")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


def _iter_headers(headers: HeaderInput) -> Iterable[tuple[str, str]]:
    if isinstance(headers, Mapping):
        for name, value in headers.items():
            if isinstance(value, str):
                yield name, value
            else:
                for item in value:
                    yield name, item
    else:
        yield from headers


def extract_session(headers: HeaderInput) -> SessionState:
    """Build a SessionState from a response's headers.

    Accepts either a mapping (values may be a string or a list of strings)
    or an iterable of `(name, value)` pairs with repeated names, which is
    what `httpx.Headers.multi_items()` returns. Never raises; headers with
    nothing usable give an empty SessionState.

    Args:
        headers: Response headers.

    Returns:
        Cookies in arrival order plus allow-listed session headers.
    """
    cookies: list[tuple[str, str]] = []
    extra_headers: dict[str, str] = {}

    for name, value in _iter_headers(headers):
        lowered = name.lower()
        if lowered == SET_COOKIE_HEADER:
            for cookie in split_set_cookie(value):
                pair = parse_cookie_pair(cookie)
                if pair is not None:
                    cookies.append(pair)
        elif lowered in SESSION_HEADER_ALLOWLIST and value:
            extra_headers[name] = value

    return SessionState(cookies=tuple(cookies), extra_headers=extra_headers)
