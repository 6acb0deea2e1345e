"""Single-request HTTP transport used by the tracer.

We never let urllib follow redirects: the tracer inspects every hop itself.
The opener only speaks http and https.
With no redirect handler installed, 3xx/4xx/5xx surface as HTTPError, which
still carries code, reason and headers; those are converted into ordinary
responses. Only transport failures (DNS, refused connection, TLS, timeout)
are raised, as FetchError.

The body is never read.
"""

from __future__ import annotations

import http.client
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import (
    HTTPDefaultErrorHandler,
    HTTPErrorProcessor,
    HTTPHandler,
    HTTPSHandler,
    OpenerDirector,
    ProxyHandler,
    Request,
    UnknownHandler,
    getproxies,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    status: int
    reason: str
    headers: dict[str, str] = field(default_factory=dict)


class FetchError(Exception):
    """A request failed before a usable response was available.

    `response` is set when the transport got far enough to see a status line
    and headers before failing.
    """

    def __init__(self, message: str, *, response: Optional[RawResponse] = None):
        super().__init__(message)
        self.response = response


class Fetch(Protocol):
    def __call__(self, url: str, *, user_agent: str, timeout_ms: int) -> RawResponse: ...


def _build_opener() -> OpenerDirector:
    """HTTP(S)-only opener with no redirect handler.

    3xx responses fall through to HTTPDefaultErrorHandler untouched (original
    reason phrase, Location not parsed). Any other scheme is rejected by
    UnknownHandler, so file:, data: and ftp: are never opened.
    """
    proxies = {k: v for k, v in getproxies().items() if k in ("http", "https")}
    opener = OpenerDirector()
    for handler in (
        ProxyHandler(proxies),
        UnknownHandler(),
        HTTPHandler(),
        HTTPSHandler(),
        HTTPDefaultErrorHandler(),
        HTTPErrorProcessor(),
    ):
        opener.add_handler(handler)
    return opener


_opener = _build_opener()


def headers_to_dict(headers: Any) -> dict[str, str]:
    """Flatten response headers, lower-casing names. Last value wins."""
    out: dict[str, str] = {}
    if headers is None:
        return out

    try:
        items = headers.items()
    except AttributeError:
        return out

    for k, v in items:
        if k is None:
            continue
        out[str(k).lower()] = str(v)
    return out


def _is_timeout(err: BaseException) -> bool:
    if isinstance(err, TimeoutError):
        return True
    return isinstance(err, URLError) and isinstance(err.reason, TimeoutError)


def _message(err: BaseException, timeout_ms: int) -> str:
    if _is_timeout(err):
        return f"timeout of {timeout_ms}ms exceeded"
    if isinstance(err, URLError):
        return str(err.reason)
    return str(err) or type(err).__name__


def http_get(url: str, *, user_agent: str, timeout_ms: int) -> RawResponse:
    """GET `url` once without following redirects; any status is a response."""
    req = Request(url, method="GET", headers={"User-Agent": user_agent})

    try:
        resp = _opener.open(req, timeout=timeout_ms / 1000.0)
    except HTTPError as e:
        # Redirects and error statuses land here; they are still responses.
        try:
            return RawResponse(
                status=int(e.code), reason=str(e.reason or ""), headers=headers_to_dict(e.headers)
            )
        finally:
            e.close()
    except (http.client.HTTPException, OSError, ValueError) as e:
        log.debug("GET %s failed: %r", url, e)
        raise FetchError(_message(e, timeout_ms)) from e

    if resp is None:
        raise FetchError(f"Unsupported protocol for {url}")

    with resp:
        status = getattr(resp, "status", None) or resp.getcode()
        if status is None:
            raise FetchError(f"No HTTP status line in response from {url}")
        return RawResponse(
            status=int(status),
            reason=str(getattr(resp, "reason", "") or ""),
            headers=headers_to_dict(resp.headers),
        )
