"""Redirect-chain tracer.

Follows a URL hop by hop, one request at a time, and records every response
until a terminal status, a loop or the redirect limit. Every outcome is
reported through `TraceResult.error`; `trace()` does not raise for network
faults or bad input.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional
from urllib.parse import urljoin, urlsplit

from .models import Hop, HopTiming, TraceOptions, TraceResult
from .transport import Fetch, FetchError, RawResponse, http_get

log = logging.getLogger(__name__)

INVALID_URL_ERROR = "Invalid URL. Please include the protocol (http:// or https://)"
LOOP_ERROR = "Circular redirect detected"
CANCELLED_ERROR = "Trace cancelled"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_terminal(resp: RawResponse) -> bool:
    return resp.status < 300 or resp.status >= 400 or not resp.headers.get("location")


def _hop(url: str, resp: RawResponse, start: int, end: int) -> Hop:
    return Hop(
        url=url,
        status_code=resp.status,
        status_text=resp.reason,
        headers=dict(resp.headers),
        location=resp.headers.get("location"),
        timing=HopTiming(start=start, end=end),
    )


class RedirectTracer:
    """Trace redirect chains.

    The tracer holds no per-trace state, so one instance may serve concurrent
    callers. `fetch` is the single-request transport (see `transport.http_get`).
    """

    def __init__(self, fetch: Fetch = http_get):
        self.fetch = fetch

    def trace(
        self,
        url: str,
        options: Optional[TraceOptions] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> TraceResult:
        opts = options or TraceOptions()
        started = _now_ms()

        if not url or not url.startswith(("http://", "https://")):
            log.warning("Refusing to trace %r: missing http(s) scheme", url)
            return TraceResult(
                initial_url=url,
                final_url=url,
                total_time_ms=_now_ms() - started,
                error=INVALID_URL_ERROR,
            )

        hops: list[Hop] = []
        redirect_count = 0
        error: Optional[str] = None
        current = url

        while True:
            if cancel is not None and cancel.is_set():
                error = CANCELLED_ERROR
                break

            hop_start = _now_ms()
            try:
                resp = self.fetch(current, user_agent=opts.user_agent, timeout_ms=opts.timeout_ms)
            except FetchError as e:
                log.warning("Trace of %s stopped at %s: %s", url, current, e)
                error = str(e)
                if e.response is not None:
                    hops.append(_hop(current, e.response, hop_start, _now_ms()))
                break

            hop = _hop(current, resp, hop_start, _now_ms())
            hops.append(hop)
            log.debug("%s -> %s %s", current, resp.status, hop.location or "")

            if not opts.follow_redirects or _is_terminal(resp):
                break

            try:
                target = urljoin(current, hop.location)
                scheme = urlsplit(target).scheme.lower()
            except ValueError as e:
                log.warning("Bad Location %r at %s: %s", hop.location, current, e)
                error = f"Invalid redirect location {hop.location!r}: {e}"
                break

            if scheme not in ("http", "https"):
                error = f"Unsupported protocol {scheme}:"
                break

            # Exact string match; the repeated URL is not requested again.
            if any(h.url == target for h in hops):
                error = LOOP_ERROR
                break

            if redirect_count >= opts.max_redirects:
                error = f"Maximum number of redirects ({opts.max_redirects}) reached"
                break

            current = target
            redirect_count += 1

        result = TraceResult(
            initial_url=url,
            final_url=hops[-1].url if hops else url,
            hops=tuple(hops),
            redirect_count=redirect_count,
            total_time_ms=_now_ms() - started,
            error=error,
        )
        log.info(
            "Traced %s: %d hop(s), %d redirect(s)%s",
            url,
            len(result.hops),
            redirect_count,
            f", error: {error}" if error else "",
        )
        return result


def trace(url: str, options: Optional[TraceOptions] = None) -> TraceResult:
    """Trace `url` with the default urllib transport."""
    return RedirectTracer().trace(url, options)
