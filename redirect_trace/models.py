"""Models for redirect-trace.

Plain frozen dataclasses (no pydantic in the core library). `to_dict()` emits
the JSON wire contract consumed by the web UI:

- TraceResult: initialUrl, finalUrl, steps, redirectCount, totalTime, error
- Hop: url, statusCode, statusText, headers, location, timing

Optional fields that are None are left out of the JSON object.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/97.0.4692.71 Safari/537.36"
)


@dataclass(frozen=True)
class TraceOptions:
    """Per-trace settings.

    - user_agent: sent as `User-Agent` on every hop
    - timeout_ms: per-hop timeout; exceeding it ends the whole trace
    - follow_redirects: when False exactly one request is made
    - max_redirects: safety bound on redirects followed
    """

    user_agent: str = DEFAULT_USER_AGENT
    timeout_ms: int = 10000
    follow_redirects: bool = True
    max_redirects: int = 20

    def merged(self, overrides: Mapping[str, Any]) -> "TraceOptions":
        """Return a copy with every non-None override applied."""
        known = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(known) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown trace options: {', '.join(sorted(unknown))}")
        return replace(self, **known)


@dataclass(frozen=True)
class HopTiming:
    start: int  # epoch ms
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end, "duration": self.duration}


@dataclass(frozen=True)
class Hop:
    url: str
    status_code: int
    status_text: str
    # Lower-cased header name -> value (last wins for repeated headers).
    headers: dict[str, str] = field(default_factory=dict)
    location: Optional[str] = None
    timing: Optional[HopTiming] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "url": self.url,
            "statusCode": self.status_code,
            "statusText": self.status_text,
            "headers": dict(self.headers),
        }
        if self.location is not None:
            out["location"] = self.location
        if self.timing is not None:
            out["timing"] = self.timing.to_dict()
        return out


@dataclass(frozen=True)
class TraceResult:
    initial_url: str
    final_url: str
    hops: tuple[Hop, ...] = ()
    redirect_count: int = 0
    total_time_ms: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def final_hop(self) -> Optional[Hop]:
        return self.hops[-1] if self.hops else None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "initialUrl": self.initial_url,
            "finalUrl": self.final_url,
            "steps": [h.to_dict() for h in self.hops],
            "redirectCount": self.redirect_count,
        }
        if self.total_time_ms is not None:
            out["totalTime"] = self.total_time_ms
        if self.error is not None:
            out["error"] = self.error
        return out
