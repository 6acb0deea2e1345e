"""Status-code classification for display.

`describe_status` is a fixed lookup table, not the server's reason phrase
(that one is kept on each hop as `statusText`).
"""

from __future__ import annotations

from typing import Any, Literal

StatusCategory = Literal["none", "2xx", "3xx", "4xx", "5xx"]

UNKNOWN_STATUS = "Unknown Status"

_DESCRIPTIONS: dict[int, str] = {
    # 2xx
    200: "OK",
    201: "Created",
    202: "Accepted",
    204: "No Content",
    # 3xx
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "Switch Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    # 4xx
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    429: "Too Many Requests",
    # 5xx
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}

_CATEGORIES: dict[int, StatusCategory] = {2: "2xx", 3: "3xx", 4: "4xx", 5: "5xx"}


def describe_status(code: int) -> str:
    return _DESCRIPTIONS.get(code, UNKNOWN_STATUS)


def status_category(code: int) -> StatusCategory:
    if code < 200 or code >= 600:
        return "none"
    return _CATEGORIES[code // 100]


def annotate(payload: dict[str, Any]) -> dict[str, Any]:
    """Add statusDescription/statusCategory to each step of a serialized result.

    Mutates and returns `payload` (a `TraceResult.to_dict()` output).
    """
    for step in payload.get("steps") or []:
        code = step.get("statusCode")
        if not isinstance(code, int):
            continue
        step["statusDescription"] = describe_status(code)
        step["statusCategory"] = status_category(code)
    return payload
