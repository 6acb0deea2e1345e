"""Caller-side URL normalization.

The tracer rejects schemeless input; front-ends prefix `https://` first, the
same way the web form does.
"""

from __future__ import annotations


def normalize_url(value: str) -> str:
    raw = value.strip()
    if not raw:
        raise ValueError("URL is required")

    if raw.lower().startswith(("http://", "https://")):
        # Lower-case only the scheme; the tracer's check is case-sensitive.
        scheme, rest = raw.split("://", 1)
        return f"{scheme.lower()}://{rest}"

    return "https://" + raw
