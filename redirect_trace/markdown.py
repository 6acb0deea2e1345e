"""Markdown report formatter for a redirect trace.

Presentation only; works on `TraceResult.to_dict()` output (optionally
annotated by `status.annotate`).
"""

from __future__ import annotations

import re
from typing import Any


def _md_code(value: Any) -> str:
    """Render an inline code span, handling backticks safely."""
    if value is None:
        return "-"
    s = str(value)
    ticks = 0
    for m in re.finditer(r"`+", s):
        ticks = max(ticks, len(m.group(0)))
    delim = "`" * (ticks + 1)
    if s.startswith(" ") or s.endswith(" "):
        return f"{delim} {s} {delim}"
    return f"{delim}{s}{delim}"


def _cell(value: Any) -> str:
    """Escape text for use in a Markdown table cell."""
    if value is None or value == "":
        return "-"
    s = str(value).replace("\r", "").replace("\n", " ")
    # Tables use '|' as a delimiter.
    return s.replace("|", "\\|")


def to_markdown(result: dict[str, Any], *, include_headers: bool = False) -> str:
    out: list[str] = []
    out.append("# Redirect Trace")
    out.append("")
    out.append(f"- Initial URL: {_md_code(result.get('initialUrl'))}")
    out.append(f"- Final URL: {_md_code(result.get('finalUrl'))}")
    out.append(f"- Redirects: {_md_code(result.get('redirectCount', 0))}")
    total = result.get("totalTime")
    out.append(f"- Total time: {_md_code(f'{total} ms' if total is not None else None)}")
    if result.get("error"):
        out.append(f"- Error: {_md_code(result['error'])}")
    out.append("")
    out.append("## Chain")
    out.append("")

    steps = result.get("steps") or []
    if not steps:
        out.append("_No responses recorded._")
        return "\n".join(out) + "\n"

    out.append("| # | URL | Status | Location | Time (ms) |")
    out.append("|---|-----|--------|----------|-----------|")
    for i, step in enumerate(steps, start=1):
        status = f"{step.get('statusCode')} {step.get('statusText') or ''}".strip()
        timing = step.get("timing") or {}
        out.append(
            f"| {i} | {_cell(step.get('url'))} | {_cell(status)} | "
            f"{_cell(step.get('location'))} | {_cell(timing.get('duration'))} |"
        )

    if include_headers:
        for i, step in enumerate(steps, start=1):
            out.append("")
            out.append(f"### Step {i} headers")
            out.append("")
            headers = step.get("headers") or {}
            if not headers:
                out.append("_None._")
                continue
            out.append("| Header | Value |")
            out.append("|--------|-------|")
            for name, value in sorted(headers.items()):
                out.append(f"| {_cell(name)} | {_cell(value)} |")

    return "\n".join(out) + "\n"
