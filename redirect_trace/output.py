"""Outcome severity and exit codes."""

from __future__ import annotations

from .models import TraceResult
from .status import status_category

_OUTCOME_ORDER = ["none", "2xx", "3xx", "4xx", "5xx", "error"]


def outcome(result: TraceResult) -> str:
    """'error' when the trace failed, else the final hop's status category."""
    if not result.ok:
        return "error"
    hop = result.final_hop
    return status_category(hop.status_code) if hop else "none"


def outcome_level(o: str) -> int:
    try:
        return _OUTCOME_ORDER.index(o)
    except ValueError:
        return _OUTCOME_ORDER.index("error")


def exit_code_from_result(result: TraceResult, *, fail_on: str | None) -> int:
    o = outcome(result)

    # Default: 0 unless the trace itself failed
    if fail_on is None:
        return 0 if o != "error" else 2

    if outcome_level(o) >= outcome_level(fail_on):
        return 1

    return 0 if o != "error" else 2
