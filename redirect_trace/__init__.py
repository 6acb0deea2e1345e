"""Redirect Trace - hop-by-hop HTTP redirect chain checker."""

__version__ = "1.0.0"

from .models import Hop, HopTiming, TraceOptions, TraceResult
from .status import describe_status, status_category
from .tracer import RedirectTracer, trace

__all__ = [
    "Hop",
    "HopTiming",
    "RedirectTracer",
    "TraceOptions",
    "TraceResult",
    "describe_status",
    "status_category",
    "trace",
]
