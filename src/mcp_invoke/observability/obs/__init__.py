"""User-facing observability API (trace/span/event/metric)."""

from .api import current_trace_id, event, get_sink, metric, set_sink, span, trace_request, with_stage

__all__ = [
    "trace_request",
    "span",
    "event",
    "metric",
    "set_sink",
    "get_sink",
    "with_stage",
    "current_trace_id",
]
