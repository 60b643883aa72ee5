from __future__ import annotations

import contextvars
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol

from .envelope import EventRecord, SpanRecord, TraceEnvelope, compute_aggregates, new_event, new_span


logger = logging.getLogger(__name__)

_CURRENT: contextvars.ContextVar["TraceContext | None"] = contextvars.ContextVar("mcp_invoke_trace", default=None)


class TraceSink(Protocol):
    def on_trace_end(self, envelope: TraceEnvelope) -> None: ...


@dataclass
class TraceContext:
    """Trace of one dispatched request.

    Bound to a contextvar, so concurrent requests on the same loop each see
    their own. Spans are the dispatch stages (bind, invoke); events recorded
    while no stage is open belong to the request itself.
    """

    trace_id: str
    start_ts: float
    trace_type: str = "unknown"
    tool_name: str | None = None
    request_id: Any | None = None
    spans: list[SpanRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    _open: list[SpanRecord] = field(default_factory=list, repr=False)

    @classmethod
    def new(
        cls,
        trace_id: str | None = None,
        *,
        trace_type: str = "unknown",
        request_id: Any | None = None,
    ) -> "TraceContext":
        return cls(
            trace_id=trace_id or f"trace_{uuid.uuid4().hex}",
            start_ts=time.time(),
            trace_type=trace_type,
            request_id=request_id,
        )

    @classmethod
    def current(cls) -> "TraceContext | None":
        return _CURRENT.get()

    @classmethod
    @contextmanager
    def activate(cls, ctx: "TraceContext") -> Iterator["TraceContext"]:
        token = _CURRENT.set(ctx)
        try:
            yield ctx
        finally:
            _CURRENT.reset(token)

    def current_span(self) -> SpanRecord | None:
        return self._open[-1] if self._open else None

    @contextmanager
    def start_span(self, name: str, attrs: dict[str, Any] | None = None) -> Iterator[SpanRecord]:
        parent = self.current_span()
        s = new_span(
            span_id=f"span_{uuid.uuid4().hex[:16]}",
            name=name,
            parent_span_id=parent.span_id if parent is not None else None,
            start_ts=time.time(),
            attrs=dict(attrs or {}),
        )
        self.spans.append(s)
        self._open.append(s)
        try:
            yield s
        except Exception as e:
            s.status = "error"
            self.add_event("error", {"exc_type": type(e).__name__, "message": str(e)})
            raise
        finally:
            self._open.remove(s)
            s.end_ts = time.time()

    def add_event(self, kind: str, attrs: dict[str, Any] | None = None) -> EventRecord:
        ev = new_event(kind, attrs, ts=time.time())
        cur = self.current_span()
        (cur.events if cur is not None else self.events).append(ev)
        return ev

    def finish(self, *, status: str | None = None, sink: TraceSink | None = None) -> TraceEnvelope:
        """Seal the trace into an envelope and hand it to `sink`.

        A failing sink is logged; it never turns a served request into an error.
        """
        if status is None:
            status = "error" if any(s.status == "error" for s in self.spans) else "ok"
        envelope = TraceEnvelope(
            trace_id=self.trace_id,
            trace_type=self.trace_type,
            status=status,
            start_ts=self.start_ts,
            end_ts=time.time(),
            tool_name=self.tool_name,
            request_id=self.request_id,
            spans=list(self.spans),
            events=list(self.events),
        )
        envelope.aggregates = compute_aggregates(envelope)
        if sink is not None:
            try:
                sink.on_trace_end(envelope)
            except OSError as e:
                logger.warning("trace sink write failed for %s: %s", self.trace_id, e)
        return envelope
