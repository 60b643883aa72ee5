from __future__ import annotations

import asyncio

import pytest

from mcp_invoke.observability import obs
from mcp_invoke.observability.trace.context import TraceContext
from mcp_invoke.observability.trace.envelope import EventRecord, SpanRecord, TraceEnvelope, compute_aggregates


def test_trace_context_activate_and_current() -> None:
    assert TraceContext.current() is None

    ctx = TraceContext.new("t1", trace_type="mcp")
    with TraceContext.activate(ctx):
        assert TraceContext.current() is ctx
    assert TraceContext.current() is None


def test_bind_and_invoke_spans_nest_under_request(mock_clock) -> None:
    ctx = TraceContext.new("t2")
    with TraceContext.activate(ctx):
        with ctx.start_span("stage.invoke"):
            ctx.add_event("handler.resolved")
            with ctx.start_span("stage.adapt", {"to": "dict"}):
                ctx.add_event("result.adapted", {"from": "StatusResult"})
        env = ctx.finish()

    assert env.trace_id == "t2"
    outer, inner = env.spans
    assert inner.parent_span_id == outer.span_id
    assert outer.end_ts is not None and inner.end_ts is not None
    assert [e.kind for e in outer.events] == ["handler.resolved"]
    assert [e.kind for e in inner.events] == ["result.adapted"]
    assert env.aggregates["total_ms"] == 0.0


def test_exception_records_error_and_finish_is_still_possible() -> None:
    ctx = TraceContext.new("t3")
    with TraceContext.activate(ctx):
        with pytest.raises(KeyError):
            with ctx.start_span("stage.bind"):
                raise KeyError("orgId")
        env = ctx.finish()

    [s] = env.spans
    assert s.status == "error"
    assert any(e.kind == "error" and e.attrs["exc_type"] == "KeyError" for e in s.events)
    assert env.status == "error"
    assert env.aggregates["error_count"] == 2


def test_concurrent_requests_keep_separate_contexts(memory_sink) -> None:
    async def one(i: int) -> str | None:
        with obs.trace_request("mcp", request_id=i) as ctx:
            await asyncio.sleep(0)
            obs.event("tool.resolved", {"tool": f"t{i}"})
            await asyncio.sleep(0)
            assert obs.current_trace_id() == ctx.trace_id
            return ctx.trace_id

    async def run() -> list[str | None]:
        return await asyncio.gather(*(one(i) for i in range(5)))

    ids = asyncio.run(run())
    assert len(set(ids)) == 5
    for env in memory_sink.traces:
        assert [e.attrs["tool"] for e in env.events] == [f"t{env.request_id}"]


def test_strict_validation_rejects_unknown_event_kind() -> None:
    ctx = TraceContext.new("t-validate-1")
    with TraceContext.activate(ctx):
        with obs.span("stage.bind"):
            obs.event("invalid.kind", {"x": 1})
        env = ctx.finish()

    with pytest.raises(ValueError):
        env.validate(strict=True)
    env.validate(strict=False)


def test_strict_validation_accepts_dispatch_events() -> None:
    ctx = TraceContext.new("t-validate-2")
    with TraceContext.activate(ctx):
        with obs.with_stage("bind"):
            obs.event("binding.bound", {"arity": 0})
        env = ctx.finish()

    env.validate(strict=True)


def test_compute_aggregates_per_stage() -> None:
    bind = SpanRecord(span_id="s1", name="stage.bind", parent_span_id=None, start_ts=0.0, end_ts=0.25)
    invoke = SpanRecord(span_id="s2", name="stage.invoke", parent_span_id=None, start_ts=0.25, end_ts=1.0)
    invoke.events.append(EventRecord(ts=0.5, kind="handler.fault", attrs={"exc_type": "RuntimeError"}))
    invoke.status = "error"

    env = TraceEnvelope(trace_id="t-agg", start_ts=0.0, end_ts=2.0, spans=[bind, invoke])
    agg = compute_aggregates(env)
    assert agg["total_ms"] == 2000.0
    assert agg["stage_ms"] == {"bind": 250.0, "invoke": 750.0}
    assert agg["span_count"] == 2
    assert agg["error_count"] == 1


def test_finish_hands_envelope_to_sink_and_survives_write_failure() -> None:
    delivered: list[TraceEnvelope] = []

    class ListSink:
        def on_trace_end(self, envelope: TraceEnvelope) -> None:
            delivered.append(envelope)

    class BrokenSink:
        def on_trace_end(self, envelope: TraceEnvelope) -> None:
            raise OSError("disk full")

    ctx = TraceContext.new("t5", request_id=7)
    ctx.add_event("request.received")
    env = ctx.finish(sink=ListSink())
    assert delivered == [env]
    assert env.request_id == 7
    assert [e.kind for e in env.events] == ["request.received"]

    assert TraceContext.new("t6").finish(sink=BrokenSink()).trace_id == "t6"
