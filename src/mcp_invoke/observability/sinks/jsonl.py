from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from ...jsonrpc.codec import to_jsonable
from ..trace.envelope import TraceEnvelope


class JsonlSink:
    """
    Append-only JSONL sink for request trace envelopes.

    If path_or_dir is a directory (or has no `.jsonl` suffix), `traces.jsonl`
    inside it is used.
    """

    def __init__(self, path_or_dir: str | Path) -> None:
        p = Path(path_or_dir)
        self.path = p if p.suffix == ".jsonl" else p / "traces.jsonl"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def write(self, envelope: TraceEnvelope) -> None:
        line = json.dumps(to_jsonable(envelope.to_dict()), ensure_ascii=True)
        with self._lock, self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_all(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        out: list[dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(json.loads(line))
        return out

    # --- ObsSink compatibility ---
    def on_event(self, record: dict[str, Any]) -> None:  # noqa: D401
        """No-op; the JSONL sink only persists whole trace envelopes."""
        return

    def on_span_end(self, record: dict[str, Any]) -> None:  # noqa: D401
        """No-op; the JSONL sink only persists whole trace envelopes."""
        return

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.write(envelope)


class MemorySink:
    """Collects envelopes in memory; handy for tests and embedding hosts."""

    def __init__(self) -> None:
        self.traces: list[TraceEnvelope] = []
        self.events: list[dict[str, Any]] = []

    def on_event(self, record: dict[str, Any]) -> None:
        self.events.append(record)

    def on_span_end(self, record: dict[str, Any]) -> None:
        return

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.traces.append(envelope)
