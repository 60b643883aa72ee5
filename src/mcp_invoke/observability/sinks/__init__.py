"""Observation sinks (JSONL/in-memory)."""

from .jsonl import JsonlSink, MemorySink

__all__ = ["JsonlSink", "MemorySink"]
