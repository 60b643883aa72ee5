from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CallSession:
    """Per-call view handed to handlers that declare a `CallSession` parameter.

    Never bound from client arguments; the binder treats it as an
    infrastructure type.
    """

    tool_name: str
    request_id: Any | None = None
    trace_id: str | None = None
    call_id: str = ""

    @classmethod
    def new(cls, tool_name: str, *, request_id: Any | None = None, trace_id: str | None = None) -> "CallSession":
        return cls(
            tool_name=tool_name,
            request_id=request_id,
            trace_id=trace_id,
            call_id=f"call_{uuid.uuid4().hex}",
        )

    @property
    def is_notification(self) -> bool:
        return self.request_id is None
