from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class ResultAdapter(Protocol):
    def adapt(self, value: Any) -> Any: ...


@dataclass(frozen=True)
class StatusResult:
    """A payload paired with a status code, as web-style handlers like to return."""

    value: Any = None
    status_code: int = 200

    @classmethod
    def ok(cls, value: Any = None) -> "StatusResult":
        return cls(value=value, status_code=200)


@dataclass(frozen=True)
class ActionResult:
    """Typed result wrapper: holds either a plain `value` or an inner `result`."""

    value: Any = None
    result: Any = None


class PassthroughResultAdapter:
    def adapt(self, value: Any) -> Any:
        return value


class EnvelopeResultAdapter:
    """Strip one ActionResult layer, then one StatusResult layer. Anything else passes through."""

    def adapt(self, value: Any) -> Any:
        if isinstance(value, ActionResult):
            value = value.result if value.result is not None else value.value
        if isinstance(value, StatusResult):
            value = value.value
        return value
