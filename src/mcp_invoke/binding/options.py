from __future__ import annotations

import asyncio
import contextvars
import threading
from dataclasses import dataclass, replace
from typing import Any, Iterable

from ..introspect import type_matches
from ..mcp.session import CallSession


# Parameters of these types are supplied by the host, never by the client.
DEFAULT_INFRASTRUCTURE_TYPES: tuple[Any, ...] = (
    asyncio.Event,
    threading.Event,
    contextvars.Context,
    CallSession,
)

NESTED_REQUIRED_MODES = ("strict", "lenient")


@dataclass(frozen=True)
class BinderOptions:
    infrastructure_types: tuple[Any, ...] = DEFAULT_INFRASTRUCTURE_TYPES
    case_insensitive: bool = True
    nested_required: str = "strict"

    def __post_init__(self) -> None:
        if self.nested_required not in NESTED_REQUIRED_MODES:
            raise ValueError(f"nested_required must be one of {NESTED_REQUIRED_MODES}, got {self.nested_required!r}")

    @property
    def strict_nested(self) -> bool:
        return self.nested_required == "strict"

    def is_infrastructure(self, tp: Any) -> bool:
        return type_matches(tp, self.infrastructure_types)

    def with_infrastructure(self, extra: Iterable[Any]) -> "BinderOptions":
        extra = tuple(x for x in extra if x not in self.infrastructure_types)
        return replace(self, infrastructure_types=self.infrastructure_types + extra)


def lookup_key(bag: Any, name: str, *, case_insensitive: bool) -> str | None:
    """Find the key in `bag` that supplies `name`. Exact match wins over a case-insensitive one."""
    if not isinstance(bag, dict):
        return None
    if name in bag:
        return name
    if not case_insensitive:
        return None
    folded = name.casefold()
    for key in bag:
        if isinstance(key, str) and key.casefold() == folded:
            return key
    return None
