"""Runtime type introspection shared by the schema model, the binder and the invoker."""
from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Union
from uuid import UUID

from pydantic import BaseModel


NoneType = type(None)
EMPTY = inspect.Parameter.empty

_SEQUENCE_ORIGINS = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@dataclass(frozen=True)
class FormalParameter:
    """One formal parameter of a target method, as seen by the binder."""

    name: str
    annotation: Any = EMPTY
    default: Any = EMPTY
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY

    @property
    def is_keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


def formal_parameters(fn: Callable[..., Any], *, skip_first: bool = False) -> list[FormalParameter]:
    """List bindable parameters of `fn` in declaration order.

    `*args`/`**kwargs` are never bound from client data and are left out.
    String annotations are resolved through `typing.get_type_hints`.
    """
    sig = inspect.signature(fn)
    try:
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError):
        hints = {}

    out: list[FormalParameter] = []
    for i, p in enumerate(sig.parameters.values()):
        if skip_first and i == 0:
            continue
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        out.append(
            FormalParameter(
                name=p.name,
                annotation=hints.get(p.name, p.annotation),
                default=p.default,
                kind=p.kind,
            )
        )
    return out


def split_arguments(
    parameters: Iterable[FormalParameter], values: Iterable[Any]
) -> tuple[list[Any], dict[str, Any]]:
    """Pair bound values with their parameters: keyword-only ones go by name, the rest by position."""
    params = list(parameters)
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for i, value in enumerate(values):
        p = params[i] if i < len(params) else None
        if p is not None and p.is_keyword_only:
            kwargs[p.name] = value
        else:
            args.append(value)
    return args, kwargs


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Return (inner type, is_optional) for `Optional[T]` / `T | None`."""
    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not NoneType]
        optional = len(args) != len(typing.get_args(tp))
        if len(args) == 1:
            return args[0], optional
        return tp, optional
    return tp, False


def is_untyped(tp: Any) -> bool:
    return tp is EMPTY or tp is Any or tp is object or tp is None


def is_enum_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Enum)


def is_model_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def sequence_info(tp: Any) -> tuple[type, Any] | None:
    """(container type, item type) for list/tuple/set annotations, else None."""
    if tp in (list, tuple, set, frozenset):
        return tp, Any
    origin = typing.get_origin(tp)
    if origin not in _SEQUENCE_ORIGINS:
        return None
    args = typing.get_args(tp)
    container = _SEQUENCE_ORIGINS[origin]
    if container is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        # Heterogeneous fixed tuples are not bindable element-wise; treat items as untyped.
        return tuple, Any
    return container, (args[0] if args else Any)


def mapping_info(tp: Any) -> tuple[Any, Any] | None:
    if tp is dict:
        return Any, Any
    origin = typing.get_origin(tp)
    if origin not in _MAPPING_ORIGINS:
        return None
    args = typing.get_args(tp)
    if len(args) == 2:
        return args[0], args[1]
    return Any, Any


def zero_value(tp: Any) -> Any:
    """The 'zero' a parameter of this type takes when nothing else applies."""
    inner, optional = unwrap_optional(tp)
    if optional or is_untyped(inner):
        return None
    if inner is bool:
        return False
    if inner is int:
        return 0
    if inner is float:
        return 0.0
    if inner is Decimal:
        return Decimal(0)
    if is_enum_type(inner):
        members = list(inner)
        return members[0] if members else None
    return None


def qualified_name(tp: Any) -> str:
    module = getattr(tp, "__module__", None)
    qualname = getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None)
    if not qualname:
        return repr(tp)
    return f"{module}.{qualname}" if module and module != "builtins" else qualname


def type_label(tp: Any) -> str:
    """Short human-readable type name for error messages."""
    if is_untyped(tp):
        return "any"
    inner, optional = unwrap_optional(tp)
    if optional and inner is not tp:
        return f"{type_label(inner)} | None"
    if isinstance(tp, type):
        return tp.__name__
    return str(tp).replace("typing.", "")


def type_tag_for(tp: Any) -> str:
    """Map a Python annotation onto a wire type tag."""
    inner, _ = unwrap_optional(tp)
    if inner is bool:
        return "boolean"
    if inner is int:
        return "integer"
    if inner in (float, Decimal):
        return "number"
    if inner is str or is_enum_type(inner) or inner in (datetime, date, time, UUID):
        return "string"
    if sequence_info(inner) is not None:
        return "array"
    if is_untyped(inner):
        return "object"
    return "object" if mapping_info(inner) is not None or isinstance(inner, type) else "string"


def type_matches(tp: Any, candidates: Iterable[Any]) -> bool:
    """True if `tp` equals (or subclasses) one of `candidates` (types or dotted names)."""
    inner, _ = unwrap_optional(tp)
    if not isinstance(inner, type):
        return False
    name = qualified_name(inner)
    for c in candidates:
        if isinstance(c, str):
            if c == name or c == inner.__name__:
                return True
        elif isinstance(c, type) and issubclass(inner, c):
            return True
    return False
