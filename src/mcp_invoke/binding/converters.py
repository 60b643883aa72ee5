"""Conversion strategies from wire values to declared Python types.

Each strategy is a pure function `(value, target, schema, ctx) -> value | NO_MATCH`.
`convert` runs them in order and stops at the first match; an exception
raised by a strategy is a conversion failure for the whole parameter.
"""
from __future__ import annotations

import dataclasses
import re
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Sequence, Union
from uuid import UUID

from ..errors import BindingError, MissingRequiredParameterError, ParameterTypeError
from ..introspect import (
    is_dataclass_type,
    is_enum_type,
    is_model_type,
    is_untyped,
    mapping_info,
    sequence_info,
    type_label,
    unwrap_optional,
    zero_value,
)
from ..schema import ParameterSchema
from .options import BinderOptions, lookup_key


class _NoMatch:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH: Any = _NoMatch()

_MAX_DEPTH = 32
_INT_TEXT = re.compile(r"^[+-]?\d+$")
_CONVERSION_ERRORS = (ValueError, TypeError, ArithmeticError, KeyError)


@dataclass(frozen=True)
class ConversionContext:
    path: str
    options: BinderOptions = BinderOptions()
    tool_name: str | None = None
    strategies: tuple["Strategy", ...] = ()
    depth: int = 0

    def child(self, segment: str) -> "ConversionContext":
        path = f"{self.path}{segment}" if segment.startswith("[") else f"{self.path}.{segment}"
        if self.depth + 1 > _MAX_DEPTH:
            raise BindingError(f"value nested too deeply at '{path}'", parameter=path, tool_name=self.tool_name)
        return dataclasses.replace(self, path=path, depth=self.depth + 1)


Strategy = Callable[[Any, Any, "ParameterSchema | None", ConversionContext], Any]


def convert(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    for strategy in ctx.strategies or STRATEGIES:
        try:
            out = strategy(value, target, schema, ctx)
        except BindingError:
            raise
        except _CONVERSION_ERRORS as e:
            raise ParameterTypeError(ctx.path, type_label(target), detail=str(e), tool_name=ctx.tool_name) from e
        if out is not NO_MATCH:
            return out
    raise ParameterTypeError(ctx.path, type_label(target), tool_name=ctx.tool_name)


def _inner(target: Any) -> Any:
    return unwrap_optional(target)[0]


# --- strategies, in chain order ---


def convert_none(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    if value is not None:
        return NO_MATCH
    _, optional = unwrap_optional(target)
    return None if optional else NO_MATCH


def convert_any(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    return value if is_untyped(_inner(target)) else NO_MATCH


def convert_union(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    inner = _inner(target)
    if typing.get_origin(inner) not in (Union, types.UnionType):
        return NO_MATCH
    for member in typing.get_args(inner):
        if member is type(None):
            continue
        try:
            return convert(value, member, schema, ctx)
        except ParameterTypeError:
            continue
    return NO_MATCH


def convert_enum_by_name(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    enum_type = _inner(target)
    if not is_enum_type(enum_type):
        return NO_MATCH
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        return NO_MATCH
    text = value.strip().casefold()
    for member in enum_type:
        if member.name.casefold() == text:
            return member
    for member in enum_type:
        if isinstance(member.value, str) and member.value.casefold() == text:
            return member
    return NO_MATCH


def convert_enum_by_ordinal(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    enum_type = _inner(target)
    if not is_enum_type(enum_type) or isinstance(value, bool):
        return NO_MATCH
    if isinstance(value, str):
        if not _INT_TEXT.match(value.strip()):
            return NO_MATCH
        number = int(value.strip())
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        return NO_MATCH

    members = list(enum_type)
    int_valued = [m for m in members if isinstance(m.value, int) and not isinstance(m.value, bool)]
    if int_valued:
        # Numbers name the underlying member value, as IntEnum(1) would.
        for member in int_valued:
            if member.value == number:
                return member
        return NO_MATCH
    if 0 <= number < len(members):
        return members[number]
    return NO_MATCH


def convert_model(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    model = _inner(target)
    if not is_model_type(model):
        return NO_MATCH
    if isinstance(value, model):
        return value
    if not isinstance(value, dict):
        return NO_MATCH
    return model.model_validate(value)


def convert_dataclass(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    cls = _inner(target)
    if not is_dataclass_type(cls):
        return NO_MATCH
    if isinstance(value, cls):
        return value
    if not isinstance(value, dict):
        return NO_MATCH

    try:
        hints = typing.get_type_hints(cls)
    except NameError:
        hints = {}
    nested = (schema.properties if schema is not None else None) or {}
    ci = ctx.options.case_insensitive

    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        ftype = hints.get(f.name, Any)
        fkey = lookup_key(nested, f.name, case_insensitive=ci)
        fschema = nested.get(fkey) if fkey is not None else None
        fctx = ctx.child(f.name)

        vkey = lookup_key(value, f.name, case_insensitive=ci)
        if vkey is not None:
            kwargs[f.name] = convert(value[vkey], ftype, fschema, fctx)
            continue

        if fschema is not None and fschema.required and ctx.options.strict_nested:
            raise MissingRequiredParameterError(fctx.path, tool_name=ctx.tool_name)
        kwargs[f.name] = _field_fallback(f, ftype, fschema, fctx)
    return cls(**kwargs)


def _field_fallback(f: dataclasses.Field, ftype: Any, fschema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    if fschema is not None and fschema.has_default:
        try:
            return convert(fschema.default, ftype, fschema, ctx)
        except ParameterTypeError:
            return zero_value(ftype)
    return zero_value(ftype)


def convert_sequence(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    info = sequence_info(_inner(target))
    if info is None or not isinstance(value, (list, tuple)):
        return NO_MATCH
    container, item_type = info
    item_schema = schema.items if schema is not None else None
    items = [convert(v, item_type, item_schema, ctx.child(f"[{i}]")) for i, v in enumerate(value)]
    return items if container is list else container(items)


def convert_mapping(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    info = mapping_info(_inner(target))
    if info is None or not isinstance(value, dict):
        return NO_MATCH
    key_type, value_type = info
    props = (schema.properties if schema is not None else None) or {}
    out: dict[Any, Any] = {}
    for k, v in value.items():
        kctx = ctx.child(str(k))
        out[convert(k, key_type, None, kctx)] = convert(v, value_type, props.get(k), kctx)
    return out


def convert_scalar(value: Any, target: Any, schema: ParameterSchema | None, ctx: ConversionContext) -> Any:
    tp = _inner(target)
    if value is None or not isinstance(tp, type):
        return NO_MATCH

    if tp is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        return NO_MATCH

    if tp is int:
        if isinstance(value, bool):
            return NO_MATCH
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else NO_MATCH
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else NO_MATCH
        if isinstance(value, str):
            text = value.strip()
            if _INT_TEXT.match(text):
                return int(text)
            number = float(text)
            return int(number) if number.is_integer() else NO_MATCH
        return NO_MATCH

    if tp is float:
        if isinstance(value, bool):
            return NO_MATCH
        if isinstance(value, (int, float, Decimal)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        return NO_MATCH

    if tp is Decimal:
        if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
            return NO_MATCH
        return Decimal(str(value).strip())

    if tp is str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return NO_MATCH

    if tp is datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text)
        return NO_MATCH

    if tp is date:
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        return date.fromisoformat(value.strip()) if isinstance(value, str) else NO_MATCH

    if tp is time:
        if isinstance(value, time):
            return value
        return time.fromisoformat(value.strip()) if isinstance(value, str) else NO_MATCH

    if tp is UUID:
        if isinstance(value, UUID):
            return value
        return UUID(value.strip()) if isinstance(value, str) else NO_MATCH

    return value if isinstance(value, tp) else NO_MATCH


STRATEGIES: Sequence[Strategy] = (
    convert_none,
    convert_any,
    convert_union,
    convert_enum_by_name,
    convert_enum_by_ordinal,
    convert_model,
    convert_dataclass,
    convert_sequence,
    convert_mapping,
    convert_scalar,
)
