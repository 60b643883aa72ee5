from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from ..errors import (
    MissingRequiredParameterError,
    ParameterTypeError,
    SchemaNotFoundError,
)
from ..introspect import (
    FormalParameter,
    is_enum_type,
    is_untyped,
    type_label,
    unwrap_optional,
    zero_value,
)
from ..schema import ParameterSchema, matches_type_tag
from .converters import STRATEGIES, ConversionContext, Strategy, convert
from .options import BinderOptions, lookup_key


logger = logging.getLogger(__name__)


class ParameterBinder:
    """Turns a flat argument bag into the ordered argument list of a target method.

    Binding is all-or-nothing: `bind` either returns one value per formal
    parameter or raises a `BindingError` subclass.
    """

    def __init__(self, options: BinderOptions | None = None, *, strategies: Sequence[Strategy] | None = None) -> None:
        self.options = options or BinderOptions()
        self.strategies = tuple(strategies) if strategies is not None else tuple(STRATEGIES)

    def bind(
        self,
        method: Any,
        schema: Mapping[str, ParameterSchema] | Iterable[ParameterSchema],
        arguments: Mapping[str, Any] | None,
        *,
        tool_name: str | None = None,
        ambient: Iterable[Any] = (),
    ) -> list[Any]:
        """Bind `arguments` to the parameters of `method`.

        `ambient` holds host-side objects (e.g. the current `CallSession`) that
        fill infrastructure-typed parameters; without one they get their zero value.
        """
        params: Iterable[FormalParameter] = getattr(method, "parameters", method)
        schemas = self._index_schema(schema)
        bag = dict(arguments) if isinstance(arguments, Mapping) else {}
        ci = self.options.case_insensitive

        bound: list[Any] = []
        for p in params:
            key = lookup_key(schemas, p.name, case_insensitive=ci)
            ps = schemas[key] if key is not None else None
            if ps is None:
                bound.append(self._bind_unpublished(p, tool_name, ambient))
                continue

            ctx = ConversionContext(
                path=p.name,
                options=self.options,
                tool_name=tool_name,
                strategies=self.strategies,
            )
            arg_key = lookup_key(bag, ps.name, case_insensitive=ci)
            if arg_key is None and ps.name != p.name:
                arg_key = lookup_key(bag, p.name, case_insensitive=ci)
            if arg_key is None:
                bound.append(self._resolve_absent(p, ps, ctx))
                continue

            value = bag[arg_key]
            self._check_shape(value, p, ps, ctx)
            bound.append(convert(value, p.annotation, ps, ctx))
        return bound

    def _bind_unpublished(self, p: FormalParameter, tool_name: str | None, ambient: Iterable[Any]) -> Any:
        if self.options.is_infrastructure(p.annotation):
            inner, _ = unwrap_optional(p.annotation)
            for obj in ambient:
                if isinstance(obj, inner):
                    return obj
            return zero_value(p.annotation)
        if p.has_default:
            return p.default
        raise SchemaNotFoundError(p.name, tool_name=tool_name)

    def _resolve_absent(self, p: FormalParameter, ps: ParameterSchema, ctx: ConversionContext) -> Any:
        # schema default, then method default, then required check, then zero value
        if ps.has_default:
            try:
                return convert(ps.default, p.annotation, ps, ctx)
            except ParameterTypeError as e:
                logger.warning("schema default for %r does not convert (%s); using zero value", ctx.path, e.message)
                return zero_value(p.annotation)
        if p.has_default:
            return p.default
        if ps.required:
            raise MissingRequiredParameterError(ps.name, tool_name=ctx.tool_name)
        return zero_value(p.annotation)

    def _check_shape(self, value: Any, p: FormalParameter, ps: ParameterSchema, ctx: ConversionContext) -> None:
        inner, optional = unwrap_optional(p.annotation)
        expected = ps.type if is_untyped(p.annotation) else type_label(p.annotation)

        if value is None:
            if optional or is_untyped(p.annotation):
                return
            raise ParameterTypeError(ctx.path, expected, detail="null is not allowed", tool_name=ctx.tool_name)

        if is_enum_type(inner) or ps.is_enum:
            # Enumerations travel either by name or by ordinal.
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                return
            raise ParameterTypeError(
                ctx.path, expected, detail="enum values must be a name or a number", tool_name=ctx.tool_name
            )

        if not matches_type_tag(value, ps.type):
            raise ParameterTypeError(
                ctx.path,
                expected,
                detail=f"expected {ps.type}, got {_wire_type(value)}",
                tool_name=ctx.tool_name,
            )

    @staticmethod
    def _index_schema(schema: Any) -> dict[str, ParameterSchema]:
        if schema is None:
            return {}
        if isinstance(schema, Mapping):
            return dict(schema)
        return {ps.name: ps for ps in schema}


def _wire_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
