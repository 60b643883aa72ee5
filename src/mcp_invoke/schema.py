from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from .errors import SchemaError
from .introspect import (
    EMPTY,
    FormalParameter,
    formal_parameters,
    is_dataclass_type,
    is_enum_type,
    is_model_type,
    is_untyped,
    sequence_info,
    type_matches,
    type_tag_for,
    unwrap_optional,
)
from .jsonrpc.codec import to_jsonable


TYPE_TAGS = ("string", "integer", "number", "boolean", "object", "array")

_MAX_DEPTH = 8


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass
class ParameterSchema:
    """Published shape of one tool argument.

    `annotations` is documentation metadata (e.g. which wire location a value
    nominally comes from); binding never reads it.
    """

    name: str
    type: str
    required: bool = False
    default: Any = MISSING
    enum: list[Any] | None = None
    properties: dict[str, "ParameterSchema"] | None = None
    items: "ParameterSchema | None" = None
    description: str | None = None
    format: str | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in TYPE_TAGS:
            raise SchemaError(f"parameter {self.name!r} has unsupported type tag {self.type!r}")

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def is_enum(self) -> bool:
        return bool(self.enum) or self.format == "enum"

    @property
    def required_fields(self) -> list[str]:
        if not self.properties:
            return []
        return [k for k, p in self.properties.items() if p.required]

    @classmethod
    def from_dict(cls, name: str, raw: Mapping[str, Any], *, required: bool | None = None) -> "ParameterSchema":
        """Parse a JSON-schema style mapping (as found in catalogs and inputSchema)."""
        if not isinstance(raw, Mapping):
            raise SchemaError(f"schema for {name!r} must be a mapping, got {type(raw).__name__}")

        enum = raw.get("enum")
        if enum is not None and not isinstance(enum, list):
            raise SchemaError(f"enum for {name!r} must be a list")

        props_raw = raw.get("properties")
        nested_required = raw.get("required")
        if isinstance(nested_required, bool):
            # Flat catalog form: `required: true` on the parameter itself.
            if required is None:
                required = nested_required
            nested_required = None
        if nested_required is not None and not isinstance(nested_required, list):
            raise SchemaError(f"required for {name!r} must be a list or a boolean")

        tag = raw.get("type")
        if not tag:
            if enum:
                tag = "string"
            elif props_raw is not None:
                tag = "object"
            elif raw.get("items") is not None:
                tag = "array"
            else:
                raise SchemaError(f"parameter {name!r} has no type")
        if not isinstance(tag, str):
            raise SchemaError(f"type for {name!r} must be a string")

        properties = None
        if props_raw is not None:
            if not isinstance(props_raw, Mapping):
                raise SchemaError(f"properties for {name!r} must be a mapping")
            req = set(nested_required or [])
            properties = {k: cls.from_dict(k, v, required=k in req) for k, v in props_raw.items()}

        items = None
        if raw.get("items") is not None:
            items = cls.from_dict(f"{name}[]", raw["items"])

        annotations = raw.get("annotations") or raw.get("x-annotations") or {}
        if not isinstance(annotations, Mapping):
            raise SchemaError(f"annotations for {name!r} must be a mapping")
        if "source" in raw and "source" not in annotations:
            annotations = {**annotations, "source": raw["source"]}

        return cls(
            name=name,
            type=tag.lower(),
            required=bool(required),
            default=raw["default"] if "default" in raw else MISSING,
            enum=list(enum) if enum is not None else None,
            properties=properties,
            items=items,
            description=raw.get("description"),
            format=raw.get("format"),
            annotations=dict(annotations),
        )

    def to_json_schema(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type}
        if self.description:
            d["description"] = self.description
        if self.format:
            d["format"] = self.format
        if self.has_default:
            d["default"] = to_jsonable(self.default)
        if self.enum:
            d["enum"] = to_jsonable(self.enum)
        if self.properties is not None:
            d["properties"] = {k: v.to_json_schema() for k, v in self.properties.items()}
            if self.required_fields:
                d["required"] = self.required_fields
        if self.items is not None:
            d["items"] = self.items.to_json_schema()
        if self.annotations:
            d["x-annotations"] = to_jsonable(self.annotations)
        return d


def parse_parameters(raw: Any) -> list[ParameterSchema]:
    """Parse the parameter section of a catalog entry.

    Accepted shapes:
    - list of `{name, type, required?, ...}` items
    - mapping of name -> schema
    - a full object schema `{type: object, properties: {...}, required: [...]}`
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        out: list[ParameterSchema] = []
        for item in raw:
            if not isinstance(item, Mapping) or not isinstance(item.get("name"), str) or not item["name"]:
                raise SchemaError("each parameter entry needs a non-empty 'name'")
            body = {k: v for k, v in item.items() if k != "name"}
            out.append(ParameterSchema.from_dict(item["name"], body))
        return out
    if isinstance(raw, Mapping):
        if "properties" in raw and isinstance(raw.get("properties"), Mapping):
            req = raw.get("required") or []
            if not isinstance(req, list):
                raise SchemaError("inputSchema.required must be a list")
            return [ParameterSchema.from_dict(k, v, required=k in req) for k, v in raw["properties"].items()]
        return [ParameterSchema.from_dict(k, v) for k, v in raw.items()]
    raise SchemaError(f"unsupported parameter section: {type(raw).__name__}")


def build_input_schema(params: Iterable[ParameterSchema]) -> dict[str, Any]:
    """Render the `inputSchema` object published by tools/list."""
    params = list(params)
    out: dict[str, Any] = {
        "type": "object",
        "properties": {p.name: p.to_json_schema() for p in params},
    }
    required = [p.name for p in params if p.required]
    if required:
        out["required"] = required
    return out


def matches_type_tag(value: Any, tag: str) -> bool:
    """Shallow wire-shape check of a supplied value against a schema type tag."""
    if tag == "string":
        return isinstance(value, str)
    if tag == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if tag == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if tag == "boolean":
        return isinstance(value, bool)
    if tag == "object":
        return isinstance(value, dict)
    if tag == "array":
        return isinstance(value, list)
    # Unknown tag: do not reject (forward-compatible).
    return True


# --- schema generation from Python signatures ---


def schema_for_type(
    name: str,
    tp: Any,
    *,
    required: bool = False,
    default: Any = MISSING,
    description: str | None = None,
    _depth: int = 0,
) -> ParameterSchema:
    inner, _ = unwrap_optional(tp)
    tag = "object" if is_untyped(inner) else type_tag_for(inner)
    schema = ParameterSchema(name=name, type=tag, required=required, default=default, description=description)
    if _depth >= _MAX_DEPTH:
        return schema

    if is_enum_type(inner):
        schema.enum = [m.name for m in inner]
        schema.annotations["enumType"] = inner.__name__
    elif is_dataclass_type(inner):
        props: dict[str, ParameterSchema] = {}
        for f in dataclasses.fields(inner):
            if not f.init:
                continue
            has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
            props[f.name] = schema_for_type(
                f.name,
                _field_type(inner, f.name, f.type),
                required=not has_default,
                default=f.default if f.default is not dataclasses.MISSING else MISSING,
                _depth=_depth + 1,
            )
        schema.properties = props
    elif is_model_type(inner):
        props = {}
        for fname, finfo in inner.model_fields.items():
            props[fname] = schema_for_type(
                fname,
                finfo.annotation,
                required=finfo.is_required(),
                default=MISSING if finfo.is_required() or finfo.default_factory is not None else finfo.default,
                description=finfo.description,
                _depth=_depth + 1,
            )
        schema.properties = props
    else:
        seq = sequence_info(inner)
        if seq is not None:
            schema.items = schema_for_type(f"{name}[]", seq[1], _depth=_depth + 1)
    return schema


def _field_type(owner: type, field_name: str, declared: Any) -> Any:
    if not isinstance(declared, str):
        return declared
    try:
        return typing.get_type_hints(owner).get(field_name, declared)
    except (NameError, TypeError):
        return EMPTY


def schema_from_parameters(
    params: Iterable[FormalParameter],
    *,
    skip_types: Iterable[Any] = (),
) -> list[ParameterSchema]:
    skip_types = tuple(skip_types)
    out: list[ParameterSchema] = []
    for p in params:
        if skip_types and type_matches(p.annotation, skip_types):
            continue
        out.append(
            schema_for_type(
                p.name,
                p.annotation,
                required=not p.has_default,
                default=p.default if p.has_default else MISSING,
            )
        )
    return out


def schema_from_signature(fn: Callable[..., Any], *, skip_types: Iterable[Any] = ()) -> list[ParameterSchema]:
    """Derive parameter schemas from a callable's signature and annotations."""
    return schema_from_parameters(formal_parameters(fn), skip_types=skip_types)
