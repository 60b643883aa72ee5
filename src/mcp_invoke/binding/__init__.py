"""Schema-aware parameter binding."""

from .binder import ParameterBinder
from .converters import (
    NO_MATCH,
    STRATEGIES,
    ConversionContext,
    convert,
    convert_any,
    convert_dataclass,
    convert_enum_by_name,
    convert_enum_by_ordinal,
    convert_mapping,
    convert_model,
    convert_none,
    convert_scalar,
    convert_sequence,
    convert_union,
)
from .options import DEFAULT_INFRASTRUCTURE_TYPES, BinderOptions, lookup_key

__all__ = [
    "ParameterBinder",
    "BinderOptions",
    "DEFAULT_INFRASTRUCTURE_TYPES",
    "lookup_key",
    "NO_MATCH",
    "STRATEGIES",
    "ConversionContext",
    "convert",
    "convert_none",
    "convert_any",
    "convert_union",
    "convert_enum_by_name",
    "convert_enum_by_ordinal",
    "convert_model",
    "convert_dataclass",
    "convert_sequence",
    "convert_mapping",
    "convert_scalar",
]
