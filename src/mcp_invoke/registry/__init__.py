"""Tool registry: descriptors, method handles and catalog import."""

from ..introspect import FormalParameter
from .catalog import (
    CatalogEntry,
    CatalogProvider,
    StaticCatalogProvider,
    YamlCatalogProvider,
    resolve_handler_identity,
)
from .descriptor import MethodHandle, ToolDescriptor
from .registry import ImportReport, ToolRegistry

__all__ = [
    "FormalParameter",
    "MethodHandle",
    "ToolDescriptor",
    "CatalogEntry",
    "CatalogProvider",
    "StaticCatalogProvider",
    "YamlCatalogProvider",
    "resolve_handler_identity",
    "ImportReport",
    "ToolRegistry",
]
