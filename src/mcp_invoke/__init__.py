"""Expose Python callables as MCP tools over JSON-RPC."""

from .binding import BinderOptions, ParameterBinder
from .errors import (
    BindingError,
    HandlerFaultError,
    HandlerResolutionError,
    InternalError,
    InvalidParamsError,
    McpInvokeError,
    MissingRequiredParameterError,
    ParameterTypeError,
    ParseError,
    SchemaError,
    SchemaNotFoundError,
    ToolNotFoundError,
)
from .invocation import DynamicInvoker, ServiceContainer
from .mcp.protocol import McpProtocol
from .registry import CatalogEntry, MethodHandle, ToolDescriptor, ToolRegistry
from .schema import ParameterSchema

__version__ = "0.1.0"

__all__ = [
    "McpProtocol",
    "ToolRegistry",
    "ToolDescriptor",
    "MethodHandle",
    "CatalogEntry",
    "ParameterSchema",
    "ParameterBinder",
    "BinderOptions",
    "DynamicInvoker",
    "ServiceContainer",
    "McpInvokeError",
    "ParseError",
    "ToolNotFoundError",
    "InvalidParamsError",
    "InternalError",
    "SchemaError",
    "BindingError",
    "MissingRequiredParameterError",
    "ParameterTypeError",
    "SchemaNotFoundError",
    "HandlerResolutionError",
    "HandlerFaultError",
]
