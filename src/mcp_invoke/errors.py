from __future__ import annotations

from typing import Any

from .jsonrpc.codec import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    JsonRpcCodecError,
)
from .jsonrpc.dispatcher import JsonRpcAppError
from .jsonrpc.models import JsonRpcError


class McpInvokeError(Exception):
    """Base of the dispatch error taxonomy; `code` is the JSON-RPC error code."""

    code: int = INTERNAL_ERROR
    prefix: str = "Internal error"

    def __init__(self, message: str, *, data: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def to_jsonrpc(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=f"{self.prefix}: {self.message}", data=self.data)


class ParseError(McpInvokeError):
    code = PARSE_ERROR
    prefix = "Parse error"


class ToolNotFoundError(McpInvokeError):
    code = METHOD_NOT_FOUND

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Method '{tool_name}' not found")
        self.tool_name = tool_name

    def to_jsonrpc(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=self.message, data=self.data)


class InvalidParamsError(McpInvokeError):
    code = INVALID_PARAMS
    prefix = "Invalid params"


class InternalError(McpInvokeError):
    code = INTERNAL_ERROR
    prefix = "Internal error"


class SchemaError(InternalError):
    """A parameter schema or catalog entry is malformed."""


class HandlerResolutionError(InternalError):
    """No handler instance could be obtained for an instance method."""


class HandlerFaultError(McpInvokeError):
    """The invoked business logic itself raised."""

    code = SERVER_ERROR
    prefix = "Server error"

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__, data={"exc_type": type(cause).__name__})
        self.tool_name = tool_name
        self.cause = cause


# --- binding failures ---


class BindingError(McpInvokeError):
    """Base of every binder failure. A plain BindingError is a server-side defect."""

    code = INTERNAL_ERROR
    prefix = "Internal error"

    def __init__(self, message: str, *, parameter: str | None = None, tool_name: str | None = None) -> None:
        data = {"parameter": parameter} if parameter else None
        super().__init__(message, data=data)
        self.parameter = parameter
        self.tool_name = tool_name


class MissingRequiredParameterError(BindingError, InvalidParamsError):
    code = INVALID_PARAMS
    prefix = "Invalid params"

    def __init__(self, parameter: str, *, tool_name: str | None = None) -> None:
        where = f" for method '{tool_name}'" if tool_name else ""
        super().__init__(f"Missing required parameter '{parameter}'{where}.", parameter=parameter, tool_name=tool_name)


class ParameterTypeError(BindingError, InvalidParamsError):
    code = INVALID_PARAMS
    prefix = "Invalid params"

    def __init__(self, parameter: str, expected: str, *, detail: str | None = None, tool_name: str | None = None) -> None:
        msg = f"Type mismatch or invalid format for parameter '{parameter}'. Expected type compatible with '{expected}'."
        if detail:
            msg = f"{msg} Error: {detail}"
        super().__init__(msg, parameter=parameter, tool_name=tool_name)
        self.expected = expected


class SchemaNotFoundError(BindingError, InternalError):
    code = INTERNAL_ERROR
    prefix = "Internal error"

    def __init__(self, parameter: str, *, tool_name: str | None = None) -> None:
        where = f" for method '{tool_name}'" if tool_name else ""
        super().__init__(f"Parameter '{parameter}' schema not found{where}.", parameter=parameter, tool_name=tool_name)


def map_exception_to_jsonrpc(exc: Exception) -> JsonRpcError:
    """Map internal exceptions to a JSON-RPC error object.

    - McpInvokeError subclasses carry their own code.
    - JsonRpcAppError / JsonRpcCodecError (raised intentionally) pass through.
    - Anything else is an internal error; only the exception type leaks.
    """
    if isinstance(exc, McpInvokeError):
        return exc.to_jsonrpc()

    if isinstance(exc, JsonRpcAppError):
        return JsonRpcError(code=exc.code, message=exc.message, data=exc.data)

    if isinstance(exc, JsonRpcCodecError):
        return JsonRpcError(code=exc.code, message=exc.message, data=exc.data)

    return JsonRpcError(
        code=INTERNAL_ERROR,
        message=f"Internal error: {exc}" if str(exc) else "Internal error",
        data={"exc_type": type(exc).__name__},
    )


def attach_trace_id(err: JsonRpcError, trace_id: str | None) -> JsonRpcError:
    """Best-effort inject `trace_id` into JSON-RPC error data."""
    if not trace_id:
        return err
    data = err.data
    if data is None:
        data = {"trace_id": trace_id}
    elif isinstance(data, dict) and "trace_id" not in data:
        data = {**data, "trace_id": trace_id}
    else:
        return err
    return JsonRpcError(code=err.code, message=err.message, data=data)
