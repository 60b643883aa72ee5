from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from .codec import INTERNAL_ERROR, METHOD_NOT_FOUND
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse


Handler = Callable[[JsonRpcRequest], Any]


class JsonRpcAppError(Exception):
    """Intentional protocol error raised by handlers (code/message/data pass through)."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


@dataclass
class Dispatcher:
    """JSON-RPC method dispatcher (thin routing layer).

    Handlers may be plain functions or coroutine functions. Methods without a
    registered handler go to `fallback` when one is set, otherwise they
    produce METHOD_NOT_FOUND.
    """

    _handlers: dict[str, Handler] = field(default_factory=dict)
    error_mapper: Callable[[Exception], JsonRpcError] | None = None
    fallback: Handler | None = None

    def register(self, method: str, handler: Handler) -> None:
        if not isinstance(method, str) or not method:
            raise ValueError("method must be non-empty string")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[method] = handler

    def has(self, method: str) -> bool:
        return method in self._handlers

    async def handle(self, req: JsonRpcRequest) -> JsonRpcResponse:
        handler = self._handlers.get(req.method) or self.fallback
        if handler is None:
            return JsonRpcResponse(
                id=req.id, error=JsonRpcError(METHOD_NOT_FOUND, f"Method '{req.method}' not found")
            )

        try:
            result = handler(req)
            if inspect.isawaitable(result):
                result = await result
            # Notification support: the transport drops responses whose id is None.
            return JsonRpcResponse(id=req.id, result=result)
        except Exception as e:
            mapper = self.error_mapper or default_error_mapper
            return JsonRpcResponse(id=req.id, error=mapper(e))


def default_error_mapper(exc: Exception) -> JsonRpcError:
    if isinstance(exc, JsonRpcAppError):
        return JsonRpcError(code=exc.code, message=exc.message, data=exc.data)
    # Keep it conservative: leak minimal info; verbose details go to trace/logs.
    return JsonRpcError(code=INTERNAL_ERROR, message="Internal error", data={"exc_type": type(exc).__name__})
