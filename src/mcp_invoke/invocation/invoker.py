from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Callable, Iterable, Sequence

from ..errors import HandlerFaultError, HandlerResolutionError, InternalError
from ..introspect import qualified_name, split_arguments
from ..observability import obs
from ..registry.descriptor import ToolDescriptor
from .container import HandlerResolver, ServiceContainer
from .instantiation import InstantiationStrategy
from .results import EnvelopeResultAdapter, ResultAdapter


logger = logging.getLogger(__name__)


class DynamicInvoker:
    """Calls a tool's target method with already-bound arguments.

    Instance methods get their handler from a per-call resolution scope,
    which is released on every exit path. Coroutine tools are awaited on the
    loop; plain functions run in a worker thread.
    """

    def __init__(
        self,
        resolver: HandlerResolver | None = None,
        *,
        strategies: Iterable[InstantiationStrategy] = (),
        result_adapter: ResultAdapter | None = None,
    ) -> None:
        self.resolver = resolver if resolver is not None else ServiceContainer()
        self.strategies = tuple(strategies)
        self.result_adapter = result_adapter or EnvelopeResultAdapter()

    async def invoke(self, descriptor: ToolDescriptor, arguments: Sequence[Any]) -> Any:
        method = descriptor.method
        if method.is_static:
            return await self._call(descriptor, method.function, arguments)

        handler_type = descriptor.handler or method.owner
        if handler_type is None:
            raise HandlerResolutionError(f"tool '{descriptor.name}' has an instance method but no handler type")

        async with self._scope() as scope:
            instance = self._resolve_handler(handler_type, scope)
            obs.event("handler.resolved", {"handler": qualified_name(handler_type)})
            return await self._call(descriptor, method.bind_to(instance), arguments)

    def _scope(self) -> Any:
        create_scope = getattr(self.resolver, "create_scope", None)
        if callable(create_scope):
            return create_scope()
        return contextlib.nullcontext(self.resolver)

    def _resolve_handler(self, handler_type: type, scope: HandlerResolver) -> Any:
        instance = scope.resolve(handler_type)
        if instance is not None:
            return instance
        for strategy in self.strategies:
            if strategy.applies_to(handler_type):
                return strategy.instantiate(handler_type, scope)
        raise HandlerResolutionError(f"no handler instance available for {qualified_name(handler_type)}")

    async def _call(self, descriptor: ToolDescriptor, fn: Callable[..., Any], arguments: Sequence[Any]) -> Any:
        args, kwargs = split_arguments(descriptor.method.parameters, arguments)
        _check_call(descriptor.name, fn, args, kwargs)
        try:
            if descriptor.method.is_async:
                result = fn(*args, **kwargs)
            else:
                # Blocking tools run off the event loop so other requests keep moving.
                result = await asyncio.to_thread(fn, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("tool %r raised %s: %s", descriptor.name, type(e).__name__, e)
            obs.event("handler.fault", {"tool": descriptor.name, "exc_type": type(e).__name__, "message": str(e)})
            raise HandlerFaultError(descriptor.name, e) from e

        adapted = self.result_adapter.adapt(result)
        if adapted is not result:
            obs.event("result.adapted", {"from": type(result).__name__, "to": type(adapted).__name__})
        return adapted


def _check_call(tool_name: str, fn: Callable[..., Any], args: list[Any], kwargs: dict[str, Any]) -> None:
    """Reject argument lists the target cannot accept before any tool code runs."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return
    try:
        sig.bind(*args, **kwargs)
    except TypeError as e:
        raise InternalError(f"bound arguments do not fit tool '{tool_name}': {e}") from e
