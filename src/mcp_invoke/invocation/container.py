from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol


logger = logging.getLogger(__name__)

LIFETIMES = ("transient", "scoped", "singleton")


class ServiceRegistrationError(RuntimeError):
    pass


class HandlerResolver(Protocol):
    def resolve(self, service_type: type) -> Any | None: ...


@dataclass(frozen=True)
class _Registration:
    factory: Callable[..., Any]
    lifetime: str


class ServiceContainer:
    """Minimal service container used to obtain handler instances.

    Factories receive the resolving scope when they declare a parameter,
    so they can pull their own dependencies:

        container.register_factory(Repo, lambda scope: Repo(scope.resolve(Db)), lifetime="scoped")
    """

    def __init__(self) -> None:
        self._registrations: dict[type, _Registration] = {}
        self._singletons: dict[type, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, service_type: type, instance: Any) -> None:
        if not isinstance(service_type, type):
            raise TypeError("service_type must be a class")
        with self._lock:
            self._registrations.pop(service_type, None)
            self._singletons[service_type] = instance

    def register_factory(
        self,
        service_type: type,
        factory: Callable[..., Any],
        *,
        lifetime: str = "transient",
    ) -> None:
        if not isinstance(service_type, type):
            raise TypeError("service_type must be a class")
        if not callable(factory):
            raise TypeError("factory must be callable")
        if lifetime not in LIFETIMES:
            raise ServiceRegistrationError(f"unknown lifetime {lifetime!r}; expected one of {LIFETIMES}")
        with self._lock:
            self._singletons.pop(service_type, None)
            self._registrations[service_type] = _Registration(factory=factory, lifetime=lifetime)

    def register_type(self, service_type: type, *, lifetime: str = "transient") -> None:
        """Register a class that is built by calling it with no arguments."""
        self.register_factory(service_type, service_type, lifetime=lifetime)

    def has(self, service_type: type) -> bool:
        return service_type in self._singletons or service_type in self._registrations

    def create_scope(self) -> "ResolutionScope":
        return ResolutionScope(self)

    def resolve(self, service_type: type) -> Any | None:
        """Resolve outside of any scope; scoped registrations are not available here."""
        return self._resolve_in(service_type, None)

    def _resolve_in(self, service_type: type, scope: "ResolutionScope | None") -> Any | None:
        if service_type in self._singletons:
            return self._singletons[service_type]
        reg = self._registrations.get(service_type)
        if reg is None:
            return None

        if reg.lifetime == "singleton":
            with self._lock:
                if service_type not in self._singletons:
                    self._singletons[service_type] = _call_factory(reg.factory, scope or self)
                return self._singletons[service_type]

        if reg.lifetime == "scoped":
            if scope is None:
                raise ServiceRegistrationError(f"{service_type.__qualname__} is scoped; resolve it from a scope")
            return scope._scoped(service_type, reg.factory)

        instance = _call_factory(reg.factory, scope or self)
        if scope is not None:
            scope._track(instance)
        return instance


class ResolutionScope:
    """Per-call resolution scope; instances it created are closed on exit, newest first."""

    def __init__(self, container: ServiceContainer) -> None:
        self._container = container
        self._instances: dict[type, Any] = {}
        self._created: list[Any] = []
        self.closed = False

    def resolve(self, service_type: type) -> Any | None:
        if self.closed:
            raise RuntimeError("resolution scope already closed")
        return self._container._resolve_in(service_type, self)

    def _scoped(self, service_type: type, factory: Callable[..., Any]) -> Any:
        if service_type not in self._instances:
            instance = _call_factory(factory, self)
            self._instances[service_type] = instance
            self._track(instance)
        return self._instances[service_type]

    def _track(self, instance: Any) -> None:
        self._created.append(instance)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        while self._created:
            instance = self._created.pop()
            closer = getattr(instance, "close", None)
            if callable(closer):
                try:
                    closer()
                except Exception:
                    logger.exception("failed to close scoped instance %s", type(instance).__qualname__)
        self._instances.clear()

    async def aclose(self) -> None:
        if self.closed:
            return
        pending = [i for i in self._created if callable(getattr(i, "aclose", None))]
        for instance in reversed(pending):
            self._created.remove(instance)
            try:
                await instance.aclose()
            except Exception:
                logger.exception("failed to close scoped instance %s", type(instance).__qualname__)
        self.close()

    def __enter__(self) -> "ResolutionScope":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    async def __aenter__(self) -> "ResolutionScope":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def _call_factory(factory: Callable[..., Any], resolver: Any) -> Any:
    if isinstance(factory, type):
        return factory()
    try:
        wants_resolver = len(inspect.signature(factory).parameters) > 0
    except (TypeError, ValueError):
        wants_resolver = False
    return factory(resolver) if wants_resolver else factory()
