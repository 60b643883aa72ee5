from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from ..introspect import FormalParameter, formal_parameters
from ..schema import ParameterSchema, build_input_schema


@dataclass(frozen=True)
class MethodHandle:
    """Invocation handle over a Python function or method.

    The registry stores handles rather than raw function objects so that the
    binder and the invoker only ever see a name, a parameter list, and a way
    to get something callable for a given instance.
    """

    name: str
    function: Callable[..., Any]
    owner: type | None = None
    is_static: bool = True
    parameters: tuple[FormalParameter, ...] = ()

    @property
    def is_async(self) -> bool:
        fn = inspect.unwrap(self.function)
        return inspect.iscoroutinefunction(fn) or inspect.isasyncgenfunction(fn)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @classmethod
    def from_callable(cls, fn: Callable[..., Any], *, name: str | None = None) -> "MethodHandle":
        """Wrap a free function, bound method or classmethod; no instance is needed to call it."""
        if not callable(fn):
            raise TypeError(f"expected a callable, got {type(fn).__name__}")
        owner: type | None = None
        if inspect.ismethod(fn):
            bound_to = fn.__self__
            owner = bound_to if isinstance(bound_to, type) else type(bound_to)
        return cls(
            name=name or getattr(fn, "__name__", type(fn).__name__),
            function=fn,
            owner=owner,
            is_static=True,
            parameters=tuple(formal_parameters(fn)),
        )

    @classmethod
    def from_owner(cls, owner: Any, method_name: str) -> "MethodHandle":
        """Locate `method_name` on a class (or module) without instantiating anything.

        Raises AttributeError when the attribute does not exist and TypeError
        when it exists but is not callable.
        """
        if inspect.ismodule(owner):
            fn = getattr(owner, method_name)
            if not callable(fn):
                raise TypeError(f"{owner.__name__}.{method_name} is not callable")
            return cls.from_callable(fn, name=method_name)

        raw = inspect.getattr_static(owner, method_name)
        if isinstance(raw, (staticmethod, classmethod)):
            fn = getattr(owner, method_name)
            return cls(
                name=method_name,
                function=fn,
                owner=owner,
                is_static=True,
                parameters=tuple(formal_parameters(fn)),
            )
        if not callable(raw):
            raise TypeError(f"{owner.__qualname__}.{method_name} is not callable")
        return cls(
            name=method_name,
            function=raw,
            owner=owner,
            is_static=False,
            parameters=tuple(formal_parameters(raw, skip_first=True)),
        )

    def bind_to(self, instance: Any | None) -> Callable[..., Any]:
        if self.is_static:
            return self.function
        if instance is None:
            raise TypeError(f"instance method {self.name!r} needs an instance")
        return self.function.__get__(instance, type(instance))


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    method: MethodHandle
    handler: type | None = None
    parameters: dict[str, ParameterSchema] = field(default_factory=dict)
    description: str = ""

    @property
    def input_schema(self) -> dict[str, Any]:
        return build_input_schema(self.parameters.values())

    def to_spec(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
