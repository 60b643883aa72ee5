from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from ..errors import HandlerResolutionError
from ..introspect import formal_parameters, qualified_name, unwrap_optional
from .container import HandlerResolver


logger = logging.getLogger(__name__)


class InstantiationStrategy(Protocol):
    def applies_to(self, handler_type: type) -> bool: ...

    def instantiate(self, handler_type: type, resolver: HandlerResolver) -> Any: ...


class ConstructorInjectionStrategy:
    """Build a handler by resolving each `__init__` argument through the resolver.

    Used when the resolver has no registration for the handler type itself.
    `base_types` narrows which handler classes this applies to; empty means all.
    """

    def __init__(self, base_types: Iterable[type] = ()) -> None:
        self.base_types = tuple(base_types)

    def applies_to(self, handler_type: type) -> bool:
        if not isinstance(handler_type, type):
            return False
        if not self.base_types:
            return True
        return issubclass(handler_type, self.base_types)

    def instantiate(self, handler_type: type, resolver: HandlerResolver) -> Any:
        init = handler_type.__init__
        params = [] if init is object.__init__ else formal_parameters(init, skip_first=True)

        kwargs: dict[str, Any] = {}
        for p in params:
            dep_type, optional = unwrap_optional(p.annotation)
            dep = resolver.resolve(dep_type) if isinstance(dep_type, type) else None
            if dep is not None:
                kwargs[p.name] = dep
            elif p.has_default:
                kwargs[p.name] = p.default
            elif optional:
                kwargs[p.name] = None
            else:
                raise HandlerResolutionError(
                    f"cannot construct {qualified_name(handler_type)}: "
                    f"no service for constructor parameter '{p.name}'"
                )
        logger.debug("constructing %s with %s", qualified_name(handler_type), sorted(kwargs))
        return handler_type(**kwargs)
