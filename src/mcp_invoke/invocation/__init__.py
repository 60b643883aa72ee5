"""Handler resolution, invocation and result unwrapping."""

from .container import HandlerResolver, ResolutionScope, ServiceContainer, ServiceRegistrationError
from .instantiation import ConstructorInjectionStrategy, InstantiationStrategy
from .invoker import DynamicInvoker
from .results import ActionResult, EnvelopeResultAdapter, PassthroughResultAdapter, ResultAdapter, StatusResult

__all__ = [
    "HandlerResolver",
    "ServiceContainer",
    "ResolutionScope",
    "ServiceRegistrationError",
    "InstantiationStrategy",
    "ConstructorInjectionStrategy",
    "DynamicInvoker",
    "ResultAdapter",
    "EnvelopeResultAdapter",
    "PassthroughResultAdapter",
    "ActionResult",
    "StatusResult",
]
