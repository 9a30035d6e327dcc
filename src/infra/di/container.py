"""Small type-keyed dependency container."""

from __future__ import annotations

import inspect
import types
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar, Union, cast, get_args, get_origin, get_type_hints

import structlog

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")

Closer = Callable[[], Awaitable[None]]


class Lifecycle(Enum):
    SINGLETON = "singleton"
    """Built on first resolution and shared afterwards."""

    FACTORY = "factory"
    """Built anew on every resolution."""


class DependencyContainer:
    """Resolve services by type, building constructor arguments from registrations.

    Instances that hold resources (HTTP clients, background refresh tasks)
    register an async closer; ``aclose`` runs them in reverse registration
    order.
    """

    def __init__(self) -> None:
        self._registrations: dict[type[Any], tuple[Callable[[], Any], Lifecycle]] = {}
        self._singletons: dict[type[Any], Any] = {}
        self._resolving: list[type[Any]] = []
        self._closers: list[tuple[str, Closer]] = []

    def register(
        self,
        service_type: type[T],
        factory: Callable[[], T] | None = None,
        *,
        lifecycle: Lifecycle = Lifecycle.SINGLETON,
    ) -> None:
        """Register ``service_type``; without a factory the constructor is inspected.

        Raises:
            ValueError: If ``service_type`` is already registered.
        """
        if service_type in self._registrations:
            raise ValueError(f"Service {service_type.__name__} is already registered")
        self._registrations[service_type] = (
            factory or self._auto_factory(service_type),
            lifecycle,
        )

    def register_instance(self, service_type: type[T], instance: T) -> None:
        if service_type in self._registrations:
            raise ValueError(f"Service {service_type.__name__} is already registered")
        self._registrations[service_type] = (lambda: instance, Lifecycle.SINGLETON)
        self._singletons[service_type] = instance

    def register_closer(self, name: str, closer: Closer) -> None:
        self._closers.append((name, closer))

    def is_registered(self, service_type: type[Any]) -> bool:
        return service_type in self._registrations

    def resolve(self, service_type: type[T]) -> T:
        """Return an instance of ``service_type``.

        Raises:
            KeyError: If the type is not registered.
            RuntimeError: If resolving it requires itself.
        """
        if service_type not in self._registrations:
            raise KeyError(f"Service {service_type.__name__} is not registered")
        if service_type in self._resolving:
            chain = [t.__name__ for t in self._resolving] + [service_type.__name__]
            raise RuntimeError(f"Circular dependency detected: {' -> '.join(chain)}")

        factory, lifecycle = self._registrations[service_type]
        if lifecycle is Lifecycle.SINGLETON and service_type in self._singletons:
            return cast(T, self._singletons[service_type])

        self._resolving.append(service_type)
        try:
            instance = factory()
        finally:
            self._resolving.pop()

        if lifecycle is Lifecycle.SINGLETON:
            self._singletons[service_type] = instance
        return cast(T, instance)

    async def aclose(self) -> None:
        """Run registered closers, newest first; failures are logged and skipped."""
        closers, self._closers = self._closers, []
        for name, closer in reversed(closers):
            try:
                await closer()
            except Exception as exc:
                LOGGER.warning("di.container.close_failed", resource=name, error=str(exc))

    def clear(self) -> None:
        self._registrations.clear()
        self._singletons.clear()
        self._resolving.clear()
        self._closers.clear()

    def _auto_factory(self, service_type: type[T]) -> Callable[[], T]:
        def factory() -> T:
            signature = inspect.signature(service_type.__init__)
            hints = get_type_hints(service_type.__init__)
            kwargs: dict[str, Any] = {}
            for name, param in signature.parameters.items():
                if name == "self" or param.kind in (
                    inspect.Parameter.VAR_POSITIONAL,
                    inspect.Parameter.VAR_KEYWORD,
                ):
                    continue
                has_default = param.default is not inspect.Parameter.empty
                dependency = _injectable_type(hints.get(name))
                if dependency is None or (has_default and not self.is_registered(dependency)):
                    continue
                kwargs[name] = self.resolve(dependency)
            return service_type(**kwargs)

        return factory


def _injectable_type(annotation: Any) -> type[Any] | None:
    """Plain classes and ``X | None`` are injectable; anything else is not."""
    if annotation is None or annotation is Any:
        return None
    if isinstance(annotation, type):
        return annotation
    if get_origin(annotation) in (types.UnionType, Union):
        args = get_args(annotation)
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1 and len(args) == 2 and isinstance(non_none[0], type):
            return non_none[0]
    return None


__all__ = ["DependencyContainer", "Lifecycle"]
