"""Type-keyed dependency container and its bootstrap for the CLI and tests."""

from src.infra.di.container import DependencyContainer, Lifecycle

__all__ = ["DependencyContainer", "Lifecycle"]
