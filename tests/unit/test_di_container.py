"""Unit tests for the type-keyed dependency container."""

from __future__ import annotations

import pytest

from src.infra.di import DependencyContainer, Lifecycle


class Clock:
    pass


class Repository:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock


class Service:
    def __init__(self, repository: Repository, label: str = "default", audit: Clock | None = None) -> None:
        self.repository = repository
        self.label = label
        self.audit = audit


class Unregistered:
    pass


class Chicken:
    def __init__(self, egg: Egg) -> None:
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken) -> None:
        self.chicken = chicken


@pytest.mark.unit
class TestDependencyContainer:
    def test_auto_wires_constructor_dependencies(self) -> None:
        container = DependencyContainer()
        container.register(Clock)
        container.register(Repository)
        container.register(Service)

        service = container.resolve(Service)

        assert service.repository.clock is container.resolve(Clock)
        assert service.label == "default"
        assert service.audit is container.resolve(Clock)
        assert container.resolve(Service) is service

    def test_optional_dependency_left_at_default_when_unregistered(self) -> None:
        container = DependencyContainer()
        container.register(Repository, lambda: Repository(Clock()))
        container.register(Service)

        assert container.resolve(Service).audit is None

    def test_factory_lifecycle_builds_new_instances(self) -> None:
        container = DependencyContainer()
        container.register(Clock, lifecycle=Lifecycle.FACTORY)

        assert container.resolve(Clock) is not container.resolve(Clock)

    def test_register_instance_and_duplicates(self) -> None:
        container = DependencyContainer()
        clock = Clock()
        container.register_instance(Clock, clock)

        assert container.resolve(Clock) is clock
        assert container.is_registered(Clock)
        with pytest.raises(ValueError, match="already registered"):
            container.register(Clock)

    def test_unregistered_type_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            DependencyContainer().resolve(Unregistered)

    def test_circular_dependency_detected(self) -> None:
        container = DependencyContainer()
        container.register(Chicken)
        container.register(Egg)

        with pytest.raises(RuntimeError, match="Chicken -> Egg -> Chicken"):
            container.resolve(Chicken)

    def test_clear(self) -> None:
        container = DependencyContainer()
        container.register(Clock)
        container.clear()

        assert not container.is_registered(Clock)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_aclose_runs_closers_newest_first_and_survives_failures() -> None:
    container = DependencyContainer()
    closed: list[str] = []

    async def close_client() -> None:
        closed.append("client")

    async def close_cache() -> None:
        closed.append("cache")
        raise RuntimeError("already closed")

    container.register_closer("client", close_client)
    container.register_closer("cache", close_cache)

    await container.aclose()
    await container.aclose()

    assert closed == ["cache", "client"]
