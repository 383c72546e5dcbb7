"""Tests for the in-process construction container."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

import pytest

from wiregraph.adapter import ContainerAdapter, Handle
from wiregraph.container import Container
from wiregraph.exceptions import CyclicDependencyError, UnresolvedDependencyError
from wiregraph.types import ConstructionKind, Lifecycle


class Counter:
    def __init__(self) -> None:
        self.calls = 0

    def make(self, *arguments: Any) -> object:
        self.calls += 1
        return object()


class TestRegistration:
    def test_container_implements_adapter_protocol(self, container: Container) -> None:
        container.register_instance("a", 1, [], Lifecycle.SINGLETON)

        assert isinstance(container, ContainerAdapter)
        assert isinstance(container.get_dep("a"), Handle)

    def test_get_dep_returns_none_when_missing(self, container: Container) -> None:
        assert container.get_dep("missing") is None
        assert container.get_dep(["unhashable"]) is None
        assert "missing" not in container

    def test_handle_exposes_registration(self, container: Container) -> None:
        container.register_factory("sum", lambda a, b: a + b, ["a", "b"], Lifecycle.PROTOTYPE)

        handle = container.get_dep("sum")

        assert handle is not None
        assert handle.id == "sum"
        assert handle.kind is ConstructionKind.FACTORY
        assert handle.lifecycle is Lifecycle.PROTOTYPE
        assert handle.dependencies == ("a", "b")
        assert "'sum'" in repr(handle)

    def test_registering_again_replaces(self, container: Container) -> None:
        container.register_instance("a", 1, [], Lifecycle.SINGLETON)
        container.register_instance("a", 2, [], Lifecycle.SINGLETON)

        assert len(container) == 1
        assert asyncio.run(container.resolve("a")) == 2


class TestResolve:
    async def test_instance_is_returned_as_is(self, container: Container) -> None:
        value = object()
        container.register_instance("value", value, [], Lifecycle.SINGLETON)

        assert await container.resolve("value") is value

    async def test_factory_receives_dependencies_in_order(self, container: Container) -> None:
        received = []

        def total(a: int, b: int) -> int:
            received.append((a, b))
            return a + b

        container.register_instance("a", 2, [], Lifecycle.SINGLETON)
        container.register_instance("b", 3, [], Lifecycle.SINGLETON)
        container.register_factory("total", total, ["a", "b"], Lifecycle.SINGLETON)

        assert await container.resolve("total") == 5
        assert received == [(2, 3)]

    async def test_async_factory_is_awaited(self, container: Container) -> None:
        async def make_value() -> str:
            await asyncio.sleep(0)
            return "ready"

        container.register_factory("value", make_value, [], Lifecycle.PROTOTYPE)

        assert await container.resolve("value") == "ready"

    async def test_unregistered_identifier(self, container: Container) -> None:
        with pytest.raises(UnresolvedDependencyError, match="'x'") as exc_info:
            await container.resolve("x")

        assert exc_info.value.identifier == "x"

    async def test_unregistered_dependency_names_dependent(self, container: Container) -> None:
        container.register_factory("root", lambda leaf: leaf, ["leaf"], Lifecycle.SINGLETON)

        with pytest.raises(UnresolvedDependencyError) as exc_info:
            await container.resolve("root")

        assert exc_info.value.identifier == "leaf"
        assert exc_info.value.required_by == "root"

    async def test_cycle_is_detected_while_resolving(self, container: Container) -> None:
        container.register_factory("a", lambda b: b, ["b"], Lifecycle.PROTOTYPE)
        container.register_factory("b", lambda a: a, ["a"], Lifecycle.PROTOTYPE)

        with pytest.raises(CyclicDependencyError) as exc_info:
            await container.resolve("a")

        assert exc_info.value.path == ["a", "b", "a"]

    async def test_singleton_cycle_does_not_deadlock(self, container: Container) -> None:
        container.register_factory("a", lambda b: b, ["b"], Lifecycle.SINGLETON)
        container.register_factory("b", lambda a: a, ["a"], Lifecycle.SINGLETON)

        with pytest.raises(CyclicDependencyError):
            await asyncio.wait_for(container.resolve("a"), timeout=1)


class TestLifecycles:
    async def test_singleton_is_shared(self, container: Container) -> None:
        counter = Counter()
        container.register_factory("shared", counter.make, [], Lifecycle.SINGLETON)

        first = await container.resolve("shared")
        second = await container.resolve("shared")

        assert first is second
        assert counter.calls == 1

    async def test_prototype_constructs_every_time(self, container: Container) -> None:
        counter = Counter()
        container.register_factory("fresh", counter.make, [], Lifecycle.PROTOTYPE)

        first = await container.resolve("fresh")
        second = await container.resolve("fresh")

        assert first is not second
        assert counter.calls == 2

    async def test_concurrent_singleton_constructed_once(self, container: Container) -> None:
        calls = 0

        async def make_slow() -> object:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return object()

        container.register_factory("slow", make_slow, [], Lifecycle.SINGLETON)

        results = await asyncio.gather(*(container.resolve("slow") for _ in range(20)))

        assert calls == 1
        assert all(result is results[0] for result in results)

    async def test_shared_dependency_of_concurrent_dependents(self, container: Container) -> None:
        counter = Counter()
        container.register_factory("base", counter.make, [], Lifecycle.SINGLETON)
        for side in ("left", "right"):
            container.register_factory(
                side,
                partial(lambda name, base: (name, base), side),
                ["base"],
                Lifecycle.PROTOTYPE,
            )
        container.register_factory(
            "top",
            lambda left, right: (left, right),
            ["left", "right"],
            Lifecycle.PROTOTYPE,
        )

        left, right = await container.resolve("top")

        assert left[1] is right[1]
        assert counter.calls == 1

    async def test_failed_singleton_can_be_retried(self, container: Container) -> None:
        attempts = 0

        def make_flaky() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                msg = "first attempt fails"
                raise RuntimeError(msg)
            return "recovered"

        container.register_factory("flaky", make_flaky, [], Lifecycle.SINGLETON)

        with pytest.raises(RuntimeError, match="first attempt fails"):
            await container.resolve("flaky")

        assert await container.resolve("flaky") == "recovered"
        assert await container.resolve("flaky") == "recovered"
        assert attempts == 2

    async def test_concurrent_waiters_observe_the_same_failure(self, container: Container) -> None:
        attempts = 0

        async def make_failing() -> None:
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(0.01)
            msg = "boom"
            raise RuntimeError(msg)

        container.register_factory("failing", make_failing, [], Lifecycle.SINGLETON)

        results = await asyncio.gather(
            *(container.resolve("failing") for _ in range(5)),
            return_exceptions=True,
        )

        assert attempts == 1
        assert all(isinstance(result, RuntimeError) for result in results)

    async def test_cancelled_caller_does_not_cancel_construction(
        self,
        container: Container,
    ) -> None:
        started = asyncio.Event()
        release = asyncio.Event()
        calls = 0

        async def make_gated() -> str:
            nonlocal calls
            calls += 1
            started.set()
            await release.wait()
            return "built"

        container.register_factory("gated", make_gated, [], Lifecycle.SINGLETON)

        first = asyncio.create_task(container.resolve("gated"))
        await started.wait()
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        second = asyncio.create_task(container.resolve("gated"))
        await asyncio.sleep(0)
        release.set()

        assert await second == "built"
        assert calls == 1


class TestThreadSafety:
    def test_singleton_shared_across_event_loops(self, container: Container) -> None:
        calls = 0
        calls_lock = threading.Lock()

        def make_slow() -> object:
            nonlocal calls
            with calls_lock:
                calls += 1
            time.sleep(0.05)
            return object()

        container.register_factory("slow", make_slow, [], Lifecycle.SINGLETON)

        def resolve_in_own_loop() -> object:
            return asyncio.run(container.resolve("slow"))

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: resolve_in_own_loop(), range(8)))

        assert calls == 1
        assert all(result is results[0] for result in results)

    def test_construction_abandoned_with_its_loop_is_claimed_again(
        self,
        container: Container,
    ) -> None:
        """Waiters on another loop rebuild a singleton whose loop shut down mid-construction."""
        calls = 0
        calls_lock = threading.Lock()

        async def make_slow() -> object:
            nonlocal calls
            with calls_lock:
                calls += 1
            await asyncio.sleep(0.3)
            return object()

        container.register_factory("slow", make_slow, [], Lifecycle.SINGLETON)
        outcomes: dict[str, object] = {}

        def resolve_with_timeout() -> None:
            try:
                asyncio.run(asyncio.wait_for(container.resolve("slow"), timeout=0.05))
            except asyncio.TimeoutError as error:
                outcomes["impatient"] = error

        def resolve_patiently() -> None:
            try:
                outcomes["patient"] = asyncio.run(container.resolve("slow"))
            except BaseException as error:  # noqa: BLE001
                outcomes["patient"] = error

        impatient = threading.Thread(target=resolve_with_timeout)
        patient = threading.Thread(target=resolve_patiently)
        impatient.start()
        time.sleep(0.02)
        patient.start()
        impatient.join()
        patient.join()

        assert isinstance(outcomes["impatient"], asyncio.TimeoutError)
        value = outcomes["patient"]
        assert not isinstance(value, BaseException)
        assert asyncio.run(container.resolve("slow")) is value
        assert calls == 2

    def test_concurrent_registration(self, container: Container) -> None:
        def register(index: int) -> None:
            container.register_instance(f"value-{index}", index, [], Lifecycle.SINGLETON)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(100)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(container) == 100
