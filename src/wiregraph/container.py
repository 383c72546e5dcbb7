"""In-process construction container.

Implements the ``ContainerAdapter`` protocol the graph assembler registers
components with. Resolution is asynchronous: positional dependencies of a
component are resolved concurrently, coroutine results of user callables are
awaited, and singletons are constructed at most once even when requested
concurrently from several tasks, threads or event loops.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
import threading
from collections.abc import Callable, Sequence
from contextvars import ContextVar
from functools import partial
from typing import Any

from wiregraph.exceptions import CyclicDependencyError, UnresolvedDependencyError
from wiregraph.types import ConstructionKind, Lifecycle, describe_identifier

logger = logging.getLogger(__name__)

# Identifiers being resolved in the current task, copied into child tasks.
_resolution_path: ContextVar[tuple[Any, ...]] = ContextVar("resolution_path", default=())


class Dependency:
    """A registered component, constructed anew on every resolution."""

    __slots__ = ("_container", "_dependencies", "_id", "_kind", "_lifecycle", "_target")

    def __init__(
        self,
        container: Container,
        *,
        id: Any,  # noqa: A002
        kind: ConstructionKind,
        target: Any,
        dependencies: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        self._container = container
        self._id = id
        self._kind = kind
        self._target = target
        self._dependencies = tuple(dependencies)
        self._lifecycle = lifecycle

    @property
    def id(self) -> Any:
        return self._id

    @property
    def kind(self) -> ConstructionKind:
        return self._kind

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def dependencies(self) -> tuple[Any, ...]:
        return self._dependencies

    async def resolve(self) -> Any:
        """Resolve the value, tracking the resolution path to detect cycles."""
        path = _resolution_path.get()
        if self._id in path:
            raise CyclicDependencyError([*path[path.index(self._id) :], self._id])
        token = _resolution_path.set((*path, self._id))
        try:
            return await self._resolve()
        finally:
            _resolution_path.reset(token)

    async def _resolve(self) -> Any:
        return await self._construct()

    async def _construct(self) -> Any:
        arguments = await self._container.resolve_many(self._dependencies, required_by=self._id)
        result = self._target(*arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={describe_identifier(self._id)}, "
            f"kind={self._kind.value}, lifecycle={self._lifecycle.value})"
        )


class InstanceDependency(Dependency):
    """A registered value returned as is."""

    __slots__ = ()

    async def _resolve(self) -> Any:
        return self._target


# Claim result of a construction whose task was cancelled, usually because
# the event loop running it shut down.
_ABANDONED: Any = object()


class SingletonDependency(Dependency):
    """A registered component constructed once and shared.

    The first caller claims the construction and runs it as a separate task;
    every caller, the first included, awaits a shielded view of the claim, so
    cancelling one caller never cancels a construction other callers share.
    A failed construction releases the claim: callers waiting on it observe
    the failure and the next resolution constructs again. A construction
    cancelled with its event loop is abandoned: waiters on other loops claim
    it again instead of observing the cancellation.
    """

    __slots__ = ("_claim", "_claim_lock", "_has_value", "_value")

    def __init__(self, container: Container, **kwargs: Any) -> None:
        super().__init__(container, **kwargs)
        self._claim: concurrent.futures.Future[Any] | None = None
        self._claim_lock = threading.Lock()
        self._has_value = False
        self._value: Any = None

    async def _resolve(self) -> Any:
        while True:
            if self._has_value:
                return self._value

            with self._claim_lock:
                if self._has_value:
                    return self._value
                claim = self._claim
                is_owner = claim is None
                if claim is None:
                    claim = self._claim = concurrent.futures.Future()

            if is_owner:
                logger.debug("Constructing singleton %s", describe_identifier(self._id))
                task = asyncio.get_running_loop().create_task(self._construct())
                self._container.track(task)
                task.add_done_callback(partial(self._settle, claim))

            value = await asyncio.shield(asyncio.wrap_future(claim))
            if value is not _ABANDONED:
                return value
            logger.debug(
                "Construction of singleton %s was abandoned, claiming it again",
                describe_identifier(self._id),
            )

    def _settle(self, claim: concurrent.futures.Future[Any], task: asyncio.Task[Any]) -> None:
        with self._claim_lock:
            self._claim = None
            if task.cancelled():
                value = _ABANDONED
            else:
                error = task.exception()
                if error is not None:
                    claim.set_exception(error)
                    return
                value = self._value = task.result()
                self._has_value = True
        claim.set_result(value)


class Container:
    """Holds registered components and resolves them asynchronously.

    Registering an identifier again replaces the previous registration.
    """

    def __init__(self) -> None:
        self._dependencies: dict[Any, Dependency] = {}
        self._lock = threading.Lock()
        # Strong references to running singleton constructions.
        self._tasks: set[asyncio.Task[Any]] = set()

    def register_type(
        self,
        id: Any,  # noqa: A002
        factory: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register a constructor-backed component built by ``factory``."""
        self._add(ConstructionKind.TYPE, id, factory, dep_ids, lifecycle)

    def register_factory(
        self,
        id: Any,  # noqa: A002
        fn: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register a factory callable invoked with the resolved dependencies."""
        self._add(ConstructionKind.FACTORY, id, fn, dep_ids, lifecycle)

    def register_instance(
        self,
        id: Any,  # noqa: A002
        value: Any,
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register an already formed value."""
        self._add(ConstructionKind.INSTANCE, id, value, dep_ids, lifecycle)

    def get_dep(self, id: Any) -> Dependency | None:  # noqa: A002
        """Get the dependency registered under ``id``, if any."""
        try:
            return self._dependencies.get(id)
        except TypeError:
            return None

    async def resolve(self, id: Any) -> Any:  # noqa: A002
        """Resolve the value registered under ``id``.

        Raises:
            UnresolvedDependencyError: If nothing is registered under ``id``.

        """
        dependency = self.get_dep(id)
        if dependency is None:
            raise UnresolvedDependencyError(id)
        return await dependency.resolve()

    async def resolve_many(self, ids: Sequence[Any], *, required_by: Any = None) -> list[Any]:
        """Resolve several identifiers concurrently, preserving their order.

        Raises:
            UnresolvedDependencyError: If any identifier is not registered.

        """
        dependencies = []
        for identifier in ids:
            dependency = self.get_dep(identifier)
            if dependency is None:
                raise UnresolvedDependencyError(identifier, required_by)
            dependencies.append(dependency)
        if not dependencies:
            return []
        return list(await asyncio.gather(*(dependency.resolve() for dependency in dependencies)))

    def track(self, task: asyncio.Task[Any]) -> None:
        """Keep a reference to ``task`` until it finishes."""
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _add(
        self,
        kind: ConstructionKind,
        identifier: Any,
        target: Any,
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        if kind is ConstructionKind.INSTANCE:
            dependency_class: type[Dependency] = InstanceDependency
        elif lifecycle == Lifecycle.SINGLETON:
            dependency_class = SingletonDependency
        else:
            dependency_class = Dependency

        dependency = dependency_class(
            self,
            id=identifier,
            kind=kind,
            target=target,
            dependencies=dep_ids,
            lifecycle=lifecycle,
        )
        with self._lock:
            self._dependencies[identifier] = dependency
        logger.debug(
            "Registered %s as %s (%s)",
            describe_identifier(identifier),
            kind.value,
            lifecycle.value,
        )

    def __contains__(self, id: object) -> bool:  # noqa: A002
        return self.get_dep(id) is not None

    def __len__(self) -> int:
        return len(self._dependencies)
