from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from wiregraph.types import Lifecycle


@runtime_checkable
class Handle(Protocol):
    """A registered dependency that can be turned into a value."""

    @property
    def id(self) -> Any:
        """The identifier the dependency is registered under."""

    @property
    def lifecycle(self) -> Lifecycle:
        """Whether resolutions share one value or construct a fresh one."""

    @property
    def dependencies(self) -> Sequence[Any]:
        """Positional dependency identifiers passed to the target."""

    def resolve(self) -> Awaitable[Any]:
        """Resolve the value.

        Under ``SINGLETON`` the first caller triggers construction and every
        caller observes the same completed value; under ``PROTOTYPE`` every
        call constructs again.
        """


@runtime_checkable
class ContainerAdapter(Protocol):
    """The construction container the graph assembler registers components with.

    The container owns instantiation, singleton caching and asynchronous
    resolution. Registrations made by the assembler are keyed by descriptor
    identifier; ``get_dep`` returning ``None`` means "not registered yet".
    """

    def register_type(
        self,
        id: Any,  # noqa: A002
        factory: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register a constructor-backed component.

        ``factory`` receives the resolved positional dependencies and may
        return an awaitable.
        """

    def register_factory(
        self,
        id: Any,  # noqa: A002
        fn: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register a factory callable invoked with the resolved dependencies."""

    def register_instance(
        self,
        id: Any,  # noqa: A002
        value: Any,
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        """Register an already formed value."""

    def get_dep(self, id: Any) -> Handle | None:  # noqa: A002
        """Get the handle registered under ``id``, if any."""
