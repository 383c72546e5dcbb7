from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Collection
from typing import Any, TypeVar, overload

from wiregraph.adapter import ContainerAdapter
from wiregraph.assembler import GraphAssembler
from wiregraph.container import Container
from wiregraph.declarations import Declarations
from wiregraph.defaults import DEFAULT_AMBIGUOUS_IDENTIFIERS, DEFAULT_LIFECYCLE
from wiregraph.descriptors import Descriptor, Identifier
from wiregraph.exceptions import ConfigurationError, UnresolvedDependencyError
from wiregraph.injection import PropertyInjector
from wiregraph.registry import DescriptorRegistry
from wiregraph.types import ConstructionKind, Lifecycle

T = TypeVar("T")


class Application:
    """One independent component graph: declarations, registry and container.

    Applications do not share state, so several graphs can live in one
    process (a fresh application per test, for example).

    Args:
        container: Construction container to register components with.
            Defaults to a new in-process ``Container``.
        default_lifecycle: Lifecycle used when a declaration does not pass one.
        autodeclare: Declare plain classes met during assembly on demand
            instead of failing with ``MissingDescriptorError``.
        ambiguous_identifiers: Identifiers rejected unless given explicitly.

    Examples:
        .. code-block:: python

            application = Application()


            @application.inject
            class Clock: ...


            @application.inject
            class Greeter:
                def __init__(self, clock: Clock) -> None:
                    self.clock = clock


            greeter = await application.resolve(Greeter)

    """

    def __init__(
        self,
        *,
        container: ContainerAdapter | None = None,
        default_lifecycle: Lifecycle = DEFAULT_LIFECYCLE,
        autodeclare: bool = False,
        ambiguous_identifiers: Collection[Any] = DEFAULT_AMBIGUOUS_IDENTIFIERS,
    ) -> None:
        self.registry = DescriptorRegistry()
        self.container: ContainerAdapter = container if container is not None else Container()
        self.declarations = Declarations(
            self.registry,
            default_lifecycle=default_lifecycle,
            ambiguous_identifiers=ambiguous_identifiers,
        )
        self.injector = PropertyInjector(self.container)
        self.assembler = GraphAssembler(
            self.registry,
            self.container,
            injector=self.injector,
            declarations=self.declarations,
            autodeclare=autodeclare,
            ambiguous_identifiers=ambiguous_identifiers,
        )

    @overload
    def inject(self, target: T, /) -> T: ...

    @overload
    def inject(
        self,
        target: None = None,
        /,
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Callable[[T], T]: ...

    def inject(
        self,
        target: Any = None,
        /,
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Any:
        """Declare a class or factory, usable bare or parameterized as a decorator.

        Examples:
            .. code-block:: python

                @application.inject
                class Repository: ...


                @application.inject(id="report", lifecycle=Lifecycle.PROTOTYPE)
                def build_report(repository: Repository) -> Report: ...

        """
        if target is None:

            def decorator(decorated: T) -> T:
                self.declarations.declare(decorated, id=id, lifecycle=lifecycle)
                return decorated

            return decorator

        self.declarations.declare(target, id=id, lifecycle=lifecycle)
        return target

    def declare(
        self,
        target: Any,
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
        kind: ConstructionKind | None = None,
    ) -> Descriptor:
        """Declare ``target``, see ``Declarations.declare``."""
        return self.declarations.declare(target, id=id, lifecycle=lifecycle, kind=kind)

    def declare_type(
        self,
        cls: type[Any],
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Descriptor:
        return self.declarations.declare_type(cls, id=id, lifecycle=lifecycle)

    def declare_factory(
        self,
        factory: Callable[..., Any],
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Descriptor:
        return self.declarations.declare_factory(factory, id=id, lifecycle=lifecycle)

    def declare_instance(
        self,
        id: Identifier,  # noqa: A002
        value: Any,
        *,
        lifecycle: Lifecycle = Lifecycle.SINGLETON,
    ) -> Descriptor:
        return self.declarations.declare_instance(id, value, lifecycle=lifecycle)

    def declare_parameter(self, owner: Any, index: int, id: Identifier) -> None:  # noqa: A002
        self.declarations.declare_parameter(owner, index, id)

    def declare_property(
        self,
        owner: type[Any],
        name: str,
        *,
        id: Identifier = None,  # noqa: A002
        static: bool = False,
    ) -> Descriptor:
        """Declare a property slot, see ``Declarations.declare_property``.

        Raises:
            ConfigurationError: If ``owner`` is already registered with the
                container, since it would never be assembled again.

        """
        declared = self.registry.owned(owner)
        if declared is not None and self.container.get_dep(declared.id) is not None:
            msg = (
                f"{owner.__qualname__} is already assembled; "
                f"declare property '{name}' before resolving it."
            )
            raise ConfigurationError(msg)
        return self.declarations.declare_property(owner, name, id=id, static=static)

    def assemble(self, root_id: Identifier) -> int:
        """Register ``root_id`` and its dependencies, see ``GraphAssembler.assemble``."""
        return self.assembler.assemble(root_id)

    async def resolve(self, root_id: Identifier) -> Any:
        """Assemble ``root_id`` if it is declared, then resolve it.

        Raises:
            UnresolvedDependencyError: If ``root_id`` is neither declared nor
                registered with the container.
            MissingDescriptorError: If a dependency of ``root_id`` was never declared.

        """
        if root_id in self.registry:
            self.assembler.assemble(root_id)
        handle = self.container.get_dep(root_id)
        if handle is None:
            raise UnresolvedDependencyError(root_id)
        return await handle.resolve()

    def resolve_sync(self, root_id: Identifier) -> Any:
        """Resolve ``root_id`` from synchronous code without a running event loop."""
        return asyncio.run(self.resolve(root_id))

    async def bootstrap(
        self,
        target: Any,
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Any:
        """Declare ``target`` as the root component and resolve it.

        Classes and functions are declared first; any other ``target`` is taken
        as the identifier of an already declared root.

        Declaring a target that is already declared identically is a no-op,
        so bootstrapping twice returns the cached singleton.
        """
        if inspect.isfunction(target) or isinstance(target, type):
            descriptor = self.declarations.declare(target, id=id, lifecycle=lifecycle)
            return await self.resolve(descriptor.id)
        return await self.resolve(target if id is None else id)
