from __future__ import annotations

import logging
import threading
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from wiregraph.defaults import DEFAULT_AMBIGUOUS_IDENTIFIERS
from wiregraph.descriptors import Descriptor, Identifier, is_ambiguous_identifier
from wiregraph.exceptions import (
    CyclicDependencyError,
    MissingDescriptorError,
    UnknownConstructionKindError,
)
from wiregraph.injection import PropertyInjector
from wiregraph.types import ConstructionKind

if TYPE_CHECKING:
    from wiregraph.adapter import ContainerAdapter
    from wiregraph.declarations import Declarations
    from wiregraph.registry import DescriptorRegistry

logger = logging.getLogger(__name__)

_REGISTRABLE_KINDS = (
    ConstructionKind.TYPE,
    ConstructionKind.FACTORY,
    ConstructionKind.INSTANCE,
)


class GraphAssembler:
    """Register a descriptor and its transitive dependencies with a container.

    The dependency graph is walked depth-first with an explicit stack. The
    container is the source of truth for "already registered": identifiers it
    knows are skipped, so assembling the same root twice registers nothing the
    second time. The whole subgraph is validated before the first
    registration, so a missing descriptor or a cycle leaves the container
    untouched.
    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        adapter: ContainerAdapter,
        *,
        injector: PropertyInjector | None = None,
        declarations: Declarations | None = None,
        autodeclare: bool = False,
        ambiguous_identifiers: Collection[Any] = DEFAULT_AMBIGUOUS_IDENTIFIERS,
    ) -> None:
        self._registry = registry
        self._adapter = adapter
        self._injector = injector or PropertyInjector(adapter)
        self._declarations = declarations
        self._autodeclare = autodeclare
        self._ambiguous_identifiers = ambiguous_identifiers
        self._lock = threading.Lock()

    def assemble(self, root_id: Identifier) -> int:
        """Register ``root_id`` and everything it depends on.

        Returns:
            The number of registrations performed.

        Raises:
            MissingDescriptorError: If an identifier in the graph was never declared.
            CyclicDependencyError: If the graph contains a cycle.
            UnknownConstructionKindError: If a descriptor cannot be registered.

        """
        with self._lock:
            plan = self._plan(root_id)
            for descriptor in plan:
                self._register(descriptor)
        if plan:
            logger.info(
                "Assembled %s with %d new registrations",
                plan[-1].label,
                len(plan),
            )
        return len(plan)

    def _plan(self, root_id: Identifier) -> list[Descriptor]:
        """Return unregistered descriptors of the subgraph, dependencies first."""
        plan: list[Descriptor] = []
        planned: set[Identifier] = set()
        # Identifiers on the current path, in order.
        in_progress: dict[Identifier, None] = {}
        worklist: list[tuple[Descriptor, bool]] = [(self._descriptor(root_id), False)]

        while worklist:
            descriptor, expanded = worklist.pop()
            identifier = descriptor.id

            if expanded:
                if descriptor.kind not in _REGISTRABLE_KINDS:
                    raise UnknownConstructionKindError(descriptor.kind)
                del in_progress[identifier]
                planned.add(identifier)
                plan.append(descriptor)
                continue

            if identifier in planned or self._adapter.get_dep(identifier) is not None:
                continue
            if identifier in in_progress:
                path = list(in_progress)
                raise CyclicDependencyError([*path[path.index(identifier) :], identifier])

            in_progress[identifier] = None
            worklist.append((descriptor, True))
            for dependency_id in reversed(self._dependency_ids(descriptor)):
                worklist.append((self._descriptor(dependency_id, required_by=identifier), False))

        return plan

    def _dependency_ids(self, descriptor: Descriptor) -> list[Identifier]:
        if descriptor.kind == ConstructionKind.TYPE:
            return descriptor.dependency_ids()
        return list(descriptor.dependencies)

    def _descriptor(self, identifier: Identifier, required_by: Identifier = None) -> Descriptor:
        descriptor = self._registry.find(identifier)
        if descriptor is not None:
            return descriptor
        if (
            self._autodeclare
            and self._declarations is not None
            and isinstance(identifier, type)
            and not is_ambiguous_identifier(identifier, self._ambiguous_identifiers)
        ):
            logger.debug("Declaring %s on demand", identifier.__qualname__)
            return self._declarations.declare_type(identifier)
        raise MissingDescriptorError(identifier, required_by)

    def _register(self, descriptor: Descriptor) -> None:
        kind = descriptor.kind
        if kind == ConstructionKind.TYPE:
            self._adapter.register_type(
                descriptor.id,
                self._injector.build_factory(descriptor),
                list(descriptor.dependencies),
                descriptor.lifecycle,
            )
        elif kind == ConstructionKind.FACTORY:
            self._adapter.register_factory(
                descriptor.id,
                descriptor.target,
                list(descriptor.dependencies),
                descriptor.lifecycle,
            )
        elif kind == ConstructionKind.INSTANCE:
            self._adapter.register_instance(
                descriptor.id,
                descriptor.target,
                list(descriptor.dependencies),
                descriptor.lifecycle,
            )
        else:
            raise UnknownConstructionKindError(kind)
        logger.debug("Wired %s (%s)", descriptor.label, ConstructionKind(kind).value)
