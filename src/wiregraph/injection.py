from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from wiregraph.adapter import ContainerAdapter
from wiregraph.descriptors import Descriptor
from wiregraph.exceptions import UnresolvedDependencyError

logger = logging.getLogger(__name__)


class PropertyInjector:
    """Populate property and accessor slots of freshly constructed instances."""

    def __init__(self, adapter: ContainerAdapter) -> None:
        self._adapter = adapter

    def build_factory(self, descriptor: Descriptor) -> Callable[..., Awaitable[Any]]:
        """Build the construction wrapper registered for a ``TYPE`` descriptor.

        The wrapper receives the resolved positional dependencies, calls the
        constructor with them, injects the descriptor's properties and only
        then returns the instance.
        """
        target = descriptor.target
        properties = descriptor.properties

        async def construct(*arguments: Any) -> Any:
            instance = target(*arguments)
            if properties:
                await self.inject(instance, properties)
            return instance

        construct.__qualname__ = f"construct[{descriptor.label}]"
        return construct

    async def inject(self, instance: Any, properties: Mapping[str, Descriptor]) -> Any:
        """Resolve every property concurrently and assign the results.

        Nothing is assigned unless every resolution succeeds; the first
        failure propagates unchanged.

        Raises:
            UnresolvedDependencyError: If a property points at an identifier
                the container has no registration for.

        """
        slots = list(properties.values())
        handles = []
        for slot in slots:
            handle = self._adapter.get_dep(slot.id)
            if handle is None:
                raise UnresolvedDependencyError(slot.id, type(instance))
            handles.append(handle)

        values = await asyncio.gather(*(handle.resolve() for handle in handles))
        for slot, value in zip(slots, values):
            holder = slot.target if slot.static else instance
            setattr(holder, slot.owner_key, value)
        logger.debug("Injected %d properties into %s", len(slots), type(instance).__qualname__)
        return instance
