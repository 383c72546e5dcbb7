from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from wiregraph.descriptors import Descriptor, Identifier
from wiregraph.exceptions import ConflictingDeclarationError, MissingDescriptorError
from wiregraph.types import ConstructionKind

logger = logging.getLogger(__name__)


@dataclass
class Draft:
    """Declarations accumulated on an owner before the owner itself is declared.

    Once the owner is declared the draft is dropped: properties live on in the
    owner's descriptor, which shares the same ``properties`` dict.
    """

    owner: Any
    positional: dict[int, Identifier] = field(default_factory=dict)
    """Explicit positional overrides keyed by parameter index."""
    properties: dict[str, Descriptor] = field(default_factory=dict)
    """Property descriptors keyed by slot name."""


_OWNED_KINDS = (ConstructionKind.TYPE, ConstructionKind.FACTORY)


class DescriptorRegistry:
    """Holds every descriptor declared for one application."""

    def __init__(self) -> None:
        self._descriptors: dict[Identifier, Descriptor] = {}
        self._drafts: dict[Any, Draft] = {}
        # First descriptor declared for each class or factory.
        self._owners: dict[Any, Descriptor] = {}
        self._lock = threading.Lock()

    def add(self, descriptor: Descriptor) -> Descriptor:
        """Store a descriptor under its identifier.

        Re-declaring a matching descriptor (see ``Descriptor.matches``) is a
        no-op and returns the stored one.

        Raises:
            ConflictingDeclarationError: If a different descriptor is already
                stored under the same identifier.

        """
        with self._lock:
            existing = self.find(descriptor.id)
            if existing is not None:
                if existing.matches(descriptor):
                    return existing
                raise ConflictingDeclarationError(descriptor.id)
            self._descriptors[descriptor.id] = descriptor
            if descriptor.kind in _OWNED_KINDS and _is_hashable(descriptor.target):
                self._owners.setdefault(descriptor.target, descriptor)
        logger.debug("Declared %s as %s", descriptor.label, descriptor.kind.value)
        return descriptor

    def get(self, identifier: Identifier, *, required_by: Identifier = None) -> Descriptor:
        """Get a descriptor by identifier.

        Raises:
            MissingDescriptorError: If nothing is declared under ``identifier``.

        """
        descriptor = self.find(identifier)
        if descriptor is None:
            raise MissingDescriptorError(identifier, required_by)
        return descriptor

    def find(self, identifier: Identifier) -> Descriptor | None:
        """Get a descriptor by identifier, if it exists."""
        try:
            return self._descriptors.get(identifier)
        except TypeError:
            return None

    def draft(self, owner: Any) -> Draft:
        """Get the accumulating draft for ``owner``, creating it on first use."""
        with self._lock:
            draft = self._drafts.get(owner)
            if draft is None:
                draft = self._drafts[owner] = Draft(owner=owner)
            return draft

    def pop_draft(self, owner: Any) -> Draft | None:
        """Remove and return the draft for ``owner``, if one is pending."""
        with self._lock:
            return self._drafts.pop(owner, None)

    def owned(self, owner: Any) -> Descriptor | None:
        """Get the first descriptor declared for the class or factory ``owner``."""
        try:
            return self._owners.get(owner)
        except TypeError:
            return None

    def values(self) -> list[Descriptor]:
        """Get all declared descriptors."""
        return list(self._descriptors.values())

    def __contains__(self, identifier: object) -> bool:
        return self.find(identifier) is not None

    def __iter__(self) -> Iterator[Identifier]:
        return iter(list(self._descriptors))

    def __len__(self) -> int:
        return len(self._descriptors)


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
