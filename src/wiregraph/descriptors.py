from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from wiregraph.defaults import DEFAULT_AMBIGUOUS_IDENTIFIERS, DEFAULT_LIFECYCLE
from wiregraph.exceptions import AmbiguousIdentifierError
from wiregraph.types import ConstructionKind, Lifecycle, describe_identifier

Identifier: TypeAlias = Any
"""A component identifier: a string, any hashable value, or the component's own type."""


@dataclass(kw_only=True)
class Descriptor:
    """Metadata describing one injectable component or dependency slot."""

    id: Identifier
    """The identifier the component is registered and looked up under."""
    kind: ConstructionKind
    """How ``target`` becomes a value."""
    lifecycle: Lifecycle = DEFAULT_LIFECYCLE
    """Whether the value is shared or constructed per resolution."""
    target: Any = None
    """The class, callable or value handed to the container untouched."""
    dependencies: list[Identifier] = field(default_factory=list)
    """Positional dependency identifiers, index ``i`` is the ``i``-th parameter."""
    properties: dict[str, Descriptor] = field(default_factory=dict)
    """Property descriptors keyed by the field or accessor name they populate."""
    owner_key: str | None = None
    """For property descriptors, the member slot on the owner."""
    static: bool = False
    """For property descriptors, whether the slot lives on the owner type."""

    @property
    def label(self) -> str:
        """Readable name of the identifier."""
        return describe_identifier(self.id)

    def matches(self, other: Descriptor) -> bool:
        """Check whether ``other`` declares the same component.

        Targets and identifiers match by identity, or by equality between
        values of the same type, so ``1`` and ``True`` differ while one
        ``nan`` object matches itself.
        """
        return (
            _same_value(self.id, other.id)
            and self.kind == other.kind
            and self.lifecycle == other.lifecycle
            and _same_value(self.target, other.target)
            and len(self.dependencies) == len(other.dependencies)
            and all(map(_same_value, self.dependencies, other.dependencies))
            and self.owner_key == other.owner_key
            and self.static == other.static
            and self.properties.keys() == other.properties.keys()
            and all(
                child.matches(other.properties[name]) for name, child in self.properties.items()
            )
        )

    def dependency_ids(self) -> list[Identifier]:
        """Return positional dependency identifiers followed by property identifiers."""
        return [
            *self.dependencies,
            *(descriptor.id for descriptor in self.properties.values()),
        ]


def is_ambiguous_identifier(
    identifier: Identifier,
    ambiguous: Collection[Any] = DEFAULT_AMBIGUOUS_IDENTIFIERS,
) -> bool:
    """Check whether an identifier is too generic to name a single component."""
    try:
        return identifier in ambiguous
    except TypeError:
        # unhashable identifiers never collide with the generic types
        return False


def ensure_unambiguous(
    identifier: Identifier,
    *,
    site: str | None = None,
    ambiguous: Collection[Any] = DEFAULT_AMBIGUOUS_IDENTIFIERS,
) -> Identifier:
    """Return the identifier or raise ``AmbiguousIdentifierError``."""
    if is_ambiguous_identifier(identifier, ambiguous):
        raise AmbiguousIdentifierError(identifier, site)
    return identifier


def _same_value(left: Any, right: Any) -> bool:
    if left is right:
        return True
    # values whose == is not a plain bool, like arrays, only match themselves
    return type(left) is type(right) and (left == right) is True
