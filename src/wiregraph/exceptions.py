from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from wiregraph.types import describe_identifier


class WireGraphError(Exception):
    """Represent a base class for all wiregraph-specific failures.

    Catch this type when you want to handle any wiregraph error path without
    matching each concrete exception class individually.
    """


class ConfigurationError(WireGraphError):
    """Signal an invalid declaration.

    Raised by the declaration surface (``Declarations``, ``Application.inject``,
    resolvers) before anything reaches the container, so broken metadata
    fails at declaration time instead of at resolution time.
    """


class AmbiguousIdentifierError(ConfigurationError):
    """Signal that a component or dependency would be keyed by a generic type.

    Types such as ``str``, ``int`` or ``object`` cannot identify a single
    component. Typical fix is passing an explicit ``id=...`` to the declaration
    or a positional override for the offending parameter.
    """

    def __init__(self, identifier: Any, site: str | None = None) -> None:
        self.identifier = identifier
        self.site = site
        location = f" in {site}" if site else ""
        super().__init__(
            f"Type {describe_identifier(identifier)}{location} requires a custom identifier, "
            "declare it with an explicit id, e.g. inject(id='my-id').",
        )


class ConflictingDeclarationError(ConfigurationError):
    """Signal that an identifier was declared twice with different metadata.

    Re-declaring an identical descriptor is accepted and ignored.
    """

    def __init__(self, identifier: Any) -> None:
        self.identifier = identifier
        super().__init__(
            f"Identifier {describe_identifier(identifier)} is already declared "
            "with different metadata.",
        )


class MissingDescriptorError(WireGraphError):
    """Signal that graph assembly met an identifier nobody declared.

    Raised by ``GraphAssembler.assemble`` before any instance is constructed.
    Typical fixes include declaring the dependency or enabling ``autodeclare``
    for plain classes.
    """

    def __init__(self, identifier: Any, required_by: Any = None) -> None:
        self.identifier = identifier
        self.required_by = required_by
        suffix = (
            f" (required by {describe_identifier(required_by)})" if required_by is not None else ""
        )
        super().__init__(
            f"No descriptor is declared for {describe_identifier(identifier)}{suffix}.",
        )


class UnresolvedDependencyError(WireGraphError):
    """Signal that the container has no registration for an identifier.

    Raised lazily while resolving, when a handle or the container is asked for
    an identifier that was never registered.
    """

    def __init__(self, identifier: Any, required_by: Any = None) -> None:
        self.identifier = identifier
        self.required_by = required_by
        suffix = (
            f" (required by {describe_identifier(required_by)})" if required_by is not None else ""
        )
        super().__init__(
            f"Dependency {describe_identifier(identifier)} is not registered{suffix}.",
        )


class UnknownConstructionKindError(WireGraphError):
    """Signal a descriptor whose construction kind cannot be registered."""

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"Unknown construction kind {kind!r}.")


class CyclicDependencyError(WireGraphError):
    """Signal a dependency cycle.

    ``path`` lists the identifiers from the first occurrence of the repeated
    identifier up to and including its second occurrence.
    """

    def __init__(self, path: Sequence[Any]) -> None:
        self.path = list(path)
        chain = " -> ".join(describe_identifier(identifier) for identifier in self.path)
        super().__init__(f"Circular dependency detected: {chain}.")
