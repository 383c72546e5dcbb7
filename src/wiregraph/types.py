from enum import Enum
from typing import Any


class ConstructionKind(str, Enum):
    """Defines how a descriptor's target becomes a value."""

    TYPE = "type"
    """The target is a class instantiated through its constructor."""

    FACTORY = "factory"
    """The target is a function or method that produces the value."""

    INSTANCE = "instance"
    """The target is already a fully formed value."""

    PROPERTY = "property"
    """The target is a field or accessor slot populated after its owner is constructed."""


class Lifecycle(str, Enum):
    """Defines how often a registered component is constructed."""

    SINGLETON = "singleton"
    """Constructed once and shared by every requester."""

    PROTOTYPE = "prototype"
    """A fresh value is constructed for every resolution."""


def describe_identifier(identifier: Any) -> str:
    """Return a readable name for a component identifier."""
    if isinstance(identifier, str):
        return repr(identifier)
    if identifier is None:
        return "None"
    return getattr(identifier, "__qualname__", None) or repr(identifier)
