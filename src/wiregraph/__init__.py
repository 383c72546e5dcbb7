from wiregraph.adapter import ContainerAdapter, Handle
from wiregraph.application import Application
from wiregraph.assembler import GraphAssembler
from wiregraph.container import Container
from wiregraph.declarations import Declarations
from wiregraph.decorators import (
    app,
    get_default_application,
    inject,
    inject_parameter,
    inject_property,
    set_default_application,
)
from wiregraph.descriptors import Descriptor
from wiregraph.exceptions import (
    AmbiguousIdentifierError,
    ConfigurationError,
    ConflictingDeclarationError,
    CyclicDependencyError,
    MissingDescriptorError,
    UnknownConstructionKindError,
    UnresolvedDependencyError,
    WireGraphError,
)
from wiregraph.injection import PropertyInjector
from wiregraph.registry import DescriptorRegistry
from wiregraph.resolvers import AttributeResolver, Resolver
from wiregraph.types import ConstructionKind, Lifecycle

__all__ = [
    "AmbiguousIdentifierError",
    "Application",
    "AttributeResolver",
    "ConfigurationError",
    "ConflictingDeclarationError",
    "ConstructionKind",
    "Container",
    "ContainerAdapter",
    "CyclicDependencyError",
    "Declarations",
    "Descriptor",
    "DescriptorRegistry",
    "GraphAssembler",
    "Handle",
    "Lifecycle",
    "MissingDescriptorError",
    "PropertyInjector",
    "Resolver",
    "UnknownConstructionKindError",
    "UnresolvedDependencyError",
    "WireGraphError",
    "app",
    "get_default_application",
    "inject",
    "inject_parameter",
    "inject_property",
    "set_default_application",
]
