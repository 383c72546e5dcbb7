from __future__ import annotations

import inspect
from collections.abc import Callable, Collection, Mapping
from typing import Any

from wiregraph.defaults import DEFAULT_AMBIGUOUS_IDENTIFIERS, DEFAULT_LIFECYCLE
from wiregraph.descriptors import (
    Descriptor,
    Identifier,
    ensure_unambiguous,
    is_ambiguous_identifier,
)
from wiregraph.exceptions import (
    AmbiguousIdentifierError,
    ConfigurationError,
    ConflictingDeclarationError,
)
from wiregraph.extraction import MISSING, DeclarationSiteInspector, ParameterSlot
from wiregraph.registry import DescriptorRegistry
from wiregraph.types import ConstructionKind, Lifecycle


class Declarations:
    """Turn declaration sites into descriptors stored in a registry.

    A declaration site is a class (constructor injection), a function or
    method (factory injection), a ready value (instance), a class attribute
    or accessor (property injection), or a single constructor/factory
    parameter position (explicit positional override).

    Identifiers are resolved in this order: explicit ``id``, then the
    declared type of the target, then, for factories, the declared return
    type. Identifiers that resolve to a generic type such as ``str`` or
    ``object`` are rejected with ``AmbiguousIdentifierError``.
    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        *,
        default_lifecycle: Lifecycle = DEFAULT_LIFECYCLE,
        ambiguous_identifiers: Collection[Any] = DEFAULT_AMBIGUOUS_IDENTIFIERS,
    ) -> None:
        self._registry = registry
        self._default_lifecycle = default_lifecycle
        self._ambiguous_identifiers = ambiguous_identifiers
        self._inspector = DeclarationSiteInspector()

    @property
    def registry(self) -> DescriptorRegistry:
        return self._registry

    @property
    def default_lifecycle(self) -> Lifecycle:
        return self._default_lifecycle

    def declare(
        self,
        target: Any,
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
        kind: ConstructionKind | None = None,
    ) -> Descriptor:
        """Declare ``target`` with a construction kind picked from its shape.

        Classes are declared as ``TYPE``, functions and methods as ``FACTORY``
        and anything else as ``INSTANCE`` (which requires an explicit ``id``).
        Pass ``kind`` to force a construction kind.

        Raises:
            AmbiguousIdentifierError: If the identifier resolves to a generic type.
            ConfigurationError: If the declaration cannot be turned into a descriptor.

        """
        if kind is None:
            if isinstance(target, type):
                kind = ConstructionKind.TYPE
            elif inspect.isfunction(target) or inspect.ismethod(target):
                kind = ConstructionKind.FACTORY
            else:
                kind = ConstructionKind.INSTANCE

        if kind is ConstructionKind.TYPE:
            return self.declare_type(target, id=id, lifecycle=lifecycle)
        if kind is ConstructionKind.FACTORY:
            return self.declare_factory(target, id=id, lifecycle=lifecycle)
        if kind is ConstructionKind.INSTANCE:
            if id is None:
                msg = f"Instance {target!r} must be declared with an explicit id."
                raise ConfigurationError(msg)
            return self.declare_instance(id, target, lifecycle=lifecycle or Lifecycle.SINGLETON)
        msg = f"Construction kind {kind!r} cannot be declared directly, use declare_property()."
        raise ConfigurationError(msg)

    def declare_type(
        self,
        cls: type[Any],
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Descriptor:
        """Declare a class instantiated through its constructor.

        Properties declared on ``cls`` (before or after this call) are shared
        with the returned descriptor. Declaring ``cls`` again, under another
        identifier for example, reuses the dependencies of its first
        declaration.
        """
        if not isinstance(cls, type):
            msg = f"{cls!r} is not a class."
            raise ConfigurationError(msg)
        identifier = self._own_identifier(cls, id, site=cls.__qualname__)

        declared = self._registry.owned(cls)
        if declared is not None:
            dependencies = list(declared.dependencies)
            properties = declared.properties
        else:
            draft = self._registry.draft(cls)
            self._reject_required_keywords(cls.__init__, site=cls.__qualname__)
            dependencies = self._positional_dependencies(
                self._inspector.constructor_parameters(cls),
                draft.positional,
                site=cls.__qualname__,
            )
            properties = draft.properties
        descriptor = self._registry.add(
            Descriptor(
                id=identifier,
                kind=ConstructionKind.TYPE,
                lifecycle=lifecycle or self._default_lifecycle,
                target=cls,
                dependencies=dependencies,
                properties=properties,
            ),
        )
        self._registry.pop_draft(cls)
        return descriptor

    def declare_factory(
        self,
        factory: Callable[..., Any],
        *,
        id: Identifier = None,  # noqa: A002
        lifecycle: Lifecycle | None = None,
    ) -> Descriptor:
        """Declare a function or method producing the component.

        Without ``id`` the declared return type is used; ``Awaitable[T]`` and
        ``Coroutine[Any, Any, T]`` are unwrapped to ``T``.
        """
        if not callable(factory):
            msg = f"Factory {factory!r} is not callable."
            raise ConfigurationError(msg)
        site = getattr(factory, "__qualname__", repr(factory))
        if id is None:
            return_type = self._inspector.return_type(factory)
            if return_type is MISSING:
                raise AmbiguousIdentifierError(None, f"return type of {site}")
            identifier = ensure_unambiguous(
                return_type,
                site=f"return type of {site}",
                ambiguous=self._ambiguous_identifiers,
            )
        else:
            identifier = id

        declared = self._registry.owned(factory)
        if declared is not None:
            dependencies = list(declared.dependencies)
        else:
            self._reject_required_keywords(factory, site=site)
            dependencies = self._positional_dependencies(
                self._inspector.factory_parameters(factory),
                self._registry.draft(factory).positional,
                site=site,
            )
        descriptor = self._registry.add(
            Descriptor(
                id=identifier,
                kind=ConstructionKind.FACTORY,
                lifecycle=lifecycle or self._default_lifecycle,
                target=factory,
                dependencies=dependencies,
            ),
        )
        self._registry.pop_draft(factory)
        return descriptor

    def declare_instance(
        self,
        id: Identifier,  # noqa: A002
        value: Any,
        *,
        lifecycle: Lifecycle = Lifecycle.SINGLETON,
        dependencies: list[Identifier] | None = None,
    ) -> Descriptor:
        """Declare an already formed value under ``id``.

        ``dependencies`` are only recorded for bookkeeping, they are never
        passed to the value.
        """
        return self._registry.add(
            Descriptor(
                id=id,
                kind=ConstructionKind.INSTANCE,
                lifecycle=lifecycle,
                target=value,
                dependencies=list(dependencies or ()),
            ),
        )

    def declare_parameter(
        self,
        owner: Any,
        index: int,
        id: Identifier,  # noqa: A002
    ) -> None:
        """Pin the ``index``-th constructor/factory parameter of ``owner`` to ``id``.

        Overrides accumulate per owner and win over the parameter's declared
        type. They must be declared before the owner itself.
        """
        if index < 0:
            msg = f"Parameter index must not be negative, got {index}."
            raise ConfigurationError(msg)
        if self._registry.owned(owner) is not None:
            msg = (
                f"{getattr(owner, '__qualname__', owner)!r} is already declared; "
                "declare parameter overrides before the owner."
            )
            raise ConfigurationError(msg)
        self._registry.draft(owner).positional[index] = id

    def declare_property(
        self,
        owner: type[Any],
        name: str,
        *,
        id: Identifier = None,  # noqa: A002
        static: bool = False,
    ) -> Descriptor:
        """Declare a field or accessor of ``owner`` populated after construction.

        A plain value already stored on the class under ``name`` is declared
        as an ``INSTANCE`` under the property identifier, so the default is
        itself resolvable. Accessors are populated through their setter.
        ``static`` slots are set on ``owner`` instead of on the instance.

        An owner already registered with a container is not assembled again,
        so a slot added afterwards is never registered;
        ``Application.declare_property`` rejects that case.

        Raises:
            AmbiguousIdentifierError: If the slot type is generic and no ``id`` is given.
            ConfigurationError: If an accessor has no setter or is declared ``static``.
            ConflictingDeclarationError: If ``name`` is already declared differently.

        """
        site = f"{owner.__qualname__}.{name}"
        accessor = self._inspector.accessor(owner, name)
        if accessor is not None and (accessor.fset is None or static):
            msg = f"Accessor {site} cannot be injected, it needs a setter and an instance."
            raise ConfigurationError(msg)

        if id is None:
            declared_type = self._inspector.attribute_type(owner, name)
            identifier = ensure_unambiguous(
                object if declared_type is MISSING else declared_type,
                site=site,
                ambiguous=self._ambiguous_identifiers,
            )
        else:
            identifier = id

        child = Descriptor(
            id=identifier,
            kind=ConstructionKind.PROPERTY,
            lifecycle=self._default_lifecycle,
            target=owner,
            owner_key=name,
            static=static,
        )
        declared = self._registry.owned(owner)
        properties = (
            declared.properties if declared is not None else self._registry.draft(owner).properties
        )
        existing = properties.get(name)
        if existing is not None and not existing.matches(child):
            raise ConflictingDeclarationError(site)

        default = MISSING if accessor is not None else self._inspector.static_value(owner, name)
        if default is not MISSING:
            self.declare_instance(identifier, default)

        properties[name] = child
        return child

    def _own_identifier(self, target: Any, explicit: Identifier, *, site: str) -> Identifier:
        if explicit is not None:
            return explicit
        return ensure_unambiguous(target, site=site, ambiguous=self._ambiguous_identifiers)

    def _positional_dependencies(
        self,
        slots: list[ParameterSlot],
        overrides: Mapping[int, Identifier],
        *,
        site: str,
    ) -> list[Identifier]:
        out_of_range = sorted(index for index in overrides if index >= len(slots))
        if out_of_range:
            msg = (
                f"{site} has {len(slots)} positional parameters, "
                f"cannot pin parameter {out_of_range[0]}."
            )
            raise ConfigurationError(msg)

        dependencies: list[Identifier] = []
        defaulted_from: str | None = None
        for slot in slots:
            if slot.index in overrides:
                if defaulted_from is not None:
                    msg = (
                        f"Parameter '{slot.name}' of {site} cannot be injected after "
                        f"'{defaulted_from}' which keeps its default value."
                    )
                    raise ConfigurationError(msg)
                dependencies.append(overrides[slot.index])
                continue

            usable = slot.annotation is not MISSING and not is_ambiguous_identifier(
                slot.annotation,
                self._ambiguous_identifiers,
            )
            if defaulted_from is None and usable:
                dependencies.append(slot.annotation)
                continue
            if slot.has_default:
                defaulted_from = defaulted_from or slot.name
                continue
            raise AmbiguousIdentifierError(
                object if slot.annotation is MISSING else slot.annotation,
                f"parameter '{slot.name}' of {site}",
            )
        return dependencies

    def _reject_required_keywords(self, provider: Callable[..., Any], *, site: str) -> None:
        required = self._inspector.required_keyword_parameters(provider)
        if required:
            names = ", ".join(f"'{name}'" for name in required)
            msg = f"Keyword-only parameters {names} of {site} need default values."
            raise ConfigurationError(msg)
