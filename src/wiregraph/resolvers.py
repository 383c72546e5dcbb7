"""Data-driven declarations.

A resolver declares components whose wiring is described elsewhere than in
their signatures: a configuration document, a class attribute listing
dependency identifiers, and so on. Subclasses only decide which dependency
identifiers a target has; ``Resolver.register`` turns that into a descriptor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from wiregraph.defaults import DEFAULT_INJECT_ATTRIBUTE
from wiregraph.descriptors import Descriptor, Identifier
from wiregraph.exceptions import ConfigurationError, UnknownConstructionKindError
from wiregraph.types import ConstructionKind, Lifecycle

if TYPE_CHECKING:
    from typing_extensions import Self

    from wiregraph.application import Application

_DECLARABLE_KINDS = (
    ConstructionKind.TYPE,
    ConstructionKind.FACTORY,
    ConstructionKind.INSTANCE,
)


class Resolver(ABC):
    """Declare components with dependency identifiers supplied by ``resolve``."""

    def __init__(self, application: Application) -> None:
        self._application = application

    @property
    def application(self) -> Application:
        return self._application

    def register(
        self,
        name: Identifier,
        target: Any,
        *,
        kind: ConstructionKind = ConstructionKind.INSTANCE,
        lifecycle: Lifecycle = Lifecycle.SINGLETON,
    ) -> Self:
        """Declare ``target`` under ``name``.

        ``resolve`` is called right before the declaration and must return the
        positional dependency identifiers of ``target``.

        Raises:
            UnknownConstructionKindError: If ``kind`` is not ``TYPE``,
                ``FACTORY`` or ``INSTANCE``.

        """
        if kind not in _DECLARABLE_KINDS:
            raise UnknownConstructionKindError(kind)
        dependencies = list(self.resolve(target))
        self._application.registry.add(
            Descriptor(
                id=name,
                kind=ConstructionKind(kind),
                lifecycle=lifecycle,
                target=target,
                dependencies=dependencies,
            ),
        )
        return self

    @abstractmethod
    def resolve(self, target: Any) -> Sequence[Identifier]:
        """Return the dependency identifiers of ``target``."""


class AttributeResolver(Resolver):
    """Read dependency identifiers from an attribute of the target.

    Examples:
        .. code-block:: python

            class Mailer:
                __inject__ = ("smtp-host", "smtp-port")

                def __init__(self, host: str, port: int) -> None: ...


            resolver = AttributeResolver(application)
            resolver.register("smtp-host", "localhost").register("smtp-port", 25)
            resolver.register("mailer", Mailer, kind=ConstructionKind.TYPE)

    """

    def __init__(
        self,
        application: Application,
        attribute: str = DEFAULT_INJECT_ATTRIBUTE,
    ) -> None:
        super().__init__(application)
        self._attribute = attribute

    @property
    def attribute(self) -> str:
        return self._attribute

    def resolve(self, target: Any) -> Sequence[Identifier]:
        dependencies = getattr(target, self._attribute, None)
        if dependencies is None:
            return []
        if isinstance(dependencies, str) or not isinstance(dependencies, Sequence):
            msg = (
                f"{self._attribute} of {target!r} must be a list or tuple of identifiers, "
                f"got {dependencies!r}."
            )
            raise ConfigurationError(msg)
        return list(dependencies)
