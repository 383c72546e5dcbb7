from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from inspect import Parameter
from typing import Annotated, Any, get_args, get_origin, get_type_hints

MISSING: Any = object()
"""Marker for a missing annotation or class attribute."""

_IMPLICIT_FIRST_PARAMETER_NAMES = {"self", "cls"}
_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
_COROUTINE_RESULT_INDEX = 2
_COROUTINE_ARGUMENT_COUNT = 3


@dataclass(frozen=True, slots=True)
class ParameterSlot:
    """One positional parameter of a constructor or factory."""

    index: int
    parameter: Parameter
    annotation: Any
    """The declared type, or ``MISSING``."""

    @property
    def name(self) -> str:
        return self.parameter.name

    @property
    def has_default(self) -> bool:
        return self.parameter.default is not Parameter.empty


@dataclass(slots=True)
class DeclarationSiteInspector:
    """Reads declared types from classes, callables and class attributes."""

    def constructor_parameters(self, cls: type[Any]) -> list[ParameterSlot]:
        """Extract positional parameters of a class constructor."""
        return self._positional_parameters(cls.__init__, skip_first_parameter=True)

    def factory_parameters(self, factory: Callable[..., Any]) -> list[ParameterSlot]:
        """Extract positional parameters of a factory function or method."""
        return self._positional_parameters(factory, skip_first_parameter=False)

    def required_keyword_parameters(
        self,
        provider: Callable[..., Any],
    ) -> list[str]:
        """List keyword-only parameters that have no default value."""
        return [
            parameter.name
            for parameter in self._signature_parameters(provider)
            if parameter.kind is Parameter.KEYWORD_ONLY and parameter.default is Parameter.empty
        ]

    def return_type(self, factory: Callable[..., Any]) -> Any:
        """Extract the produced type of a factory, unwrapping awaitables."""
        annotation = self._resolved_type_hints(factory).get("return", MISSING)
        if annotation is MISSING:
            try:
                annotation = inspect.signature(factory).return_annotation
            except (TypeError, ValueError):
                return MISSING
            if annotation is inspect.Signature.empty or isinstance(annotation, str):
                return MISSING
        return self._unwrap_return_type(self.unwrap_annotated(annotation))

    def attribute_type(self, owner: type[Any], name: str) -> Any:
        """Extract the declared type of a class attribute or accessor."""
        accessor = self.accessor(owner, name)
        if accessor is not None:
            return self._accessor_type(accessor)
        annotation = self._resolved_type_hints(owner).get(name, MISSING)
        if annotation is MISSING:
            for klass in owner.__mro__:
                raw = getattr(klass, "__annotations__", {}).get(name, MISSING)
                if raw is not MISSING and not isinstance(raw, str):
                    annotation = raw
                    break
        if annotation is MISSING:
            return MISSING
        return self.unwrap_annotated(annotation)

    def accessor(self, owner: type[Any], name: str) -> property | None:
        """Return the ``property`` object behind ``name``, if it is an accessor."""
        attribute = inspect.getattr_static(owner, name, MISSING)
        if isinstance(attribute, property):
            return attribute
        return None

    def static_value(self, owner: type[Any], name: str) -> Any:
        """Return the plain value stored on the class for ``name``, or ``MISSING``."""
        attribute = inspect.getattr_static(owner, name, MISSING)
        if attribute is MISSING or isinstance(
            attribute,
            property | staticmethod | classmethod,
        ):
            return MISSING
        if inspect.isfunction(attribute) or inspect.ismethoddescriptor(attribute):
            return MISSING
        return attribute

    def unwrap_annotated(self, annotation: Any) -> Any:
        """Recursively unwrap Annotated[T, ...] into T."""
        if get_origin(annotation) is not Annotated:
            return annotation
        return self.unwrap_annotated(get_args(annotation)[0])

    def _positional_parameters(
        self,
        provider: Callable[..., Any],
        *,
        skip_first_parameter: bool,
    ) -> list[ParameterSlot]:
        parameters = self._signature_parameters(provider)
        if (
            skip_first_parameter
            and parameters
            and parameters[0].name in _IMPLICIT_FIRST_PARAMETER_NAMES
        ):
            parameters = parameters[1:]
        hints = self._resolved_type_hints(provider)

        slots: list[ParameterSlot] = []
        for parameter in parameters:
            if parameter.kind not in _POSITIONAL_KINDS:
                continue
            annotation = hints.get(parameter.name, MISSING)
            if annotation is MISSING:
                raw = parameter.annotation
                if raw is not Parameter.empty and not isinstance(raw, str):
                    annotation = raw
            if annotation is not MISSING:
                annotation = self.unwrap_annotated(annotation)
            slots.append(
                ParameterSlot(index=len(slots), parameter=parameter, annotation=annotation),
            )
        return slots

    def _signature_parameters(self, provider: Callable[..., Any]) -> tuple[Parameter, ...]:
        try:
            return tuple(inspect.signature(provider).parameters.values())
        except (TypeError, ValueError):
            return ()

    def _resolved_type_hints(self, provider: Any) -> dict[str, Any]:
        try:
            return get_type_hints(provider, include_extras=True)
        except (AttributeError, NameError, TypeError):
            return {}

    def _accessor_type(self, accessor: property) -> Any:
        if accessor.fset is not None:
            setter_parameters = self.factory_parameters(accessor.fset)
            if len(setter_parameters) > 1 and setter_parameters[1].annotation is not MISSING:
                return setter_parameters[1].annotation
        if accessor.fget is not None:
            return self.return_type(accessor.fget)
        return MISSING

    def _unwrap_return_type(self, annotation: Any) -> Any:
        origin = get_origin(annotation)
        annotation_args = get_args(annotation)
        if origin is Awaitable:
            return annotation_args[0] if len(annotation_args) == 1 else MISSING
        if origin is Coroutine:
            if len(annotation_args) != _COROUTINE_ARGUMENT_COUNT:
                return MISSING
            return annotation_args[_COROUTINE_RESULT_INDEX]
        return annotation
