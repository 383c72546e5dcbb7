"""Test doubles shared by wiregraph tests."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from wiregraph.types import ConstructionKind, Lifecycle


@dataclass
class RecordedRegistration:
    kind: ConstructionKind
    id: Any
    target: Any
    dep_ids: list[Any]
    lifecycle: Lifecycle


@dataclass
class RecordingAdapter:
    """Container adapter double recording registrations in call order."""

    registrations: list[RecordedRegistration] = field(default_factory=list)

    def register_type(
        self,
        id: Any,
        factory: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        self._record(ConstructionKind.TYPE, id, factory, dep_ids, lifecycle)

    def register_factory(
        self,
        id: Any,
        fn: Callable[..., Any],
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        self._record(ConstructionKind.FACTORY, id, fn, dep_ids, lifecycle)

    def register_instance(
        self,
        id: Any,
        value: Any,
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        self._record(ConstructionKind.INSTANCE, id, value, dep_ids, lifecycle)

    def get_dep(self, id: Any) -> RecordedRegistration | None:
        for registration in self.registrations:
            if registration.id == id:
                return registration
        return None

    @property
    def ids(self) -> list[Any]:
        return [registration.id for registration in self.registrations]

    def _record(
        self,
        kind: ConstructionKind,
        id: Any,
        target: Any,
        dep_ids: Sequence[Any],
        lifecycle: Lifecycle,
    ) -> None:
        self.registrations.append(
            RecordedRegistration(
                kind=kind,
                id=id,
                target=target,
                dep_ids=list(dep_ids),
                lifecycle=lifecycle,
            ),
        )
