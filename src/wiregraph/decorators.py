"""Decorators bound to a process-wide default application.

Class decorators apply bottom-up, so property and parameter declarations
stacked under ``inject`` are recorded before the owner is declared:

.. code-block:: python

    @inject
    @inject_property("logger", id="logger")
    @inject_parameter(0, "dsn")
    class Database:
        def __init__(self, dsn: str) -> None:
            self.dsn = dsn


    database = await app(Database)

Pass ``application=`` to target another application than the default one.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar, overload

from wiregraph.application import Application
from wiregraph.descriptors import Identifier
from wiregraph.types import Lifecycle

T = TypeVar("T")

_default_application: Application | None = None
_default_application_lock = threading.Lock()


def get_default_application() -> Application:
    """Get the process-wide application, creating it on first use."""
    global _default_application  # noqa: PLW0603
    if _default_application is None:
        with _default_application_lock:
            if _default_application is None:
                _default_application = Application()
    return _default_application


def set_default_application(application: Application | None) -> None:
    """Replace the process-wide application; ``None`` starts a fresh one on next use."""
    global _default_application  # noqa: PLW0603
    with _default_application_lock:
        _default_application = application


@overload
def inject(target: T, /) -> T: ...


@overload
def inject(
    target: None = None,
    /,
    *,
    id: Identifier = None,  # noqa: A002
    lifecycle: Lifecycle | None = None,
    application: Application | None = None,
) -> Callable[[T], T]: ...


def inject(
    target: Any = None,
    /,
    *,
    id: Identifier = None,  # noqa: A002
    lifecycle: Lifecycle | None = None,
    application: Application | None = None,
) -> Any:
    """Declare a class or factory, usable bare or parameterized."""
    resolved_application = application or get_default_application()
    if target is None:
        return resolved_application.inject(id=id, lifecycle=lifecycle)
    return resolved_application.inject(target, id=id, lifecycle=lifecycle)


def inject_parameter(
    index: int,
    id: Identifier,  # noqa: A002
    *,
    application: Application | None = None,
) -> Callable[[T], T]:
    """Pin the ``index``-th constructor/factory parameter of the decorated owner to ``id``."""

    def decorator(owner: T) -> T:
        (application or get_default_application()).declare_parameter(owner, index, id)
        return owner

    return decorator


def inject_property(
    name: str,
    *,
    id: Identifier = None,  # noqa: A002
    static: bool = False,
    application: Application | None = None,
) -> Callable[[type[T]], type[T]]:
    """Declare the ``name`` slot of the decorated class as a property injection point."""

    def decorator(owner: type[T]) -> type[T]:
        (application or get_default_application()).declare_property(
            owner,
            name,
            id=id,
            static=static,
        )
        return owner

    return decorator


async def app(
    target: Any,
    *,
    id: Identifier = None,  # noqa: A002
    lifecycle: Lifecycle | None = None,
    application: Application | None = None,
) -> Any:
    """Declare ``target`` as the root component and resolve its whole graph."""
    return await (application or get_default_application()).bootstrap(
        target,
        id=id,
        lifecycle=lifecycle,
    )
