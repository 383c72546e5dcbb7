import types
from collections.abc import Callable
from typing import Any

from wiregraph.types import Lifecycle

DEFAULT_LIFECYCLE = Lifecycle.SINGLETON

DEFAULT_AMBIGUOUS_IDENTIFIERS: frozenset[Any] = frozenset(
    {
        str,
        int,
        float,
        complex,
        bool,
        object,
        None,
        type(None),
        list,
        dict,
        tuple,
        set,
        Any,
        Callable,
        types.FunctionType,
    },
)
"""Identifiers too generic to name a single component without an explicit override."""

DEFAULT_INJECT_ATTRIBUTE = "__inject__"
