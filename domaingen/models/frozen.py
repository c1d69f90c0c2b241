"""Read-only containers for parsed specs and rule tables.

``frozen=True`` on a pydantic model only blocks attribute assignment.  The
:data:`ReadOnlyMap` field type also freezes what the field holds: mappings
become :class:`types.MappingProxyType` views and lists become tuples, all
the way down.  Serialising a model thaws them back to plain dicts and lists.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, TypeVar

from pydantic import AfterValidator, PlainSerializer

K = TypeVar("K")
V = TypeVar("V")


def freeze(value: Any) -> Any:
    """Recursively replace mappings with read-only views and lists with tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Plain dict and list copy of a frozen value, e.g. for ``json.dumps``."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


ReadOnlyMap = Annotated[Mapping[K, V], AfterValidator(freeze), PlainSerializer(thaw)]
"""A ``Mapping`` field stored as a deep read-only view."""
