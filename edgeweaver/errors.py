"""Exception hierarchy shared across EdgeWeaver subsystems."""
from __future__ import annotations

from typing import Iterable


class EdgeWeaverError(Exception):
    """Base class for every error raised by :mod:`edgeweaver`."""


class ConnectivityError(EdgeWeaverError):
    """The graph store could not be reached or rejected the credentials."""


class NotConnectedError(EdgeWeaverError, RuntimeError):
    """An operation needed a live store handle but none is open."""


class UnknownTypeError(EdgeWeaverError, LookupError):
    """Values were registered under a type the taxonomy does not know."""

    def __init__(self, kind: str, type_name: str) -> None:
        super().__init__(f"Unknown {kind} type '{type_name}'")
        self.kind = kind
        self.type_name = type_name


class IncompleteSelectionError(EdgeWeaverError, ValueError):
    """A selection slot is missing its type or has no values."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Selection incomplete for: {', '.join(self.missing)}")


class UnknownValueError(EdgeWeaverError, LookupError):
    """A value was selected that the taxonomy does not list for its type."""


class StoreUnavailableError(EdgeWeaverError, RuntimeError):
    """A single graph store operation failed."""


class UnknownActionError(EdgeWeaverError, KeyError):
    """The action router has no handler for the requested action."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


__all__ = [
    "ConnectivityError",
    "EdgeWeaverError",
    "IncompleteSelectionError",
    "NotConnectedError",
    "StoreUnavailableError",
    "UnknownActionError",
    "UnknownTypeError",
    "UnknownValueError",
]
