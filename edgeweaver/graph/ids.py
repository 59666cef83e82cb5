"""Identity helpers for graph entities and event timestamps."""
from __future__ import annotations

import datetime as _dt


def node_key(type_name: str, value: str) -> tuple[str, str]:
    """Return the identity of a node: its type and its value."""

    return (type_name, value)


def edge_key(type_name: str, label: str) -> tuple[str, str]:
    """Return the multigraph key of an edge between two fixed endpoints."""

    return (type_name, label)


def element_id(*parts: str) -> str:
    """Render identity ``parts`` as a printable element identifier."""

    return ":".join(parts)


def utc_now() -> str:
    """Return the current UTC time formatted as an ISO 8601 string."""

    return _dt.datetime.now(_dt.timezone.utc).isoformat()
