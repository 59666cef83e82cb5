"""Local cache of known node/edge types and their values."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from edgeweaver.errors import UnknownTypeError

from .model import Kind, TaxonomyMap, TypeName, ValueName, require_name

# Insertion-ordered sets are modelled as dicts with ``None`` values.
_OrderedSet = Dict[ValueName, None]
_Table = Dict[TypeName, _OrderedSet]


def _build_table(taxonomy: TaxonomyMap) -> _Table:
    table: _Table = {}
    for type_name, values in taxonomy.items():
        require_name(type_name, "type name")
        bucket = table.setdefault(type_name, {})
        for value in values:
            bucket.setdefault(require_name(value, "value"), None)
    return table


@dataclass
class TaxonomyCache:
    """In-memory view of node and edge taxonomies.

    Node types and edge types live in separate namespaces. Types and values
    keep the order in which they were first registered and duplicates are
    ignored. :meth:`replace_all` swaps both namespaces in a single assignment
    so readers never observe one namespace refreshed and the other stale.
    """

    _tables: Dict[Kind, _Table] = field(
        default_factory=lambda: {Kind.NODE: {}, Kind.EDGE: {}}
    )

    def replace_all(self, node_taxonomy: TaxonomyMap, edge_taxonomy: TaxonomyMap) -> None:
        """Replace the whole cache with freshly pulled taxonomies."""

        self._tables = {
            Kind.NODE: _build_table(node_taxonomy),
            Kind.EDGE: _build_table(edge_taxonomy),
        }

    def register_type(self, kind: Kind | str, type_name: TypeName) -> tuple[ValueName, ...]:
        """Create ``type_name`` with no values unless it already exists."""

        table = self._tables[Kind(kind)]
        bucket = table.setdefault(require_name(type_name, "type name"), {})
        return tuple(bucket)

    def register_values(
        self, kind: Kind | str, type_name: TypeName, values: Iterable[ValueName]
    ) -> tuple[ValueName, ...]:
        """Append ``values`` to ``type_name`` and return the resulting values."""

        kind = Kind(kind)
        bucket = self._tables[kind].get(type_name)
        if bucket is None:
            raise UnknownTypeError(kind.value, type_name)
        cleaned = [require_name(value, "value") for value in values]
        for value in cleaned:
            bucket.setdefault(value, None)
        return tuple(bucket)

    def values_of(self, kind: Kind | str, type_name: TypeName | None) -> tuple[ValueName, ...]:
        """Return the values known for ``type_name``; empty when unknown."""

        if type_name is None:
            return ()
        return tuple(self._tables[Kind(kind)].get(type_name, ()))

    def types(self, kind: Kind | str) -> tuple[TypeName, ...]:
        return tuple(self._tables[Kind(kind)])

    def has_type(self, kind: Kind | str, type_name: TypeName) -> bool:
        return type_name in self._tables[Kind(kind)]

    def snapshot(self) -> dict[str, dict[TypeName, list[ValueName]]]:
        """Return a plain ``{"node": {...}, "edge": {...}}`` copy of the cache."""

        tables = self._tables
        return {
            kind.value: {name: list(values) for name, values in tables[kind].items()}
            for kind in (Kind.NODE, Kind.EDGE)
        }
