"""Graph store capability and an in-memory NetworkX implementation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence

import networkx as nx

from edgeweaver.errors import ConnectivityError, StoreUnavailableError

from .ids import edge_key, element_id, node_key
from .model import EdgeHandle, NodeHandle, TypeName, ValueName


class GraphStore(Protocol):
    """Operations the sync engine needs from a graph database.

    ``upsert_node`` and ``upsert_edge`` are create-if-absent: calling them
    again with the same identity returns the existing entity unchanged.
    """

    def list_node_types(self) -> Sequence[TypeName]: ...

    def list_edge_types(self) -> Sequence[TypeName]: ...

    def list_values_of_node_type(self, type_name: TypeName) -> Sequence[ValueName]: ...

    def list_distinct_edge_labels_of_type(self, type_name: TypeName) -> Sequence[ValueName]: ...

    def upsert_node(self, type_name: TypeName, value: ValueName) -> NodeHandle: ...

    def upsert_edge(
        self, source: NodeHandle, type_name: TypeName, label: ValueName, target: NodeHandle
    ) -> EdgeHandle: ...

    def close(self) -> None: ...


class StoreConnector(Protocol):
    """Factory opening a :class:`GraphStore` handle from credentials."""

    def connect(self, uri: str, user: str, password: str) -> GraphStore:
        """Return a live store or raise :class:`ConnectivityError`."""


@dataclass
class InMemoryGraphStore:
    """:class:`GraphStore` backed by a :class:`networkx.MultiDiGraph`.

    Nodes are keyed by ``(type, value)``; parallel edges between the same
    pair are keyed by ``(type, label)``. A node carrying a type but no
    edges still contributes that type to :meth:`list_node_types`.
    """

    graph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)
    closed: bool = False

    def _check_open(self) -> None:
        if self.closed:
            raise StoreUnavailableError("store handle is closed")

    def list_node_types(self) -> list[TypeName]:
        self._check_open()
        return list(dict.fromkeys(data["type"] for _, data in self.graph.nodes(data=True)))

    def list_edge_types(self) -> list[TypeName]:
        self._check_open()
        return list(dict.fromkeys(data["type"] for _, _, data in self.graph.edges(data=True)))

    def list_values_of_node_type(self, type_name: TypeName) -> list[ValueName]:
        self._check_open()
        return [
            data["value"]
            for _, data in self.graph.nodes(data=True)
            if data["type"] == type_name
        ]

    def list_distinct_edge_labels_of_type(self, type_name: TypeName) -> list[ValueName]:
        self._check_open()
        labels = (
            data["label"]
            for _, _, data in self.graph.edges(data=True)
            if data["type"] == type_name
        )
        return list(dict.fromkeys(labels))

    def upsert_node(self, type_name: TypeName, value: ValueName) -> NodeHandle:
        self._check_open()
        key = node_key(type_name, value)
        if key not in self.graph:
            self.graph.add_node(key, type=type_name, value=value)
        return NodeHandle(type=type_name, value=value, element_id=element_id(*key))

    def upsert_edge(
        self, source: NodeHandle, type_name: TypeName, label: ValueName, target: NodeHandle
    ) -> EdgeHandle:
        self._check_open()
        src = node_key(source.type, source.value)
        dst = node_key(target.type, target.value)
        for key in (src, dst):
            if key not in self.graph:
                raise StoreUnavailableError(f"node {element_id(*key)} does not exist")
        key = edge_key(type_name, label)
        if not self.graph.has_edge(src, dst, key=key):
            self.graph.add_edge(src, dst, key=key, type=type_name, label=label)
        return EdgeHandle(
            source=source,
            type=type_name,
            label=label,
            target=target,
            element_id=element_id(source.element_id, type_name, label, target.element_id),
        )

    def close(self) -> None:
        self.closed = True

    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def edges(self) -> Iterable[tuple[tuple[str, str], tuple[str, str], dict]]:
        """Iterate over ``(source_key, target_key, data)`` edge tuples."""

        for source, target, data in self.graph.edges(data=True):
            yield source, target, dict(data)


@dataclass
class InMemoryConnector:
    """:class:`StoreConnector` handing out views over one shared graph.

    Every successful :meth:`connect` returns a fresh handle so closing one
    never affects the data. ``credentials`` restricts which user/password
    pairs are accepted; ``None`` accepts anything.
    """

    graph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)
    credentials: Optional[dict[str, str]] = None
    reachable: bool = True
    opened: list[InMemoryGraphStore] = field(default_factory=list)

    def connect(self, uri: str, user: str, password: str) -> InMemoryGraphStore:
        if not self.reachable:
            raise ConnectivityError(f"Cannot reach graph store at {uri}")
        if self.credentials is not None and self.credentials.get(user) != password:
            raise ConnectivityError(f"Authentication failed for user '{user}'")
        store = InMemoryGraphStore(graph=self.graph)
        self.opened.append(store)
        return store
