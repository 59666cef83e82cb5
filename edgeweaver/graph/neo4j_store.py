"""Neo4j implementation of the :class:`~edgeweaver.graph.store.GraphStore` capability.

Nodes are stored with their type as the label and their value in the
``name`` property. Edges use the edge type as the relationship type and
carry the edge label in the ``label`` property. Labels and relationship
types cannot be bound as query parameters, so they go through
:func:`quote_identifier`; values are always bound parameters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import AuthError, DriverError, Neo4jError, ServiceUnavailable

from edgeweaver.errors import ConnectivityError, StoreUnavailableError

from .model import EdgeHandle, NodeHandle, TypeName, ValueName, require_name

LOGGER = logging.getLogger(__name__)

NODE_VALUE_PROPERTY = "name"
EDGE_LABEL_PROPERTY = "label"

_T = TypeVar("_T")


def quote_identifier(name: str) -> str:
    """Return ``name`` as a backtick-quoted Cypher identifier."""

    require_name(name, "identifier")
    if "\x00" in name:
        raise ValueError(f"identifier may not contain NUL characters: {name!r}")
    return "`" + name.replace("`", "``") + "`"


@dataclass
class Neo4jGraphStore:
    """Graph store talking to Neo4j through the official driver.

    Every call opens its own session and closes it on exit, error paths
    included.
    """

    driver: Driver
    database: str = "neo4j"

    def _read(self, query: str, **params: Any) -> list[dict[str, Any]]:
        def _work(tx) -> list[dict[str, Any]]:
            return [dict(record) for record in tx.run(query, **params)]

        return self._execute(lambda session: session.execute_read(_work))

    def _write(self, query: str, **params: Any) -> Optional[dict[str, Any]]:
        def _work(tx) -> Optional[dict[str, Any]]:
            record = tx.run(query, **params).single()
            return dict(record) if record is not None else None

        return self._execute(lambda session: session.execute_write(_work))

    def _execute(self, work: Callable[[Any], _T]) -> _T:
        try:
            with self.driver.session(database=self.database) as session:
                return work(session)
        except (Neo4jError, DriverError) as exc:
            raise StoreUnavailableError(f"Neo4j operation failed: {exc}") from exc

    def list_node_types(self) -> list[TypeName]:
        rows = self._read("CALL db.labels() YIELD label RETURN label ORDER BY label")
        return [row["label"] for row in rows]

    def list_edge_types(self) -> list[TypeName]:
        rows = self._read(
            "CALL db.relationshipTypes() YIELD relationshipType "
            "RETURN relationshipType ORDER BY relationshipType"
        )
        return [row["relationshipType"] for row in rows]

    def list_values_of_node_type(self, type_name: TypeName) -> list[ValueName]:
        query = (
            f"MATCH (n:{quote_identifier(type_name)}) "
            f"WHERE n.{NODE_VALUE_PROPERTY} IS NOT NULL "
            f"RETURN DISTINCT n.{NODE_VALUE_PROPERTY} AS value ORDER BY value"
        )
        return [str(row["value"]) for row in self._read(query)]

    def list_distinct_edge_labels_of_type(self, type_name: TypeName) -> list[ValueName]:
        query = (
            f"MATCH ()-[r:{quote_identifier(type_name)}]->() "
            f"WHERE r.{EDGE_LABEL_PROPERTY} IS NOT NULL "
            f"RETURN DISTINCT r.{EDGE_LABEL_PROPERTY} AS value ORDER BY value"
        )
        return [str(row["value"]) for row in self._read(query)]

    def upsert_node(self, type_name: TypeName, value: ValueName) -> NodeHandle:
        query = (
            f"MERGE (n:{quote_identifier(type_name)} {{{NODE_VALUE_PROPERTY}: $value}}) "
            "RETURN elementId(n) AS element_id"
        )
        row = self._write(query, value=value)
        if row is None:
            raise StoreUnavailableError(f"MERGE returned no node for {type_name}:{value}")
        return NodeHandle(type=type_name, value=value, element_id=row["element_id"])

    def upsert_edge(
        self, source: NodeHandle, type_name: TypeName, label: ValueName, target: NodeHandle
    ) -> EdgeHandle:
        query = (
            f"MATCH (a:{quote_identifier(source.type)} {{{NODE_VALUE_PROPERTY}: $source}}) "
            f"MATCH (b:{quote_identifier(target.type)} {{{NODE_VALUE_PROPERTY}: $target}}) "
            f"MERGE (a)-[r:{quote_identifier(type_name)} {{{EDGE_LABEL_PROPERTY}: $label}}]->(b) "
            "RETURN elementId(r) AS element_id"
        )
        row = self._write(query, source=source.value, target=target.value, label=label)
        if row is None:
            raise StoreUnavailableError(
                f"endpoints missing for edge {type_name}:{label} "
                f"({source.type}:{source.value} -> {target.type}:{target.value})"
            )
        return EdgeHandle(
            source=source,
            type=type_name,
            label=label,
            target=target,
            element_id=row["element_id"],
        )

    def close(self) -> None:
        try:
            self.driver.close()
        except (Neo4jError, DriverError, OSError) as exc:
            raise StoreUnavailableError(f"Closing the Neo4j driver failed: {exc}") from exc


@dataclass
class Neo4jConnector:
    """Open :class:`Neo4jGraphStore` handles, verifying connectivity first."""

    database: str = "neo4j"

    def connect(self, uri: str, user: str, password: str) -> Neo4jGraphStore:
        driver: Optional[Driver] = None
        try:
            driver = GraphDatabase.driver(uri, auth=(user, password))
            driver.verify_connectivity()
        except AuthError as exc:
            _close_quietly(driver)
            raise ConnectivityError(f"Authentication failed for Neo4j user '{user}': {exc}") from exc
        except (ServiceUnavailable, Neo4jError, DriverError, ValueError) as exc:
            _close_quietly(driver)
            raise ConnectivityError(f"Cannot connect to Neo4j at {uri}: {exc}") from exc
        LOGGER.info("Connected to Neo4j at %s as %s", uri, user)
        return Neo4jGraphStore(driver=driver, database=self.database)


def _close_quietly(driver: Optional[Driver]) -> None:
    if driver is None:
        return
    try:
        driver.close()
    except (Neo4jError, DriverError, OSError) as exc:
        LOGGER.debug("Ignoring error while closing Neo4j driver: %s", exc)
