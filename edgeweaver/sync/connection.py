"""Ownership of the single live graph store handle."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from edgeweaver.errors import NotConnectedError, StoreUnavailableError
from edgeweaver.graph.neo4j_store import Neo4jConnector
from edgeweaver.graph.store import GraphStore, StoreConnector

LOGGER = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ConnectionLifecycle:
    """Hold at most one open :class:`GraphStore` at a time.

    Connecting while connected closes the previous handle first. A failed
    connect leaves the lifecycle disconnected and re-raises the
    :class:`~edgeweaver.errors.ConnectivityError` from the connector.
    """

    connector: StoreConnector = field(default_factory=Neo4jConnector)
    state: ConnectionState = ConnectionState.DISCONNECTED
    uri: Optional[str] = None
    user: Optional[str] = None
    _store: Optional[GraphStore] = field(default=None, repr=False)

    @property
    def connected(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> GraphStore:
        if self._store is None:
            raise NotConnectedError("Not connected to a graph store")
        return self._store

    def connect(self, uri: str, user: str, password: str) -> GraphStore:
        if self._store is not None:
            LOGGER.info("Replacing existing connection to %s", self.uri)
            self.disconnect()

        self.state = ConnectionState.CONNECTING
        store: Optional[GraphStore] = None
        try:
            store = self.connector.connect(uri, user, password)
        finally:
            if store is None:
                self.state = ConnectionState.DISCONNECTED
        self._store = store
        self.uri = uri
        self.user = user
        self.state = ConnectionState.CONNECTED
        return store

    def disconnect(self) -> None:
        """Close the live handle, if any. Safe to call repeatedly."""

        store, self._store = self._store, None
        self.state = ConnectionState.DISCONNECTED
        if store is None:
            return
        try:
            store.close()
        except StoreUnavailableError as exc:
            LOGGER.warning("Error while closing store handle for %s: %s", self.uri, exc)
        LOGGER.info("Disconnected from %s", self.uri)
        self.uri = None
        self.user = None

    def __enter__(self) -> "ConnectionLifecycle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
