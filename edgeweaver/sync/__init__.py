"""Store connection ownership and taxonomy synchronisation."""

from .connection import ConnectionLifecycle, ConnectionState
from .engine import GraphSyncEngine, SyncState

__all__ = ["ConnectionLifecycle", "ConnectionState", "GraphSyncEngine", "SyncState"]
