"""Public API surface for EdgeWeaver.

:class:`EdgeWeaverApp` wires the connection, the sync engine, the selection
and the event log into one interactive session. It can be driven through
its methods or through :meth:`EdgeWeaverApp.handle` with
``{"action": ..., "params": {...}}`` payloads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from edgeweaver.config import load_connection_settings
from edgeweaver.errors import (
    ConnectivityError,
    IncompleteSelectionError,
    UnknownTypeError,
    UnknownValueError,
)
from edgeweaver.graph.expand import RelationExpander
from edgeweaver.graph.model import (
    CommitResult,
    PullResult,
    SelectionMode,
    Slot,
    TypeName,
    ValueName,
)
from edgeweaver.graph.neo4j_store import Neo4jConnector
from edgeweaver.graph.selection import SelectionSet
from edgeweaver.obs.events import EventBus
from edgeweaver.persist.credentials import CredentialStore
from edgeweaver.router import ActionRouter
from edgeweaver.sync.connection import ConnectionLifecycle
from edgeweaver.sync.engine import CancelFlag, GraphSyncEngine


@dataclass
class EdgeWeaverApp:
    """Container wiring together the core EdgeWeaver subsystems."""

    connection: ConnectionLifecycle = field(default_factory=ConnectionLifecycle)
    engine: GraphSyncEngine = field(default_factory=GraphSyncEngine)
    selection: SelectionSet = field(default_factory=SelectionSet)
    expander: RelationExpander = field(default_factory=RelationExpander)
    event_bus: EventBus = field(default_factory=EventBus)
    router: ActionRouter = field(default_factory=ActionRouter)
    credential_store: Optional[CredentialStore] = None

    def __post_init__(self) -> None:
        self._register_default_actions()

    def handle(self, payload: dict) -> dict:
        """Dispatch an API payload and return a canonical response."""

        action = payload.get("action")
        if not action:
            raise KeyError("payload must include 'action'")
        params = payload.get("params") or {}
        mark = len(self.event_bus.events)
        result = self.router.dispatch(action, params)
        self.event_bus.emit(level="info", msg=f"Executed action '{action}'", action=action)
        return {
            "ok": bool(result.get("ok", True)),
            "result": result,
            "events": [event.to_payload() for event in self.event_bus.since(mark)],
            "selection": self.selection.to_payload(),
        }

    def _register_default_actions(self) -> None:
        self.router.register("connect", self._handle_connect)
        self.router.register("disconnect", self._handle_disconnect)
        self.router.register("refresh", lambda _: self._pull_payload(self.refresh()))
        self.router.register("taxonomy", lambda _: self.engine.cache.snapshot())
        self.router.register("selection", lambda _: self.selection.to_payload())
        self.router.register("set_mode", self._handle_set_mode)
        self.router.register("choose_type", self._handle_choose_type)
        self.router.register("toggle_value", self._handle_toggle_value)
        self.router.register("set_values", self._handle_set_values)
        self.router.register("create_types", self._handle_create_types)
        self.router.register("create_values", self._handle_create_values)
        self.router.register("preview", lambda _: self.preview())
        self.router.register("commit", lambda _: self.commit().to_payload())
        self.router.register("reset", self._handle_reset)

    def _handle_connect(self, params: dict) -> dict:
        pull = self.connect(
            uri=params.get("uri"),
            user=params.get("user"),
            password=params.get("password"),
            remember=params.get("remember", True),
        )
        return {"uri": self.connection.uri, **self._pull_payload(pull)}

    def _handle_disconnect(self, params: dict) -> dict:
        self.disconnect(forget=params.get("forget", True))
        return {"state": self.connection.state.value}

    def _handle_set_mode(self, params: dict) -> dict:
        self.selection.set_mode(params.get("mode", SelectionMode.SINGLE))
        return self.selection.to_payload()

    def _handle_choose_type(self, params: dict) -> dict:
        slot = Slot(params["slot"])
        self.choose_type(slot, params["type"])
        return {"slot": slot.value, "options": list(self.options(slot))}

    def _handle_toggle_value(self, params: dict) -> dict:
        return {"values": self.toggle_value(params["slot"], params["value"])}

    def _handle_set_values(self, params: dict) -> dict:
        return {"values": self.set_values(params["slot"], params.get("values", []))}

    def _handle_create_types(self, params: dict) -> dict:
        return {"created": self.create_types(params["slot"], params.get("text", ""))}

    def _handle_create_values(self, params: dict) -> dict:
        return {"created": self.create_values(params["slot"], params.get("text", ""))}

    def _handle_reset(self, _: dict) -> dict:
        self.selection.reset()
        return self.selection.to_payload()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(
        self,
        *,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        remember: bool = True,
    ) -> PullResult:
        """Open the store, remember the credentials and pull the taxonomy.

        Missing arguments fall back to remembered credentials, then to the
        ``NEO4J_*`` environment settings.
        """

        uri, user, password = self._resolve_credentials(uri, user, password)
        try:
            self.connection.connect(uri, user, password)
        except ConnectivityError as exc:
            self.engine.mark_disconnected()
            self.event_bus.emit(level="error", msg=str(exc), action="connect")
            raise
        self.engine.mark_connected()
        if remember and self.credential_store is not None:
            self.credential_store.save(uri, user, password)
        self.event_bus.emit(level="info", msg=f"Connected to {uri}", action="connect")
        return self.refresh()

    def disconnect(self, *, forget: bool = True) -> None:
        self.connection.disconnect()
        self.engine.mark_disconnected()
        if forget and self.credential_store is not None:
            self.credential_store.clear()
        self.event_bus.emit(level="info", msg="Disconnected", action="disconnect")

    def refresh(self) -> PullResult:
        """Re-read the taxonomy from the connected store."""

        result = self.engine.pull_taxonomy(self.connection.store)
        self.event_bus.warn_all(result.warnings, action="refresh")
        return result

    def _resolve_credentials(
        self, uri: str | None, user: str | None, password: str | None
    ) -> tuple[str, str, str]:
        if not (uri and user and password):
            saved = self.credential_store.load() if self.credential_store is not None else None
            if saved is not None:
                uri, user, password = uri or saved.uri, user or saved.user, password or saved.password
        if not (uri and user and password):
            settings = load_connection_settings()
            uri, user, password = uri or settings.uri, user or settings.user, password or settings.password
        if not (uri and user and password):
            raise ConnectivityError("Connection URI, user and password are required")
        return uri, user, password

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def options(self, slot: Slot | str) -> tuple[ValueName, ...]:
        """Values offered for ``slot`` under its chosen type."""

        slot = Slot(slot)
        return self.engine.cache.values_of(slot.kind, self.selection[slot].type)

    def choose_type(self, slot: Slot | str, type_name: TypeName) -> None:
        slot = Slot(slot)
        if not self.engine.cache.has_type(slot.kind, type_name):
            raise UnknownTypeError(slot.kind.value, type_name)
        self.selection.choose_type(slot, type_name)

    def toggle_value(self, slot: Slot | str, value: ValueName) -> list[ValueName]:
        slot = Slot(slot)
        self._require_known(slot, [value])
        return self.selection.toggle(slot, value)

    def set_values(self, slot: Slot | str, values: Iterable[ValueName]) -> list[ValueName]:
        slot = Slot(slot)
        values = list(values)
        self._require_known(slot, values)
        return self.selection.set_values(slot, values)

    def create_types(self, slot: Slot | str, raw_text: str) -> list[TypeName]:
        """Register one type per line of ``raw_text`` and choose the first for ``slot``."""

        slot = Slot(slot)
        entries = self.selection.register_new_entries(slot, raw_text)
        for type_name in entries:
            self.engine.register_type(slot.kind, type_name)
        if entries:
            self.selection.choose_type(slot, entries[0])
        return entries

    def create_values(self, slot: Slot | str, raw_text: str) -> list[ValueName]:
        """Register one value per line under the slot's type, then select them."""

        slot = Slot(slot)
        choice = self.selection[slot]
        if choice.type is None:
            raise IncompleteSelectionError([slot.value])
        entries = self.selection.register_new_entries(slot, raw_text)
        if not entries:
            return []
        self.engine.register_values(slot.kind, choice.type, entries)
        if self.selection.mode is SelectionMode.BULK:
            self.selection.set_values(slot, [*choice.values, *entries])
        else:
            self.selection.set_values(slot, entries)
        return entries

    def _require_known(self, slot: Slot, values: Iterable[ValueName]) -> None:
        type_name = self.selection[slot].type
        if type_name is None:
            raise IncompleteSelectionError([slot.value])
        # Already-selected values may outlive a refresh and must stay removable.
        known = set(self.engine.cache.values_of(slot.kind, type_name))
        known.update(self.selection[slot].values)
        unknown = [value for value in values if value not in known]
        if unknown:
            raise UnknownValueError(
                f"{', '.join(unknown)} not known under {slot.kind.value} type '{type_name}'"
            )

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def preview(self) -> dict:
        """Describe what :meth:`commit` would create without touching the store."""

        missing = [slot.value for slot in self.selection.missing_slots()]
        if missing:
            return {"count": 0, "missing": missing, "triples": []}
        triples = self.expander.expand(self.selection)
        return {
            "count": len(triples),
            "missing": [],
            "triples": [triple.to_payload() for triple in triples],
        }

    def commit(self, *, cancel: Optional[CancelFlag] = None) -> CommitResult:
        """Expand the selection, apply it to the store and refresh the cache.

        The selection is cleared only when every relation was created.
        """

        triples = self.expander.expand(self.selection)
        result = self.engine.commit(self.connection.store, triples, cancel=cancel)
        if result.refresh is not None:
            self.event_bus.warn_all(result.refresh.warnings, action="commit")
        if result.refresh_error is not None:
            self.event_bus.emit(
                level="warning",
                msg=f"Taxonomy refresh failed: {result.refresh_error}",
                action="commit",
            )
        self.event_bus.emit(
            level="info" if result.ok else "warning",
            msg=result.summary(),
            action="commit",
            details={"succeeded": result.succeeded, "total": result.total, "failed_at": result.failed_at},
        )
        if result.ok:
            self.selection.reset()
        return result

    @staticmethod
    def _pull_payload(result: PullResult) -> dict:
        return {
            "node_types": len(result.node_taxonomy),
            "edge_types": len(result.edge_taxonomy),
            "warnings": list(result.warnings),
        }


def _default_app() -> EdgeWeaverApp:
    settings = load_connection_settings()
    connection = ConnectionLifecycle(connector=Neo4jConnector(database=settings.database))
    return EdgeWeaverApp(connection=connection, credential_store=CredentialStore())


_APP = _default_app()


def EdgeWeaver_tool(payload: dict) -> dict:
    """Entry point exposed to external callers."""

    return _APP.handle(payload)
