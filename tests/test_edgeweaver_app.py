"""End-to-end tests for :class:`edgeweaver.api.EdgeWeaverApp` on the in-memory store."""

from __future__ import annotations

import pytest

from edgeweaver.api import EdgeWeaverApp
from edgeweaver.errors import (
    ConnectivityError,
    IncompleteSelectionError,
    NotConnectedError,
    StoreUnavailableError,
    UnknownActionError,
    UnknownTypeError,
    UnknownValueError,
)
from edgeweaver.graph.model import Kind, SelectionMode, Slot
from edgeweaver.graph.store import InMemoryConnector, InMemoryGraphStore
from edgeweaver.persist.credentials import CredentialStore
from edgeweaver.sync.connection import ConnectionLifecycle
from edgeweaver.sync.engine import SyncState

URI = "memory://lab"


@pytest.fixture()
def connector() -> InMemoryConnector:
    connector = InMemoryConnector(credentials={"neo4j": "secret"})
    seed = InMemoryGraphStore(graph=connector.graph)
    alice = seed.upsert_node("Person", "Alice")
    bob = seed.upsert_node("Person", "Bob")
    seed.upsert_node("Location", "Tokyo")
    seed.upsert_edge(alice, "Friendship", "Close Friend", bob)
    return connector


@pytest.fixture()
def app(connector, tmp_path) -> EdgeWeaverApp:
    return EdgeWeaverApp(
        connection=ConnectionLifecycle(connector=connector),
        credential_store=CredentialStore(path=tmp_path / "credentials.env"),
    )


@pytest.fixture()
def connected_app(app) -> EdgeWeaverApp:
    app.connect(uri=URI, user="neo4j", password="secret")
    return app


def _select(app: EdgeWeaverApp, slot: Slot, type_name: str, *values: str) -> None:
    app.choose_type(slot, type_name)
    for value in values:
        app.toggle_value(slot, value)


def test_connect_pulls_taxonomy_and_remembers_credentials(app):
    result = app.connect(uri=URI, user="neo4j", password="secret")

    assert result.warnings == []
    assert app.engine.state is SyncState.CONNECTED
    assert app.engine.cache.snapshot() == {
        "node": {"Person": ["Alice", "Bob"], "Location": ["Tokyo"]},
        "edge": {"Friendship": ["Close Friend"]},
    }
    saved = app.credential_store.load()
    assert (saved.uri, saved.user, saved.password) == (URI, "neo4j", "secret")


def test_connect_reuses_remembered_credentials(app):
    app.credential_store.save(URI, "neo4j", "secret")

    app.connect()

    assert app.connection.uri == URI


def test_connect_failure_is_reported_and_leaves_nothing_connected(app):
    with pytest.raises(ConnectivityError):
        app.connect(uri=URI, user="neo4j", password="wrong")

    assert not app.connection.connected
    assert app.event_bus.events[-1].level == "error"
    assert app.credential_store.load() is None


def test_disconnect_forgets_credentials(connected_app):
    connected_app.disconnect()

    assert connected_app.credential_store.load() is None
    assert connected_app.engine.state is SyncState.DISCONNECTED
    with pytest.raises(NotConnectedError):
        connected_app.refresh()


def test_choose_type_requires_known_type(connected_app):
    with pytest.raises(UnknownTypeError):
        connected_app.choose_type(Slot.NODE_A, "Spaceship")
    with pytest.raises(UnknownTypeError):
        connected_app.choose_type(Slot.EDGE, "Person")


def test_toggle_value_requires_known_value(connected_app):
    connected_app.choose_type(Slot.NODE_A, "Person")

    with pytest.raises(UnknownValueError):
        connected_app.toggle_value(Slot.NODE_A, "Zed")


def test_single_mode_commit_creates_one_relation_and_resets(connected_app, connector):
    _select(connected_app, Slot.NODE_A, "Person", "Alice")
    _select(connected_app, Slot.EDGE, "Friendship", "Close Friend")
    _select(connected_app, Slot.NODE_B, "Location", "Tokyo")

    result = connected_app.commit()

    assert result.ok and result.succeeded == 1
    assert connector.graph.number_of_edges() == 2
    assert connected_app.selection.missing_slots() == list(Slot)
    assert connected_app.event_bus.events[-1].msg == "Created 1 relation."


def test_bulk_create_then_select_then_commit(connected_app, connector):
    connected_app.selection.set_mode(SelectionMode.BULK)
    _select(connected_app, Slot.NODE_A, "Person", "Alice")
    connected_app.create_values(Slot.NODE_A, "Carol\n\n Dave \nCarol")

    created_types = connected_app.create_types(Slot.EDGE, "Mentorship")
    connected_app.create_values(Slot.EDGE, "Mentor")

    connected_app.create_types(Slot.NODE_B, "Event\nObject")
    connected_app.create_values(Slot.NODE_B, "Workshop\nConference")

    assert created_types == ["Mentorship"]
    assert connected_app.selection[Slot.NODE_A].values == ["Alice", "Carol", "Dave"]
    assert connected_app.selection[Slot.NODE_B].type == "Event"
    assert connected_app.engine.cache.has_type(Kind.NODE, "Object")
    assert connected_app.preview()["count"] == 6

    result = connected_app.commit()

    assert result.ok and result.succeeded == 6
    assert connector.graph.number_of_edges() == 7
    cache = connected_app.engine.cache
    assert cache.values_of(Kind.NODE, "Person") == ("Alice", "Bob", "Carol", "Dave")
    assert cache.values_of(Kind.NODE, "Event") == ("Workshop", "Conference")
    assert cache.values_of(Kind.EDGE, "Mentorship") == ("Mentor",)
    # "Object" was only registered locally; the refresh reflects the store.
    assert not cache.has_type(Kind.NODE, "Object")


def test_single_mode_create_values_selects_first_entry(connected_app):
    connected_app.choose_type(Slot.NODE_A, "Person")

    created = connected_app.create_values(Slot.NODE_A, "Carol\nDave")

    assert created == ["Carol", "Dave"]
    assert connected_app.selection[Slot.NODE_A].values == ["Carol"]
    assert connected_app.options(Slot.NODE_A) == ("Alice", "Bob", "Carol", "Dave")


def test_create_values_without_type_is_incomplete(connected_app):
    with pytest.raises(IncompleteSelectionError):
        connected_app.create_values(Slot.NODE_B, "Tokyo")


class RejectingConnector(InMemoryConnector):
    """Connector whose stores refuse to write the ``rejected`` node values."""

    def __init__(self, *, rejected, **kwargs):
        super().__init__(**kwargs)
        self.rejected = set(rejected)

    def connect(self, uri, user, password):
        store = super().connect(uri, user, password)
        real_upsert = store.upsert_node

        def upsert_node(type_name, value):
            if value in self.rejected:
                raise StoreUnavailableError("disk full")
            return real_upsert(type_name, value)

        store.upsert_node = upsert_node
        return store


def test_partial_commit_keeps_selection(connected_app, connector):
    connected_app.connection.connector = RejectingConnector(
        rejected={"Dave"}, graph=connector.graph, credentials=connector.credentials
    )
    connected_app.connect(uri=URI, user="neo4j", password="secret")
    connected_app.selection.set_mode("bulk")
    _select(connected_app, Slot.NODE_A, "Person", "Alice")
    connected_app.create_values(Slot.NODE_A, "Dave")
    _select(connected_app, Slot.EDGE, "Friendship", "Close Friend")
    _select(connected_app, Slot.NODE_B, "Location", "Tokyo")

    result = connected_app.commit()

    assert (result.succeeded, result.failed_at) == (1, 1)
    assert connected_app.selection[Slot.NODE_A].values == ["Alice", "Dave"]
    assert connected_app.event_bus.events[-1].level == "warning"
    assert "1 of 2 relations were created" in connected_app.event_bus.events[-1].msg



def test_retained_value_can_be_deselected_after_failed_commit(connected_app, connector):
    connected_app.connection.connector = RejectingConnector(
        rejected={"Dave", "Erin"}, graph=connector.graph, credentials=connector.credentials
    )
    connected_app.connect(uri=URI, user="neo4j", password="secret")
    connected_app.selection.set_mode("bulk")
    connected_app.choose_type(Slot.NODE_A, "Person")
    connected_app.create_values(Slot.NODE_A, "Dave\nErin")
    _select(connected_app, Slot.EDGE, "Friendship", "Close Friend")
    _select(connected_app, Slot.NODE_B, "Location", "Tokyo")

    result = connected_app.commit()

    assert result.succeeded == 0
    assert "Dave" not in connected_app.options(Slot.NODE_A)
    assert connected_app.toggle_value(Slot.NODE_A, "Dave") == ["Erin"]
    assert connected_app.set_values(Slot.NODE_A, ["Erin"]) == ["Erin"]
    with pytest.raises(UnknownValueError):
        connected_app.toggle_value(Slot.NODE_A, "Dave")

def test_commit_requires_connection(app):
    app.engine.register_type(Kind.NODE, "Person")
    app.engine.register_values(Kind.NODE, "Person", ["Alice"])
    app.engine.register_type(Kind.EDGE, "Friendship")
    app.engine.register_values(Kind.EDGE, "Friendship", ["Close Friend"])
    for slot, type_name, value in (
        (Slot.NODE_A, "Person", "Alice"),
        (Slot.EDGE, "Friendship", "Close Friend"),
        (Slot.NODE_B, "Person", "Alice"),
    ):
        _select(app, slot, type_name, value)

    with pytest.raises(NotConnectedError):
        app.commit()


def test_commit_incomplete_selection_raises(connected_app):
    _select(connected_app, Slot.NODE_A, "Person", "Alice")

    with pytest.raises(IncompleteSelectionError):
        connected_app.commit()
    assert connected_app.preview() == {"count": 0, "missing": ["edge", "node_b"], "triples": []}


def test_handle_payload_roundtrip(app):
    response = app.handle(
        {"action": "connect", "params": {"uri": URI, "user": "neo4j", "password": "secret"}}
    )
    assert response["ok"] is True
    assert response["result"]["node_types"] == 2

    app.handle({"action": "choose_type", "params": {"slot": "node_a", "type": "Person"}})
    app.handle({"action": "toggle_value", "params": {"slot": "node_a", "value": "Bob"}})
    app.handle({"action": "choose_type", "params": {"slot": "edge", "type": "Friendship"}})
    app.handle({"action": "set_values", "params": {"slot": "edge", "values": ["Close Friend"]}})
    app.handle({"action": "choose_type", "params": {"slot": "node_b", "type": "Person"}})
    app.handle({"action": "toggle_value", "params": {"slot": "node_b", "value": "Alice"}})

    response = app.handle({"action": "commit"})

    assert response["ok"] is True
    assert response["result"]["summary"] == "Created 1 relation."
    assert response["selection"]["node_a"] == {"type": None, "values": []}
    assert any(event["action"] == "commit" for event in response["events"])


def test_handle_rejects_unknown_action(app):
    with pytest.raises(UnknownActionError):
        app.handle({"action": "snapshot"})
    with pytest.raises(KeyError):
        app.handle({"params": {}})
