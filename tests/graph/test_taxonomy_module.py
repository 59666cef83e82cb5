"""Tests for :mod:`edgeweaver.graph.taxonomy`."""

from __future__ import annotations

import pytest

from edgeweaver.errors import UnknownTypeError
from edgeweaver.graph.model import Kind
from edgeweaver.graph.taxonomy import TaxonomyCache


def make_cache() -> TaxonomyCache:
    cache = TaxonomyCache()
    cache.replace_all(
        {"Person": ["Alice", "Bob"], "Location": ["Tokyo"]},
        {"Friendship": ["Close Friend"]},
    )
    return cache


def test_register_type_is_idempotent():
    cache = make_cache()
    before = cache.snapshot()

    values = cache.register_type(Kind.NODE, "Person")

    assert values == ("Alice", "Bob")
    assert cache.snapshot() == before


def test_register_type_creates_empty_value_set():
    cache = make_cache()

    assert cache.register_type("edge", "Ownership") == ()
    assert cache.types(Kind.EDGE) == ("Friendship", "Ownership")
    assert cache.values_of(Kind.EDGE, "Ownership") == ()


def test_register_values_deduplicates_in_first_seen_order():
    cache = TaxonomyCache()
    cache.register_type(Kind.NODE, "Event")

    cache.register_values(Kind.NODE, "Event", ["Concert", "Meeting", "Concert", "Workshop", "Meeting"])

    assert cache.values_of(Kind.NODE, "Event") == ("Concert", "Meeting", "Workshop")


def test_register_values_appends_after_existing_values():
    cache = make_cache()

    result = cache.register_values(Kind.NODE, "Person", ["Charlie", "Alice"])

    assert result == ("Alice", "Bob", "Charlie")


def test_register_values_requires_registered_type():
    cache = make_cache()

    with pytest.raises(UnknownTypeError) as excinfo:
        cache.register_values(Kind.NODE, "Object", ["Book"])

    assert excinfo.value.type_name == "Object"
    assert not cache.has_type(Kind.NODE, "Object")


def test_node_and_edge_namespaces_are_independent():
    cache = make_cache()
    cache.register_type(Kind.EDGE, "Person")

    assert cache.values_of(Kind.EDGE, "Person") == ()
    assert cache.values_of(Kind.NODE, "Person") == ("Alice", "Bob")


def test_values_of_unknown_type_is_empty():
    cache = TaxonomyCache()

    assert cache.values_of(Kind.NODE, "Missing") == ()
    assert cache.values_of(Kind.NODE, None) == ()


def test_replace_all_swaps_both_namespaces():
    cache = make_cache()

    cache.replace_all({"Object": ["Desk"]}, {})

    assert cache.snapshot() == {"node": {"Object": ["Desk"]}, "edge": {}}


def test_blank_names_are_rejected():
    cache = TaxonomyCache()

    with pytest.raises(ValueError):
        cache.register_type(Kind.NODE, "   ")

    cache.register_type(Kind.NODE, "Person")
    with pytest.raises(ValueError):
        cache.register_values(Kind.NODE, "Person", ["Alice", ""])
    assert cache.values_of(Kind.NODE, "Person") == ()
