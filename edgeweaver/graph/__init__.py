"""Graph subpackage: data model, taxonomy cache, selection and store access."""

from .expand import RelationExpander
from .model import (
    CommitResult,
    EdgeHandle,
    Kind,
    NodeHandle,
    PullResult,
    RelationTriple,
    SelectionMode,
    Slot,
)
from .selection import SelectionSet, parse_entries
from .store import GraphStore, InMemoryConnector, InMemoryGraphStore, StoreConnector
from .taxonomy import TaxonomyCache

__all__ = [
    "CommitResult",
    "EdgeHandle",
    "GraphStore",
    "InMemoryConnector",
    "InMemoryGraphStore",
    "Kind",
    "NodeHandle",
    "PullResult",
    "RelationExpander",
    "RelationTriple",
    "SelectionMode",
    "SelectionSet",
    "Slot",
    "StoreConnector",
    "TaxonomyCache",
    "parse_entries",
]
