"""Pulling taxonomies from the store and committing relation triples."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional, Protocol, Sequence

from edgeweaver.errors import StoreUnavailableError
from edgeweaver.graph.model import (
    CommitResult,
    Kind,
    PullResult,
    RelationTriple,
    TypeName,
    ValueName,
)
from edgeweaver.graph.store import GraphStore
from edgeweaver.graph.taxonomy import TaxonomyCache

LOGGER = logging.getLogger(__name__)


class SyncState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SYNCING = "syncing"


class CancelFlag(Protocol):
    """Anything with an ``is_set`` method, e.g. :class:`threading.Event`."""

    def is_set(self) -> bool:  # pragma: no cover - interface
        ...


@dataclass
class GraphSyncEngine:
    """Keep a :class:`TaxonomyCache` in step with a :class:`GraphStore`.

    The engine is the only writer of its cache. Reads go through
    :attr:`cache` directly.
    """

    cache: TaxonomyCache = field(default_factory=TaxonomyCache)
    state: SyncState = SyncState.DISCONNECTED

    def mark_connected(self) -> None:
        self.state = SyncState.CONNECTED

    def mark_disconnected(self) -> None:
        self.state = SyncState.DISCONNECTED

    @contextmanager
    def _syncing(self) -> Iterator[None]:
        previous = self.state
        self.state = SyncState.SYNCING
        try:
            yield
        finally:
            self.state = previous

    # ------------------------------------------------------------------
    # Local registration
    # ------------------------------------------------------------------

    def register_type(self, kind: Kind | str, type_name: TypeName) -> tuple[ValueName, ...]:
        return self.cache.register_type(kind, type_name)

    def register_values(
        self, kind: Kind | str, type_name: TypeName, values: Iterable[ValueName]
    ) -> tuple[ValueName, ...]:
        return self.cache.register_values(kind, type_name, values)

    # ------------------------------------------------------------------
    # Store round trips
    # ------------------------------------------------------------------

    def pull_taxonomy(self, store: GraphStore) -> PullResult:
        """Rebuild the cache from ``store``.

        One query lists the types of each kind, then one query per type lists
        its values. A type whose values cannot be listed is kept with no
        values and reported in :attr:`PullResult.warnings`. Failing to list
        the types themselves raises :class:`StoreUnavailableError` and leaves
        the cache untouched.
        """

        result = PullResult()
        with self._syncing():
            node_types = _unique(store.list_node_types())
            edge_types = _unique(store.list_edge_types())
            for type_name in node_types:
                result.node_taxonomy[type_name] = self._enumerate(
                    Kind.NODE, type_name, store.list_values_of_node_type, result
                )
            for type_name in edge_types:
                result.edge_taxonomy[type_name] = self._enumerate(
                    Kind.EDGE, type_name, store.list_distinct_edge_labels_of_type, result
                )
            self.cache.replace_all(result.node_taxonomy, result.edge_taxonomy)
        LOGGER.info(
            "Pulled %d node types and %d edge types (%d warnings)",
            len(result.node_taxonomy),
            len(result.edge_taxonomy),
            len(result.warnings),
        )
        return result

    @staticmethod
    def _enumerate(
        kind: Kind,
        type_name: TypeName,
        lister: Callable[[TypeName], Sequence[ValueName]],
        result: PullResult,
    ) -> list[ValueName]:
        try:
            return _unique(lister(type_name))
        except StoreUnavailableError as exc:
            message = f"Could not list values of {kind.value} type '{type_name}': {exc}"
            LOGGER.warning("%s", message)
            result.warnings.append(message)
            return []

    def commit(
        self,
        store: GraphStore,
        triples: Iterable[RelationTriple],
        *,
        cancel: Optional[CancelFlag] = None,
        refresh: bool = True,
    ) -> CommitResult:
        """Apply ``triples`` one at a time, in order, then refresh the cache.

        The first failing triple stops the commit. Nothing is rolled back:
        each upsert is create-if-absent, so the same commit can be retried.
        ``cancel`` is checked before every triple.
        """

        triples = list(triples)
        result = CommitResult(total=len(triples))
        with self._syncing():
            for index, triple in enumerate(triples):
                if cancel is not None and cancel.is_set():
                    result.cancelled = True
                    LOGGER.info("Commit cancelled after %d of %d triples", index, result.total)
                    break
                try:
                    self._apply(store, triple)
                except StoreUnavailableError as exc:
                    result.failed_at = index
                    result.error = exc
                    LOGGER.warning(
                        "Commit stopped at triple %d of %d (%s): %s",
                        index + 1,
                        result.total,
                        triple,
                        exc,
                    )
                    break
                result.succeeded += 1
                LOGGER.debug("Committed %s", triple)

        attempted = result.succeeded > 0 or result.failed_at is not None
        if refresh and attempted:
            try:
                result.refresh = self.pull_taxonomy(store)
            except StoreUnavailableError as exc:
                result.refresh_error = exc
                LOGGER.warning("Taxonomy refresh after commit failed: %s", exc)
        LOGGER.info("%s", result.summary())
        return result

    @staticmethod
    def _apply(store: GraphStore, triple: RelationTriple) -> None:
        source = store.upsert_node(triple.node_a_type, triple.node_a_value)
        target = store.upsert_node(triple.node_b_type, triple.node_b_value)
        store.upsert_edge(source, triple.edge_type, triple.edge_label, target)


def _unique(items: Iterable[str]) -> list[str]:
    """Drop blanks and repeats while keeping first-seen order."""

    return list(dict.fromkeys(item for item in items if isinstance(item, str) and item.strip()))
