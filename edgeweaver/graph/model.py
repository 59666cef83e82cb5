"""Value objects shared by the taxonomy, selection and sync layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Sequence

TypeName = str
ValueName = str
TaxonomyMap = Mapping[TypeName, Sequence[ValueName]]


class Kind(str, Enum):
    """Namespace a type name lives in."""

    NODE = "node"
    EDGE = "edge"


class Slot(str, Enum):
    """Positions of a relation being assembled."""

    NODE_A = "node_a"
    EDGE = "edge"
    NODE_B = "node_b"

    @property
    def kind(self) -> Kind:
        return Kind.EDGE if self is Slot.EDGE else Kind.NODE


class SelectionMode(str, Enum):
    """How new values merge into a slot."""

    SINGLE = "single"
    BULK = "bulk"


def require_name(name: str, what: str = "name") -> str:
    """Return ``name`` unchanged or raise :class:`ValueError` if blank."""

    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{what} must be a non-empty string, got {name!r}")
    return name


@dataclass(frozen=True)
class RelationTriple:
    """One edge to create between two nodes."""

    node_a_type: TypeName
    node_a_value: ValueName
    edge_type: TypeName
    edge_label: ValueName
    node_b_type: TypeName
    node_b_value: ValueName

    def to_payload(self) -> dict[str, dict[str, str]]:
        return {
            "node_a": {"type": self.node_a_type, "value": self.node_a_value},
            "edge": {"type": self.edge_type, "label": self.edge_label},
            "node_b": {"type": self.node_b_type, "value": self.node_b_value},
        }

    def __str__(self) -> str:
        return (
            f"({self.node_a_type}:{self.node_a_value})"
            f"-[{self.edge_type}:{self.edge_label}]->"
            f"({self.node_b_type}:{self.node_b_value})"
        )


@dataclass(frozen=True)
class NodeHandle:
    """Reference to a node that exists in the store."""

    type: TypeName
    value: ValueName
    element_id: str


@dataclass(frozen=True)
class EdgeHandle:
    """Reference to an edge that exists in the store."""

    source: NodeHandle
    type: TypeName
    label: ValueName
    target: NodeHandle
    element_id: str


@dataclass
class PullResult:
    """Taxonomy read from the store plus the per-type failures met on the way."""

    node_taxonomy: dict[TypeName, list[ValueName]] = field(default_factory=dict)
    edge_taxonomy: dict[TypeName, list[ValueName]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


@dataclass
class CommitResult:
    """Outcome of applying a sequence of relation triples.

    ``failed_at`` is the 0-based index of the triple that failed, or ``None``
    when no triple failed. Triples before that index were applied and stay
    applied; triples after it were never attempted.
    """

    total: int
    succeeded: int = 0
    failed_at: Optional[int] = None
    error: Optional[BaseException] = None
    cancelled: bool = False
    refresh: Optional[PullResult] = None
    refresh_error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.failed_at is None and not self.cancelled and self.succeeded == self.total

    @property
    def pending(self) -> int:
        return self.total - self.succeeded

    def summary(self) -> str:
        """Return a sentence telling apart "nothing happened" and partial success."""

        if self.total == 0:
            return "Nothing to commit."
        if self.ok:
            noun = "relation" if self.total == 1 else "relations"
            return f"Created {self.total} {noun}."
        if self.cancelled:
            return f"Commit cancelled: {self.succeeded} of {self.total} relations were created."
        if self.succeeded == 0:
            return f"Nothing was created: the first relation failed ({self.error})."
        return (
            f"{self.succeeded} of {self.total} relations were created; "
            f"relation #{(self.failed_at or 0) + 1} failed ({self.error})."
        )

    def to_payload(self) -> dict:
        return {
            "ok": self.ok,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed_at": self.failed_at,
            "error": str(self.error) if self.error is not None else None,
            "cancelled": self.cancelled,
            "summary": self.summary(),
            "refresh_error": str(self.refresh_error) if self.refresh_error is not None else None,
        }
