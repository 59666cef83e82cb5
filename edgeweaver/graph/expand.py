"""Expansion of a selection into individual relation triples."""
from __future__ import annotations

import itertools
from dataclasses import dataclass

from edgeweaver.errors import IncompleteSelectionError

from .model import RelationTriple, Slot
from .selection import SelectionSet


@dataclass
class RelationExpander:
    """Turn a :class:`SelectionSet` into the triples a commit applies."""

    def expand(self, selection: SelectionSet) -> list[RelationTriple]:
        """Return the Cartesian product NodeA x Edge x NodeB.

        NodeA varies slowest and NodeB fastest. The product is not
        deduplicated: each slot's values already are, and a triple that
        links a node to itself is forwarded as-is.
        """

        missing = selection.missing_slots()
        if missing:
            raise IncompleteSelectionError(slot.value for slot in missing)

        node_a = selection[Slot.NODE_A]
        edge = selection[Slot.EDGE]
        node_b = selection[Slot.NODE_B]
        return [
            RelationTriple(
                node_a_type=node_a.type,
                node_a_value=a_value,
                edge_type=edge.type,
                edge_label=label,
                node_b_type=node_b.type,
                node_b_value=b_value,
            )
            for a_value, label, b_value in itertools.product(
                node_a.values, edge.values, node_b.values
            )
        ]

    def count(self, selection: SelectionSet) -> int:
        """Return how many triples :meth:`expand` would yield, or 0 if incomplete."""

        if selection.missing_slots():
            return 0
        total = 1
        for slot in Slot:
            total *= len(selection[slot].values)
        return total
