"""The operator's current choice of types and values per relation slot."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .model import SelectionMode, Slot, TypeName, ValueName


def parse_entries(raw_text: str) -> list[str]:
    """Split ``raw_text`` into trimmed, non-empty, first-seen-unique lines."""

    entries: dict[str, None] = {}
    for line in raw_text.splitlines():
        item = line.strip()
        if item:
            entries.setdefault(item, None)
    return list(entries)


def _dedupe(values: Iterable[ValueName]) -> list[ValueName]:
    return list(dict.fromkeys(values))


@dataclass
class SlotChoice:
    """Type and values chosen for one slot."""

    type: Optional[TypeName] = None
    values: list[ValueName] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.type is not None and bool(self.values)


@dataclass
class SelectionSet:
    """Type and value choices for the NodeA, Edge and NodeB slots.

    In :attr:`SelectionMode.SINGLE` mode every slot holds at most one value.
    In :attr:`SelectionMode.BULK` mode values accumulate and :meth:`toggle`
    flips membership.
    """

    mode: SelectionMode = SelectionMode.SINGLE
    slots: Dict[Slot, SlotChoice] = field(
        default_factory=lambda: {slot: SlotChoice() for slot in Slot}
    )

    def __getitem__(self, slot: Slot | str) -> SlotChoice:
        return self.slots[Slot(slot)]

    def set_mode(self, mode: SelectionMode | str) -> None:
        """Switch mode; leaving bulk mode keeps only the first value per slot."""

        self.mode = SelectionMode(mode)
        if self.mode is SelectionMode.SINGLE:
            for choice in self.slots.values():
                del choice.values[1:]

    def choose_type(self, slot: Slot | str, type_name: TypeName) -> None:
        """Set the slot's type and drop its values, which belonged to the old type."""

        choice = self[slot]
        choice.type = type_name
        choice.values = []

    def set_values(
        self,
        slot: Slot | str,
        values: Iterable[ValueName],
        mode: SelectionMode | str | None = None,
    ) -> list[ValueName]:
        """Store ``values`` for ``slot`` according to ``mode``.

        Single mode keeps only the first element. Bulk mode stores the whole
        (deduplicated) list, which callers compute by toggling.
        """

        mode = SelectionMode(mode) if mode is not None else self.mode
        values = _dedupe(values)
        if mode is SelectionMode.SINGLE:
            values = values[:1]
        self[slot].values = values
        return list(values)

    def toggle(self, slot: Slot | str, value: ValueName) -> list[ValueName]:
        """Apply a pick of ``value`` the way the current mode dictates."""

        current = self[slot].values
        if self.mode is SelectionMode.SINGLE:
            return self.set_values(slot, [value])
        if value in current:
            updated = [item for item in current if item != value]
        else:
            updated = [*current, value]
        return self.set_values(slot, updated)

    def register_new_entries(self, slot: Slot | str, raw_text: str) -> list[str]:
        """Parse free text typed into ``slot`` into candidate new entries.

        The caller registers the entries in the taxonomy first and only then
        selects them with :meth:`set_values`.
        """

        Slot(slot)  # reject unknown slots early
        return parse_entries(raw_text)

    def reset(self) -> None:
        for slot in Slot:
            self.slots[slot] = SlotChoice()

    def missing_slots(self) -> list[Slot]:
        return [slot for slot in Slot if not self.slots[slot].complete]

    def to_payload(self) -> dict:
        return {
            "mode": self.mode.value,
            **{
                slot.value: {"type": choice.type, "values": list(choice.values)}
                for slot, choice in self.slots.items()
            },
        }
