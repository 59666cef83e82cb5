"""User-facing event log for a session."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Iterable, List

from edgeweaver.graph.ids import utc_now


@dataclass
class Event:
    """One entry in the :class:`EventBus`."""

    ts: str
    level: str
    msg: str
    action: str | None = None
    details: dict | None = None

    def to_payload(self) -> dict:
        return asdict(self)


@dataclass
class EventBus:
    """Append-only in-memory event log.

    Pull warnings and commit outcomes land here so a caller can show them
    next to the (possibly degraded) cache.
    """

    events: List[Event] = field(default_factory=list)

    def emit(
        self,
        *,
        level: str,
        msg: str,
        action: str | None = None,
        details: dict | None = None,
    ) -> Event:
        event = Event(ts=utc_now(), level=level, msg=msg, action=action, details=details)
        self.events.append(event)
        return event

    def warn_all(self, messages: Iterable[str], *, action: str | None = None) -> list[Event]:
        return [self.emit(level="warning", msg=message, action=action) for message in messages]

    def history(self) -> Iterable[Event]:
        """Return the chronological event history."""

        return tuple(self.events)

    def since(self, index: int) -> list[Event]:
        return list(self.events[index:])

    def warnings(self) -> list[Event]:
        return [event for event in self.events if event.level == "warning"]
