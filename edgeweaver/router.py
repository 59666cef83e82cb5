"""Action routing for the EdgeWeaver session facade."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol

from edgeweaver.errors import UnknownActionError


class ActionHandler(Protocol):
    """Protocol representing a callable action handler."""

    def __call__(self, params: dict) -> dict:  # pragma: no cover - interface
        ...


@dataclass
class ActionRouter:
    """Map action names from request payloads to session methods."""

    registry: Dict[str, ActionHandler] = field(default_factory=dict)

    def register(self, action: str, handler: ActionHandler) -> None:
        if action in self.registry:
            raise ValueError(f"Action '{action}' is already registered")
        self.registry[action] = handler

    def actions(self) -> list[str]:
        return sorted(self.registry)

    def dispatch(self, action: str, params: dict) -> dict:
        """Run the handler for ``action`` with ``params``."""

        handler = self.registry.get(action)
        if handler is None:
            raise UnknownActionError(f"Unknown action: {action}")
        return handler(params)
