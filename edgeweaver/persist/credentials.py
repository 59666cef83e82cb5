"""Remembered connection credentials kept in a dotenv-format file."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key, unset_key

from edgeweaver.config import credentials_path

LOGGER = logging.getLogger(__name__)

URI_KEY = "NEO4J_URI"
USER_KEY = "NEO4J_USER"
PASSWORD_KEY = "NEO4J_PASSWORD"
_KEYS = (URI_KEY, USER_KEY, PASSWORD_KEY)


@dataclass(frozen=True)
class SavedCredentials:
    uri: str
    user: str
    password: str


@dataclass
class CredentialStore:
    """Read, write and forget the URI/user/password of the last connection.

    The file is plain ``KEY=value`` text, readable by :func:`dotenv.load_dotenv`.
    """

    path: Path = field(default_factory=credentials_path)

    def load(self) -> Optional[SavedCredentials]:
        """Return saved credentials, or ``None`` unless all three keys are set."""

        if not self.path.exists():
            return None
        values = dotenv_values(self.path)
        uri, user, password = (values.get(key) for key in _KEYS)
        if not (uri and user and password):
            return None
        return SavedCredentials(uri=uri, user=user, password=password)

    def save(self, uri: str, user: str, password: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(mode=0o600, exist_ok=True)
        for key, value in zip(_KEYS, (uri, user, password)):
            set_key(self.path, key, value, quote_mode="always")
        LOGGER.debug("Saved credentials for %s to %s", uri, self.path)

    def clear(self) -> None:
        if not self.path.exists():
            return
        present = dotenv_values(self.path)
        for key in _KEYS:
            if key in present:
                unset_key(self.path, key)
        LOGGER.debug("Cleared saved credentials in %s", self.path)
