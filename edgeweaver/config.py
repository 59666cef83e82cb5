"""Configuration helpers for loading environment variables.

Variables defined in a project-level ``.env`` file are loaded once, before
the first lookup. Values already present in the process environment win
over the file. Consumers should go through :func:`get_env` rather than
:func:`os.getenv` so loading happens in one place.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_CREDENTIALS_FILE = Path("~/.edgeweaver/credentials.env")


def _dotenv_path() -> Path:
    """Return the location of the project's ``.env`` file."""

    return Path(__file__).resolve().parents[1] / ".env"


@lru_cache(maxsize=1)
def _load_environment() -> None:
    """Load the project ``.env`` file, falling back to dotenv's own discovery.

    Subsequent calls are cached so the file is only read once per process.
    """

    env_path = _dotenv_path()
    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return the value for ``key`` from the environment, or ``default``."""

    _load_environment()
    return os.environ.get(key, default)


@dataclass(frozen=True)
class ConnectionSettings:
    """Connection defaults read from ``NEO4J_*`` variables."""

    uri: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "neo4j"

    @property
    def complete(self) -> bool:
        return bool(self.uri and self.user and self.password)


def load_connection_settings() -> ConnectionSettings:
    return ConnectionSettings(
        uri=get_env("NEO4J_URI"),
        user=get_env("NEO4J_USER") or get_env("NEO4J_USERNAME"),
        password=get_env("NEO4J_PASSWORD"),
        database=get_env("NEO4J_DATABASE", "neo4j") or "neo4j",
    )


def credentials_path() -> Path:
    """Return where remembered credentials are stored."""

    configured = get_env("EDGEWEAVER_CREDENTIALS_FILE")
    return Path(configured or DEFAULT_CREDENTIALS_FILE).expanduser()


__all__ = [
    "ConnectionSettings",
    "credentials_path",
    "get_env",
    "load_connection_settings",
]
