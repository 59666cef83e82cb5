"""Persistence utilities for EdgeWeaver."""

from .credentials import CredentialStore, SavedCredentials

__all__ = ["CredentialStore", "SavedCredentials"]
