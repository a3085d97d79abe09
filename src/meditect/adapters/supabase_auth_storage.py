"""Supabase auth storage backed by the secure credential store."""

import logging
from dataclasses import dataclass

from meditect.errors import CredentialStoreError
from meditect.services.auth import CredentialStore

logger = logging.getLogger(__name__)


@dataclass
class CredentialStoreAuthStorage:
    """Lets the Supabase client persist its auth state in the secure store.

    Store failures are logged and treated as a missing value so the client
    falls back to an unauthenticated state instead of crashing.
    """

    store: CredentialStore

    def get_item(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except CredentialStoreError:
            logger.exception("Error reading auth storage", extra={"key": key})
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except CredentialStoreError:
            logger.exception("Error writing auth storage", extra={"key": key})

    def remove_item(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CredentialStoreError:
            logger.exception("Error removing auth storage", extra={"key": key})
