"""Encrypted, durable key/value stores for the bearer token and UI preferences."""

import logging
import os
import sqlite3
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from .db import Database
from .exceptions import CredentialStoreError
from .models import THEME_MODES, ThemeMode

logger = logging.getLogger(__name__)

TOKEN_KEY = "sf_token"
THEME_STORAGE_KEY = "sharefare_theme_mode"


def load_or_create_key(key_path: Path, configured_key: str | None = None) -> bytes:
    """
    Return the Fernet key used to encrypt stored values.

    A configured key always wins. Otherwise the key is read from ``key_path``,
    generating it (owner read/write only) on first use.

    Args:
        key_path: Location of the generated key file
        configured_key: Key from settings, if any

    Returns:
        A urlsafe base64-encoded 32-byte key
    """
    if configured_key:
        return configured_key.encode()

    if key_path.exists():
        return key_path.read_bytes().strip()

    key = Fernet.generate_key()
    key_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(key)
    logger.info(f"Generated new storage key at {key_path}")
    return key


class CredentialStore:
    """A single encrypted value under one fixed key.

    Every read goes to the database; nothing is cached in memory, so a
    ``clear()`` is visible to every holder of a store for the same key and
    survives restarts.
    """

    def __init__(self, database: Database, fernet: Fernet, key: str = TOKEN_KEY):
        """Initialize the store for ``key``."""
        self.db = database
        self.fernet = fernet
        self.key = key

    def get(self) -> str | None:
        """Return the stored value, or None if absent or unreadable."""
        try:
            blob = self.db.get_value(self.key)
        except sqlite3.Error as e:
            raise CredentialStoreError(f"Could not read {self.key}: {e}") from e

        if blob is None:
            return None

        try:
            return self.fernet.decrypt(blob).decode("utf-8")
        except InvalidToken:
            logger.warning(f"Stored value for {self.key} could not be decrypted")
            return None

    def set(self, value: str):
        """Overwrite the stored value."""
        blob = self.fernet.encrypt(value.encode("utf-8"))
        try:
            self.db.set_value(self.key, blob)
        except sqlite3.Error as e:
            raise CredentialStoreError(f"Could not write {self.key}: {e}") from e

    def clear(self):
        """Remove the stored value. Clearing an absent value is a no-op."""
        try:
            self.db.delete_value(self.key)
        except sqlite3.Error as e:
            raise CredentialStoreError(f"Could not clear {self.key}: {e}") from e


class PreferenceStore:
    """Theme preference persisted next to the credential, under its own key."""

    DEFAULT_THEME: ThemeMode = "system"

    def __init__(self, database: Database, fernet: Fernet):
        """Initialize the preference store."""
        self._store = CredentialStore(database, fernet, key=THEME_STORAGE_KEY)

    def get_theme(self) -> ThemeMode:
        """Stored theme mode, or ``system`` when unset or unrecognised."""
        stored = self._store.get()
        if stored in THEME_MODES:
            return stored  # type: ignore[return-value]
        if stored is not None:
            logger.warning(f"Ignoring unknown theme mode: {stored!r}")
        return self.DEFAULT_THEME

    def set_theme(self, mode: str):
        """Persist a theme mode."""
        if mode not in THEME_MODES:
            raise ValueError(
                f"Unknown theme mode {mode!r}; expected one of {', '.join(THEME_MODES)}"
            )
        self._store.set(mode)


def open_stores(
    database: Database, key_path: Path, configured_key: str | None = None
) -> tuple[CredentialStore, PreferenceStore]:
    """Build the token store and the preference store sharing one key."""
    fernet = Fernet(load_or_create_key(key_path, configured_key))
    return CredentialStore(database, fernet), PreferenceStore(database, fernet)
