"""Tests for the encrypted credential and preference stores."""

import sqlite3
from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet

from sharefare.db import Database
from sharefare.exceptions import CredentialStoreError
from sharefare.store import (
    TOKEN_KEY,
    CredentialStore,
    PreferenceStore,
    load_or_create_key,
    open_stores,
)


class TestCredentialStore:
    """Tests for CredentialStore get/set/clear."""

    def test_get_returns_none_when_empty(self, credentials):
        """Should report absence before anything is stored."""
        assert credentials.get() is None

    def test_set_then_get(self, credentials):
        """Should return the stored token."""
        credentials.set("abc123")
        assert credentials.get() == "abc123"

    def test_set_overwrites(self, credentials):
        """Should keep only the last value."""
        credentials.set("first")
        credentials.set("second")
        assert credentials.get() == "second"

    def test_clear_after_multiple_sets(self, credentials):
        """Should be absent after clear no matter how many sets came before."""
        for i in range(5):
            credentials.set(f"token-{i}")
        credentials.clear()
        assert credentials.get() is None

    def test_clear_is_noop_when_absent(self, credentials):
        """Should not fail when clearing an empty store."""
        credentials.clear()
        credentials.clear()
        assert credentials.get() is None

    def test_value_is_encrypted_at_rest(self, credentials, db):
        """Should never write the plaintext token to the database."""
        credentials.set("super-secret-token")
        raw = db.get_value(TOKEN_KEY)
        assert raw is not None
        assert b"super-secret-token" not in raw

    def test_survives_reopen(self, settings, fernet):
        """Should persist across a new database connection."""
        first = Database(settings.database_path)
        CredentialStore(first, fernet).set("persisted")
        first.close()

        second = Database(settings.database_path)
        try:
            assert CredentialStore(second, fernet).get() == "persisted"
        finally:
            second.close()

    def test_clear_survives_reopen(self, settings, fernet):
        """Should stay absent after a restart once cleared."""
        first = Database(settings.database_path)
        store = CredentialStore(first, fernet)
        store.set("gone-soon")
        store.clear()
        first.close()

        second = Database(settings.database_path)
        try:
            assert CredentialStore(second, fernet).get() is None
        finally:
            second.close()

    def test_unreadable_value_reads_as_absent(self, credentials, db):
        """Should treat a value encrypted with another key as absent."""
        other = Fernet(Fernet.generate_key())
        db.set_value(TOKEN_KEY, other.encrypt(b"foreign"))
        assert credentials.get() is None

    def test_write_failure_is_wrapped(self, credentials, db):
        """Should raise CredentialStoreError when SQLite fails."""
        with patch.object(db, "set_value", side_effect=sqlite3.OperationalError("disk")):
            with pytest.raises(CredentialStoreError):
                credentials.set("x")


class TestPreferenceStore:
    """Tests for the theme preference."""

    def test_defaults_to_system(self, preferences):
        """Should fall back to system when unset."""
        assert preferences.get_theme() == "system"

    @pytest.mark.parametrize("mode", ["light", "dark", "system"])
    def test_round_trips_known_modes(self, preferences, mode):
        """Should store each supported mode."""
        preferences.set_theme(mode)
        assert preferences.get_theme() == mode

    def test_rejects_unknown_mode(self, preferences):
        """Should refuse anything outside light/dark/system."""
        with pytest.raises(ValueError):
            preferences.set_theme("sepia")
        assert preferences.get_theme() == "system"

    def test_independent_of_credential(self, credentials, preferences):
        """Should not disturb the token and vice versa."""
        credentials.set("token")
        preferences.set_theme("dark")
        credentials.clear()
        assert preferences.get_theme() == "dark"

    def test_failed_theme_write_leaves_token_intact(self, credentials, preferences, db):
        """Should keep the token when the theme write fails."""
        credentials.set("token")
        with patch.object(db, "set_value", side_effect=sqlite3.OperationalError("full")):
            with pytest.raises(CredentialStoreError):
                preferences.set_theme("dark")
        assert credentials.get() == "token"


class TestLoadOrCreateKey:
    """Tests for storage key handling."""

    def test_configured_key_wins(self, tmp_path):
        """Should use the configured key without touching disk."""
        key = Fernet.generate_key().decode()
        assert load_or_create_key(tmp_path / "secret.key", key) == key.encode()
        assert not (tmp_path / "secret.key").exists()

    def test_generates_key_once(self, tmp_path):
        """Should create the key file and reuse it afterwards."""
        path = tmp_path / "keys" / "secret.key"
        first = load_or_create_key(path)
        second = load_or_create_key(path)
        assert first == second
        assert path.stat().st_mode & 0o777 == 0o600

    def test_open_stores_share_database(self, tmp_path):
        """Should build both stores over the same database."""
        db = Database(tmp_path / "db.sqlite")
        try:
            creds, prefs = open_stores(db, tmp_path / "secret.key")
            creds.set("t")
            prefs.set_theme("light")
            assert creds.get() == "t"
            assert prefs.get_theme() == "light"
        finally:
            db.close()
