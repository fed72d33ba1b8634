"""SQLite storage for the ShareFare client's local state."""

import sqlite3
from datetime import datetime
from pathlib import Path


class Database:
    """SQLite database manager.

    Holds a single key/value table. Values are opaque to this layer; the
    stores in ``store.py`` encrypt them before they get here.
    """

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS secure_values (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    # ========================================================================
    # Key/value operations
    # ========================================================================

    def get_value(self, key: str) -> bytes | None:
        """Get a stored value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM secure_values WHERE key = ?", (key,))
        row = cursor.fetchone()
        return bytes(row["value"]) if row else None

    def set_value(self, key: str, value: bytes):
        """Insert or overwrite a value in a single transaction."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO secure_values (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )

    def delete_value(self, key: str):
        """Delete a value. Deleting a missing key is a no-op."""
        with self.conn:
            self.conn.execute("DELETE FROM secure_values WHERE key = ?", (key,))
