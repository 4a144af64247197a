"""
Service layer for runtime settings.

Settings are key/value pairs stored in the ``settings`` table.  Values
are serialised as JSON so objects (popup configuration, maintenance
mode, ...) round-trip unchanged.  A value that is not valid JSON (for
example one written by hand into the database) is returned as the raw
string.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from daily_care_api.app.core.db import get_connection

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for managing application settings."""

    @classmethod
    async def list_settings(cls) -> List[Dict[str, Any]]:
        """Return all settings ordered by key."""
        conn = get_connection()
        try:
            rows = conn.execute("SELECT * FROM settings ORDER BY key ASC").fetchall()
            return [cls._to_dict(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_setting(cls, key: str) -> Optional[Dict[str, Any]]:
        """Retrieve a single setting by key, ``None`` if it does not exist."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM settings WHERE key = ?", (key,)).fetchone()
            return cls._to_dict(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def upsert_setting(cls, key: str, value: Any, description: Optional[str] = None) -> Dict[str, Any]:
        """Insert or update a setting.

        If the key exists its value is replaced, and its description too
        when one is given.  Returns the stored setting.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO settings (key, value, description) VALUES (?, ?, ?)"
                " ON CONFLICT(key) DO UPDATE SET value = excluded.value,"
                " description = COALESCE(excluded.description, settings.description),"
                " updated_at = CURRENT_TIMESTAMP",
                (key, cls._serialize(value), description),
            )
            conn.commit()
            logger.info("Setting %s updated", key)
            row = cursor.execute("SELECT * FROM settings WHERE key = ?", (key,)).fetchone()
            return cls._to_dict(row)
        finally:
            conn.close()

    @classmethod
    async def update_setting(
        cls, key: str, value: Any = None, description: Optional[str] = None
    ) -> Dict[str, Any]:
        """Update an existing setting.  Raises ``ValueError`` if the key is unknown."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE settings SET value = COALESCE(?, value), description = COALESCE(?, description),"
                " updated_at = CURRENT_TIMESTAMP WHERE key = ?",
                (cls._serialize(value) if value is not None else None, description, key),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Setting {key} not found")
            conn.commit()
            logger.info("Setting %s updated", key)
            row = cursor.execute("SELECT * FROM settings WHERE key = ?", (key,)).fetchone()
            return cls._to_dict(row)
        finally:
            conn.close()

    @classmethod
    async def delete_setting(cls, key: str) -> None:
        """Delete a setting by key.  Raises ``ValueError`` if it does not exist."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM settings WHERE key = ?", (key,))
            if cursor.rowcount == 0:
                raise ValueError(f"Setting {key} not found")
            conn.commit()
            logger.info("Setting %s deleted", key)
        finally:
            conn.close()

    @staticmethod
    def _serialize(value: Any) -> str:
        return json.dumps(value)

    @staticmethod
    def _deserialize(raw: str) -> Any:
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return raw

    @classmethod
    def _to_dict(cls, row: sqlite3.Row) -> Dict[str, Any]:
        setting = dict(row)
        setting["value"] = cls._deserialize(setting["value"])
        return setting
