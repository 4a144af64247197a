"""
Business logic for contact form submissions.

Contacts are created by the public form with status ``view`` and then
followed up by admins.  Deleting a contact only sets ``deleted_at``;
deleted contacts are invisible to every query in this module.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Tuple

from daily_care_api.app.core.db import get_connection

from ..schemas.contact import ContactCreate, ContactUpdate

logger = logging.getLogger(__name__)

_NOT_DELETED = "deleted_at IS NULL"


def _row_to_contact(row: sqlite3.Row) -> Dict[str, Any]:
    contact = dict(row)
    contact.pop("deleted_at", None)
    return contact


class ContactService:
    """Storage of contact form submissions."""

    @classmethod
    async def create_contact(cls, data: ContactCreate) -> Dict[str, Any]:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO contacts (name, email, phone, service_type, message, status) "
                "VALUES (?, ?, ?, ?, ?, 'view')",
                (data.name, data.email, data.phone or None, data.service_type, data.message),
            )
            contact_id = cursor.lastrowid
            conn.commit()
            logger.info("Stored contact %s from %s", contact_id, data.email)
            row = cursor.execute("SELECT * FROM contacts WHERE id = ?", (contact_id,)).fetchone()
            return _row_to_contact(row)
        finally:
            conn.close()

    @classmethod
    async def list_contacts(cls, page: int = 1, per_page: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        """Newest first, paginated."""
        conn = get_connection()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS count FROM contacts WHERE {_NOT_DELETED}").fetchone()["count"]
            rows = conn.execute(
                f"SELECT * FROM contacts WHERE {_NOT_DELETED} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (per_page, (page - 1) * per_page),
            ).fetchall()
            return [_row_to_contact(row) for row in rows], total
        finally:
            conn.close()

    @classmethod
    async def all_contacts(cls) -> List[Dict[str, Any]]:
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT * FROM contacts WHERE {_NOT_DELETED} ORDER BY created_at DESC, id DESC"
            ).fetchall()
            return [_row_to_contact(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def count_contacts(cls) -> int:
        conn = get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) AS count FROM contacts WHERE {_NOT_DELETED}").fetchone()["count"]
        finally:
            conn.close()

    @classmethod
    async def get_contact(cls, contact_id: int) -> Dict[str, Any]:
        """Return a contact or raise ``ValueError`` (also for deleted contacts)."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT * FROM contacts WHERE id = ? AND {_NOT_DELETED}", (contact_id,)
            ).fetchone()
            if not row:
                raise ValueError(f"Contact with id {contact_id} not found")
            return _row_to_contact(row)
        finally:
            conn.close()

    @classmethod
    async def update_contact(cls, contact_id: int, data: ContactUpdate) -> Dict[str, Any]:
        """Apply an admin follow-up.

        ``comment`` and the follow-up date/time are replaced as a whole:
        omitting them clears the stored values.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE contacts SET status = ?, comment = ?, follow_up_date = ?, follow_up_time = ?, "
                f"updated_at = CURRENT_TIMESTAMP WHERE id = ? AND {_NOT_DELETED}",
                (data.status, data.comment, data.follow_up_date or None, data.follow_up_time or None, contact_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Contact with id {contact_id} not found")
            conn.commit()
            logger.info("Contact %s moved to status %r", contact_id, data.status)
            row = cursor.execute("SELECT * FROM contacts WHERE id = ?", (contact_id,)).fetchone()
            return _row_to_contact(row)
        finally:
            conn.close()

    @classmethod
    async def delete_contact(cls, contact_id: int) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE contacts SET deleted_at = CURRENT_TIMESTAMP WHERE id = ? AND {_NOT_DELETED}",
                (contact_id,),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Contact with id {contact_id} not found")
            conn.commit()
            logger.info("Contact %s deleted", contact_id)
        finally:
            conn.close()
