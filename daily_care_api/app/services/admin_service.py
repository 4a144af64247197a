"""
Business logic for admin accounts.

Admins are stored in the ``admins`` table with a PBKDF2 password hash.
The first account ever registered becomes ``super_admin``; later
accounts default to ``admin``.  Authorisation for registering further
accounts is enforced by the API layer.
"""

import logging
import sqlite3
from typing import Any, Dict, Optional

from daily_care_api.app.core.db import get_connection
from daily_care_api.app.core.security import (
    ROLE_ADMIN,
    ROLE_SUPER_ADMIN,
    hash_password,
    verify_password,
)

from ..schemas.admin import AdminRegister, ProfileUpdate

logger = logging.getLogger(__name__)

_ADMIN_COLUMNS = "id, full_name, email, role, is_active, created_at, updated_at"


def _row_to_admin(row: sqlite3.Row) -> Dict[str, Any]:
    admin = dict(row)
    admin.pop("password", None)
    admin["is_active"] = bool(admin["is_active"])
    return admin


class AdminService:
    """Operations on admin accounts."""

    @classmethod
    async def count_admins(cls) -> int:
        conn = get_connection()
        try:
            row = conn.execute("SELECT COUNT(*) AS count FROM admins").fetchone()
            return row["count"]
        finally:
            conn.close()

    @classmethod
    async def get_admin(cls, admin_id: int) -> Dict[str, Any]:
        """Return an admin by id or raise ``ValueError``."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE id = ?", (admin_id,)
            ).fetchone()
            if not row:
                raise ValueError(f"Admin {admin_id} not found")
            return _row_to_admin(row)
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Check credentials.

        Returns the admin record when the e-mail exists, the password
        matches and the account is active; ``None`` otherwise.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_ADMIN_COLUMNS}, password FROM admins WHERE email = ?",
                (email.lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            logger.info("Login attempt for unknown admin %s", email)
            return None
        if not verify_password(password, row["password"]):
            logger.info("Wrong password for admin %s", email)
            return None
        if not row["is_active"]:
            logger.info("Login attempt for deactivated admin %s", email)
            return None
        return _row_to_admin(row)

    @classmethod
    async def create_admin(cls, data: AdminRegister) -> Dict[str, Any]:
        """Register a new admin.

        The first admin becomes ``super_admin`` regardless of the
        requested role.  Raises ``ValueError`` if the e-mail is taken.
        """
        email = data.email.lower()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if cursor.execute("SELECT id FROM admins WHERE email = ?", (email,)).fetchone():
                raise ValueError("An admin with this email already exists")
            is_first = cursor.execute("SELECT COUNT(*) AS count FROM admins").fetchone()["count"] == 0
            role = ROLE_SUPER_ADMIN if is_first else (data.role or ROLE_ADMIN)
            cursor.execute(
                "INSERT INTO admins (full_name, email, password, role) VALUES (?, ?, ?, ?)",
                (data.full_name, email, hash_password(data.password), role),
            )
            admin_id = cursor.lastrowid
            conn.commit()
            logger.info("Registered admin %s with role %s", email, role)
            row = cursor.execute(f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE id = ?", (admin_id,)).fetchone()
            return _row_to_admin(row)
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ValueError("An admin with this email already exists") from exc
        finally:
            conn.close()

    @classmethod
    async def update_profile(cls, admin_id: int, data: ProfileUpdate) -> Dict[str, Any]:
        """Update name and/or e-mail of an admin.

        Raises ``ValueError`` when the admin does not exist or the new
        e-mail belongs to another account.
        """
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in fields:
            fields["email"] = fields["email"].lower()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM admins WHERE id = ?", (admin_id,)).fetchone():
                raise ValueError(f"Admin {admin_id} not found")
            if "email" in fields:
                taken = cursor.execute(
                    "SELECT id FROM admins WHERE email = ? AND id != ?", (fields["email"], admin_id)
                ).fetchone()
                if taken:
                    raise ValueError("Email is already in use")
            if fields:
                assignments = ", ".join(f"{name} = ?" for name in fields)
                cursor.execute(
                    f"UPDATE admins SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), admin_id),
                )
                conn.commit()
                logger.info("Updated profile of admin %s", admin_id)
            row = cursor.execute(f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE id = ?", (admin_id,)).fetchone()
            return _row_to_admin(row)
        finally:
            conn.close()

    @classmethod
    async def change_password(cls, admin_id: int, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one.

        Raises ``ValueError`` if the current password is wrong.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT password FROM admins WHERE id = ?", (admin_id,)).fetchone()
            if not row:
                raise ValueError(f"Admin {admin_id} not found")
            if not verify_password(current_password, row["password"]):
                raise ValueError("Current password is incorrect")
            cursor.execute(
                "UPDATE admins SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hash_password(new_password), admin_id),
            )
            conn.commit()
            logger.info("Password changed for admin %s", admin_id)
        finally:
            conn.close()

    @classmethod
    async def reset_password(cls, email: str, new_password: str) -> None:
        """Set a new password without checking the old one (used by scripts)."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE admins SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
                (hash_password(new_password), email.lower()),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Admin {email} not found")
            conn.commit()
            logger.info("Password reset for admin %s", email)
        finally:
            conn.close()

    @classmethod
    async def get_by_email(cls, email: str) -> Dict[str, Any]:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_ADMIN_COLUMNS} FROM admins WHERE email = ?", (email.lower(),)
            ).fetchone()
            if not row:
                raise ValueError(f"Admin {email} not found")
            return _row_to_admin(row)
        finally:
            conn.close()
