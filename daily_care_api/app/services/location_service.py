"""
Business logic for locations.

Locations are UK places (cities, towns, villages, areas) with a main
postcode.  They are soft deleted via ``is_active``.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from daily_care_api.app.core.db import get_connection

from ..schemas.location import LocationCreate, LocationUpdate

logger = logging.getLogger(__name__)


def _row_to_location(row: sqlite3.Row) -> Dict[str, Any]:
    location = dict(row)
    location["is_active"] = bool(location["is_active"])
    return location


def _display_name(location: Dict[str, Any]) -> str:
    if location.get("county"):
        return f"{location['name']}, {location['county']}"
    return location["name"]


class LocationService:
    """CRUD and lookups for locations."""

    @classmethod
    async def list_locations(
        cls,
        page: int = 1,
        limit: int = 20,
        region: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return a page of active locations ordered by region, then name."""
        where = ["is_active = 1"]
        params: List[Any] = []
        if region:
            where.append("region = ?")
            params.append(region)
        if search:
            like = f"%{search}%"
            where.append("(name LIKE ? OR county LIKE ? OR postcode LIKE ?)")
            params.extend([like, like, like])
        clause = " AND ".join(where)
        conn = get_connection()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS count FROM locations WHERE {clause}", params).fetchone()["count"]
            rows = conn.execute(
                f"SELECT * FROM locations WHERE {clause} ORDER BY region ASC, name ASC LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            ).fetchall()
            return [_row_to_location(row) for row in rows], total
        finally:
            conn.close()

    @classmethod
    async def search(cls, query: str, region: str = "england", limit: int = 10) -> List[Dict[str, Any]]:
        """Search active locations of a region by name, county or postcode.

        Queries shorter than two characters return an empty list.
        """
        if not query or len(query) < 2:
            return []
        like = f"%{query}%"
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM locations WHERE region = ? AND is_active = 1 "
                "AND (name LIKE ? OR county LIKE ? OR postcode LIKE ?) ORDER BY name ASC LIMIT ?",
                (region, like, like, like, limit),
            ).fetchall()
        finally:
            conn.close()
        results = []
        for row in rows:
            location = _row_to_location(row)
            results.append(
                {
                    "id": location["id"],
                    "name": location["name"],
                    "type": location["type"],
                    "county": location["county"],
                    "region": location["region"],
                    "postcode": location["postcode"],
                    "display_name": _display_name(location),
                }
            )
        return results

    @classmethod
    async def get_location(cls, location_id: int) -> Dict[str, Any]:
        """Return a location by id or raise ``ValueError``."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
            if not row:
                raise ValueError(f"Location {location_id} not found")
            return _row_to_location(row)
        finally:
            conn.close()

    @classmethod
    async def related_postcodes(cls, location_id: int) -> Tuple[Dict[str, Any], List[str]]:
        """Postcodes of active locations sharing the name or county of a location.

        Only locations of the same region are considered.  Returns the
        location and the distinct sorted postcodes.
        """
        location = await cls.get_location(location_id)
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT DISTINCT postcode FROM locations "
                "WHERE (name = ? OR county = ?) AND region = ? AND is_active = 1 ORDER BY postcode",
                (location["name"], location["county"], location["region"]),
            ).fetchall()
            return location, [row["postcode"] for row in rows]
        finally:
            conn.close()

    @classmethod
    async def create_location(cls, data: LocationCreate) -> Dict[str, Any]:
        fields = data.model_dump()
        columns = ", ".join(fields)
        placeholders = ", ".join("?" for _ in fields)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"INSERT INTO locations ({columns}) VALUES ({placeholders})", tuple(fields.values()))
            location_id = cursor.lastrowid
            conn.commit()
            logger.info("Created location %s (%s)", location_id, data.name)
            row = cursor.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
            return _row_to_location(row)
        finally:
            conn.close()

    @classmethod
    async def update_location(cls, location_id: int, data: LocationUpdate) -> Dict[str, Any]:
        """Update the non-null fields of a location.  Raises ``ValueError`` if missing."""
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM locations WHERE id = ?", (location_id,)).fetchone():
                raise ValueError(f"Location {location_id} not found")
            if fields:
                assignments = ", ".join(f"{name} = ?" for name in fields)
                cursor.execute(
                    f"UPDATE locations SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*fields.values(), location_id),
                )
                conn.commit()
                logger.info("Updated location %s", location_id)
            row = cursor.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
            return _row_to_location(row)
        finally:
            conn.close()

    @classmethod
    async def delete_location(cls, location_id: int) -> None:
        """Soft delete a location."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE locations SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (location_id,),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Location {location_id} not found")
            conn.commit()
            logger.info("Location %s deactivated", location_id)
        finally:
            conn.close()

    @classmethod
    async def count_locations(cls) -> int:
        conn = get_connection()
        try:
            return conn.execute("SELECT COUNT(*) AS count FROM locations").fetchone()["count"]
        finally:
            conn.close()
