"""
Business logic for the services catalogue.

A service carries a JSON encoded ``zipcodes`` list that the admin panel
edits as a whole or in bulk.  Every zipcode on that list is mirrored
into ``service_availabilities`` as a row without ``location_id`` so the
availability lookup only ever has to query one table.  Rows for
zipcodes that leave the list are retired (``is_active = 0``), never
deleted.

Location based availability rows (``location_id`` set) are managed by
the ``add_availability_*`` methods and are not touched by zipcode list
edits.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Tuple

from daily_care_api.app.core.db import get_connection

from ..schemas.service import ServiceCreate, ServiceUpdate
from .zipcodes import (
    ZipcodeMerge,
    ZipcodeRemoval,
    dedupe,
    load_zipcodes,
    merge_zipcodes,
    normalize,
    normalize_list,
    remove_zipcodes,
)

logger = logging.getLogger(__name__)

# Columns stored as JSON text.
_JSON_COLUMNS = ("services", "getting_started_points", "stats", "zipcodes")

_AVAILABILITY_SELECT = (
    "SELECT sa.id, sa.service_id, sa.location_id, sa.postcode, sa.postcode_search, sa.is_active, "
    "l.name AS location_name, l.county AS county, l.region AS region "
    "FROM service_availabilities sa LEFT JOIN locations l ON l.id = sa.location_id"
)


def _decode_json(value: Any) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Stored JSON column could not be decoded: %r", value)
        return None


def _row_to_service(row: sqlite3.Row) -> Dict[str, Any]:
    service = dict(row)
    for column in ("services", "getting_started_points", "stats"):
        service[column] = _decode_json(service.get(column))
    service["zipcodes"] = load_zipcodes(service.get("zipcodes"))
    service["is_active"] = bool(service["is_active"])
    return service


def _row_to_availability(row: sqlite3.Row) -> Dict[str, Any]:
    availability = dict(row)
    availability["is_active"] = bool(availability["is_active"])
    return availability


def _encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    encoded = dict(fields)
    for column in _JSON_COLUMNS:
        if column in encoded and encoded[column] is not None:
            encoded[column] = json.dumps(encoded[column])
    return encoded


def _fetch_service(cursor: sqlite3.Cursor, service_id: int) -> sqlite3.Row:
    row = cursor.execute("SELECT * FROM services WHERE id = ?", (service_id,)).fetchone()
    if not row:
        raise ValueError(f"Service {service_id} not found")
    return row


def upsert_availability(
    cursor: sqlite3.Cursor,
    service_id: int,
    location_id: Optional[int],
    postcode: str,
) -> Tuple[int, bool]:
    """Make sure an active availability row exists.

    Returns ``(row_id, changed)`` where ``changed`` is False when an
    active row for the same service, location and key already existed.
    Retired rows are reactivated.
    """
    key = normalize(postcode)
    row = cursor.execute(
        "SELECT id, is_active FROM service_availabilities "
        "WHERE service_id = ? AND location_id IS ? AND postcode_search = ?",
        (service_id, location_id, key),
    ).fetchone()
    if row:
        if row["is_active"]:
            return row["id"], False
        cursor.execute(
            "UPDATE service_availabilities SET is_active = 1, postcode = ?, updated_at = CURRENT_TIMESTAMP "
            "WHERE id = ?",
            (postcode, row["id"]),
        )
        return row["id"], True
    cursor.execute(
        "INSERT INTO service_availabilities (service_id, location_id, postcode, postcode_search) "
        "VALUES (?, ?, ?, ?)",
        (service_id, location_id, postcode, key),
    )
    return cursor.lastrowid, True


def sync_zipcode_availability(cursor: sqlite3.Cursor, service_id: int, zipcodes: Iterable[str]) -> None:
    """Align the zipcode derived availability rows of a service with ``zipcodes``."""
    wanted = dedupe(normalize(z) for z in zipcodes if normalize(z))
    for zipcode in wanted:
        upsert_availability(cursor, service_id, None, zipcode)
    if wanted:
        placeholders = ", ".join("?" for _ in wanted)
        cursor.execute(
            "UPDATE service_availabilities SET is_active = 0, updated_at = CURRENT_TIMESTAMP "
            f"WHERE service_id = ? AND location_id IS NULL AND is_active = 1 "
            f"AND postcode_search NOT IN ({placeholders})",
            (service_id, *wanted),
        )
    else:
        cursor.execute(
            "UPDATE service_availabilities SET is_active = 0, updated_at = CURRENT_TIMESTAMP "
            "WHERE service_id = ? AND location_id IS NULL AND is_active = 1",
            (service_id,),
        )


class ServiceCatalogService:
    """CRUD for services and management of their availability."""

    @classmethod
    async def list_services(
        cls,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        search: Optional[str] = None,
        is_active: bool = True,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of services ordered by name and the total count.

        Parameters
        ----------
        page, limit : int
            1-based page number and page size.
        category : Optional[str]
            Exact category filter.
        search : Optional[str]
            Case-insensitive substring matched against name, description
            and category.
        is_active : bool
            List active (default) or soft-deleted services.

        Returns
        -------
        tuple
            ``(services, total)``.
        """
        where = ["is_active = ?"]
        params: List[Any] = [1 if is_active else 0]
        if category:
            where.append("category = ?")
            params.append(category)
        if search:
            where.append("(name LIKE ? OR description LIKE ? OR category LIKE ?)")
            like = f"%{search}%"
            params.extend([like, like, like])
        clause = " AND ".join(where)
        conn = get_connection()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS count FROM services WHERE {clause}", params).fetchone()["count"]
            rows = conn.execute(
                f"SELECT * FROM services WHERE {clause} ORDER BY name ASC, id ASC LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            ).fetchall()
            return [_row_to_service(row) for row in rows], total
        finally:
            conn.close()

    @classmethod
    async def get_service(cls, service_id: int) -> Dict[str, Any]:
        """Return a service by id or raise ``ValueError``."""
        conn = get_connection()
        try:
            return _row_to_service(_fetch_service(conn.cursor(), service_id))
        finally:
            conn.close()

    @classmethod
    async def create_service(cls, data: ServiceCreate) -> Dict[str, Any]:
        """Insert a service and mirror its zipcodes into availability rows."""
        fields = data.model_dump()
        fields["zipcodes"] = fields.get("zipcodes") or []
        encoded = _encode_fields(fields)
        columns = ", ".join(encoded)
        placeholders = ", ".join("?" for _ in encoded)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"INSERT INTO services ({columns}) VALUES ({placeholders})", tuple(encoded.values()))
            service_id = cursor.lastrowid
            sync_zipcode_availability(cursor, service_id, fields["zipcodes"])
            conn.commit()
            logger.info("Created service %s (%s) with %d zipcodes", service_id, data.name, len(fields["zipcodes"]))
            return _row_to_service(_fetch_service(cursor, service_id))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def update_service(cls, service_id: int, data: ServiceUpdate) -> Dict[str, Any]:
        """Update the fields that were sent with a non-null value.

        Sending ``zipcodes`` replaces the whole list and re-syncs the
        availability rows.  Raises ``ValueError`` if the service does not
        exist.
        """
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_service(cursor, service_id)
            if fields:
                encoded = _encode_fields(fields)
                assignments = ", ".join(f"{name} = ?" for name in encoded)
                cursor.execute(
                    f"UPDATE services SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*encoded.values(), service_id),
                )
            if "zipcodes" in fields:
                sync_zipcode_availability(cursor, service_id, fields["zipcodes"])
            conn.commit()
            logger.info("Updated service %s (%s)", service_id, ", ".join(fields) or "no changes")
            return _row_to_service(_fetch_service(cursor, service_id))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_service(cls, service_id: int) -> None:
        """Soft delete a service by clearing its ``is_active`` flag."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_service(cursor, service_id)
            cursor.execute(
                "UPDATE services SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (service_id,),
            )
            conn.commit()
            logger.info("Service %s deactivated", service_id)
        finally:
            conn.close()

    @classmethod
    async def add_zipcodes(cls, service_id: int, raw: Any) -> ZipcodeMerge:
        """Merge a zipcode payload into the service's list."""
        incoming = normalize_list(raw)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = load_zipcodes(_fetch_service(cursor, service_id)["zipcodes"])
            merge = merge_zipcodes(existing, incoming)
            cls._store_zipcodes(cursor, service_id, merge.total)
            conn.commit()
            logger.info(
                "Service %s: %d zipcodes added, %d duplicates", service_id, len(merge.added), len(merge.duplicates)
            )
            return merge
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def remove_zipcodes(cls, service_id: int, raw: Any) -> ZipcodeRemoval:
        """Remove the zipcodes in the payload from the service's list."""
        targets = normalize_list(raw)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = load_zipcodes(_fetch_service(cursor, service_id)["zipcodes"])
            removal = remove_zipcodes(existing, targets)
            cls._store_zipcodes(cursor, service_id, removal.total)
            conn.commit()
            logger.info(
                "Service %s: %d zipcodes removed, %d not found",
                service_id,
                len(removal.removed),
                len(removal.not_found),
            )
            return removal
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _store_zipcodes(cursor: sqlite3.Cursor, service_id: int, zipcodes: List[str]) -> None:
        cursor.execute(
            "UPDATE services SET zipcodes = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (json.dumps(zipcodes), service_id),
        )
        sync_zipcode_availability(cursor, service_id, zipcodes)

    @classmethod
    async def list_availability(cls, service_id: int) -> List[Dict[str, Any]]:
        """Active availability rows of a service with their location details."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_service(cursor, service_id)
            rows = cursor.execute(
                f"{_AVAILABILITY_SELECT} WHERE sa.service_id = ? AND sa.is_active = 1 "
                "ORDER BY l.name IS NULL, l.name ASC, sa.postcode_search ASC",
                (service_id,),
            ).fetchall()
            return [_row_to_availability(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def add_availability_locations(
        cls, service_id: int, location_ids: List[int]
    ) -> Tuple[List[Dict[str, Any]], List[str]]:
        """Make a service available at the main postcode of each location.

        Returns ``(created, skipped)``; ``skipped`` lists the postcodes
        that were already active for the service.  Raises ``ValueError``
        when the service or any location does not exist.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_service(cursor, service_id)
            created_ids, skipped = [], []
            for location_id in dedupe(location_ids):
                location = cursor.execute(
                    "SELECT id, postcode FROM locations WHERE id = ?", (location_id,)
                ).fetchone()
                if not location:
                    raise ValueError(f"Location {location_id} not found")
                row_id, changed = upsert_availability(cursor, service_id, location_id, location["postcode"])
                if changed:
                    created_ids.append(row_id)
                else:
                    skipped.append(normalize(location["postcode"]))
            conn.commit()
            logger.info("Service %s: %d location availabilities added", service_id, len(created_ids))
            return cls._load_availability(cursor, created_ids), skipped
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def add_availability_postcodes(
        cls, service_id: int, postcodes: Any, location_id: Optional[int] = None
    ) -> Tuple[List[Dict[str, Any]], List[str]]:
        """Make a service available at explicit postcodes.

        ``postcodes`` accepts the same shapes as zipcode lists.  When
        ``location_id`` is given the rows are tied to that location;
        otherwise the postcodes are appended to the service's zipcode
        list so later list edits keep them.
        """
        tokens = dedupe(normalize_list(postcodes))
        conn = get_connection()
        try:
            cursor = conn.cursor()
            service = _fetch_service(cursor, service_id)
            if location_id is not None:
                if not cursor.execute("SELECT id FROM locations WHERE id = ?", (location_id,)).fetchone():
                    raise ValueError(f"Location {location_id} not found")
            else:
                merge = merge_zipcodes(load_zipcodes(service["zipcodes"]), tokens)
                if merge.added:
                    cursor.execute(
                        "UPDATE services SET zipcodes = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                        (json.dumps(merge.total), service_id),
                    )
            created_ids, skipped = [], []
            for token in tokens:
                row_id, changed = upsert_availability(cursor, service_id, location_id, token)
                if changed:
                    created_ids.append(row_id)
                else:
                    skipped.append(token)
            conn.commit()
            logger.info("Service %s: %d postcode availabilities added", service_id, len(created_ids))
            return cls._load_availability(cursor, created_ids), skipped
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def remove_availability(cls, availability_id: int) -> None:
        """Retire an availability row.  Raises ``ValueError`` if it does not exist.

        A row without a location mirrors an entry of the service's
        zipcode list, so that entry is dropped from the list as well.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT service_id, location_id, postcode_search FROM service_availabilities WHERE id = ?",
                (availability_id,),
            ).fetchone()
            if not row:
                raise ValueError(f"Availability {availability_id} not found")
            if row["location_id"] is None:
                service = _fetch_service(cursor, row["service_id"])
                removal = remove_zipcodes(load_zipcodes(service["zipcodes"]), [row["postcode_search"]])
                cls._store_zipcodes(cursor, row["service_id"], removal.total)
            cursor.execute(
                "UPDATE service_availabilities SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (availability_id,),
            )
            conn.commit()
            logger.info("Availability %s retired", availability_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _load_availability(cursor: sqlite3.Cursor, ids: List[int]) -> List[Dict[str, Any]]:
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = cursor.execute(
            f"{_AVAILABILITY_SELECT} WHERE sa.id IN ({placeholders}) ORDER BY sa.id", tuple(ids)
        ).fetchall()
        return [_row_to_availability(row) for row in rows]
