"""
Service availability lookup by postcode.

``AvailabilityMatcher`` answers "which services cover this postcode?".
The postcode is normalised, cut into tokens and the stored
availability keys are queried from the most specific token to the
broadest one::

    full     SW1A1AA   exact match
    sector   SW1A1     prefix match
    outward  SW1A      prefix match
    area     SW        prefix match

The first tier that returns at least one row wins.  Only active
availability rows of active services (and, for rows tied to a
location, of active locations) are considered.  A postcode that
matches nothing is a normal outcome (``tier is None``), not an error.

The matcher does not talk to the database itself: it receives an
object implementing ``AvailabilityStore``.  ``SQLiteAvailabilityStore``
is the implementation used by the API; tests use in-memory stores.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from daily_care_api.app.core.config import settings
from daily_care_api.app.core.db import get_connection
from daily_care_api.app.core.exceptions import InvalidInput, StorageUnavailable
from daily_care_api.app.services.zipcodes import TIERS, derive_tokens, is_uk_postcode, normalize

logger = logging.getLogger(__name__)


class AvailabilityStore(Protocol):
    """Read access to availability records.

    Both methods return rows as dictionaries with at least
    ``service_id`` and ``name`` keys, ordered by service name.
    """

    def find_exact(self, key: str, service_id: Optional[int] = None) -> List[Dict[str, Any]]:
        ...

    def find_prefix(self, prefix: str, service_id: Optional[int] = None) -> List[Dict[str, Any]]:
        ...


@dataclass
class MatchResult:
    """Outcome of an availability lookup."""

    zipcode: str
    tier: Optional[str] = None
    services: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.tier is not None


def _dedupe_services(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    services = []
    for row in rows:
        if row["service_id"] in seen:
            continue
        seen.add(row["service_id"])
        services.append(row)
    return services


class AvailabilityMatcher:
    """Cascading postcode matcher over an ``AvailabilityStore``."""

    def __init__(self, store: AvailabilityStore, strict_uk: bool = False) -> None:
        self.store = store
        self.strict_uk = strict_uk

    def match(self, raw_zipcode: Any, service_id: Optional[int] = None) -> MatchResult:
        """Find the services available for ``raw_zipcode``.

        Raises ``InvalidInput`` when the postcode normalises to fewer
        than two characters (or, in strict mode, is not UK shaped).
        Storage failures propagate as ``StorageUnavailable``.
        """
        normalized = normalize(raw_zipcode)
        if not normalized:
            raise InvalidInput("Zipcode is required")
        tokens = derive_tokens(normalized)
        if not tokens:
            raise InvalidInput("Zipcode is too short")
        if self.strict_uk and not is_uk_postcode(normalized):
            raise InvalidInput("Zipcode is not a valid UK postcode")

        for tier in TIERS:
            token = tokens.get(tier)
            if token is None:
                continue
            if tier == "full":
                rows = self.store.find_exact(token, service_id)
            else:
                rows = self.store.find_prefix(token, service_id)
            if rows:
                logger.debug("Zipcode %s matched at %s tier (%s)", normalized, tier, token)
                return MatchResult(zipcode=normalized, tier=tier, services=_dedupe_services(rows))
        return MatchResult(zipcode=normalized)


class SQLiteAvailabilityStore:
    """``AvailabilityStore`` backed by the ``service_availabilities`` table."""

    _BASE_QUERY = (
        "SELECT sa.service_id AS service_id, s.name AS name, s.description AS description, s.slug AS slug "
        "FROM service_availabilities sa JOIN services s ON s.id = sa.service_id "
        "LEFT JOIN locations l ON l.id = sa.location_id "
        "WHERE sa.is_active = 1 AND s.is_active = 1 AND (sa.location_id IS NULL OR l.is_active = 1) "
        "AND {condition}"
    )

    def find_exact(self, key: str, service_id: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._query("sa.postcode_search = ?", key, service_id)

    def find_prefix(self, prefix: str, service_id: Optional[int] = None) -> List[Dict[str, Any]]:
        # Keys are alphanumeric, so the prefix never contains LIKE wildcards.
        return self._query("sa.postcode_search LIKE ?", prefix + "%", service_id)

    def _query(self, condition: str, value: str, service_id: Optional[int]) -> List[Dict[str, Any]]:
        sql = self._BASE_QUERY.format(condition=condition)
        params: list = [value]
        if service_id is not None:
            sql += " AND sa.service_id = ?"
            params.append(service_id)
        sql += " ORDER BY s.name ASC, sa.id ASC"
        conn = get_connection()
        try:
            rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            logger.error("Availability query failed: %s", exc)
            raise StorageUnavailable("Availability lookup failed") from exc
        finally:
            conn.close()
        return [dict(row) for row in rows]


class AvailabilityService:
    """API facing wrapper around ``AvailabilityMatcher``."""

    @classmethod
    def matcher(cls) -> AvailabilityMatcher:
        return AvailabilityMatcher(SQLiteAvailabilityStore(), strict_uk=settings.strict_uk_postcodes)

    @classmethod
    async def check_availability(cls, postcode: Any, service_id: Optional[int] = None) -> Dict[str, Any]:
        """Run the cascade and shape the public response body."""
        logger.info("Checking availability for zipcode %r (service %s)", postcode, service_id)
        result = cls.matcher().match(postcode, service_id)
        if result.available:
            message = "Services available for this zipcode"
        else:
            message = "No services available for this zipcode"
        return {
            "message": message,
            "available": result.available,
            "zipcode": result.zipcode,
            "match_level": result.tier,
            "data": [
                {
                    "service_id": row["service_id"],
                    "name": row["name"],
                    "description": row.get("description"),
                    "slug": row.get("slug"),
                }
                for row in result.services
            ],
        }
