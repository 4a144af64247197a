"""
GeoNames postal code lookups.

GeoNames needs a registered username with the free web services
enabled.  A 401 from GeoNames, or an error ``status`` object in the
body, is surfaced as ``ExternalServiceError`` with GeoNames' message.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from daily_care_api.app.core.config import settings
from daily_care_api.app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_postal_code(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "postal_code": str(raw.get("postalCode", "")),
        "place_name": raw.get("placeName"),
        "admin_name1": raw.get("adminName1"),
        "admin_code1": raw.get("adminCode1"),
        "admin_name2": raw.get("adminName2"),
        "admin_code2": raw.get("adminCode2"),
        "admin_name3": raw.get("adminName3"),
        "admin_code3": raw.get("adminCode3"),
        "lat": _to_float(raw.get("lat")),
        "lng": _to_float(raw.get("lng")),
        "country_code": raw.get("countryCode"),
    }


def group_by_place(postal_codes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group postal codes by place name and county, first seen order kept."""
    places: Dict[str, Dict[str, Any]] = {}
    for pc in postal_codes:
        key = f"{pc['place_name']}-{pc.get('admin_name2') or ''}"
        place = places.setdefault(
            key,
            {
                "place_name": pc["place_name"] or "",
                "admin_name1": pc.get("admin_name1"),
                "admin_name2": pc.get("admin_name2"),
                "lat": pc.get("lat"),
                "lng": pc.get("lng"),
                "postal_codes": [],
            },
        )
        if pc["postal_code"] not in place["postal_codes"]:
            place["postal_codes"].append(pc["postal_code"])
    return list(places.values())


class GeoNamesService:
    """Async wrappers around the GeoNames postal code API."""

    @classmethod
    async def _get(cls, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not settings.geonames_username:
            raise ExternalServiceError("GEONAMES_USERNAME is not set. Please register at geonames.org")
        params = {**params, "username": settings.geonames_username}
        url = f"{settings.geonames_base_url.rstrip('/')}/{path}"
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.get(url, params=params)
            if response.status_code == 401:
                raise ExternalServiceError(
                    "GeoNames authentication failed. Please enable web services at "
                    "http://www.geonames.org/manageaccount"
                )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("GeoNames request %s failed: %s", path, exc)
            raise ExternalServiceError(f"GeoNames API error: {exc}") from exc
        status = data.get("status")
        if isinstance(status, dict) and status.get("message"):
            logger.error("GeoNames returned an error for %s: %s", path, status["message"])
            raise ExternalServiceError(f"GeoNames API error: {status['message']}")
        return [parse_postal_code(pc) for pc in data.get("postalCodes") or []]

    @classmethod
    async def postal_codes_by_place(
        cls, place_name: str, country_code: str = "GB", max_rows: int = 100
    ) -> List[Dict[str, Any]]:
        return await cls._get(
            "postalCodeSearchJSON",
            {"placename": place_name, "country": country_code, "maxRows": max_rows},
        )

    @classmethod
    async def postal_codes_nearby(
        cls,
        lat: float,
        lng: float,
        radius: float = 10,
        max_rows: int = 100,
        country_code: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Postal codes within ``radius`` kilometres of a point."""
        params: Dict[str, Any] = {"lat": lat, "lng": lng, "radius": radius, "maxRows": max_rows}
        if country_code:
            params["country"] = country_code
        return await cls._get("findNearbyPostalCodesJSON", params)

    @classmethod
    async def search_place(
        cls, place_name: str, country_code: str = "GB", max_rows: int = 100
    ) -> List[Dict[str, Any]]:
        """Postal codes of a place, grouped per place and county."""
        return group_by_place(await cls.postal_codes_by_place(place_name, country_code, max_rows))
