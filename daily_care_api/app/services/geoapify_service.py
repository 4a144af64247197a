"""
Geoapify client used by the admin panel's location pickers.

Only three Geoapify endpoints are used: autocomplete (place
suggestions), reverse geocoding and postcode search around a point.
Responses are requested as GeoJSON and reduced to flat dictionaries.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from daily_care_api.app.core.config import settings
from daily_care_api.app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def _extract_name(formatted: Optional[str]) -> str:
    if not formatted:
        return ""
    return formatted.split(",")[0].strip() or formatted


def feature_to_suggestion(feature: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a GeoJSON feature into a suggestion dictionary."""
    props = (feature or {}).get("properties") or {}
    return {
        "id": props.get("place_id"),
        "name": props.get("name") or _extract_name(props.get("formatted")),
        "address": props.get("formatted"),
        "city": props.get("city"),
        "state": props.get("state"),
        "zip_code": props.get("postcode"),
        "country": props.get("country"),
        "lat": props.get("lat"),
        "lng": props.get("lon"),
        "place_type": props.get("place_type"),
        "category": props.get("category"),
    }


class GeoapifyService:
    """Async wrappers around the Geoapify geocoding API."""

    @classmethod
    def _api_key(cls) -> str:
        if not settings.geoapify_api_key:
            raise ExternalServiceError("GEOAPIFY_API_KEY is not set")
        return settings.geoapify_api_key

    @classmethod
    async def _get(cls, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {**params, "apiKey": cls._api_key(), "format": "geojson"}
        url = f"{settings.geoapify_base_url.rstrip('/')}/{path}"
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    @classmethod
    async def autocomplete(
        cls,
        text: str,
        limit: int = 10,
        country_code: Optional[str] = None,
        filter: Optional[str] = None,
        bias: Optional[str] = None,
        lang: str = "en",
    ) -> List[Dict[str, Any]]:
        """Return place suggestions for ``text``.

        Raises ``ExternalServiceError`` when Geoapify is not configured
        or the request fails.
        """
        params: Dict[str, Any] = {"text": text, "limit": limit, "lang": lang}
        filters = []
        if country_code:
            filters.append(f"countrycode:{country_code}")
        if filter:
            filters.append(filter)
        if filters:
            params["filter"] = ",".join(filters)
        if bias:
            params["bias"] = bias
        try:
            data = await cls._get("geocode/autocomplete", params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Geoapify autocomplete failed for %r: %s", text, exc)
            raise ExternalServiceError("Geoapify request failed") from exc
        return [feature_to_suggestion(f) for f in data.get("features") or []]

    @classmethod
    async def reverse_geocode(cls, lat: float, lng: float) -> Optional[Dict[str, Any]]:
        """Return the suggestion closest to a point, ``None`` if nothing or on failure."""
        cls._api_key()
        try:
            data = await cls._get("geocode/reverse", {"lat": lat, "lon": lng, "limit": 1})
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Geoapify reverse geocoding failed for %s,%s: %s", lat, lng, exc)
            return None
        features = data.get("features") or []
        return feature_to_suggestion(features[0]) if features else None

    @classmethod
    async def postcodes_near(
        cls,
        lat: float,
        lng: float,
        radius: int = 5000,
        limit: int = 50,
        country_code: str = "gb",
    ) -> List[str]:
        """Unique sorted postcodes within ``radius`` metres of a point.

        The point is reverse geocoded first because Geoapify's search
        requires a text; the city (or state, or country) name is used.
        If the search itself fails the postcode of the reverse geocoded
        place is returned instead.
        """
        location = await cls.reverse_geocode(lat, lng)
        if not location:
            return []
        search_text = location.get("city") or location.get("state") or location.get("country") or "postcode"
        filters = [f"circle:{lng},{lat},{radius}"]
        if country_code:
            filters.append(f"countrycode:{country_code}")
        params = {"text": search_text, "type": "postcode", "limit": limit, "filter": ",".join(filters)}
        try:
            data = await cls._get("geocode/search", params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Geoapify postcode search failed near %s,%s: %s", lat, lng, exc)
            return [location["zip_code"]] if location.get("zip_code") else []
        postcodes = {
            (feature.get("properties") or {}).get("postcode")
            for feature in data.get("features") or []
        }
        return sorted(p for p in postcodes if p)
