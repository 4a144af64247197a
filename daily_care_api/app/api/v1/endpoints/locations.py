"""
Location endpoints (admin only).

Besides CRUD over the local ``locations`` table these routes proxy
Geoapify and GeoNames for the admin panel's place and postcode pickers.
Upstream failures surface as 502 through ``ExternalServiceError``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from daily_care_api.app.core.security import ROLE_ADMIN, ROLE_SUPER_ADMIN, require_roles
from daily_care_api.app.schemas.common import MessageResponse, Page, page_meta
from daily_care_api.app.schemas.location import (
    GeoSuggestion,
    LocationCreate,
    LocationRead,
    LocationResponse,
    LocationUpdate,
    LocationSearchItem,
    PlacePostalCodes,
    PostalCode,
    PostcodeItem,
)
from daily_care_api.app.services.geoapify_service import GeoapifyService
from daily_care_api.app.services.geonames_service import GeoNamesService
from daily_care_api.app.services.location_service import LocationService

router = APIRouter(dependencies=[Depends(require_roles(ROLE_SUPER_ADMIN, ROLE_ADMIN))])


def _validated(model, rows):
    return [model.model_validate(row).model_dump(by_alias=True) for row in rows]


@router.get("/autocomplete")
async def autocomplete(
    q: str = Query(""),
    limit: int = Query(10, ge=1, le=50),
    country_code: Optional[str] = Query(None, alias="countryCode"),
    filter: Optional[str] = None,
    bias: Optional[str] = None,
    lang: str = "en",
) -> Dict[str, Any]:
    """Place suggestions from Geoapify."""
    if len(q.strip()) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query must be at least 2 characters")
    suggestions = await GeoapifyService.autocomplete(
        q.strip(), limit=limit, country_code=country_code, filter=filter, bias=bias, lang=lang
    )
    return {"message": "Suggestions retrieved", "data": _validated(GeoSuggestion, suggestions)}


@router.get("/postcodes")
async def postcodes_near(
    lat: float,
    lng: float,
    radius: int = Query(5000, ge=1),
    limit: int = Query(50, ge=1, le=500),
    country_code: str = Query("gb", alias="countryCode"),
) -> Dict[str, Any]:
    """Postcodes around a point, via Geoapify."""
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Valid latitude and longitude are required"
        )
    postcodes = await GeoapifyService.postcodes_near(lat, lng, radius=radius, limit=limit, country_code=country_code)
    return {
        "message": "Postcodes retrieved successfully",
        "data": _validated(PostcodeItem, [{"postcode": p, "display_name": p} for p in postcodes]),
        "meta": {"lat": lat, "lng": lng, "radius": radius, "count": len(postcodes), "source": "geoapify"},
    }


@router.get("/search")
async def search_locations(
    q: str = Query(""),
    region: str = "england",
    limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    """Search local locations; queries under two characters return nothing."""
    if len(q) < 2:
        return {"message": "Query must be at least 2 characters long", "data": []}
    results = await LocationService.search(q, region=region, limit=limit)
    return {"message": "Locations found", "data": _validated(LocationSearchItem, results)}


@router.get("/geonames/search")
async def geonames_search(
    place: str,
    country: str = "GB",
    max_rows: int = Query(100, ge=1, le=1000, alias="maxRows"),
) -> Dict[str, Any]:
    """Postal codes of a place name, grouped per place and county."""
    places = await GeoNamesService.search_place(place, country_code=country, max_rows=max_rows)
    return {"message": "Postal codes retrieved", "data": _validated(PlacePostalCodes, places)}


@router.get("/geonames/nearby")
async def geonames_nearby(
    lat: float,
    lng: float,
    radius: float = Query(10, gt=0),
    max_rows: int = Query(100, ge=1, le=1000, alias="maxRows"),
    country: Optional[str] = None,
) -> Dict[str, Any]:
    """Postal codes within ``radius`` kilometres of a point."""
    codes = await GeoNamesService.postal_codes_nearby(lat, lng, radius=radius, max_rows=max_rows, country_code=country)
    return {"message": "Postal codes retrieved", "data": _validated(PostalCode, codes)}


@router.get("", response_model=Page[LocationRead])
async def list_locations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    region: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    locations, total = await LocationService.list_locations(page, limit, region, search)
    return {"message": "Locations retrieved successfully", "meta": page_meta(total, page, limit), "data": locations}


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(payload: LocationCreate) -> Dict[str, Any]:
    location = await LocationService.create_location(payload)
    return {"message": "Location created successfully", "data": location}


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(location_id: int) -> Dict[str, Any]:
    try:
        location = await LocationService.get_location(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Location retrieved successfully", "data": location}


@router.get("/{location_id}/postcodes")
async def location_postcodes(location_id: int) -> Dict[str, Any]:
    """Postcodes of locations sharing this location's name or county."""
    try:
        location, postcodes = await LocationService.related_postcodes(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {
        "message": "Postcodes found",
        "location": {
            "id": location["id"],
            "name": location["name"],
            "county": location["county"],
            "region": location["region"],
        },
        "data": _validated(PostcodeItem, [{"postcode": p, "display_name": p} for p in postcodes]),
    }


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(location_id: int, payload: LocationUpdate) -> Dict[str, Any]:
    try:
        location = await LocationService.update_location(location_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Location updated successfully", "data": location}


@router.delete("/{location_id}", response_model=MessageResponse)
async def delete_location(location_id: int) -> Dict[str, Any]:
    try:
        await LocationService.delete_location(location_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Location deleted successfully"}
