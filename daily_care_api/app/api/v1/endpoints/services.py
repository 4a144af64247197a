"""
Services catalogue endpoints.

Listing and reading services is public (the website uses it); every
write and all availability management require an admin token.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from daily_care_api.app.core.security import ROLE_ADMIN, ROLE_SUPER_ADMIN, require_roles
from daily_care_api.app.schemas.availability import (
    AvailabilityAddResult,
    AvailabilityList,
    AvailabilityLocationsAdd,
    AvailabilityPostcodesAdd,
)
from daily_care_api.app.schemas.common import MessageResponse, Page, page_meta
from daily_care_api.app.schemas.service import (
    ServiceCreate,
    ServiceRead,
    ServiceResponse,
    ServiceUpdate,
    ZipcodesAdded,
    ZipcodesPayload,
    ZipcodesRemoved,
)
from daily_care_api.app.services.service_catalog_service import ServiceCatalogService

router = APIRouter()

admin_required = require_roles(ROLE_SUPER_ADMIN, ROLE_ADMIN)


def _not_found(e: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("", response_model=Page[ServiceRead])
async def list_services(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    is_active: bool = Query(True, alias="isActive"),
) -> Dict[str, Any]:
    """List services ordered by name.

    ``search`` matches name, description and category.  Pass
    ``isActive=false`` to list soft-deleted services.
    """
    services, total = await ServiceCatalogService.list_services(page, limit, category, search, is_active)
    return {
        "message": "Services retrieved successfully",
        "meta": page_meta(total, page, limit),
        "data": services,
    }


# Static paths are registered before "/{service_id}" routes.


@router.post("/add-availability", response_model=AvailabilityAddResult, status_code=status.HTTP_201_CREATED)
async def add_availability_locations(
    payload: AvailabilityLocationsAdd,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    """Make a service available at the main postcode of each given location."""
    try:
        created, skipped = await ServiceCatalogService.add_availability_locations(
            payload.service_id, payload.location_ids
        )
    except ValueError as e:
        raise _not_found(e)
    return {"message": f"{len(created)} availability locations added", "created": created, "skipped": skipped}


@router.post(
    "/add-availability-with-postcodes",
    response_model=AvailabilityAddResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_availability_postcodes(
    payload: AvailabilityPostcodesAdd,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    """Make a service available at explicit postcodes, optionally tied to a location."""
    try:
        created, skipped = await ServiceCatalogService.add_availability_postcodes(
            payload.service_id, payload.postcodes, payload.location_id
        )
    except ValueError as e:
        raise _not_found(e)
    return {"message": f"{len(created)} postcodes added", "created": created, "skipped": skipped}


@router.delete("/availability/{availability_id}", response_model=MessageResponse)
async def remove_availability(
    availability_id: int,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    try:
        await ServiceCatalogService.remove_availability(availability_id)
    except ValueError as e:
        raise _not_found(e)
    return {"message": "Availability removed successfully"}


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int) -> Dict[str, Any]:
    try:
        service = await ServiceCatalogService.get_service(service_id)
    except ValueError as e:
        raise _not_found(e)
    return {"message": "Service retrieved successfully", "data": service}


@router.get("/{service_id}/availability-locations", response_model=AvailabilityList)
async def availability_locations(
    service_id: int,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    """Active availability rows of a service, location rows first."""
    try:
        rows = await ServiceCatalogService.list_availability(service_id)
    except ValueError as e:
        raise _not_found(e)
    return {"message": "Availability locations retrieved successfully", "data": rows}


@router.post("/{service_id}/zipcodes", response_model=ZipcodesAdded)
async def add_zipcodes(
    service_id: int,
    payload: ZipcodesPayload,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    """Add zipcodes to a service.

    Accepts a comma separated string, a list, or a list of JSON encoded
    lists.  Zipcodes already on the service are reported as duplicates.
    """
    try:
        merge = await ServiceCatalogService.add_zipcodes(service_id, payload.zipcodes)
    except ValueError as e:
        raise _not_found(e)
    return {
        "message": f"{len(merge.added)} zipcodes added",
        "added": merge.added,
        "duplicates": merge.duplicates,
        "total": merge.total,
    }


@router.delete("/{service_id}/zipcodes", response_model=ZipcodesRemoved)
async def remove_zipcodes(
    service_id: int,
    payload: ZipcodesPayload,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    try:
        removal = await ServiceCatalogService.remove_zipcodes(service_id, payload.zipcodes)
    except ValueError as e:
        raise _not_found(e)
    return {
        "message": f"{len(removal.removed)} zipcodes removed",
        "removed": removal.removed,
        "not_found": removal.not_found,
        "total": removal.total,
    }


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    service = await ServiceCatalogService.create_service(payload)
    return {
        "message": f"Service created successfully with {len(service['zipcodes'])} zipcodes",
        "data": service,
    }


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    payload: ServiceUpdate,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    try:
        service = await ServiceCatalogService.update_service(service_id, payload)
    except ValueError as e:
        raise _not_found(e)
    return {"message": "Service updated successfully", "data": service}


@router.delete("/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: int,
    current_admin: dict = Depends(admin_required),
) -> Dict[str, Any]:
    """Soft delete: the service is deactivated and drops out of availability checks."""
    try:
        await ServiceCatalogService.delete_service(service_id)
    except ValueError as e:
        raise _not_found(e)
    return {"message": "Service deleted successfully"}
