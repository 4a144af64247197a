"""
Public postcode availability check.
"""

from typing import Any, Dict

from fastapi import APIRouter

from daily_care_api.app.schemas.availability import AvailabilityCheck, AvailabilityResponse
from daily_care_api.app.services.availability_service import AvailabilityService

router = APIRouter()


@router.post("/check-availability", response_model=AvailabilityResponse)
async def check_availability(payload: AvailabilityCheck) -> Dict[str, Any]:
    """Return the services available for a postcode.

    The most specific match wins: full postcode, then sector, outward
    code and area.  ``matchLevel`` is ``null`` when nothing matched.
    Empty or too-short postcodes are rejected with 400.
    """
    return await AvailabilityService.check_availability(payload.postcode, payload.service_id)
