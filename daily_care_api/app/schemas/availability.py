"""
Schemas for the public availability check and the admin endpoints
that attach locations or postcodes to a service.
"""

from typing import Any, List, Optional, Union

from pydantic import Field, field_validator

from .common import CamelModel


class AvailabilityCheck(CamelModel):
    postcode: Optional[str] = Field(None, examples=["SW1A 1AA"])
    service_id: Optional[int] = None

    @field_validator("postcode", mode="before")
    @classmethod
    def _stringify_postcode(cls, value: Any) -> Any:
        # Numeric postcodes are accepted and matched as text.
        if value is None or isinstance(value, str):
            return value
        return str(value)


class AvailableService(CamelModel):
    service_id: int
    name: str
    description: Optional[str] = None
    slug: Optional[str] = None


class AvailabilityResponse(CamelModel):
    message: str
    available: bool
    zipcode: str
    match_level: Optional[str] = None
    data: List[AvailableService]


class AvailabilityLocationsAdd(CamelModel):
    """Attach the main postcode of each location to a service."""

    service_id: int
    location_ids: List[int] = Field(..., min_length=1)


class AvailabilityPostcodesAdd(CamelModel):
    """Attach explicit postcodes (optionally tied to a location) to a service."""

    service_id: int
    location_id: Optional[int] = None
    postcodes: Union[str, List[Any]]


class AvailabilityRead(CamelModel):
    id: int
    service_id: int
    location_id: Optional[int] = None
    postcode: str
    postcode_search: str
    is_active: bool
    location_name: Optional[str] = None
    county: Optional[str] = None
    region: Optional[str] = None


class AvailabilityAddResult(CamelModel):
    message: str
    created: List[AvailabilityRead]
    skipped: List[str]


class AvailabilityList(CamelModel):
    message: str
    data: List[AvailabilityRead]
