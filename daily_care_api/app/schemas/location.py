"""
Pydantic models for locations and geocoding suggestions.
"""

from typing import List, Literal, Optional

from pydantic import Field

from .common import CamelModel

Region = Literal["england", "scotland", "wales", "northern_ireland"]


class LocationCreate(CamelModel):
    name: str = Field(..., min_length=1, examples=["Westminster"])
    type: str = Field(..., examples=["area"], description="city, town, village or area")
    region: Region = "england"
    county: Optional[str] = Field(None, examples=["London"])
    postcode: str = Field(..., min_length=1, examples=["SW1A 1AA"])
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class LocationUpdate(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None
    region: Optional[Region] = None
    county: Optional[str] = None
    postcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: Optional[bool] = None


class LocationRead(CamelModel):
    id: int
    name: str
    type: str
    region: str
    county: Optional[str] = None
    postcode: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LocationResponse(CamelModel):
    message: str
    data: LocationRead


class LocationSearchItem(CamelModel):
    id: int
    name: str
    type: str
    county: Optional[str] = None
    region: str
    postcode: str
    display_name: str


class PostcodeItem(CamelModel):
    postcode: str
    display_name: str


class GeoSuggestion(CamelModel):
    """A Geoapify feature reduced to the fields the admin panel uses."""

    id: Optional[str] = None
    name: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    place_type: Optional[str] = None
    category: Optional[str] = None


class PostalCode(CamelModel):
    """A GeoNames postal code record."""

    postal_code: str
    place_name: Optional[str] = None
    admin_name1: Optional[str] = None
    admin_code1: Optional[str] = None
    admin_name2: Optional[str] = None
    admin_code2: Optional[str] = None
    admin_name3: Optional[str] = None
    admin_code3: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    country_code: Optional[str] = None


class PlacePostalCodes(CamelModel):
    place_name: str
    admin_name1: Optional[str] = None
    admin_name2: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    postal_codes: List[str] = Field(default_factory=list)
