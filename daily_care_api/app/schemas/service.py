"""
Pydantic models for services.

The admin panel is not consistent about how it sends list fields: a
list, a JSON encoded list or a comma separated string may all arrive
for ``services`` and ``gettingStartedPoints``, and ``stats`` sometimes
arrives as a broken ``"[object Object]"`` string.  The ``before``
validators below coerce all of these into proper Python values so the
service layer only ever sees lists (or ``None``).
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, field_validator, model_validator

from daily_care_api.app.services.zipcodes import dedupe, normalize_list

from .common import CamelModel

logger = logging.getLogger(__name__)


def coerce_string_list(value: Any) -> Optional[List[str]]:
    """Accept a list, a JSON array string or a comma separated string."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(parsed, list):
            return [str(item) for item in parsed]
        return [str(parsed)]
    raise ValueError("must be a list of strings")


def coerce_stats(value: Any) -> Optional[List[Dict[str, Any]]]:
    """Accept stats as a list, a single object or a JSON string.

    Unusable strings are dropped (``None``) with a warning rather than
    failing the whole request.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        if "[object Object]" in value:
            logger.warning("Received invalid stats string %r, storing null", value)
            return None
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Invalid stats JSON %r, storing null", value)
            return None
        if isinstance(parsed, dict):
            return [parsed]
        if isinstance(parsed, list):
            return parsed
        logger.warning("Stats JSON is neither a list nor an object: %r", value)
        return None
    raise ValueError("stats must be a list of objects")


class _ServiceFields(CamelModel):
    """Fields shared by create and update payloads, all optional."""

    slug: Optional[str] = None
    description: Optional[str] = None
    full_description: Optional[str] = None
    detailed_description: Optional[str] = None
    what_is: Optional[str] = None
    typical_visit: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = Field(None, description="Duration in minutes")
    services: Optional[List[str]] = None
    benefits: Optional[str] = None
    benefits_extended: Optional[str] = None
    getting_started: Optional[str] = None
    getting_started_points: Optional[List[str]] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    stats: Optional[List[Dict[str, Any]]] = None
    zipcodes: Optional[List[str]] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_to_null(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and value.strip() in ("", "null", "NULL") else value)
                for key, value in data.items()
            }
        return data

    @field_validator("services", "getting_started_points", mode="before")
    @classmethod
    def _string_lists(cls, value: Any) -> Optional[List[str]]:
        return coerce_string_list(value)

    @field_validator("stats", mode="before")
    @classmethod
    def _stats(cls, value: Any) -> Optional[List[Dict[str, Any]]]:
        return coerce_stats(value)

    @field_validator("zipcodes", mode="before")
    @classmethod
    def _zipcodes(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        return dedupe(normalize_list(value))


class ServiceCreate(_ServiceFields):
    name: str = Field(..., min_length=1, examples=["Home Care"])
    category: str = Field(..., min_length=1, examples=["care"])


class ServiceUpdate(_ServiceFields):
    """All fields optional; ``None`` means "leave unchanged"."""

    name: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None


class ServiceRead(CamelModel):
    id: int
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    full_description: Optional[str] = None
    detailed_description: Optional[str] = None
    what_is: Optional[str] = None
    typical_visit: Optional[str] = None
    category: str
    price: Optional[float] = None
    duration: Optional[int] = None
    services: Optional[List[str]] = None
    benefits: Optional[str] = None
    benefits_extended: Optional[str] = None
    getting_started: Optional[str] = None
    getting_started_points: Optional[List[str]] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    stats: Optional[List[Dict[str, Any]]] = None
    zipcodes: List[str] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ServiceResponse(CamelModel):
    message: str
    data: ServiceRead


class ZipcodesPayload(CamelModel):
    zipcodes: Union[str, List[Any]]


class ZipcodesAdded(CamelModel):
    message: str
    added: List[str]
    duplicates: List[str]
    total: List[str]


class ZipcodesRemoved(CamelModel):
    message: str
    removed: List[str]
    not_found: List[str]
    total: List[str]
