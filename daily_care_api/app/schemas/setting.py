"""
Pydantic models for runtime settings.

Values are arbitrary JSON (objects, lists, strings, numbers, booleans).
"""

from typing import Any, Optional

from pydantic import Field

from .common import CamelModel


class SettingUpsert(CamelModel):
    key: str = Field(..., min_length=1, max_length=255)
    value: Any
    description: Optional[str] = None


class SettingUpdate(CamelModel):
    value: Any = None
    description: Optional[str] = None


class SettingRead(CamelModel):
    id: int
    key: str
    value: Any = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
