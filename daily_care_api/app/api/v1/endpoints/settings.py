"""
Settings endpoints for API v1.

Administrators manage JSON valued settings at runtime.  The public
site reads single values (popup configuration, maintenance mode)
through ``GET /settings/{key}/value`` without a token.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from daily_care_api.app.core.security import ROLE_ADMIN, ROLE_SUPER_ADMIN, require_roles
from daily_care_api.app.schemas.common import MessageResponse
from daily_care_api.app.schemas.setting import SettingRead, SettingUpdate, SettingUpsert
from daily_care_api.app.services.settings_service import SettingsService

router = APIRouter()

admin_required = require_roles(ROLE_SUPER_ADMIN, ROLE_ADMIN)


def _setting_body(message: str, setting: Dict[str, Any]) -> Dict[str, Any]:
    return {"message": message, "data": SettingRead.model_validate(setting).model_dump(by_alias=True)}


@router.get("")
async def list_settings(current_admin: dict = Depends(admin_required)) -> Dict[str, Any]:
    settings_list = await SettingsService.list_settings()
    return {
        "message": "Settings retrieved successfully",
        "data": [SettingRead.model_validate(s).model_dump(by_alias=True) for s in settings_list],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def upsert_setting(payload: SettingUpsert, current_admin: dict = Depends(admin_required)) -> Dict[str, Any]:
    """Create a setting or replace the value of an existing key."""
    setting = await SettingsService.upsert_setting(payload.key, payload.value, payload.description)
    return _setting_body("Setting saved successfully", setting)


@router.get("/{key}/value")
async def get_setting_value(key: str) -> Dict[str, Any]:
    """Public: only the value of a setting."""
    setting = await SettingsService.get_setting(key)
    if not setting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return {"key": key, "value": setting["value"]}


@router.get("/{key}")
async def get_setting(key: str, current_admin: dict = Depends(admin_required)) -> Dict[str, Any]:
    setting = await SettingsService.get_setting(key)
    if not setting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return _setting_body("Setting retrieved successfully", setting)


@router.put("/{key}")
async def update_setting(
    key: str, payload: SettingUpdate, current_admin: dict = Depends(admin_required)
) -> Dict[str, Any]:
    try:
        setting = await SettingsService.update_setting(key, payload.value, payload.description)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _setting_body("Setting updated successfully", setting)


@router.delete("/{key}", response_model=MessageResponse)
async def delete_setting(key: str, current_admin: dict = Depends(admin_required)) -> Dict[str, Any]:
    try:
        await SettingsService.delete_setting(key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Setting deleted successfully"}
