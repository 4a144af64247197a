"""
Admin authentication endpoints.

Login returns a bearer token; every other route here needs one.  Tokens
are stateless, so logout is only an acknowledgement and the client is
expected to drop its token.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from daily_care_api.app.core.security import (
    ROLE_SUPER_ADMIN,
    get_current_admin,
    get_optional_admin,
    token_for_admin,
)
from daily_care_api.app.schemas.admin import (
    AdminLogin,
    AdminRegister,
    AdminResponse,
    LoginResponse,
    PasswordChange,
    ProfileUpdate,
)
from daily_care_api.app.schemas.common import MessageResponse
from daily_care_api.app.services.admin_service import AdminService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(payload: AdminLogin) -> Dict[str, Any]:
    """Exchange e-mail and password for an access token."""
    admin = await AdminService.authenticate(payload.email, payload.password)
    if not admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"message": "Login successful", "admin": admin, "token": token_for_admin(admin)}


@router.post("/register", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: AdminRegister,
    current_admin: Optional[Dict[str, Any]] = Depends(get_optional_admin),
) -> Dict[str, Any]:
    """Create an admin account.

    Open while no admin exists (the first account becomes
    ``super_admin``); afterwards only a super admin may register others.
    """
    if await AdminService.count_admins() > 0:
        if current_admin is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
        if current_admin["role"] != ROLE_SUPER_ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    try:
        admin = await AdminService.create_admin(payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Admin registered successfully", "admin": admin}


@router.get("/me", response_model=AdminResponse)
async def me(current_admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    return {"message": "Admin retrieved successfully", "admin": current_admin}


@router.post("/logout", response_model=MessageResponse)
async def logout(current_admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    return {"message": "Logged out successfully"}


@router.get("/profile", response_model=AdminResponse)
async def profile(current_admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
    return {"message": "Profile retrieved successfully", "admin": current_admin}


@router.put("/profile", response_model=AdminResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_admin: Dict[str, Any] = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        admin = await AdminService.update_profile(current_admin["id"], payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Profile updated successfully", "admin": admin}


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    current_admin: Dict[str, Any] = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        await AdminService.change_password(current_admin["id"], payload.current_password, payload.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Password changed successfully"}
