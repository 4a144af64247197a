"""
Pydantic models for admin accounts and authentication payloads.

Passwords are only ever accepted on input; ``AdminRead`` never
exposes the stored hash.
"""

from typing import Literal, Optional

from pydantic import EmailStr, Field

from .common import CamelModel

AdminRole = Literal["super_admin", "admin"]


class AdminLogin(CamelModel):
    email: EmailStr = Field(..., examples=["admin@dailycare.com"])
    password: str = Field(..., min_length=6)


class AdminRegister(CamelModel):
    """Schema for creating an admin account."""

    full_name: Optional[str] = Field(None, examples=["Jane Doe"])
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Optional[AdminRole] = None


class AdminRead(CamelModel):
    id: int
    full_name: Optional[str] = None
    email: str
    role: str
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=6)
    new_password: str = Field(..., min_length=6)


class LoginResponse(CamelModel):
    message: str
    admin: AdminRead
    token: str


class AdminResponse(CamelModel):
    message: str
    admin: AdminRead
