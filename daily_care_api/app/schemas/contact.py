"""
Pydantic models for contact form submissions.
"""

from typing import Literal, Optional

from pydantic import EmailStr, Field

from .common import CamelModel

ContactStatus = Literal[
    "view",
    "opened",
    "replayed",
    "need follow up",
    "follow up scheduled",
    "closed",
]


class ContactCreate(CamelModel):
    """Public contact form payload."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    service_type: str = Field(..., min_length=2, max_length=100)
    message: str = Field(..., min_length=5, max_length=2000)


class ContactUpdate(CamelModel):
    """Admin follow-up edit of a contact."""

    status: ContactStatus
    comment: Optional[str] = None
    follow_up_date: Optional[str] = None
    follow_up_time: Optional[str] = None


class ContactRead(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    service_type: str
    message: str
    status: str
    comment: Optional[str] = None
    follow_up_date: Optional[str] = None
    follow_up_time: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContactSubmitted(CamelModel):
    message: str
    data: ContactRead
    email_status: Literal["sent", "failed", "pending"]


class ContactResponse(CamelModel):
    message: str
    data: ContactRead
