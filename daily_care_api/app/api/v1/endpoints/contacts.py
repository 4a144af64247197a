"""
Contact form endpoints.

``POST /contact`` is public.  The notification e-mail is attempted
for at most ``settings.email_wait_seconds``; its outcome is reported
as ``emailStatus`` and never fails the submission.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from daily_care_api.app.core.security import ROLE_ADMIN, ROLE_SUPER_ADMIN, require_roles
from daily_care_api.app.schemas.common import MessageResponse, Page, page_meta
from daily_care_api.app.schemas.contact import (
    ContactCreate,
    ContactRead,
    ContactResponse,
    ContactSubmitted,
    ContactUpdate,
)
from daily_care_api.app.services.contact_service import ContactService
from daily_care_api.app.services.mail_service import MailService

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_roles(ROLE_SUPER_ADMIN, ROLE_ADMIN))])


def get_mail_service() -> MailService:
    return MailService()


@router.post("/contact", response_model=ContactSubmitted, status_code=status.HTTP_201_CREATED)
async def submit_contact(
    payload: ContactCreate,
    mail_service: MailService = Depends(get_mail_service),
) -> Dict[str, Any]:
    contact = await ContactService.create_contact(payload)
    email_status = await mail_service.notify_contact(contact)
    return {"message": "Contact form submitted successfully", "data": contact, "email_status": email_status}


@admin_router.get("", response_model=Page[ContactRead])
async def list_contacts(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    """Newest contacts first."""
    contacts, total = await ContactService.list_contacts(page, per_page)
    return {"message": "Contacts fetched successfully", "meta": page_meta(total, page, per_page), "data": contacts}


@admin_router.get("/full")
async def all_contacts() -> Dict[str, Any]:
    contacts = await ContactService.all_contacts()
    return {
        "message": "All contacts fetched successfully",
        "data": [ContactRead.model_validate(c).model_dump(by_alias=True) for c in contacts],
    }


@admin_router.get("/count")
async def count_contacts() -> Dict[str, Any]:
    total = await ContactService.count_contacts()
    return {"message": "Total contacts count fetched successfully", "data": {"total": total}}


@admin_router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: int) -> Dict[str, Any]:
    try:
        contact = await ContactService.get_contact(contact_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Contact fetched successfully", "data": contact}


@admin_router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(contact_id: int, payload: ContactUpdate) -> Dict[str, Any]:
    try:
        contact = await ContactService.update_contact(contact_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Contact updated successfully", "data": contact}


@admin_router.delete("/{contact_id}", response_model=MessageResponse)
async def delete_contact(contact_id: int) -> Dict[str, Any]:
    try:
        await ContactService.delete_contact(contact_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Contact deleted successfully"}
