"""
Top-level router for version 1 of the API.

This router aggregates the domain routers.  Auth, availability and the
public contact form live directly under the API prefix; the other
domains get their own sub-prefix.
"""

from fastapi import APIRouter

from .endpoints import auth, availability, contacts, locations, services, settings

router = APIRouter()

router.include_router(auth.router, tags=["auth"])
router.include_router(availability.router, tags=["availability"])
router.include_router(contacts.router, tags=["contacts"])
router.include_router(contacts.admin_router, prefix="/contacts", tags=["contacts"])
router.include_router(services.router, prefix="/services", tags=["services"])
router.include_router(locations.router, prefix="/locations", tags=["locations"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
