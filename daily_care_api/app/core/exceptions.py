"""
Domain exceptions shared by the service layer and the API.

Services raise these instead of ``HTTPException`` so they stay usable
outside a request.  ``main.create_app`` registers handlers that turn
them into JSON responses of the form ``{"message": ...}``.
"""


class DirectoryError(Exception):
    """Base class for errors raised by the directory services."""


class InvalidInput(DirectoryError):
    """The caller supplied unusable input (HTTP 400)."""


class StorageUnavailable(DirectoryError):
    """The database could not be reached or a query failed (HTTP 500)."""


class ExternalServiceError(DirectoryError):
    """A third-party API (Geoapify, GeoNames) failed or is not configured (HTTP 502)."""
