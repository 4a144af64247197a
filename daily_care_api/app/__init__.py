"""
Application package initializer.

Each domain (admins, services, locations, contacts, settings and the
public availability check) has a service class under ``services`` and
a router under ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
