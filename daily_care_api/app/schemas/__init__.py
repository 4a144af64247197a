"""
Pydantic schema definitions for API payloads.

Each domain (admins, services, locations, contacts, settings and
availability) defines its own request and response models.  Schemas
are separated from the database layer to decouple the JSON
representation (camelCase, as the admin panel expects) from the
snake_case column names.
"""
