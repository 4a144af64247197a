"""Shared fixtures: a throw-away SQLite database and an API client."""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from daily_care_api.app.api.v1.endpoints.contacts import get_mail_service
from daily_care_api.app.core.config import Settings, settings
from daily_care_api.app.core.db import init_db
from daily_care_api.app.main import create_app
from daily_care_api.app.services.mail_service import MailService

ADMIN_EMAIL = "owner@dailycare.co.uk"
ADMIN_PASSWORD = "secret123"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the app at a fresh database file with all migrations applied."""
    path = tmp_path / "daily_care_test.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    monkeypatch.setattr(settings, "strict_uk_postcodes", False)
    init_db()
    return path


@pytest.fixture
def smtp_factory():
    """Stand-in for smtplib.SMTP; the instance it returns records calls."""
    return MagicMock(name="SMTP")


@pytest.fixture
def app(db_path, smtp_factory):
    application = create_app()
    mail_config = Settings(
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="",
        smtp_pass="",
        smtp_from="noreply@dailycare.test",
        mail_to_address="ops@dailycare.test",
        email_wait_seconds=2,
    )
    application.dependency_overrides[get_mail_service] = lambda: MailService(
        config=mail_config, smtp_factory=smtp_factory
    )
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client):
    """Register the first (super) admin and log in."""
    response = client.post(
        "/api/register",
        json={"fullName": "Owner", "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 201
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
