"""API tests for the public contact form and the admin contact inbox."""
import threading

import pytest

from daily_care_api.app.api.v1.endpoints.contacts import get_mail_service
from daily_care_api.app.core.config import Settings
from daily_care_api.app.services.mail_service import MailService

CONTACT = {
    "name": "Mary Smith",
    "email": "mary@example.com",
    "phone": "07700 900123",
    "serviceType": "Home Care",
    "message": "I would like to arrange a visit for my mother.",
}


def _submit(client, **overrides):
    response = client.post("/api/contact", json={**CONTACT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_submit_contact_sends_notification(client, smtp_factory):
    body = _submit(client)
    assert body["message"] == "Contact form submitted successfully"
    assert body["emailStatus"] == "sent"
    assert body["data"]["status"] == "view"
    assert body["data"]["serviceType"] == "Home Care"

    smtp_factory.assert_called_once_with("smtp.test", 587)
    smtp = smtp_factory.return_value
    sent = smtp.send_message.call_args[0][0]
    assert sent["To"] == "ops@dailycare.test"
    assert sent["Subject"] == "New Contact Form Submission: Home Care"
    smtp.login.assert_not_called()
    smtp.quit.assert_called_once()


def test_smtp_failure_does_not_fail_submission(client, smtp_factory):
    smtp_factory.side_effect = OSError("connection refused")
    body = _submit(client)
    assert body["emailStatus"] == "failed"
    assert body["data"]["id"] > 0


def test_slow_smtp_reports_pending(app, client):
    release = threading.Event()

    def slow_smtp(host, port):
        release.wait(5)
        raise OSError("gave up")

    config = Settings(smtp_host="smtp.test", mail_to_address="ops@dailycare.test", email_wait_seconds=0.05)
    app.dependency_overrides[get_mail_service] = lambda: MailService(config=config, smtp_factory=slow_smtp)
    try:
        body = _submit(client)
    finally:
        release.set()
    assert body["emailStatus"] == "pending"


@pytest.mark.parametrize(
    "field, value",
    [
        ("name", "M"),
        ("email", "not-an-email"),
        ("serviceType", ""),
        ("message", "Hi"),
    ],
)
def test_invalid_submission_is_rejected(client, field, value):
    response = client.post("/api/contact", json={**CONTACT, field: value})
    assert response.status_code == 422


def test_admin_routes_require_token(client):
    assert client.get("/api/contacts").status_code == 401
    assert client.get("/api/contacts/count").status_code == 401


def test_list_contacts_newest_first(client, auth_headers):
    first = _submit(client, name="First Person")["data"]
    second = _submit(client, name="Second Person")["data"]

    body = client.get("/api/contacts", params={"per_page": 1}, headers=auth_headers).json()
    assert body["meta"]["total"] == 2
    assert [c["id"] for c in body["data"]] == [second["id"]]

    full = client.get("/api/contacts/full", headers=auth_headers).json()["data"]
    assert [c["id"] for c in full] == [second["id"], first["id"]]

    count = client.get("/api/contacts/count", headers=auth_headers).json()
    assert count["data"] == {"total": 2}


def test_update_contact_follow_up(client, auth_headers):
    contact = _submit(client)["data"]
    response = client.put(
        f"/api/contacts/{contact['id']}",
        json={
            "status": "follow up scheduled",
            "comment": "Call back on Monday",
            "followUpDate": "2026-11-02",
            "followUpTime": "10:30",
        },
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "follow up scheduled"
    assert data["followUpDate"] == "2026-11-02"
    assert data["comment"] == "Call back on Monday"


def test_update_contact_rejects_unknown_status(client, auth_headers):
    contact = _submit(client)["data"]
    response = client.put(f"/api/contacts/{contact['id']}", json={"status": "archived"}, headers=auth_headers)
    assert response.status_code == 422


def test_deleted_contact_is_hidden(client, auth_headers):
    contact = _submit(client)["data"]
    url = f"/api/contacts/{contact['id']}"
    assert client.delete(url, headers=auth_headers).status_code == 200

    response = client.get(url, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": f"Contact with id {contact['id']} not found"}
    assert client.delete(url, headers=auth_headers).status_code == 404
    assert client.get("/api/contacts/count", headers=auth_headers).json()["data"] == {"total": 0}
