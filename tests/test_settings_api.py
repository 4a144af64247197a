"""API tests for runtime settings."""
from daily_care_api.app.core.db import get_connection

POPUP = {"enabled": True, "title": "ON CALL", "showOnce": False}


def _upsert(client, headers, key="popup_config", value=POPUP, description="Popup modal"):
    response = client.post(
        "/api/settings", json={"key": key, "value": value, "description": description}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_settings_management_requires_token(client):
    assert client.get("/api/settings").status_code == 401
    assert client.post("/api/settings", json={"key": "k", "value": 1}).status_code == 401
    assert client.delete("/api/settings/k").status_code == 401


def test_upsert_and_read_setting(client, auth_headers):
    created = _upsert(client, auth_headers)
    assert created["key"] == "popup_config"
    assert created["value"] == POPUP
    assert created["description"] == "Popup modal"

    response = client.get("/api/settings/popup_config", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["value"] == POPUP


def test_upsert_replaces_value_and_keeps_description(client, auth_headers):
    first = _upsert(client, auth_headers, key="app_maintenance", value={"enabled": False})
    second = _upsert(client, auth_headers, key="app_maintenance", value={"enabled": True}, description=None)
    assert second["id"] == first["id"]
    assert second["value"] == {"enabled": True}
    assert second["description"] == "Popup modal"


def test_list_settings_ordered_by_key(client, auth_headers):
    _upsert(client, auth_headers, key="popup_config")
    _upsert(client, auth_headers, key="app_config", value={"appName": "Daily Care"})
    body = client.get("/api/settings", headers=auth_headers).json()
    assert [s["key"] for s in body["data"]] == ["app_config", "popup_config"]


def test_scalar_values_round_trip(client, auth_headers):
    assert _upsert(client, auth_headers, key="max_visits", value=12)["value"] == 12
    assert _upsert(client, auth_headers, key="tagline", value="We care")["value"] == "We care"
    assert _upsert(client, auth_headers, key="regions", value=["england", "wales"])["value"] == ["england", "wales"]


def test_update_setting(client, auth_headers):
    _upsert(client, auth_headers)
    response = client.put(
        "/api/settings/popup_config", json={"value": {"enabled": False}}, headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["value"] == {"enabled": False}
    assert data["description"] == "Popup modal"


def test_update_and_delete_unknown_key_return_404(client, auth_headers):
    response = client.put("/api/settings/missing", json={"value": 1}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Setting missing not found"}
    assert client.delete("/api/settings/missing", headers=auth_headers).status_code == 404
    assert client.get("/api/settings/missing", headers=auth_headers).status_code == 404


def test_delete_setting(client, auth_headers):
    _upsert(client, auth_headers)
    assert client.delete("/api/settings/popup_config", headers=auth_headers).status_code == 200
    assert client.get("/api/settings/popup_config/value").status_code == 404


def test_public_value_needs_no_token(client, auth_headers):
    _upsert(client, auth_headers)
    response = client.get("/api/settings/popup_config/value")
    assert response.status_code == 200
    assert response.json() == {"key": "popup_config", "value": POPUP}


def test_non_json_value_is_returned_raw(client):
    conn = get_connection()
    try:
        conn.execute("INSERT INTO settings (key, value) VALUES (?, ?)", ("banner", "plain text, not JSON"))
        conn.commit()
    finally:
        conn.close()
    response = client.get("/api/settings/banner/value")
    assert response.json()["value"] == "plain text, not JSON"
