"""Location CRUD plus the Geoapify and GeoNames lookups (mocked with respx)."""
import httpx
import pytest
import respx

from daily_care_api.app.core.config import settings
from daily_care_api.app.core.exceptions import ExternalServiceError
from daily_care_api.app.services.geoapify_service import GeoapifyService, feature_to_suggestion
from daily_care_api.app.services.geonames_service import GeoNamesService, group_by_place

GEOAPIFY_URL = "https://geoapify.test/v1"
GEONAMES_URL = "http://geonames.test"


def _feature(postcode, **props):
    return {"type": "Feature", "properties": {"postcode": postcode, **props}}


@pytest.fixture
def geoapify(monkeypatch):
    monkeypatch.setattr(settings, "geoapify_api_key", "test-key")
    monkeypatch.setattr(settings, "geoapify_base_url", GEOAPIFY_URL)
    with respx.mock(base_url=GEOAPIFY_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def geonames(monkeypatch):
    monkeypatch.setattr(settings, "geonames_username", "dailycare")
    monkeypatch.setattr(settings, "geonames_base_url", GEONAMES_URL)
    with respx.mock(base_url=GEONAMES_URL, assert_all_called=False) as mock:
        yield mock


def _create_location(client, headers, **payload):
    body = {"name": "Westminster", "type": "area", "county": "London", "postcode": "SW1A 1AA", **payload}
    response = client.post("/api/locations", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# ---------------------------------------------------------------------------
# Local locations
# ---------------------------------------------------------------------------


def test_locations_require_token(client):
    assert client.get("/api/locations").status_code == 401


def test_location_crud(client, auth_headers):
    location = _create_location(client, auth_headers, latitude=51.4994, longitude=-0.1347)
    assert location["region"] == "england"
    assert location["isActive"] is True

    url = f"/api/locations/{location['id']}"
    assert client.get(url, headers=auth_headers).json()["data"]["name"] == "Westminster"

    updated = client.put(url, json={"county": "Greater London"}, headers=auth_headers).json()["data"]
    assert updated["county"] == "Greater London"
    assert updated["postcode"] == "SW1A 1AA"

    assert client.delete(url, headers=auth_headers).status_code == 200
    assert client.get("/api/locations", headers=auth_headers).json()["data"] == []
    assert client.get(url, headers=auth_headers).json()["data"]["isActive"] is False


def test_missing_location_returns_404(client, auth_headers):
    response = client.get("/api/locations/404", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Location 404 not found"}
    assert client.delete("/api/locations/404", headers=auth_headers).status_code == 404


def test_invalid_region_is_rejected(client, auth_headers):
    response = client.post(
        "/api/locations",
        json={"name": "Paris", "type": "city", "region": "france", "postcode": "75001"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_list_locations_ordered_by_region_then_name(client, auth_headers):
    _create_location(client, auth_headers, name="Swansea", region="wales", county="Swansea", postcode="SA1 3SN")
    _create_location(client, auth_headers, name="Camden", postcode="NW1 0DU")
    _create_location(client, auth_headers)
    body = client.get("/api/locations", headers=auth_headers).json()
    assert [loc["name"] for loc in body["data"]] == ["Camden", "Westminster", "Swansea"]
    wales = client.get("/api/locations", params={"region": "wales"}, headers=auth_headers).json()
    assert [loc["name"] for loc in wales["data"]] == ["Swansea"]


def test_search_locations(client, auth_headers):
    _create_location(client, auth_headers)
    _create_location(client, auth_headers, name="Camden", postcode="NW1 0DU")
    body = client.get("/api/locations/search", params={"q": "west"}, headers=auth_headers).json()
    assert [item["displayName"] for item in body["data"]] == ["Westminster, London"]

    short = client.get("/api/locations/search", params={"q": "w"}, headers=auth_headers).json()
    assert short["data"] == []


def test_location_postcodes_share_name_or_county(client, auth_headers):
    location = _create_location(client, auth_headers)
    _create_location(client, auth_headers, name="Camden", postcode="NW1 0DU")
    _create_location(client, auth_headers, name="Cardiff", region="wales", county="London", postcode="CF10 1BH")
    body = client.get(f"/api/locations/{location['id']}/postcodes", headers=auth_headers).json()
    assert body["location"]["name"] == "Westminster"
    assert [item["postcode"] for item in body["data"]] == ["NW1 0DU", "SW1A 1AA"]


# ---------------------------------------------------------------------------
# Geoapify
# ---------------------------------------------------------------------------


def test_feature_to_suggestion_falls_back_to_formatted_name():
    suggestion = feature_to_suggestion(
        {"properties": {"formatted": "Westminster, London, UK", "lat": 51.5, "lon": -0.13, "postcode": "SW1A"}}
    )
    assert suggestion["name"] == "Westminster"
    assert suggestion["lng"] == -0.13
    assert suggestion["zip_code"] == "SW1A"


@pytest.mark.asyncio
async def test_autocomplete_sends_key_and_filters(geoapify):
    route = geoapify.get("/geocode/autocomplete").mock(
        return_value=httpx.Response(
            200,
            json={"features": [_feature("SW1A 1AA", place_id="abc", name="Westminster", city="London")]},
        )
    )
    results = await GeoapifyService.autocomplete("westm", country_code="gb")
    assert [r["name"] for r in results] == ["Westminster"]
    params = route.calls.last.request.url.params
    assert params["apiKey"] == "test-key"
    assert params["format"] == "geojson"
    assert params["filter"] == "countrycode:gb"


@pytest.mark.asyncio
async def test_autocomplete_upstream_error(geoapify):
    geoapify.get("/geocode/autocomplete").mock(return_value=httpx.Response(500))
    with pytest.raises(ExternalServiceError, match="Geoapify request failed"):
        await GeoapifyService.autocomplete("westm")


@pytest.mark.asyncio
async def test_autocomplete_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "geoapify_api_key", "")
    with pytest.raises(ExternalServiceError, match="GEOAPIFY_API_KEY"):
        await GeoapifyService.autocomplete("westm")


@pytest.mark.asyncio
async def test_postcodes_near_returns_sorted_unique(geoapify):
    geoapify.get("/geocode/reverse").mock(
        return_value=httpx.Response(200, json={"features": [_feature("SW1A 1AA", city="London")]})
    )
    search = geoapify.get("/geocode/search").mock(
        return_value=httpx.Response(
            200,
            json={"features": [_feature("SW1A 2AA"), _feature("SW1A 1AA"), _feature("SW1A 2AA"), _feature(None)]},
        )
    )
    postcodes = await GeoapifyService.postcodes_near(51.5, -0.13, radius=1000)
    assert postcodes == ["SW1A 1AA", "SW1A 2AA"]
    params = search.calls.last.request.url.params
    assert params["text"] == "London"
    assert params["filter"] == "circle:-0.13,51.5,1000,countrycode:gb"


@pytest.mark.asyncio
async def test_postcodes_near_falls_back_to_reverse_geocoded_postcode(geoapify):
    geoapify.get("/geocode/reverse").mock(
        return_value=httpx.Response(200, json={"features": [_feature("SW1A 1AA", city="London")]})
    )
    geoapify.get("/geocode/search").mock(side_effect=httpx.ConnectError("boom"))
    assert await GeoapifyService.postcodes_near(51.5, -0.13) == ["SW1A 1AA"]


def test_autocomplete_endpoint(client, auth_headers, geoapify):
    geoapify.get("/geocode/autocomplete").mock(
        return_value=httpx.Response(200, json={"features": [_feature("M1 1AA", place_id="p1", name="Manchester")]})
    )
    response = client.get("/api/locations/autocomplete", params={"q": "man"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"][0]["zipCode"] == "M1 1AA"


def test_autocomplete_endpoint_rejects_short_query(client, auth_headers):
    response = client.get("/api/locations/autocomplete", params={"q": "m"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"message": "Query must be at least 2 characters"}


def test_autocomplete_endpoint_without_key_returns_502(client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "geoapify_api_key", "")
    response = client.get("/api/locations/autocomplete", params={"q": "man"}, headers=auth_headers)
    assert response.status_code == 502
    assert response.json() == {"message": "GEOAPIFY_API_KEY is not set"}


def test_postcodes_endpoint_validates_coordinates(client, auth_headers):
    response = client.get("/api/locations/postcodes", params={"lat": 95, "lng": 0}, headers=auth_headers)
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# GeoNames
# ---------------------------------------------------------------------------

POSTAL_CODES = {
    "postalCodes": [
        {"postalCode": "SW1A 1AA", "placeName": "London", "adminName2": "Westminster", "lat": "51.5", "lng": "-0.14"},
        {"postalCode": "SW1A 2AA", "placeName": "London", "adminName2": "Westminster", "lat": 51.5, "lng": -0.13},
        {"postalCode": "E1 6AN", "placeName": "London", "adminName2": "Tower Hamlets", "lat": 51.52, "lng": -0.07},
    ]
}


def test_group_by_place():
    groups = group_by_place(
        [
            {"postal_code": "A1", "place_name": "Town", "admin_name2": "County"},
            {"postal_code": "A2", "place_name": "Town", "admin_name2": "County"},
            {"postal_code": "A1", "place_name": "Town", "admin_name2": "County"},
            {"postal_code": "B1", "place_name": "Town", "admin_name2": "Other"},
        ]
    )
    assert [g["postal_codes"] for g in groups] == [["A1", "A2"], ["B1"]]


@pytest.mark.asyncio
async def test_search_place_groups_postal_codes(geonames):
    route = geonames.get("/postalCodeSearchJSON").mock(return_value=httpx.Response(200, json=POSTAL_CODES))
    places = await GeoNamesService.search_place("London")
    assert [(p["admin_name2"], p["postal_codes"]) for p in places] == [
        ("Westminster", ["SW1A 1AA", "SW1A 2AA"]),
        ("Tower Hamlets", ["E1 6AN"]),
    ]
    assert places[0]["lat"] == 51.5
    params = route.calls.last.request.url.params
    assert params["username"] == "dailycare"
    assert params["country"] == "GB"


@pytest.mark.asyncio
async def test_geonames_error_status_in_body(geonames):
    geonames.get("/findNearbyPostalCodesJSON").mock(
        return_value=httpx.Response(200, json={"status": {"message": "daily limit exceeded", "value": 18}})
    )
    with pytest.raises(ExternalServiceError, match="daily limit exceeded"):
        await GeoNamesService.postal_codes_nearby(51.5, -0.13)


@pytest.mark.asyncio
async def test_geonames_unauthorized(geonames):
    geonames.get("/postalCodeSearchJSON").mock(return_value=httpx.Response(401))
    with pytest.raises(ExternalServiceError, match="authentication failed"):
        await GeoNamesService.postal_codes_by_place("London")


@pytest.mark.asyncio
async def test_geonames_without_username(monkeypatch):
    monkeypatch.setattr(settings, "geonames_username", "")
    with pytest.raises(ExternalServiceError, match="GEONAMES_USERNAME"):
        await GeoNamesService.postal_codes_by_place("London")


def test_geonames_nearby_endpoint(client, auth_headers, geonames):
    geonames.get("/findNearbyPostalCodesJSON").mock(return_value=httpx.Response(200, json=POSTAL_CODES))
    response = client.get(
        "/api/locations/geonames/nearby", params={"lat": 51.5, "lng": -0.13, "radius": 2}, headers=auth_headers
    )
    assert response.status_code == 200
    assert [pc["postalCode"] for pc in response.json()["data"]] == ["SW1A 1AA", "SW1A 2AA", "E1 6AN"]
