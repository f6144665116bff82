from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from route_optimizer.api.routes import health as health_module
from route_optimizer.api.routes import routes as routes_module
from route_optimizer.api.routes import saved_routes as saved_routes_module
from route_optimizer.api.routes import sessions as sessions_module
from route_optimizer.api.routes import stops as stops_module
from route_optimizer.db import supabase as supabase_module
from route_optimizer.main import create_app
from route_optimizer.models.domain import Coordinate
from route_optimizer.persistence import database
from route_optimizer.persistence.filesystem import SessionStore
from route_optimizer.services.routing.errors import NoRouteFound, RemoteUnavailable


def _stop_payload(sid: str, lat: float, lng: float, **extra) -> dict:
    return {"id": sid, "address": f"Stop {sid}", "lat": lat, "lng": lng, **extra}


THREE_STOPS = [
    _stop_payload("a", 50.08, 14.42),
    _stop_payload("b", 50.10, 14.45, priority=True),
    _stop_payload("c", 50.05, 14.40),
]


class DummyOSRM:
    def __init__(self, error):
        self.error = error

    def trip(self, coordinates, roundtrip):
        raise self.error

    def route(self, coordinates):
        raise self.error


class DummyGeocoder:
    known = {"Národní 1": Coordinate(50.0819, 14.4163)}

    def geocode(self, address):
        return self.known.get(address)

    def reverse(self, coordinate):
        return None

    def search(self, query, limit=5, biased=True):
        return [
            {"display_name": "Národní 1, Praha", "lat": "50.0819", "lon": "14.4163"},
            {"display_name": "broken"},
        ]


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(routes_module, "OSRMClient", lambda: DummyOSRM(RemoteUnavailable("offline")))
    monkeypatch.setattr(stops_module, "NominatimGeocoder", lambda: DummyGeocoder())
    monkeypatch.setattr(sessions_module, "SessionStore", lambda: SessionStore(root=tmp_path))
    monkeypatch.setattr(saved_routes_module, "SessionStore", lambda: SessionStore(root=tmp_path))
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)
    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: None)
    return TestClient(create_app())


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/api/health").json() == {"status": "ok"}
    assert api_client.get("/api/health/database").json()["configured"] is False


def test_optimize_falls_back_locally(api_client: TestClient) -> None:
    response = api_client.post("/api/routes/optimize", json={"stops": THREE_STOPS, "round_trip": True})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "local"
    assert body["notice"]
    assert sorted(stop["id"] for stop in body["stops"]) == ["a", "b", "c"]
    assert next(stop for stop in body["stops"] if stop["id"] == "b")["priority"] is True
    assert body["total_distance_km"] > 0
    assert body["metadata"]["round_trip"] is True


def test_optimize_rejects_bad_requests(api_client: TestClient) -> None:
    single = api_client.post("/api/routes/optimize", json={"stops": THREE_STOPS[:1]})
    duplicate = api_client.post("/api/routes/optimize", json={"stops": [THREE_STOPS[0], THREE_STOPS[0]]})
    out_of_range = api_client.post("/api/routes/optimize", json={"stops": [_stop_payload("x", 95.0, 14.0)]})

    assert single.status_code == 400
    assert duplicate.status_code == 400
    assert out_of_range.status_code == 422


def test_optimize_reports_unreachable_pairs(api_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_module, "OSRMClient", lambda: DummyOSRM(NoRouteFound("no path", code="NoRoute")))

    response = api_client.post("/api/routes/optimize", json={"stops": THREE_STOPS[:2]})

    assert response.status_code == 422


def test_navigation_batches(api_client: TestClient) -> None:
    stops = [_stop_payload(f"s{index}", 50.0 + index * 0.01, 14.0) for index in range(12)]

    response = api_client.post("/api/routes/navigation", json={"stops": stops})

    assert response.status_code == 200
    body = response.json()
    assert body["batch_count"] == 2
    assert body["batches"][0]["destination"] == body["batches"][1]["origin"]
    assert body["batches"][1]["dispatch_delay_seconds"] > 0
    assert body["batches"][0]["url"].startswith("https://www.google.com/maps/dir/")


def test_stop_geocoding_endpoints(api_client: TestClient) -> None:
    created = api_client.post("/api/stops/geocode", json={"address": "Národní 1"})
    missing = api_client.post("/api/stops/geocode", json={"address": "Nowhere 404"})
    suggestions = api_client.get("/api/stops/suggestions", params={"q": "Národ"})
    reverse = api_client.post("/api/stops/reverse", json={"lat": 50.0755, "lng": 14.4378})

    assert created.status_code == 201
    assert created.json()["lat"] == pytest.approx(50.0819)
    assert created.json()["status"] == "pending"
    assert missing.status_code == 404
    assert [item["address"] for item in suggestions.json()["suggestions"]] == ["Národní 1, Praha"]
    assert reverse.json()["resolved"] is False
    assert reverse.json()["starting_point"]["address"] == "Position: 50.075500, 14.437800"


def test_parse_text_endpoint(api_client: TestClient) -> None:
    found = api_client.post("/api/stops/parse", json={"text": "Národní 1\nVodičkova 30 Praha"})
    nothing = api_client.post("/api/stops/parse", json={"text": "hello there"})

    assert found.status_code == 200
    assert [stop["address"] for stop in found.json()["added"]] == ["Národní 1"]
    assert found.json()["failed"] == ["Vodičkova 30"]
    assert nothing.status_code == 400


def test_session_state_endpoints(api_client: TestClient) -> None:
    state = {"stops": THREE_STOPS, "starting_point": {"address": "Depot", "lat": 50.0, "lng": 14.0}, "round_trip": True}

    assert api_client.get("/api/sessions/anon_1_abc").json()["stops"] == []
    assert api_client.put("/api/sessions/anon_1_abc", json=state).status_code == 200

    loaded = api_client.get("/api/sessions/anon_1_abc").json()
    assert [stop["id"] for stop in loaded["stops"]] == ["a", "b", "c"]
    assert loaded["round_trip"] is True
    assert loaded["starting_point"]["address"] == "Depot"

    assert api_client.delete("/api/sessions/anon_1_abc").json() == {"success": True}


def test_saved_routes_without_database(api_client: TestClient) -> None:
    listed = api_client.get("/api/saved-routes", params={"user_id": "anon_1_abc"})
    too_short = api_client.post("/api/saved-routes", json={"user_id": "u", "name": "x", "stops": THREE_STOPS[:1]})
    unavailable = api_client.post("/api/saved-routes", json={"user_id": "u", "name": "Monday", "stops": THREE_STOPS})

    assert listed.json() == {"user_id": "anon_1_abc", "routes": []}
    assert too_short.status_code == 400
    assert unavailable.status_code == 503


def test_new_session_gets_anonymous_user_id(api_client: TestClient) -> None:
    response = api_client.post("/api/sessions")

    assert response.status_code == 201
    assert response.json()["user_id"].startswith("anon_")


def test_saved_routes_include_offline_copies(api_client: TestClient) -> None:
    offline = {"id": "local-1", "name": "Offline Monday", "stops": THREE_STOPS, "round_trip": False}
    state = {"stops": [], "saved_routes": [offline]}
    api_client.put("/api/sessions/anon_1_abc", json=state)

    listed = api_client.get("/api/saved-routes", params={"user_id": "anon_1_abc"}).json()

    assert [route["id"] for route in listed["routes"]] == ["local-1"]
    assert [stop["id"] for stop in listed["routes"][0]["stops"]] == ["a", "b", "c"]


def test_osrm_health_reports_local_fallback(api_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(health_module, "check_health", lambda: False)

    body = api_client.get("/api/health/osrm").json()

    assert body["healthy"] is False
    assert body["fallback"] == "local"
