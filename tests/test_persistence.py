import re
from pathlib import Path

import pytest

from route_optimizer.models.domain import Coordinate, SavedRoute, StartingPoint, Stop
from route_optimizer.persistence import database
from route_optimizer.persistence.filesystem import SessionStore


def _stop(sid: str, lat: float, lng: float) -> Stop:
    return Stop(id=sid, address=f"Stop {sid}", coordinate=Coordinate(lat, lng))


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []
        self.action = "select"
        self.payload = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, *args, **kwargs):
        return self

    def limit(self, *args):
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        rows = self.client.tables.setdefault(self.table, [])
        if self.action == "insert":
            row = {"id": f"r{len(rows) + 1}", "is_public": False, "created_at": "2025-01-01T00:00:00Z", **self.payload}
            rows.append(row)
            return FakeResponse([row])
        matched = [row for row in rows if self._matches(row)]
        if self.action == "delete":
            self.client.tables[self.table] = [row for row in rows if not self._matches(row)]
        return FakeResponse(matched)


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase(monkeypatch):
    client = FakeSupabase()
    monkeypatch.setattr(database, "get_supabase_client", lambda: client)
    return client


def test_session_store_round_trip(tmp_path: Path) -> None:
    store = SessionStore(root=tmp_path)
    state = {"stops": [_stop("a", 50.0, 14.0).to_dict()], "starting_point": None, "round_trip": True}

    path = store.save("anon_1_abc", state)

    assert path.parent == store.session_root
    assert store.load("anon_1_abc") == state
    assert not list(store.session_root.glob("*.tmp"))
    assert store.delete("anon_1_abc") is True
    assert store.load("anon_1_abc") is None
    assert store.delete("anon_1_abc") is False


def test_session_store_sanitises_keys(tmp_path: Path) -> None:
    store = SessionStore(root=tmp_path)

    assert store.path_for("../../etc/passwd").parent == store.session_root
    with pytest.raises(ValueError):
        store.path_for("   ")


def test_identifiers_have_expected_shape() -> None:
    assert re.fullmatch(r"anon_\d+_[a-z0-9]{9}", database.generate_user_id())
    token = database.generate_share_token()
    assert re.fullmatch(r"[a-z0-9]{10,}", token)
    assert token != database.generate_share_token()


def test_save_and_load_routes(fake_supabase) -> None:
    start = StartingPoint(address="Depot", coordinate=Coordinate(50.0, 14.0))
    saved = database.save_route("user-1", "Monday", [_stop("a", 50.1, 14.0), _stop("b", 50.2, 14.0)], start, True)

    assert saved.name == "Monday"
    assert saved.share_token
    assert [stop.id for stop in saved.stops] == ["a", "b"]
    assert saved.starting_point == start

    fake_supabase.tables["routes"].append(
        {"id": "pub", "name": "Public", "stops": [], "is_public": True, "user_id": "someone-else"}
    )
    routes = database.load_routes("user-1")

    assert [route.id for route in routes] == [saved.id, "pub"]


def test_delete_route_only_for_owner(fake_supabase) -> None:
    saved = database.save_route("user-1", "Tuesday", [_stop("a", 50.1, 14.0), _stop("b", 50.2, 14.0)], None, False)

    assert database.delete_route(saved.id, "intruder") is False
    assert database.delete_route(saved.id, "user-1") is True
    assert database.load_routes("user-1") == []


def test_shared_route_lookup_and_usage_tracking(fake_supabase) -> None:
    saved = database.save_route("user-1", "Shared", [_stop("a", 50.1, 14.0), _stop("b", 50.2, 14.0)], None, False)

    loaded = database.load_shared_route(saved.share_token)
    database.track_route_usage(saved.id, "user-2", "open_shared")

    assert loaded is not None and loaded.id == saved.id
    assert database.load_shared_route("missing") is None
    assert fake_supabase.tables["route_usage"] == [
        {"id": "r1", "is_public": False, "created_at": "2025-01-01T00:00:00Z", "route_id": saved.id, "user_id": "user-2", "action": "open_shared"}
    ]


def test_unconfigured_database(monkeypatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)

    assert database.load_routes("user-1") == []
    database.track_route_usage("r1", "user-1", "open")
    with pytest.raises(RuntimeError):
        database.save_route("user-1", "x", [], None, False)


def test_merge_prefers_remote_copies() -> None:
    local = [SavedRoute("1", "local one", [], None, False), SavedRoute("2", "local two", [], None, False)]
    remote = [SavedRoute("1", "remote one", [], None, False)]

    merged = database.merge_routes(local, remote)

    assert [(route.id, route.name) for route in merged] == [("1", "remote one"), ("2", "local two")]
