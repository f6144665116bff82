import logging

import httpx
import pytest

from route_optimizer.models.domain import Coordinate, StartingPoint, Stop, StopStatus
from route_optimizer.schemas.osrm import parse_route_response, parse_trip_response
from route_optimizer.services.routing.errors import InsufficientStops, NoRouteFound, RemoteUnavailable
from route_optimizer.services.routing.models import OptimizationSource
from route_optimizer.services.routing.service import RouteSession, local_fallback


def _stop(sid: str, lat: float, lng: float, priority: bool = False) -> Stop:
    return Stop(id=sid, address=f"Stop {sid}", coordinate=Coordinate(lat, lng), priority=priority)


def _stops() -> list[Stop]:
    return [_stop("a", 50.08, 14.42), _stop("b", 50.10, 14.45), _stop("c", 50.05, 14.40)]


class DummyOptimizer:
    def __init__(self, order=None, trip_error=None, route_errors=()):
        self.order = order
        self.trip_error = trip_error
        self.route_errors = list(route_errors)
        self.route_calls = 0

    def trip(self, coordinates, roundtrip):
        if self.trip_error is not None:
            raise self.trip_error
        waypoints = [
            {"location": [coordinate.lng, coordinate.lat], "waypoint_index": self.order.index(index), "trips_index": 0}
            for index, coordinate in enumerate(coordinates)
        ]
        return parse_trip_response({"code": "Ok", "trips": [{"distance": 9000.0, "duration": 900.0}], "waypoints": waypoints})

    def route(self, coordinates):
        self.route_calls += 1
        if self.route_errors:
            error = self.route_errors.pop(0)
            if error is not None:
                raise error
        return parse_route_response({"code": "Ok", "routes": [{"distance": 3000.0, "duration": 300.0}]})


class DummyGeocoder:
    def __init__(self, known=None, label=None):
        self.known = known or {}
        self.label = label

    def geocode(self, address):
        return self.known.get(address)

    def reverse(self, coordinate):
        return self.label


def test_network_error_falls_back_to_local_permutation() -> None:
    stops = _stops()
    session = RouteSession(optimizer=DummyOptimizer(trip_error=httpx.ConnectError("offline")), stops=stops)

    result = session.optimize()

    assert result.source is OptimizationSource.LOCAL
    assert result.degraded
    assert result.notice
    assert "offline" in result.remote_error
    assert sorted(stop.id for stop in result.tour) == ["a", "b", "c"]
    assert [stop.id for stop in session.stops] == [stop.id for stop in result.tour]
    assert session.last_result is result


def test_remote_order_is_applied() -> None:
    session = RouteSession(optimizer=DummyOptimizer(order=[0, 2, 1]), stops=_stops())

    result = session.optimize()

    assert result.source is OptimizationSource.REMOTE
    assert [stop.id for stop in session.stops] == ["a", "c", "b"]
    assert result.road_distance_km == pytest.approx(9.0)
    assert result.road_duration_min == pytest.approx(15.0)
    assert result.metadata["stop_count"] == 3


def test_fewer_than_two_stops_is_rejected_without_changes() -> None:
    only = _stop("only", 50.0, 14.0)
    session = RouteSession(optimizer=DummyOptimizer(order=[0]), stops=[only])

    with pytest.raises(InsufficientStops):
        session.optimize()
    assert session.stops == [only]
    assert session.last_result is None


def test_no_route_for_two_points_retries_directly_once() -> None:
    optimizer = DummyOptimizer(route_errors=[NoRouteFound("no path", code="NoRoute"), None])
    session = RouteSession(optimizer=optimizer, stops=_stops()[:2])

    result = session.optimize()

    assert optimizer.route_calls == 2
    assert result.source is OptimizationSource.DIRECT
    assert [stop.id for stop in result.tour] == ["a", "b"]


def test_no_route_twice_raises_and_keeps_order() -> None:
    optimizer = DummyOptimizer(
        route_errors=[NoRouteFound("no path", code="NoRoute"), RemoteUnavailable("still nothing")]
    )
    session = RouteSession(optimizer=optimizer, stops=_stops()[:2])
    before = list(session.stops)

    with pytest.raises(NoRouteFound) as excinfo:
        session.optimize()
    assert excinfo.value.code == "NoRoute"
    assert session.stops == before


def test_no_route_with_three_points_falls_back_locally() -> None:
    session = RouteSession(
        optimizer=DummyOptimizer(trip_error=NoRouteFound("island", code="NoTrips")),
        stops=_stops(),
    )

    result = session.optimize()

    assert result.source is OptimizationSource.LOCAL


def test_local_fallback_honours_starting_point() -> None:
    start = StartingPoint(address="Depot", coordinate=Coordinate(50.049, 14.399))

    tour = local_fallback(_stops(), start)

    assert tour[0].id == "c"


def test_cities_without_start_are_visited_nearest_first() -> None:
    prague = _stop("prague", 50.0755, 14.4378)
    ostrava = _stop("ostrava", 49.8209, 18.2625)
    brno = _stop("brno", 49.1951, 16.6068)

    assert [stop.id for stop in local_fallback([prague, ostrava, brno])] == ["prague", "brno", "ostrava"]

    session = RouteSession(stops=[prague, ostrava, brno])
    result = session.optimize()

    assert result.source is OptimizationSource.LOCAL
    assert [stop.id for stop in session.stops] == ["prague", "brno", "ostrava"]


def test_unsupported_one_way_trip_falls_back_without_warning(caplog) -> None:
    optimizer = DummyOptimizer(trip_error=RemoteUnavailable("OSRM trip request rejected", code="NotImplemented"))
    session = RouteSession(optimizer=optimizer, stops=_stops())

    with caplog.at_level(logging.INFO, logger="route_optimizer"):
        result = session.optimize()

    assert result.source is OptimizationSource.LOCAL
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]


def test_stop_editing_operations() -> None:
    geocoder = DummyGeocoder(known={"Národní 1, Praha": Coordinate(50.08, 14.41)}, label="Karlovo náměstí, Praha")
    session = RouteSession(geocoder=geocoder)

    stop = session.add_stop("Národní 1, Praha")
    assert stop is not None
    assert session.add_stop("Nowhere 99") is None
    assert session.toggle_priority(stop.id) is True
    assert session.toggle_status(stop.id) is StopStatus.COMPLETED
    assert session.toggle_status(stop.id) is StopStatus.PENDING

    start = session.use_current_location(Coordinate(50.07, 14.42))
    assert start.address == "Karlovo náměstí, Praha"

    assert session.remove_stop(stop.id) is True
    assert session.remove_stop(stop.id) is False
    with pytest.raises(KeyError):
        session.get_stop(stop.id)


def test_current_location_without_address_uses_position_label() -> None:
    session = RouteSession(geocoder=DummyGeocoder())

    start = session.use_current_location(Coordinate(50.0755, 14.4378))

    assert start.address == "Position: 50.075500, 14.437800"


def test_bulk_import_reports_failures() -> None:
    geocoder = DummyGeocoder(known={"Vodičkova 30": Coordinate(50.08, 14.42)})
    session = RouteSession(geocoder=geocoder)

    added, failed = session.add_stops_from_text("Vodičkova 30 Praha\nNeexistující 77 Brno")

    assert [stop.address for stop in added] == ["Vodičkova 30"]
    assert failed == ["Neexistující 77"]


def test_add_stop_requires_geocoder() -> None:
    with pytest.raises(RuntimeError):
        RouteSession().add_stop("Somewhere 12")


def test_state_round_trip_preserves_order_and_flags() -> None:
    session = RouteSession(stops=_stops(), starting_point=StartingPoint("Depot", Coordinate(50.0, 14.0)))
    session.set_round_trip(True)
    session.toggle_priority("b")

    restored = RouteSession.from_state(session.to_state())

    assert [stop.id for stop in restored.stops] == ["a", "b", "c"]
    assert restored.get_stop("b").priority is True
    assert restored.flags.round_trip is True
    assert restored.starting_point.address == "Depot"


def test_navigation_batches_from_session() -> None:
    session = RouteSession(stops=_stops(), starting_point=StartingPoint("Depot", Coordinate(50.0, 14.0)))
    session.set_round_trip(True)

    batches = session.navigation_batches()

    assert len(batches) == 1
    assert batches[0].closes_loop
    assert len(batches[0].waypoints) == 3


def test_starting_point_can_be_set_and_cleared() -> None:
    geocoder = DummyGeocoder(known={"Depot 1": Coordinate(50.0, 14.0)})
    session = RouteSession(geocoder=geocoder, stops=_stops())

    assert session.set_starting_point("Unknown 5") is None
    start = session.set_starting_point("Depot 1")
    assert start.coordinate == Coordinate(50.0, 14.0)
    assert session.starting_point is start

    session.clear_starting_point()
    assert session.starting_point is None
