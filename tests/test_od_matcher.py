import pytest

from transitmap.data.registry import RouteRegistry
from transitmap.errors import DegenerateQueryError
from transitmap.models.domain import Location, MatchSet, Route, Stop
from transitmap.services.matching.od_matcher import check_distinct_points, find_routes_between
from transitmap.services.text_matcher import match_by_text

ORIGIN = Location(19.5400, -96.9100)
DESTINATION = Location(19.5600, -96.8900)


def _route(route_id: str, name: str, description: str, stops: list[tuple[float, float]]) -> tuple[Route, list[Stop]]:
    path = tuple(Location(lat, lng) for lat, lng in stops)
    route = Route(id=route_id, name=name, description=description, path=path)
    route_stops = [
        Stop(id=f"{route_id}-S{index}", route_id=route_id, sequence=index, position=position)
        for index, position in enumerate(path)
    ]
    return route, route_stops


def _registry(*entries: tuple[Route, list[Stop]]) -> RouteRegistry:
    routes = [route for route, _ in entries]
    stops = [stop for _, route_stops in entries for stop in route_stops]
    return RouteRegistry(routes, stops)


def _direct_registry() -> RouteRegistry:
    return _registry(
        _route("R1", "Ruta 1", "Centro - Animas", [(19.5400, -96.9100), (19.5450, -96.9050)]),
        _route("R2", "Ruta 2", "Lomas Verdes", [(19.6000, -96.9500), (19.6050, -96.9450)]),
    )


def _fallback_registry() -> RouteRegistry:
    return _registry(
        # stops near the origin only
        _route("R1", "Ruta 1", "Centro - Xalapeños Ilustres", [(19.5410, -96.9100), (19.5300, -96.9300)]),
        # stop near the origin and mentions the destination
        _route("R2", "Ruta 2", "Centro - Plaza Crystal", [(19.5410, -96.9110), (19.5200, -96.9200)]),
        # mentions the destination but never passes the origin
        _route("R3", "Plaza Crystal Express", "Directo", [(19.5000, -96.9500), (19.4950, -96.9550)]),
    )


def test_direct_match_when_both_points_share_a_route() -> None:
    match_set = find_routes_between(
        Location(19.5401, -96.9101), Location(19.5451, -96.9049), 500, _direct_registry()
    )

    assert match_set == MatchSet(direct=frozenset({"R1"}), fallback=frozenset())


def test_direct_match_ignores_search_terms() -> None:
    match_set = find_routes_between(
        Location(19.5401, -96.9101),
        Location(19.5451, -96.9049),
        500,
        _direct_registry(),
        origin_term="Lomas",
        destination_term="Lomas",
    )

    assert match_set.direct == {"R1"}
    assert match_set.fallback == frozenset()


def test_text_fallback_filtered_by_proximity_to_other_point() -> None:
    match_set = find_routes_between(
        ORIGIN,
        DESTINATION,
        500,
        _fallback_registry(),
        origin_term="Los Lagos",
        destination_term="plaza crystal",
    )

    assert match_set.direct == frozenset()
    assert match_set.fallback == {"R2"}


def test_fallback_unions_both_directions() -> None:
    registry = _registry(
        _route("R1", "Ruta 1", "Sale de Los Lagos", [(19.5600, -96.8910), (19.5800, -96.8700)]),
        _route("R2", "Ruta 2", "Centro - Plaza Crystal", [(19.5410, -96.9110), (19.5200, -96.9200)]),
    )

    match_set = find_routes_between(
        ORIGIN, DESTINATION, 500, registry, origin_term="los lagos", destination_term="Plaza Crystal"
    )

    assert match_set.fallback == {"R1", "R2"}


def test_no_connecting_route_is_an_empty_result() -> None:
    match_set = find_routes_between(
        ORIGIN, DESTINATION, 500, _fallback_registry(), origin_term="nowhere", destination_term="nothing"
    )

    assert match_set.is_empty
    assert match_set.route_ids() == frozenset()


def test_without_terms_there_is_no_fallback() -> None:
    assert find_routes_between(ORIGIN, DESTINATION, 500, _fallback_registry()).is_empty


def test_repeated_queries_are_identical() -> None:
    registry = _fallback_registry()

    results = [
        find_routes_between(ORIGIN, DESTINATION, 500, registry, origin_term="x", destination_term="crystal")
        for _ in range(3)
    ]

    assert results[0] == results[1] == results[2]


def test_same_place_queries_are_refused() -> None:
    with pytest.raises(DegenerateQueryError) as excinfo:
        find_routes_between(ORIGIN, Location(19.5401, -96.9100), 500, _direct_registry())

    assert excinfo.value.separation_m < 50


def test_check_distinct_points_returns_separation() -> None:
    assert check_distinct_points(ORIGIN, DESTINATION) > 2000
    with pytest.raises(DegenerateQueryError):
        check_distinct_points(ORIGIN, DESTINATION, epsilon_m=10_000)


def test_match_by_text_is_case_insensitive_over_name_and_description() -> None:
    routes = list(_fallback_registry().routes)

    assert match_by_text("PLAZA crystal", routes) == ["R2", "R3"]
    assert match_by_text("ruta 1", routes) == ["R1"]
    assert match_by_text("ilustres", routes) == ["R1"]
    assert match_by_text("aeropuerto", routes) == []
    assert match_by_text("   ", routes) == []
