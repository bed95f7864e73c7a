import json
import logging
from pathlib import Path

import pytest

from transitmap.config import DEFAULT_ROUTE_PALETTE
from transitmap.data.registry import RegistryStore, RouteRegistry
from transitmap.data.routes_repository import build_registry, load_feature_collections, load_registry
from transitmap.errors import UnknownRouteError, UnknownStopError
from transitmap.models.domain import Location, Route, Stop


def _route(route_id: str, name: str | None = None, description: str = "") -> Route:
    return Route(
        id=route_id,
        name=name or f"Ruta {route_id}",
        description=description,
        path=(Location(19.54, -96.92), Location(19.54, -96.90)),
    )


def _stop(stop_id: str, route_id: str, sequence: int, lat: float = 19.54, lng: float = -96.91) -> Stop:
    return Stop(id=stop_id, route_id=route_id, sequence=sequence, position=Location(lat, lng))


def _route_feature(route_id: str | None, coordinates, **properties) -> dict:
    return {
        "type": "Feature",
        "properties": {"id": route_id, "name": f"Ruta {route_id}", **properties},
        "geometry": {"type": "LineString", "coordinates": coordinates},
    }


def _stop_feature(stop_id: str, route_id: str, sequence, lng: float, lat: float) -> dict:
    return {
        "type": "Feature",
        "properties": {"id": stop_id, "routeId": route_id, "sequence": sequence},
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
    }


def test_stops_of_route_are_ordered_by_sequence() -> None:
    registry = RouteRegistry(
        [_route("R1")],
        [_stop("S5", "R1", 5), _stop("S0", "R1", 0), _stop("S2", "R1", 2)],
    )

    assert [stop.id for stop in registry.stops_of_route("R1")] == ["S0", "S2", "S5"]
    # iteration order of the whole collection stays insertion order
    assert [stop.id for stop in registry.stops] == ["S5", "S0", "S2"]


def test_route_of_stop_and_lookup_errors() -> None:
    registry = RouteRegistry([_route("R1"), _route("R2")], [_stop("S1", "R2", 0)])

    assert registry.route_of_stop("S1").id == "R2"
    with pytest.raises(UnknownStopError):
        registry.route_of_stop("missing")
    with pytest.raises(UnknownRouteError):
        registry.stops_of_route("missing")


def test_colours_follow_load_order_and_repeat_after_palette() -> None:
    routes = [_route(f"R{index}") for index in range(len(DEFAULT_ROUTE_PALETTE) + 2)]
    registry = RouteRegistry(routes)

    assert registry.color_of("R0") == DEFAULT_ROUTE_PALETTE[0]
    assert registry.color_of("R1") == DEFAULT_ROUTE_PALETTE[1]
    assert len({registry.color_of(f"R{i}") for i in range(len(DEFAULT_ROUTE_PALETTE))}) == len(DEFAULT_ROUTE_PALETTE)
    assert registry.color_of(f"R{len(DEFAULT_ROUTE_PALETTE)}") == DEFAULT_ROUTE_PALETTE[0]
    assert registry.color_of(f"R{len(DEFAULT_ROUTE_PALETTE) + 1}") == DEFAULT_ROUTE_PALETTE[1]


def test_registry_rejects_inconsistent_input() -> None:
    with pytest.raises(UnknownRouteError):
        RouteRegistry([_route("R1")], [_stop("S1", "R2", 0)])
    with pytest.raises(ValueError):
        RouteRegistry([_route("R1")], [_stop("S1", "R1", 0), _stop("S2", "R1", 0)])
    with pytest.raises(ValueError):
        RouteRegistry([_route("R1"), _route("R1")])


def test_with_stop_returns_new_snapshot() -> None:
    original = RouteRegistry([_route("R1")], [_stop("S0", "R1", 0)])

    updated = original.with_stop(_stop("S1", "R1", original.next_sequence("R1")))

    assert [stop.id for stop in original.stops] == ["S0"]
    assert [stop.id for stop in updated.stops_of_route("R1")] == ["S0", "S1"]
    assert updated.get_stop("S1").sequence == 1


def test_store_swaps_whole_snapshots() -> None:
    first = RouteRegistry([_route("R1")])
    second = RouteRegistry([_route("R2")])
    store = RegistryStore(first, loader=lambda: second)

    held = store.snapshot
    reloaded = store.reload()

    assert reloaded is second
    assert store.snapshot is second
    # a reader holding the old snapshot still sees a complete, unchanged registry
    assert [route.id for route in held.routes] == ["R1"]


def test_store_without_loader_cannot_reload() -> None:
    with pytest.raises(RuntimeError):
        RegistryStore().reload()


def test_build_registry_skips_invalid_entities(caplog: pytest.LogCaptureFixture) -> None:
    route_features = [
        _route_feature("R1", [[-96.92, 19.54], [-96.90, 19.54]], desc="Centro - Animas"),
        _route_feature("R2", [[-96.92, 19.54]]),
        _route_feature("R3", [[-96.92, 95.0], [-96.90, 19.54]]),
        _route_feature("R1", [[-96.92, 19.55], [-96.90, 19.55]]),
    ]
    stop_features = [
        _stop_feature("S0", "R1", 0, -96.91, 19.54),
        _stop_feature("S1", "R1", "1", -96.905, 19.54),
        _stop_feature("S2", "R2", 0, -96.92, 19.54),
        _stop_feature("S3", "R1", 1, -96.90, 19.54),
        _stop_feature("S4", "R1", 2, float("nan"), 19.54),
        _stop_feature("S0", "R1", 3, -96.91, 19.54),
    ]

    with caplog.at_level(logging.WARNING):
        registry = build_registry(route_features, stop_features)

    assert [route.id for route in registry.routes] == ["R1"]
    assert registry.get_route("R1").description == "Centro - Animas"
    assert [stop.id for stop in registry.stops] == ["S0", "S1"]
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 7


def _write_route_folder(root: Path, route_id: str, route_fc: dict, stops_fc: dict | None) -> None:
    folder = root / route_id
    folder.mkdir(parents=True)
    (folder / "routes.geojson").write_text(json.dumps(route_fc), encoding="utf-8")
    if stops_fc is not None:
        (folder / "stops.geojson").write_text(json.dumps(stops_fc), encoding="utf-8")


def test_load_registry_from_route_folders(tmp_path: Path) -> None:
    routes_dir = tmp_path / "rutas"
    routes_dir.mkdir()
    (routes_dir / "index.json").write_text(json.dumps(["10001", "10002", "missing"]), encoding="utf-8")
    _write_route_folder(
        routes_dir,
        "10001",
        {"type": "FeatureCollection", "features": [_route_feature("ignored", [[-96.92, 19.54], [-96.90, 19.54]])]},
        {
            "type": "FeatureCollection",
            "features": [
                _stop_feature("A", "other", 1, -96.90, 19.54),
                _stop_feature("B", "other", 0, -96.92, 19.54),
            ],
        },
    )
    _write_route_folder(
        routes_dir,
        "10002",
        {"type": "FeatureCollection", "features": [_route_feature(None, [[-96.93, 19.55], [-96.91, 19.56]])]},
        None,
    )

    route_features, stop_features = load_feature_collections(routes_dir, routes_dir / "index.json")
    registry = load_registry(routes_dir, routes_dir / "index.json")

    assert len(route_features) == 2
    assert len(stop_features) == 2
    assert [route.id for route in registry.routes] == ["10001", "10002"]
    assert [stop.id for stop in registry.stops_of_route("10001")] == ["B", "A"]
    assert all(stop.route_id == "10001" for stop in registry.stops)
    assert registry.stops_of_route("10002") == ()


def test_load_feature_collections_requires_index(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_feature_collections(tmp_path, tmp_path / "index.json")


def test_unsequenced_stops_are_numbered_within_their_route() -> None:
    route_features = [
        _route_feature("R1", [[-96.92, 19.54], [-96.90, 19.54]]),
        _route_feature("R2", [[-96.92, 19.55], [-96.90, 19.55]]),
    ]
    stop_features = [
        _stop_feature("S0", "R1", None, -96.92, 19.54),
        _stop_feature("S1", "R1", None, -96.90, 19.54),
        _stop_feature("T0", "R2", None, -96.92, 19.55),
        _stop_feature("T1", "R2", None, -96.90, 19.55),
    ]

    registry = build_registry(route_features, stop_features)

    assert [stop.sequence for stop in registry.stops_of_route("R2")] == [0, 1]
    assert registry.next_sequence("R2") == 2


def test_store_update_swaps_in_built_registry() -> None:
    store = RegistryStore(RouteRegistry([_route("R1")]))

    result = store.update(lambda registry: (registry.with_route(_route("R2")), "added"))

    assert result == "added"
    assert [route.id for route in store.snapshot.routes] == ["R1", "R2"]


def test_failed_store_update_keeps_snapshot() -> None:
    store = RegistryStore(RouteRegistry([_route("R1")]))
    before = store.snapshot

    def build(registry: RouteRegistry):
        raise ValueError("rejected")

    with pytest.raises(ValueError):
        store.update(build)

    assert store.snapshot is before
