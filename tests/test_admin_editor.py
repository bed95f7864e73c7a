import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from transitmap.config import DEFAULT_ROUTE_PALETTE
from transitmap.data.registry import RegistryStore, RouteRegistry
from transitmap.errors import AdminValidationError
from transitmap.models.domain import Location, Route, Stop
from transitmap.services.admin import RegistryEditor, SubmitRoute, SubmitStop

WEST = Location(19.54, -96.92)
EAST = Location(19.54, -96.90)


@pytest.fixture
def store() -> RegistryStore:
    route = Route(id="R1", name="Ruta 1", description="Centro", path=(WEST, EAST))
    stops = [Stop(id="S0", route_id="R1", sequence=0, position=WEST)]
    return RegistryStore(RouteRegistry([route], stops))


def test_stop_on_path_is_committed(store: RegistryStore) -> None:
    committed = RegistryEditor(store, tolerance_m=30).submit_stop(
        SubmitStop(route_id="R1", position=Location(19.54, -96.91))
    )

    assert committed.stop.id == "14020000"
    assert committed.stop.sequence == 1
    assert committed.offset_m < 1
    assert store.snapshot.get_stop("14020000") == committed.stop
    assert [stop.id for stop in store.snapshot.stops_of_route("R1")] == ["S0", "14020000"]


def test_stop_ids_keep_counting_up(store: RegistryStore) -> None:
    editor = RegistryEditor(store, tolerance_m=30)
    first = editor.submit_stop(SubmitStop(route_id="R1", position=Location(19.54, -96.915)))
    second = editor.submit_stop(SubmitStop(route_id="R1", position=Location(19.54, -96.905)))

    assert (first.stop.id, second.stop.id) == ("14020000", "14020001")
    assert second.stop.sequence == 2


def test_off_route_stop_leaves_registry_untouched(store: RegistryStore) -> None:
    before = store.snapshot

    with pytest.raises(AdminValidationError, match="away from route"):
        RegistryEditor(store, tolerance_m=30).submit_stop(
            SubmitStop(route_id="R1", position=Location(19.55, -96.91))
        )

    assert store.snapshot is before


def test_command_tolerance_overrides_editor_default(store: RegistryStore) -> None:
    # roughly 111 m north of the path
    position = Location(19.541, -96.91)
    editor = RegistryEditor(store, tolerance_m=30)

    with pytest.raises(AdminValidationError):
        editor.submit_stop(SubmitStop(route_id="R1", position=position))
    committed = editor.submit_stop(SubmitStop(route_id="R1", position=position, tolerance_m=150))

    assert committed.offset_m == pytest.approx(111, abs=2)


def test_unknown_route_is_rejected(store: RegistryStore) -> None:
    with pytest.raises(AdminValidationError, match="existing route"):
        RegistryEditor(store).submit_stop(SubmitStop(route_id="R9", position=WEST))


def test_duplicate_sequence_is_rejected(store: RegistryStore) -> None:
    before = store.snapshot

    with pytest.raises(AdminValidationError, match="sequence 0"):
        RegistryEditor(store, tolerance_m=30).submit_stop(
            SubmitStop(route_id="R1", position=Location(19.54, -96.91), sequence=0)
        )

    assert store.snapshot is before


def test_new_route_gets_next_id_and_colour(store: RegistryStore) -> None:
    committed = RegistryEditor(store).submit_route(
        SubmitRoute(name="  Ruta Nueva ", path=[WEST, Location(19.55, -96.91)], description="Norte")
    )

    assert committed.route.id == "14010000"
    assert committed.route.name == "Ruta Nueva"
    assert committed.route.color == DEFAULT_ROUTE_PALETTE[1]
    assert store.snapshot.has_route("14010000")
    assert store.snapshot.stops_of_route("14010000") == ()


def test_route_name_must_be_unique(store: RegistryStore) -> None:
    with pytest.raises(AdminValidationError, match="already exists"):
        RegistryEditor(store).submit_route(SubmitRoute(name="ruta 1", path=[WEST, EAST]))


@pytest.mark.parametrize("path", [[], [WEST], [WEST, WEST]])
def test_route_path_needs_two_distinct_points(store: RegistryStore, path: list[Location]) -> None:
    before = store.snapshot

    with pytest.raises(AdminValidationError, match="Invalid route path"):
        RegistryEditor(store).submit_route(SubmitRoute(name="Ruta Corta", path=path))

    assert store.snapshot is before


def test_blank_route_name_is_rejected(store: RegistryStore) -> None:
    with pytest.raises(AdminValidationError):
        RegistryEditor(store).submit_route(SubmitRoute(name="   ", path=[WEST, EAST]))


def test_concurrent_submissions_are_all_kept(store: RegistryStore) -> None:
    editor = RegistryEditor(store, tolerance_m=30)
    workers = 16
    barrier = threading.Barrier(workers)

    def submit(index: int) -> str:
        barrier.wait()
        committed = editor.submit_stop(
            SubmitStop(route_id="R1", position=Location(19.54, -96.919 + index * 0.001), stop_id=f"N{index}")
        )
        return committed.stop.id

    with ThreadPoolExecutor(max_workers=workers) as pool:
        committed_ids = list(pool.map(submit, range(workers)))

    kept = {stop.id for stop in store.snapshot.stops}
    assert set(committed_ids) <= kept
    assert len(store.snapshot.stops_of_route("R1")) == workers + 1
    sequences = [stop.sequence for stop in store.snapshot.stops_of_route("R1")]
    assert sequences == list(range(workers + 1))


def test_edits_build_on_the_reloaded_registry() -> None:
    route = Route(id="R1", name="Ruta 1", description="Centro", path=(WEST, EAST))
    reloaded = RouteRegistry([route, Route(id="R2", name="Ruta 2", description="", path=(WEST, EAST))])
    store = RegistryStore(RouteRegistry([route]), loader=lambda: reloaded)
    editor = RegistryEditor(store, tolerance_m=30)

    store.reload()
    editor.submit_stop(SubmitStop(route_id="R1", position=Location(19.54, -96.91)))

    assert store.snapshot.has_route("R2")
    assert len(store.snapshot.stops) == 1
