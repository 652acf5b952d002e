import pytest

from backend import trip_state_store
from backend.trip_state_store import TripState

USER = "rider"


@pytest.fixture(autouse=True)
def clean_state():
    trip_state_store.clear(USER)
    yield
    trip_state_store.clear(USER)


def test_unknown_user_is_idle():
    assert trip_state_store.get_state(USER) == TripState.IDLE
    assert trip_state_store.get_last_route(USER) is None


def test_generation_moves_through_stages():
    token = trip_state_store.begin_generation(USER)
    assert trip_state_store.get_state(USER) == TripState.GENERATING_DESTINATION
    assert trip_state_store.set_stage(USER, token, TripState.FETCHING_ROUTES)
    assert trip_state_store.get_state(USER) == TripState.FETCHING_ROUTES
    assert trip_state_store.set_route_ready(USER, token, {"polyline": "abc"})
    assert trip_state_store.get_state(USER) == TripState.ROUTE_READY
    assert trip_state_store.get_last_route(USER) == {"polyline": "abc"}


def test_stale_generation_is_discarded():
    old = trip_state_store.begin_generation(USER)
    new = trip_state_store.begin_generation(USER)
    assert not trip_state_store.is_current(USER, old)
    assert trip_state_store.set_route_ready(USER, new, {"polyline": "new"})
    assert not trip_state_store.set_route_ready(USER, old, {"polyline": "old"})
    assert not trip_state_store.set_stage(USER, old, TripState.FETCHING_ROUTES)
    assert trip_state_store.get_last_route(USER) == {"polyline": "new"}
    assert trip_state_store.get_state(USER) == TripState.ROUTE_READY


def test_failure_falls_back_to_previous_route():
    token = trip_state_store.begin_generation(USER)
    assert trip_state_store.set_failed(USER, token)
    assert trip_state_store.get_state(USER) == TripState.IDLE

    token = trip_state_store.begin_generation(USER)
    trip_state_store.set_route_ready(USER, token, {"polyline": "abc"})
    token = trip_state_store.begin_generation(USER)
    trip_state_store.set_failed(USER, token)
    assert trip_state_store.get_state(USER) == TripState.ROUTE_READY


def test_navigation_toggle():
    token = trip_state_store.begin_generation(USER)
    trip_state_store.set_route_ready(USER, token, {"polyline": "abc"})
    trip_state_store.set_navigating(USER, True)
    assert trip_state_store.get_state(USER) == TripState.NAVIGATING
    trip_state_store.set_navigating(USER, False)
    assert trip_state_store.get_state(USER) == TripState.ROUTE_READY


def test_no_generation_while_navigating():
    token = trip_state_store.begin_generation(USER)
    trip_state_store.set_route_ready(USER, token, {"polyline": "abc"})
    trip_state_store.set_navigating(USER, True)
    assert trip_state_store.begin_generation(USER) is None
    assert trip_state_store.get_state(USER) == TripState.NAVIGATING
    trip_state_store.set_navigating(USER, False)
    assert trip_state_store.begin_generation(USER) == token + 1


def test_cannot_navigate_without_ready_route():
    assert not trip_state_store.set_navigating(USER, True)
    token = trip_state_store.begin_generation(USER)
    trip_state_store.set_route_ready(USER, token, {"polyline": "abc"})
    trip_state_store.begin_generation(USER)
    # a newer route is still being generated
    assert not trip_state_store.set_navigating(USER, True)
    assert trip_state_store.get_state(USER) == TripState.GENERATING_DESTINATION
