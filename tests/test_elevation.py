import itertools
from unittest import mock

import pytest
import requests
from conftest import FakeElevation

from joyride.elevation import ElevationClient, elevation_ok, find_destination
from joyride.models import Coordinate, ElevationMode

ORIGIN = Coordinate(51.5, -0.12)


def _counter_generator():
    """Distinct candidates (51.6, 0), (51.6, 1), ... with a record of how many were drawn."""
    counter = itertools.count()
    drawn = []

    def generate():
        c = Coordinate(51.6, float(next(counter)))
        drawn.append(c)
        return c

    return generate, drawn


def _response(payload):
    r = mock.Mock()
    r.raise_for_status.return_value = None
    r.json.return_value = payload
    return r


def test_client_requires_api_key():
    with mock.patch("joyride.elevation.GOOGLE_MAPS_API_KEY", None):
        with pytest.raises(ValueError):
            ElevationClient()


def test_get_elevation_parses_result():
    client = ElevationClient(api_key="test-key")
    payload = {"status": "OK", "results": [{"elevation": 42.5, "location": {"lat": 51.5, "lng": -0.12}}]}
    with mock.patch("joyride.elevation.requests.get", return_value=_response(payload)) as get:
        assert client.get_elevation(ORIGIN) == 42.5
    params = get.call_args.kwargs["params"]
    assert params["locations"] == "51.5,-0.12"
    assert params["key"] == "test-key"


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "OVER_QUERY_LIMIT", "results": []},
        {"status": "OK", "results": []},
        {"status": "OK", "results": [{"location": {}}]},
        ["not", "an", "object"],
    ],
)
def test_get_elevation_bad_payloads(payload):
    client = ElevationClient(api_key="test-key")
    with mock.patch("joyride.elevation.requests.get", return_value=_response(payload)):
        assert client.get_elevation(ORIGIN) is None


def test_get_elevation_network_and_json_errors():
    client = ElevationClient(api_key="test-key")
    with mock.patch("joyride.elevation.requests.get", side_effect=requests.exceptions.ConnectionError("down")):
        assert client.get_elevation(ORIGIN) is None
    bad_json = mock.Mock()
    bad_json.raise_for_status.return_value = None
    bad_json.json.side_effect = ValueError("no json")
    with mock.patch("joyride.elevation.requests.get", return_value=bad_json):
        assert client.get_elevation(ORIGIN) is None


def test_elevation_thresholds():
    assert elevation_ok(20, ElevationMode.LOW)
    assert not elevation_ok(20.1, ElevationMode.LOW)
    assert elevation_ok(50, ElevationMode.HIGH)
    assert not elevation_ok(49.9, ElevationMode.HIGH)
    assert elevation_ok(1000, ElevationMode.NONE)


def test_filter_gives_up_after_five_attempts_and_returns_last():
    generate, drawn = _counter_generator()
    elevation = FakeElevation(100.0, [110.0])
    diag = {}
    dest = find_destination(ORIGIN, generate, ElevationMode.HIGH, elevation, max_attempts=5, diagnostics=diag)
    assert len(drawn) == 5
    assert dest == drawn[-1]
    assert len(elevation.calls) == 6
    assert diag == {"attempts": 5, "satisfied": False, "origin_elevation": 100.0}


def test_filter_accepts_first_satisfying_candidate():
    generate, drawn = _counter_generator()
    elevation = FakeElevation(100.0, [140.0, 30.0, 160.0])
    diag = {}
    dest = find_destination(ORIGIN, generate, ElevationMode.HIGH, elevation, diagnostics=diag)
    assert dest == drawn[1]
    assert diag["attempts"] == 2
    assert diag["satisfied"] is True


def test_low_mode_uses_absolute_difference():
    generate, drawn = _counter_generator()
    dest = find_destination(ORIGIN, generate, ElevationMode.LOW, FakeElevation(100.0, [85.0]))
    assert dest == drawn[0]


def test_missing_origin_elevation_accepts_first_candidate():
    generate, drawn = _counter_generator()
    elevation = FakeElevation(None, [999.0])
    dest = find_destination(ORIGIN, generate, ElevationMode.LOW, elevation)
    assert dest == drawn[0]
    assert len(drawn) == 1
    assert len(elevation.calls) == 1


def test_missing_candidate_elevation_counts_as_failed_attempt():
    generate, drawn = _counter_generator()
    elevation = FakeElevation(100.0, [None, None, 100.0])
    dest = find_destination(ORIGIN, generate, ElevationMode.LOW, elevation)
    assert dest == drawn[2]


def test_no_mode_needs_no_client():
    generate, drawn = _counter_generator()
    assert find_destination(ORIGIN, generate) == drawn[0]
    with pytest.raises(ValueError):
        find_destination(ORIGIN, generate, ElevationMode.HIGH, None)


def test_generator_without_candidates():
    diag = {}
    assert find_destination(ORIGIN, lambda: None, max_attempts=3, diagnostics=diag) is None
    assert diag["attempts"] == 3
    assert diag["satisfied"] is False
