import random

import polyline
import pytest
from conftest import ORIGIN, FakeDirections, FakeElevation

from joyride.builder import STAGE_FETCHING_ROUTES, STAGE_GENERATING_DESTINATION, generate_round_trip
from joyride.curvy_roads import CurvyRoadLibrary
from joyride.geo import distance_between_m, miles_to_m
from joyride.models import Coordinate, CurvatureMode, ElevationMode, TripParameters


def test_round_trip_result():
    directions = FakeDirections()
    stages = []
    result = generate_round_trip(
        ORIGIN.lat, ORIGIN.lon, directions=directions, rng=random.Random(5), on_stage=stages.append
    )
    assert "error" not in result
    assert stages == [STAGE_GENERATING_DESTINATION, STAGE_FETCHING_ROUTES]
    dest = Coordinate(result["destination"]["lat"], result["destination"]["lon"])
    assert distance_between_m(ORIGIN, dest) == pytest.approx(miles_to_m(5), abs=0.5)
    assert result["target_distance_mi"] == 10.0
    assert result["one_way_distance_mi"] == 5.0
    assert result["overlap_score"] == 0
    assert result["outbound_alternatives"] == 2
    assert len(polyline.decode(result["outbound_polyline"])) == 5
    assert len(polyline.decode(result["polyline"])) == 10
    # the destination handed to the directions provider is the one reported
    assert directions.alternative_calls[0] == (ORIGIN, dest)


def test_no_route_reports_error_with_diagnostics():
    result = generate_round_trip(ORIGIN.lat, ORIGIN.lon, directions=FakeDirections(outbound=[]))
    assert result["error"] == "No route"
    assert result["polyline"] == ""
    assert result["diagnostics"]["duration_minutes"] == 30


def test_curvy_without_nearby_roads(kml_dir):
    params = TripParameters(30, CurvatureMode.LOW)
    library = CurvyRoadLibrary(data_dir=kml_dir)
    directions = FakeDirections()
    result = generate_round_trip(ORIGIN.lat, ORIGIN.lon, params, directions=directions, curvy_library=library)
    assert result["error"] == "No destination candidate"
    assert result["diagnostics"]["segments_loaded"] == 1
    assert directions.alternative_calls == []


def test_curvy_destination_is_on_a_loaded_road(kml_dir):
    origin = Coordinate(53.42, -1.80)
    params = TripParameters(60, CurvatureMode.HIGH)
    library = CurvyRoadLibrary(data_dir=kml_dir)
    result = generate_round_trip(origin.lat, origin.lon, params, directions=FakeDirections(), curvy_library=library)
    dest = Coordinate(result["destination"]["lat"], result["destination"]["lon"])
    assert dest in library.segments[0].coordinates


def test_clearing_curvature_releases_segments(kml_dir):
    library = CurvyRoadLibrary(data_dir=kml_dir)
    library.select(CurvatureMode.HIGH)
    generate_round_trip(ORIGIN.lat, ORIGIN.lon, directions=FakeDirections(), curvy_library=library)
    assert library.mode == CurvatureMode.NONE
    assert library.segments == []


def test_elevation_attempts_reported():
    params = TripParameters(30, elevation=ElevationMode.HIGH)
    elevation = FakeElevation(10.0, [12.0, 15.0, 80.0])
    result = generate_round_trip(ORIGIN.lat, ORIGIN.lon, params, directions=FakeDirections(), elevation_client=elevation)
    assert result["elevation_attempts"] == 3
    assert result["elevation_satisfied"] is True


def test_invalid_origin_is_reported():
    directions = FakeDirections()
    result = generate_round_trip(95.0, 0.0, directions=directions)
    assert result["error"] == "Invalid origin"
    assert directions.alternative_calls == []
