"""
JoyRide round-trip route builder.
Destination pick (random bearing or curvy road), elevation filter, outbound/return alternatives, least-overlap pair.
Uses: requests, polyline, geopy, numpy.
"""

import logging
import random
from typing import Any, Callable, Dict, Optional

from .config import MAX_ELEVATION_ATTEMPTS, OVERLAP_PROXIMITY_M
from .curvy_roads import CurvyRoadLibrary
from .destination import make_candidate_generator
from .directions import DirectionsClient, encode_path, fetch_round_trip
from .elevation import ElevationClient, find_destination
from .geo import validate_coordinate
from .models import CurvatureMode, ElevationMode, TripParameters

logger = logging.getLogger(__name__)

STAGE_GENERATING_DESTINATION = "generating_destination"
STAGE_FETCHING_ROUTES = "fetching_routes"

StageCallback = Callable[[str], None]


def _empty_result(error: str, diagnostics: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "polyline": "",
        "outbound_polyline": "",
        "return_polyline": "",
        "error": error,
        "diagnostics": diagnostics,
    }


def generate_round_trip(
    lat: float,
    lon: float,
    params: Optional[TripParameters] = None,
    directions: Optional[DirectionsClient] = None,
    elevation_client: Optional[ElevationClient] = None,
    curvy_library: Optional[CurvyRoadLibrary] = None,
    rng: Optional[random.Random] = None,
    max_elevation_attempts: int = MAX_ELEVATION_ATTEMPTS,
    overlap_threshold_m: float = OVERLAP_PROXIMITY_M,
    on_stage: Optional[StageCallback] = None,
) -> Dict[str, Any]:
    """
    Build one round trip from (lat, lon).

    params: trip duration bucket, curvature and elevation modes (defaults: 30 min, none, none).
    directions / elevation_client: provider clients; elevation_client is only needed when an elevation mode is set.
    curvy_library: tier cache used when a curvature mode is set.
    on_stage(stage) is called as the pipeline moves to destination generation and route fetching.

    Returns a dict with encoded polylines for the combined trip and each leg, the
    destination and scoring details. On failure the dict has an "error" key and
    "diagnostics"; nothing is retried apart from the elevation filter.
    """
    params = params or TripParameters()
    directions = directions or DirectionsClient()
    rng = rng or random.Random()
    diag: Dict[str, Any] = {
        "duration_minutes": params.duration_minutes,
        "curvature": params.curvature.value,
        "elevation": params.elevation.value,
    }
    try:
        origin = validate_coordinate(lat, lon)
    except ValueError as e:
        logger.error(f"Invalid origin: {e}")
        return _empty_result("Invalid origin", diag)

    # STEP 1: candidate destination, elevation filter
    if on_stage:
        on_stage(STAGE_GENERATING_DESTINATION)
    segments = []
    if params.curvature != CurvatureMode.NONE:
        if curvy_library is None:
            curvy_library = CurvyRoadLibrary()
        segments = curvy_library.select(params.curvature)
        diag["segments_loaded"] = len(segments)
    elif curvy_library is not None:
        curvy_library.select(CurvatureMode.NONE)

    one_way_mi = params.one_way_miles
    generate = make_candidate_generator(origin, one_way_mi, params.curvature, segments, rng)
    if params.elevation != ElevationMode.NONE and elevation_client is None:
        elevation_client = ElevationClient()
    destination = find_destination(
        origin,
        generate,
        mode=params.elevation,
        elevation_client=elevation_client,
        max_attempts=max_elevation_attempts,
        diagnostics=diag,
    )
    if destination is None:
        logger.error("No candidate destination found")
        return _empty_result("No destination candidate", diag)
    logger.info(f"Destination ({destination.lat:.5f}, {destination.lon:.5f}) after {diag.get('attempts')} attempt(s)")

    # STEP 2: outbound/return alternatives, least-overlap pair
    if on_stage:
        on_stage(STAGE_FETCHING_ROUTES)
    selection = fetch_round_trip(origin, destination, directions, overlap_threshold_m)
    if selection is None:
        return _empty_result("No route", diag)

    # STEP 3: output
    return {
        "polyline": encode_path(selection.combined),
        "outbound_polyline": encode_path(selection.outbound),
        "return_polyline": encode_path(selection.return_path),
        "origin": {"lat": origin.lat, "lon": origin.lon},
        "destination": {"lat": destination.lat, "lon": destination.lon},
        "target_distance_mi": round(params.total_miles, 2),
        "one_way_distance_mi": round(one_way_mi, 2),
        "overlap_score": selection.overlap_score,
        "outbound_alternatives": selection.outbound_alternatives,
        "return_alternatives": selection.return_alternatives,
        "elevation_attempts": diag.get("attempts", 0),
        "elevation_satisfied": diag.get("satisfied", False),
    }
