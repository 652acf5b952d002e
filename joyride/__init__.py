"""JoyRide round-trip builder: random or curvy-road destination, elevation filter, least-overlap route pair."""

from .builder import generate_round_trip
from .curvy_roads import CurvyRoadLibrary
from .directions import DirectionsClient, fetch_round_trip
from .elevation import ElevationClient, find_destination
from .models import Coordinate, CurvatureMode, ElevationMode, RoadSegment, RouteSelection, TripParameters
from .overlap import overlap_score, select_least_overlapping_pair

__all__ = [
    "generate_round_trip",
    "CurvyRoadLibrary",
    "DirectionsClient",
    "fetch_round_trip",
    "ElevationClient",
    "find_destination",
    "Coordinate",
    "CurvatureMode",
    "ElevationMode",
    "RoadSegment",
    "RouteSelection",
    "TripParameters",
    "overlap_score",
    "select_least_overlapping_pair",
]
