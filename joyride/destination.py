"""Candidate destination generator: a random point at the target distance, or a point on a nearby curvy road."""

import logging
import random
from typing import Callable, List, Optional, Sequence

from .geo import bearing_to_point, distance_between_m, miles_to_m
from .models import Coordinate, CurvatureMode, RoadSegment

logger = logging.getLogger(__name__)

CandidateGenerator = Callable[[], Optional[Coordinate]]


def random_destination(origin: Coordinate, miles: float, rng: Optional[random.Random] = None) -> Coordinate:
    """Point exactly `miles` from origin on a uniformly random bearing in [0, 360)."""
    rng = rng or random.Random()
    bearing = rng.uniform(0, 360) % 360
    return bearing_to_point(origin.lat, origin.lon, bearing, miles)


def segments_within(origin: Coordinate, segments: Sequence[RoadSegment], max_miles: float) -> List[RoadSegment]:
    max_m = miles_to_m(max_miles)
    return [s for s in segments if s.coordinates and distance_between_m(origin, s.midpoint) <= max_m]


def curvy_destination(
    origin: Coordinate,
    segments: Sequence[RoadSegment],
    max_miles: float,
    rng: Optional[random.Random] = None,
) -> Optional[Coordinate]:
    """Random coordinate on a random segment whose midpoint lies within max_miles of origin."""
    if not segments:
        logger.warning("No curvy road segments loaded")
        return None
    nearby = segments_within(origin, segments, max_miles)
    if not nearby:
        logger.warning(f"None of {len(segments)} road segments is within {max_miles:.1f} mi of ({origin.lat}, {origin.lon})")
        return None
    rng = rng or random.Random()
    segment = rng.choice(nearby)
    return segment.random_coordinate(rng)


def make_candidate_generator(
    origin: Coordinate,
    miles: float,
    curvature: CurvatureMode = CurvatureMode.NONE,
    segments: Sequence[RoadSegment] = (),
    rng: Optional[random.Random] = None,
) -> CandidateGenerator:
    """Bind origin, distance and mode into a zero-argument generator for the elevation filter."""
    rng = rng or random.Random()
    if CurvatureMode(curvature) == CurvatureMode.NONE:
        return lambda: random_destination(origin, miles, rng)
    segments = list(segments)
    return lambda: curvy_destination(origin, segments, miles, rng)
