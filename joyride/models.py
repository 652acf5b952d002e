"""
Data types shared across the round-trip pipeline. All of them are transient:
they are rebuilt every time a route is generated.
"""
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional

from .config import AVERAGE_SPEED_MPH, TRIP_DURATION_BUCKETS


class Coordinate(NamedTuple):
    lat: float
    lon: float


RoutePath = List[Coordinate]


class CurvatureMode(str, Enum):
    NONE = "none"
    LOW = "low"
    HIGH = "high"


class ElevationMode(str, Enum):
    NONE = "none"
    LOW = "low"
    HIGH = "high"


@dataclass
class RoadSegment:
    """One <coordinates> block from a curvy-road KML file."""
    coordinates: List[Coordinate]

    @property
    def midpoint(self) -> Coordinate:
        # Positional middle of the point list, not the geometric midpoint.
        return self.coordinates[len(self.coordinates) // 2]

    def random_coordinate(self, rng: Optional[random.Random] = None) -> Coordinate:
        rng = rng or random.Random()
        return rng.choice(self.coordinates)


@dataclass
class RouteSelection:
    outbound: RoutePath
    return_path: RoutePath
    overlap_score: Optional[int] = None
    outbound_alternatives: int = 1
    return_alternatives: int = 1

    @property
    def combined(self) -> RoutePath:
        if self.outbound and self.return_path and self.outbound[-1] == self.return_path[0]:
            return list(self.outbound) + list(self.return_path[1:])
        return list(self.outbound) + list(self.return_path)


@dataclass
class TripParameters:
    duration_minutes: int = 30
    curvature: CurvatureMode = CurvatureMode.NONE
    elevation: ElevationMode = ElevationMode.NONE
    speed_mph: float = field(default=AVERAGE_SPEED_MPH, repr=False)

    @classmethod
    def from_request(cls, duration_minutes: int, curvature: str = "none", elevation: str = "none") -> "TripParameters":
        """Validate raw request values. Raises ValueError on anything unknown."""
        if duration_minutes not in TRIP_DURATION_BUCKETS:
            raise ValueError(
                f"Trip duration must be one of {', '.join(str(b) for b in TRIP_DURATION_BUCKETS)} minutes"
            )
        try:
            curvature_mode = CurvatureMode(curvature.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown curvature mode: {curvature}")
        try:
            elevation_mode = ElevationMode(elevation.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown elevation mode: {elevation}")
        return cls(duration_minutes, curvature_mode, elevation_mode)

    @property
    def total_miles(self) -> float:
        return self.duration_minutes / 60.0 * self.speed_mph

    @property
    def one_way_miles(self) -> float:
        return self.total_miles / 2.0
