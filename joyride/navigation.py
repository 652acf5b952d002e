"""
Hand-off to a turn-by-turn navigation engine.

The engine is a black box: it takes an ordered list of waypoints and answers
with a route status. Nothing here models guidance itself; callers only check
that the status is OK before treating the trip as navigating.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Sequence

from .directions import DirectionsClient
from .models import Coordinate

logger = logging.getLogger(__name__)


class RouteStatus(str, Enum):
    OK = "ok"
    NO_ROUTE_FOUND = "no_route_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK_ERROR = "network_error"


class NavigationEngine(ABC):

    @abstractmethod
    def set_destinations(self, waypoints: Sequence[Coordinate]) -> RouteStatus:
        """Hand the ordered waypoints (start first) to the engine and report whether it could route them."""


_PROVIDER_STATUS = {
    "OK": RouteStatus.OK,
    "ZERO_RESULTS": RouteStatus.NO_ROUTE_FOUND,
    "NOT_FOUND": RouteStatus.NO_ROUTE_FOUND,
    "MAX_WAYPOINTS_EXCEEDED": RouteStatus.NO_ROUTE_FOUND,
    "MAX_ROUTE_LENGTH_EXCEEDED": RouteStatus.NO_ROUTE_FOUND,
    "OVER_QUERY_LIMIT": RouteStatus.QUOTA_EXCEEDED,
    "OVER_DAILY_LIMIT": RouteStatus.QUOTA_EXCEEDED,
}


class DirectionsNavigator(NavigationEngine):
    """Engine backed by the Directions API: a waypoint list is navigable if the provider can route it."""

    def __init__(self, directions: DirectionsClient):
        self.directions = directions

    def set_destinations(self, waypoints: Sequence[Coordinate]) -> RouteStatus:
        if len(waypoints) < 2:
            return RouteStatus.NO_ROUTE_FOUND
        status, _ = self.directions.request(waypoints[0], waypoints[-1], waypoints=list(waypoints[1:-1]))
        return _PROVIDER_STATUS.get(status, RouteStatus.NETWORK_ERROR)


def round_trip_waypoints(origin: Coordinate, destination: Coordinate) -> List[Coordinate]:
    return [origin, destination, origin]


def start_navigation(engine: NavigationEngine, waypoints: Sequence[Coordinate]) -> RouteStatus:
    status = engine.set_destinations(list(waypoints))
    if status != RouteStatus.OK:
        logger.error(f"Route error: {status.value}")
    else:
        logger.info(f"Navigation started through {len(waypoints)} waypoints")
    return status
