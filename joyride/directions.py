"""
Directions lookups and the round-trip route fetcher.

Both legs are requested with alternatives, decoded from their overview
polylines, and the outbound/return pair that overlaps least is kept.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import polyline
import requests

from .config import DIRECTIONS_URL, GOOGLE_MAPS_API_KEY, OVERLAP_PROXIMITY_M, REQUEST_TIMEOUT_S
from .models import Coordinate, RoutePath, RouteSelection
from .overlap import select_least_overlapping_pair

logger = logging.getLogger(__name__)


def decode_path(encoded: str) -> RoutePath:
    """Decode an encoded polyline. Raises ValueError when the string is malformed."""
    if not isinstance(encoded, str) or not encoded:
        raise ValueError("empty polyline")
    try:
        points = polyline.decode(encoded)
    except (IndexError, TypeError, ValueError) as e:
        raise ValueError(f"malformed polyline: {e}") from e
    return [Coordinate(lat, lon) for lat, lon in points]


def encode_path(path: Sequence[Coordinate]) -> str:
    if not path:
        return ""
    return polyline.encode([(p[0], p[1]) for p in path])


def _latlng(coord: Coordinate) -> str:
    return f"{coord.lat},{coord.lon}"


class DirectionsClient:
    """Google Directions API client for driving routes."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT_S):
        self.api_key = api_key or GOOGLE_MAPS_API_KEY
        if not self.api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is not set")
        self.session = session
        self.timeout = timeout

    def request(
        self,
        origin: Coordinate,
        destination: Coordinate,
        alternatives: bool = False,
        waypoints: Sequence[Coordinate] = (),
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Raw call. Returns (status, payload) where status is the provider status
        string, or "NETWORK_ERROR" / "INVALID_RESPONSE" when no usable answer came back.
        """
        params = {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": "driving",
            "key": self.api_key,
        }
        if alternatives:
            params["alternatives"] = "true"
        if waypoints:
            params["waypoints"] = "|".join(_latlng(w) for w in waypoints)
        requester = self.session if self.session else requests
        try:
            r = requester.get(DIRECTIONS_URL, params=params, timeout=self.timeout)
            r.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Directions request {_latlng(origin)} -> {_latlng(destination)} failed: {e}")
            return "NETWORK_ERROR", {}
        try:
            data = r.json()
        except ValueError as e:
            logger.warning(f"Directions response was not JSON: {e}")
            return "INVALID_RESPONSE", {}
        if not isinstance(data, dict):
            logger.warning("Directions response was not a JSON object")
            return "INVALID_RESPONSE", {}
        return data.get("status", "INVALID_RESPONSE"), data

    def get_route_alternatives(self, origin: Coordinate, destination: Coordinate) -> List[RoutePath]:
        """Every decodable route alternative between the two points; [] on failure."""
        status, data = self.request(origin, destination, alternatives=True)
        if status != "OK":
            logger.warning(f"No route {_latlng(origin)} -> {_latlng(destination)}. Status: {status}")
            return []
        paths = []
        for i, route in enumerate(data.get("routes") or []):
            try:
                encoded = route["overview_polyline"]["points"]
                paths.append(decode_path(encoded))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping route alternative {i}: {e}")
        return paths


def fetch_round_trip(
    origin: Coordinate,
    destination: Coordinate,
    directions: DirectionsClient,
    threshold_m: float = OVERLAP_PROXIMITY_M,
) -> Optional[RouteSelection]:
    """Outbound and return alternatives, reduced to the least-overlapping pair. None if either leg has no route."""
    outbound_paths = directions.get_route_alternatives(origin, destination)
    if not outbound_paths:
        logger.error("No outbound route found")
        return None
    return_paths = directions.get_route_alternatives(destination, origin)
    if not return_paths:
        logger.error("No return route found")
        return None

    logger.info(f"Scoring {len(outbound_paths)} outbound x {len(return_paths)} return alternatives")
    best = select_least_overlapping_pair(outbound_paths, return_paths, threshold_m)
    if best is None:
        logger.warning("Could not score route pairs, using the first alternative of each leg")
        return RouteSelection(
            outbound=outbound_paths[0],
            return_path=return_paths[0],
            outbound_alternatives=len(outbound_paths),
            return_alternatives=len(return_paths),
        )
    i, j, score = best
    logger.info(f"Selected outbound {i} / return {j} with overlap score {score}")
    return RouteSelection(
        outbound=outbound_paths[i],
        return_path=return_paths[j],
        overlap_score=score,
        outbound_alternatives=len(outbound_paths),
        return_alternatives=len(return_paths),
    )
