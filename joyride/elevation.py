"""
Elevation lookups and the bounded-retry elevation filter.

The filter keeps drawing candidate destinations until one has the requested
elevation difference from the origin, giving up after max_attempts and
returning the last candidate it drew.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .config import (
    ELEVATION_URL,
    GOOGLE_MAPS_API_KEY,
    HIGH_ELEVATION_MIN_DIFF_M,
    LOW_ELEVATION_MAX_DIFF_M,
    MAX_ELEVATION_ATTEMPTS,
    REQUEST_TIMEOUT_S,
)
from .destination import CandidateGenerator
from .models import Coordinate, ElevationMode

logger = logging.getLogger(__name__)


class ElevationClient:
    """Google Elevation API client. Returns None on any failure."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT_S):
        self.api_key = api_key or GOOGLE_MAPS_API_KEY
        if not self.api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is not set")
        self.session = session
        self.timeout = timeout

    def get_elevation(self, coord: Coordinate) -> Optional[float]:
        params = {
            "locations": f"{coord.lat},{coord.lon}",
            "key": self.api_key,
        }
        requester = self.session if self.session else requests
        try:
            r = requester.get(ELEVATION_URL, params=params, timeout=self.timeout)
            r.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Elevation request failed for ({coord.lat}, {coord.lon}): {e}")
            return None
        try:
            data = r.json()
        except ValueError as e:
            logger.warning(f"Elevation response was not JSON for ({coord.lat}, {coord.lon}): {e}")
            return None
        if not isinstance(data, dict) or data.get("status") != "OK" or not data.get("results"):
            status = data.get("status") if isinstance(data, dict) else None
            logger.warning(f"No elevation for ({coord.lat}, {coord.lon}). Status: {status}")
            return None
        try:
            return float(data["results"][0]["elevation"])
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning(f"Could not parse elevation response for ({coord.lat}, {coord.lon})")
            return None


def elevation_ok(difference_m: float, mode: ElevationMode) -> bool:
    mode = ElevationMode(mode)
    if mode == ElevationMode.LOW:
        return difference_m <= LOW_ELEVATION_MAX_DIFF_M
    if mode == ElevationMode.HIGH:
        return difference_m >= HIGH_ELEVATION_MIN_DIFF_M
    return True


def find_destination(
    origin: Coordinate,
    generate: CandidateGenerator,
    mode: ElevationMode = ElevationMode.NONE,
    elevation_client: Optional[ElevationClient] = None,
    max_attempts: int = MAX_ELEVATION_ATTEMPTS,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> Optional[Coordinate]:
    """
    Draw up to max_attempts candidates and return the first that satisfies the
    elevation mode, else the last candidate drawn (None only if the generator
    never produced one).

    If the origin elevation cannot be fetched, the first candidate is accepted
    as-is. A candidate whose own elevation cannot be fetched counts as a failed
    attempt. diagnostics, if given, receives attempts/satisfied/origin_elevation.
    """
    mode = ElevationMode(mode)
    max_attempts = max(1, int(max_attempts))
    if mode != ElevationMode.NONE and elevation_client is None:
        raise ValueError("An elevation client is required when an elevation mode is set")

    origin_elevation = None
    check_elevation = mode != ElevationMode.NONE
    if check_elevation:
        origin_elevation = elevation_client.get_elevation(origin)
        if origin_elevation is None:
            logger.warning("Origin elevation unavailable, accepting first candidate unconditionally")
            check_elevation = False

    last = None
    satisfied = False
    attempts = 0
    for attempts in range(1, max_attempts + 1):
        candidate = generate()
        if candidate is None:
            logger.info(f"Attempt {attempts}/{max_attempts}: no candidate destination")
            continue
        last = candidate
        if not check_elevation:
            satisfied = True
            break
        candidate_elevation = elevation_client.get_elevation(candidate)
        if candidate_elevation is None:
            logger.info(f"Attempt {attempts}/{max_attempts}: candidate elevation unavailable")
            continue
        difference = abs(candidate_elevation - origin_elevation)
        if elevation_ok(difference, mode):
            logger.info(f"Attempt {attempts}/{max_attempts}: accepted, elevation difference {difference:.1f} m")
            satisfied = True
            break
        logger.info(f"Attempt {attempts}/{max_attempts}: rejected, elevation difference {difference:.1f} m ({mode.value})")

    if last is not None and not satisfied:
        logger.info(f"No candidate met the '{mode.value}' elevation condition after {attempts} attempts, using the last one")

    if diagnostics is not None:
        diagnostics["attempts"] = attempts
        diagnostics["satisfied"] = satisfied
        diagnostics["origin_elevation"] = origin_elevation
    return last
