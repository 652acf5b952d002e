"""
Per-user transient trip state, kept in memory.

Every route generation takes a new generation number. Stage updates and
results carrying an older number are ignored, so a slow response from an
earlier request can never overwrite a newer one.
"""
import threading
from enum import Enum
from typing import Any, Dict, Optional


class TripState(str, Enum):
    IDLE = "idle"
    GENERATING_DESTINATION = "generating_destination"
    FETCHING_ROUTES = "fetching_routes"
    ROUTE_READY = "route_ready"
    NAVIGATING = "navigating"


# username -> state / latest generation / last ready route
_state: Dict[str, TripState] = {}
_generation: Dict[str, int] = {}
_last_route: Dict[str, Dict[str, Any]] = {}
_lock = threading.Lock()


def begin_generation(username: str) -> Optional[int]:
    """New generation number for username, or None while the user is navigating."""
    with _lock:
        if _state.get(username) == TripState.NAVIGATING:
            return None
        token = _generation.get(username, 0) + 1
        _generation[username] = token
        _state[username] = TripState.GENERATING_DESTINATION
        return token


def is_current(username: str, token: int) -> bool:
    return _generation.get(username) == token


def set_stage(username: str, token: int, state: TripState) -> bool:
    with _lock:
        if not is_current(username, token):
            return False
        _state[username] = TripState(state)
        return True


def set_route_ready(username: str, token: int, route: Dict[str, Any]) -> bool:
    with _lock:
        if not is_current(username, token):
            return False
        _state[username] = TripState.ROUTE_READY
        _last_route[username] = route
        return True


def set_failed(username: str, token: int) -> bool:
    """A failed generation returns to route-ready if an earlier route exists, else idle."""
    with _lock:
        if not is_current(username, token):
            return False
        _state[username] = TripState.ROUTE_READY if username in _last_route else TripState.IDLE
        return True


def set_navigating(username: str, navigating: bool) -> bool:
    """
    Enter navigation from route-ready, or leave it. Returns False when a route
    is being generated or there is no route to navigate.
    """
    with _lock:
        state = _state.get(username, TripState.IDLE)
        if navigating:
            if state not in (TripState.ROUTE_READY, TripState.NAVIGATING) or username not in _last_route:
                return False
            _state[username] = TripState.NAVIGATING
        elif state == TripState.NAVIGATING:
            _state[username] = TripState.ROUTE_READY if username in _last_route else TripState.IDLE
        return True


def get_state(username: str) -> TripState:
    return _state.get(username, TripState.IDLE)


def get_last_route(username: str) -> Optional[Dict[str, Any]]:
    return _last_route.get(username)


def clear(username: str) -> None:
    with _lock:
        _state.pop(username, None)
        _generation.pop(username, None)
        _last_route.pop(username, None)
