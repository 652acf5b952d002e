import logging
from typing import Optional

import uvicorn
from fastapi import Body, Cookie, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from backend import session_id_manager, trip_state_store
from backend.account_db import (
    AccountStore,
    AlreadyFriendsError,
    MissingFieldsError,
    PolicyNotAcceptedError,
    SelfFriendError,
    UnknownUserError,
    UsernameTakenError,
)
from backend.trip_state_store import TripState
from joyride.builder import STAGE_FETCHING_ROUTES, STAGE_GENERATING_DESTINATION, generate_round_trip
from joyride.config import DATABASE_URL, GOOGLE_MAPS_API_KEY, LOG_FORMAT, LOG_LEVEL
from joyride.curvy_roads import CurvyRoadLibrary
from joyride.directions import DirectionsClient
from joyride.elevation import ElevationClient
from joyride.geo import validate_coordinate
from joyride.models import Coordinate, ElevationMode, TripParameters
from joyride.navigation import DirectionsNavigator, NavigationEngine, RouteStatus, round_trip_waypoints, start_navigation

logger = logging.getLogger(__name__)

# Default location (central London)
_DEFAULT_LAT, _DEFAULT_LON = 51.5, -0.12

DELETE_CONFIRMATION = "DELETE"

_STAGE_STATES = {
    STAGE_GENERATING_DESTINATION: TripState.GENERATING_DESTINATION,
    STAGE_FETCHING_ROUTES: TripState.FETCHING_ROUTES,
}

app = FastAPI(title="JoyRide API")


def configure(
    store: AccountStore,
    directions: Optional[DirectionsClient] = None,
    elevation_client: Optional[ElevationClient] = None,
    curvy_library: Optional[CurvyRoadLibrary] = None,
    navigator: Optional[NavigationEngine] = None,
) -> FastAPI:
    """Attach the services the endpoints use. The store must already be initialised."""
    app.state.store = store
    app.state.directions = directions
    app.state.elevation_client = elevation_client
    app.state.curvy_library = curvy_library or CurvyRoadLibrary()
    if navigator is None and directions is not None:
        navigator = DirectionsNavigator(directions)
    app.state.navigator = navigator
    return app


def _not_connected() -> JSONResponse:
    return JSONResponse({"error": "Not signed in."}, status_code=401)


class RegisterBody(BaseModel):
    email: str = ""
    username: str = ""
    password: str = ""
    accepted_policy: bool = False


class LoginBody(BaseModel):
    username: str = ""
    password: str = ""


class DeleteAccountBody(BaseModel):
    confirmation: str = ""


class FriendBody(BaseModel):
    username: str = ""


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/register")
def register(body: RegisterBody):
    """Create an account. 400 if a field is missing or the policy was not accepted, 409 if the username is taken."""
    try:
        app.state.store.register(body.email, body.username, body.password, accepted_policy=body.accepted_policy)
    except (MissingFieldsError, PolicyNotAcceptedError) as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except UsernameTakenError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return {"status": "registered", "username": body.username.strip()}


@app.post("/login")
def login(body: LoginBody):
    """Check credentials, start a session cookie and mark the user online."""
    username = body.username.strip()
    if not app.state.store.authenticate(username, body.password):
        return JSONResponse({"error": "Invalid username or password. Please try again."}, status_code=401)
    app.state.store.set_online(username, True)
    session_id = session_id_manager.create_session(username)
    response = JSONResponse({"status": "signed_in", "username": username})
    session_id_manager.set_session_cookie(response, session_id)
    return response


@app.get("/signout")
def signout(session_id: str | None = Cookie(None)):
    """Clear session and mark the user offline."""
    username = session_id_manager.get_username_from_session(session_id)
    if username is not None:
        app.state.store.set_online(username, False)
    session_id_manager.delete_session(session_id)
    response = JSONResponse({"status": "signed_out"})
    response.delete_cookie(session_id_manager.SESSION_COOKIE_NAME)
    return response


@app.post("/account/delete")
def delete_account(
    session_id: str | None = Cookie(None),
    body: Optional[DeleteAccountBody] = Body(default=None),
):
    """Delete the signed-in account. The body must carry confirmation == "DELETE"."""
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    b = body or DeleteAccountBody()
    if b.confirmation != DELETE_CONFIRMATION:
        return JSONResponse({"error": f"Type {DELETE_CONFIRMATION} to confirm account deletion."}, status_code=400)
    app.state.store.delete_account(username)
    session_id_manager.delete_user_sessions(username)
    trip_state_store.clear(username)
    response = JSONResponse({"status": "deleted", "username": username})
    response.delete_cookie(session_id_manager.SESSION_COOKIE_NAME)
    return response


@app.get("/friends")
def list_friends(session_id: str | None = Cookie(None)):
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    return {"friends": app.state.store.list_friends(username)}


@app.post("/friends")
def add_friend(session_id: str | None = Cookie(None), body: Optional[FriendBody] = Body(default=None)):
    """Add a friend by username. 400 self, 404 unknown user, 409 already friends."""
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    friend = (body or FriendBody()).username.strip()
    try:
        app.state.store.add_friend(username, friend)
    except SelfFriendError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except UnknownUserError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except AlreadyFriendsError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    return {"status": "added", "friend": friend}


@app.delete("/friends/{friend}")
def remove_friend(friend: str, session_id: str | None = Cookie(None)):
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    if not app.state.store.remove_friend(username, friend):
        return JSONResponse({"error": f"You are not friends with {friend}."}, status_code=404)
    return {"status": "removed", "friend": friend}


@app.get("/route")
async def route(
    session_id: str | None = Cookie(None),
    lat: float = Query(_DEFAULT_LAT, description="Latitude"),
    lon: float = Query(_DEFAULT_LON, description="Longitude"),
    minutes: int = Query(30, description="Trip duration bucket in minutes"),
    curvature: str = Query("none", description="none | low | high"),
    elevation: str = Query("none", description="none | low | high"),
):
    """
    Generate a round trip from (lat, lon). 401 not signed in, 400 bad parameters,
    409 while navigating or if a newer request for the same user finished first,
    500 if the map provider clients cannot be built.
    Route failures (no destination, no route) come back as 200 with an "error" key.
    """
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    try:
        validate_coordinate(lat, lon)
        params = TripParameters.from_request(minutes, curvature, elevation)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    directions = app.state.directions
    elevation_client = app.state.elevation_client
    try:
        if directions is None:
            directions = DirectionsClient()
        if params.elevation != ElevationMode.NONE and elevation_client is None:
            elevation_client = ElevationClient()
    except ValueError as e:
        logger.error(f"Map provider clients unavailable: {e}")
        return JSONResponse({"error": "Route generation failed."}, status_code=500)

    token = trip_state_store.begin_generation(username)
    if token is None:
        return JSONResponse({"error": "Stop navigation before generating a new route."}, status_code=409)

    def on_stage(stage: str) -> None:
        trip_state_store.set_stage(username, token, _STAGE_STATES.get(stage, TripState.GENERATING_DESTINATION))

    result = await run_in_threadpool(
        generate_round_trip,
        lat,
        lon,
        params,
        directions=directions,
        elevation_client=elevation_client,
        curvy_library=app.state.curvy_library,
        on_stage=on_stage,
    )

    if result.get("error"):
        if not trip_state_store.set_failed(username, token):
            logger.info(f"Discarding stale failed route for {username}")
        return result

    if not trip_state_store.set_route_ready(username, token, result):
        logger.info(f"Discarding stale route for {username} (generation {token})")
        return JSONResponse({"error": "A newer route request replaced this one.", "stale": True}, status_code=409)
    return result


@app.get("/trip/status")
def trip_status(session_id: str | None = Cookie(None)):
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    return {
        "state": trip_state_store.get_state(username).value,
        "has_route": trip_state_store.get_last_route(username) is not None,
    }


@app.post("/navigation/start")
async def navigation_start(session_id: str | None = Cookie(None)):
    """Hand the last ready round trip to the navigation engine. 409 no route, 502 engine refused it."""
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    last = trip_state_store.get_last_route(username)
    if last is None:
        return JSONResponse({"error": "Generate a route first."}, status_code=409)
    if trip_state_store.get_state(username) not in (TripState.ROUTE_READY, TripState.NAVIGATING):
        return JSONResponse({"error": "A new route is still being generated."}, status_code=409)
    if app.state.navigator is None:
        return JSONResponse({"error": "Navigation is not available."}, status_code=503)

    origin = Coordinate(last["origin"]["lat"], last["origin"]["lon"])
    destination = Coordinate(last["destination"]["lat"], last["destination"]["lon"])
    status = await run_in_threadpool(start_navigation, app.state.navigator, round_trip_waypoints(origin, destination))
    if status != RouteStatus.OK:
        return JSONResponse({"error": f"Route error: {status.value}", "status": status.value}, status_code=502)
    if not trip_state_store.set_navigating(username, True):
        return JSONResponse({"error": "A new route is still being generated."}, status_code=409)
    return {"state": trip_state_store.get_state(username).value, "status": status.value}


@app.post("/navigation/stop")
def navigation_stop(session_id: str | None = Cookie(None)):
    username = session_id_manager.get_username_from_session(session_id)
    if username is None:
        return _not_connected()
    trip_state_store.set_navigating(username, False)
    return {"state": trip_state_store.get_state(username).value}


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    store = AccountStore(DATABASE_URL)
    store.init_db()
    directions = None
    elevation_client = None
    if GOOGLE_MAPS_API_KEY:
        directions = DirectionsClient()
        elevation_client = ElevationClient()
    else:
        logger.error("GOOGLE_MAPS_API_KEY is not set; route generation and navigation will fail")
    configure(store, directions, elevation_client)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
