"""Run: python -m joyride [lat] [lon] [--minutes 30|60] [--curvature none|low|high] [--elevation none|low|high]
   With no coordinates, uses your approximate location (from IP). Saves route_map.html; open it in a browser.
"""
import argparse
import logging
import sys
from typing import Optional, Tuple

import requests

from .config import LOG_FORMAT, LOG_LEVEL, TRIP_DURATION_BUCKETS
from .models import CurvatureMode, ElevationMode, TripParameters

logger = logging.getLogger("joyride")


def get_user_location() -> Optional[Tuple[float, float]]:
    """Get approximate (lat, lon) from the user's IP. Returns None on failure."""
    try:
        r = requests.get("https://ipapi.co/json/", timeout=5)
        r.raise_for_status()
        data = r.json()
        lat = data.get("latitude")
        lon = data.get("longitude")
        if lat is not None and lon is not None:
            return (float(lat), float(lon))
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"ipapi.co lookup failed: {e}")
    try:
        r = requests.get("http://ip-api.com/json/?fields=lat,lon", timeout=5)
        r.raise_for_status()
        data = r.json()
        return (float(data["lat"]), float(data["lon"]))
    except (requests.exceptions.RequestException, ValueError, KeyError) as e:
        logger.warning(f"ip-api.com lookup failed: {e}")
    return None


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="python -m joyride", description="Generate a scenic round-trip driving route.")
    parser.add_argument("lat", nargs="?", type=float)
    parser.add_argument("lon", nargs="?", type=float)
    parser.add_argument("--minutes", type=int, default=30, choices=TRIP_DURATION_BUCKETS)
    parser.add_argument("--curvature", default="none", choices=[m.value for m in CurvatureMode])
    parser.add_argument("--elevation", default="none", choices=[m.value for m in ElevationMode])
    parser.add_argument("--output", default="route_map.html")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    args = _parse_args(argv)
    if args.lat is not None and args.lon is not None:
        lat, lon = args.lat, args.lon
        print(f"Using location: {lat}, {lon}")
    else:
        loc = get_user_location()
        if loc:
            lat, lon = loc
            print(f"Using your location (from IP): {lat:.4f}, {lon:.4f}")
        else:
            lat, lon = 51.5, -0.12
            print("Could not get your location; using central London. Pass lat lon to override.")

    from .builder import generate_round_trip
    from .view_route import save_route_map

    params = TripParameters.from_request(args.minutes, args.curvature, args.elevation)
    print(f"Building a {params.duration_minutes} min round trip (~{params.total_miles:.0f} mi)...")
    result = generate_round_trip(lat, lon, params)
    if result.get("error"):
        print("Error:", result["error"])
        print("Diagnostics:", result.get("diagnostics"))
        return 1
    dest = result["destination"]
    print(f"Destination: {dest['lat']:.5f}, {dest['lon']:.5f}  overlap score: {result.get('overlap_score')}")
    try:
        out = save_route_map(result, args.output)
        print("Map saved:", out)
        print("Open that file in your browser to see the route.")
    except (OSError, ValueError) as e:
        print("Could not save map:", e)
    return 0


if __name__ == "__main__":
    sys.exit(main())
