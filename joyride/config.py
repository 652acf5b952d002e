"""
Configuration for JoyRide route generation and the backend service.
Values come from the environment (a local .env file is loaded if present).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_PACKAGE_DIR = Path(__file__).resolve().parent

# Google Maps Platform (Directions + Elevation share one key)
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
ELEVATION_URL = "https://maps.googleapis.com/maps/api/elevation/json"
REQUEST_TIMEOUT_S = 10

# Geometry
EARTH_RADIUS_M = 6378137.0
METERS_PER_MILE = 1609.34

# Trip duration bucket (minutes) -> total round-trip miles
AVERAGE_SPEED_MPH = 20.0
TRIP_DURATION_BUCKETS = (30, 60)

# Elevation filter
LOW_ELEVATION_MAX_DIFF_M = 20.0
HIGH_ELEVATION_MIN_DIFF_M = 50.0
MAX_ELEVATION_ATTEMPTS = int(os.getenv("JOYRIDE_MAX_ELEVATION_ATTEMPTS", "5"))

# Overlap scorer
OVERLAP_PROXIMITY_M = 50.0

# Curvy road tiers (KML file per tier)
KML_DATA_DIR = Path(os.getenv("JOYRIDE_KML_DIR", str(_PACKAGE_DIR / "data")))
CURVY_KML_FILES = {
    "low": "curvy_low.kml",
    "high": "curvy_high.kml",
}

# Backend
DATABASE_URL = os.getenv(
    "JOYRIDE_DATABASE_URL",
    f"sqlite:///{_PACKAGE_DIR.parent / 'backend' / 'joyride.db'}",
)
SESSION_TIMEOUT_SECONDS = 3600

# Logging
LOG_LEVEL = os.getenv("JOYRIDE_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
