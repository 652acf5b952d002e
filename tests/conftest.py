import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.account_db import AccountStore
from joyride.models import Coordinate
from joyride.navigation import NavigationEngine, RouteStatus

ORIGIN = Coordinate(51.5, -0.12)


def line(lat, lon, n=5, step=0.001):
    """n points heading east from (lat, lon), roughly 70 m apart at London's latitude."""
    return [Coordinate(lat, lon + k * step) for k in range(n)]


class FakeDirections:
    """Stands in for DirectionsClient: alternatives calls alternate between the outbound and the return leg."""

    def __init__(self, outbound=None, back=None, status="OK", on_call=None):
        self.outbound = outbound if outbound is not None else [line(51.5, -0.12), line(51.51, -0.12)]
        self.back = back if back is not None else [line(51.5, -0.12), line(51.49, -0.12)]
        self.status = status
        self.on_call = on_call
        self.alternative_calls = []
        self.requests = []

    def get_route_alternatives(self, origin, destination):
        self.alternative_calls.append((origin, destination))
        if self.on_call:
            self.on_call(len(self.alternative_calls))
        return self.outbound if len(self.alternative_calls) % 2 == 1 else self.back

    def request(self, origin, destination, alternatives=False, waypoints=()):
        self.requests.append((origin, destination, list(waypoints)))
        return self.status, {}


class FakeElevation:
    """Returns the origin elevation first, then the candidate elevations in order (repeating the last one)."""

    def __init__(self, origin_elevation, candidate_elevations):
        self.origin_elevation = origin_elevation
        self.candidate_elevations = list(candidate_elevations)
        self.calls = []

    def get_elevation(self, coord):
        self.calls.append(coord)
        if len(self.calls) == 1:
            return self.origin_elevation
        i = min(len(self.calls) - 2, len(self.candidate_elevations) - 1)
        return self.candidate_elevations[i]


class FakeNavigator(NavigationEngine):
    def __init__(self, status=RouteStatus.OK):
        self.status = status
        self.waypoints = None

    def set_destinations(self, waypoints):
        self.waypoints = list(waypoints)
        return self.status


KML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    {placemarks}
  </Document>
</kml>
"""


def kml_document(*blocks):
    """KML text with one LineString placemark per coordinate block ("lon,lat,alt lon,lat,alt ...")."""
    placemarks = "\n".join(
        f"<Placemark><name>Road {i}</name><LineString><coordinates>{b}</coordinates></LineString></Placemark>"
        for i, b in enumerate(blocks)
    )
    return KML_TEMPLATE.format(placemarks=placemarks)


@pytest.fixture
def store(tmp_path):
    s = AccountStore(f"sqlite:///{tmp_path / 'accounts.db'}")
    s.init_db()
    yield s
    s.dispose()


@pytest.fixture
def kml_dir(tmp_path):
    """Two tiers near the Peak District: low has one road near Hathersage, high has one near Snake Pass and one in Scotland."""
    d = tmp_path / "kml"
    d.mkdir()
    (d / "curvy_low.kml").write_text(
        kml_document("-1.650,53.330,0 -1.640,53.332,0 -1.630,53.334,0"),
        encoding="utf-8",
    )
    (d / "curvy_high.kml").write_text(
        kml_document(
            "-1.860,53.430,0 -1.850,53.432,0 -1.840,53.434,0",
            "-4.200,57.100,0 -4.190,57.102,0 -4.180,57.104,0",
        ),
        encoding="utf-8",
    )
    return d
