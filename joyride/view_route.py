"""
Save a round trip to an HTML file you can open in a browser to view the map.
No API key required; uses Leaflet + OSM tiles.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import polyline

logger = logging.getLogger(__name__)


def _decode_polyline(encoded: str) -> List[List[float]]:
    """Decode Google-style polyline to list of [lat, lon]; [] if it cannot be decoded."""
    if not encoded:
        return []
    try:
        return [list(p) for p in polyline.decode(encoded)]
    except (IndexError, TypeError, ValueError) as e:
        logger.warning(f"Could not decode polyline for map: {e}")
        return []


def save_route_map(result: Dict[str, Any], output_path: str = "route_map.html") -> str:
    """
    Write an HTML file that displays the outbound leg (blue) and the return leg (green) on an OSM map.
    Returns the absolute path to the file.
    """
    outbound = _decode_polyline(result.get("outbound_polyline") or "")
    back = _decode_polyline(result.get("return_polyline") or "")
    if not outbound and not back:
        raise ValueError("No route polylines in result; cannot draw route.")

    points = outbound + back
    lat_center = sum(p[0] for p in points) / len(points)
    lon_center = sum(p[1] for p in points) / len(points)

    origin = result.get("origin") or {"lat": points[0][0], "lon": points[0][1]}
    dest = result.get("destination") or {"lat": points[-1][0], "lon": points[-1][1]}

    html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <title>JoyRide Round Trip</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
</head>
<body>
  <div id="map" style="height: 600px; width: 100%;"></div>
  <p style="margin: 10px;">
    Target distance: {result.get('target_distance_mi', 0)} mi &nbsp;
    Overlap score: {result.get('overlap_score', 'n/a')} &nbsp;
    Alternatives: {result.get('outbound_alternatives', 0)} out / {result.get('return_alternatives', 0)} back
  </p>
  <script>
    var map = L.map('map').setView([{lat_center}, {lon_center}], 11);
    L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
      attribution: '&copy; OpenStreetMap'
    }}).addTo(map);
    var outbound = L.polyline({outbound}, {{color: 'blue', weight: 5, opacity: 0.8}}).addTo(map);
    var back = L.polyline({back}, {{color: 'green', weight: 5, opacity: 0.8}}).addTo(map);
    map.fitBounds(L.featureGroup([outbound, back]).getBounds());
    L.marker([{origin['lat']}, {origin['lon']}]).addTo(map).bindPopup('Start');
    L.marker([{dest['lat']}, {dest['lon']}]).addTo(map).bindPopup('Destination');
  </script>
</body>
</html>
"""
    out = Path(output_path).resolve()
    out.write_text(html, encoding="utf-8")
    return str(out)
