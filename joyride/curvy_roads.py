"""
Curvy road tiers loaded from bundled KML files.

Each file holds many <LineString><coordinates> blocks of "lon,lat[,alt]" tuples.
Every block becomes one RoadSegment. Only the coordinates are extracted; names,
styles and folders are ignored.
"""
import logging
import threading
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional

from .config import CURVY_KML_FILES, KML_DATA_DIR
from .models import Coordinate, CurvatureMode, RoadSegment

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_coordinate_block(text: str) -> List[Coordinate]:
    coords = []
    for token in (text or "").split():
        parts = token.split(",")
        if len(parts) < 2:
            logger.debug(f"Skipping malformed KML tuple '{token}'")
            continue
        try:
            lon, lat = float(parts[0]), float(parts[1])
        except ValueError:
            logger.debug(f"Skipping malformed KML tuple '{token}'")
            continue
        coords.append(Coordinate(lat, lon))
    return coords


def parse_kml(kml_text: str) -> List[RoadSegment]:
    """Parse KML text into road segments. Blocks with no usable tuple are dropped."""
    root = ET.fromstring(kml_text)
    segments = []
    for element in root.iter():
        if _local_name(element.tag) != "LineString":
            continue
        for child in element:
            if _local_name(child.tag) != "coordinates":
                continue
            coords = _parse_coordinate_block(child.text)
            if coords:
                segments.append(RoadSegment(coords))
    return segments


def load_kml_file(path: Path) -> List[RoadSegment]:
    """Read one tier file. Missing or unparseable files yield no segments."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not read curvy road file {path}: {e}")
        return []
    try:
        segments = parse_kml(text)
    except ET.ParseError as e:
        logger.error(f"Could not parse curvy road file {path}: {e}")
        return []
    logger.info(f"Loaded {len(segments)} road segments from {path}")
    return segments


class CurvyRoadLibrary:
    """
    Holds the segments of the currently selected curvature tier.

    Selecting a tier loads its KML file once; selecting a different tier
    replaces the loaded segments and selecting "none" discards them.
    """

    def __init__(self, data_dir: Optional[Path] = None, tier_files: Optional[Dict[str, str]] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else KML_DATA_DIR
        self.tier_files = dict(tier_files or CURVY_KML_FILES)
        self._mode = CurvatureMode.NONE
        self._segments: List[RoadSegment] = []
        self._lock = threading.Lock()

    @property
    def mode(self) -> CurvatureMode:
        return self._mode

    @property
    def segments(self) -> List[RoadSegment]:
        return list(self._segments)

    def select(self, mode: CurvatureMode) -> List[RoadSegment]:
        mode = CurvatureMode(mode)
        with self._lock:
            if mode == self._mode:
                return list(self._segments)
            if mode == CurvatureMode.NONE:
                logger.info("Curvature mode cleared, discarding road segments")
                self._segments = []
            else:
                filename = self.tier_files.get(mode.value)
                if filename is None:
                    logger.error(f"No KML file configured for curvature tier '{mode.value}'")
                    self._segments = []
                else:
                    self._segments = load_kml_file(self.data_dir / filename)
            self._mode = mode
            return list(self._segments)
