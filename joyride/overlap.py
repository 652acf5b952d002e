"""
Overlap scoring between an outbound and a return path.

score(a, b) counts the points of `a` that have at least one point of `b`
within the proximity threshold. It is not symmetric: score(a, b) and
score(b, a) generally differ.

Cost is O(P * Q * n * m) for P outbound and Q return alternatives of n and m
points. The directions provider returns at most a handful of alternatives and
overview polylines are a few hundred points, so the full pairwise matrix is
computed without any spatial index.
"""
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import EARTH_RADIUS_M, OVERLAP_PROXIMITY_M
from .models import RoutePath


def _distance_matrix_m(path1: RoutePath, path2: RoutePath) -> np.ndarray:
    a = np.radians(np.asarray(path1, dtype=float))
    b = np.radians(np.asarray(path2, dtype=float))
    lat1, lon1 = a[:, 0][:, None], a[:, 1][:, None]
    lat2, lon2 = b[:, 0][None, :], b[:, 1][None, :]
    h = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def overlap_score(path1: RoutePath, path2: RoutePath, threshold_m: float = OVERLAP_PROXIMITY_M) -> int:
    if len(path1) == 0 or len(path2) == 0:
        return 0
    near = _distance_matrix_m(path1, path2) <= threshold_m
    return int(np.count_nonzero(near.any(axis=1)))


def select_least_overlapping_pair(
    outbound_paths: Sequence[RoutePath],
    return_paths: Sequence[RoutePath],
    threshold_m: float = OVERLAP_PROXIMITY_M,
) -> Optional[Tuple[int, int, int]]:
    """(outbound index, return index, score) of the lowest-scoring pair; first pair wins ties."""
    best = None
    for i, outbound in enumerate(outbound_paths):
        for j, back in enumerate(return_paths):
            score = overlap_score(outbound, back, threshold_m)
            if best is None or score < best[2]:
                best = (i, j, score)
    return best
