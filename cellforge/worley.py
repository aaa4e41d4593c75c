"""Worley (cellular) noise evaluation.

Every unit cell holds one feature point. A sample is scored against the
feature points of the cells around it, and the distance to the N-th
nearest one is the noise value.
"""

import math
from enum import Enum

import numpy as np

from .feature import feature_offset

# Cell indices are 32-bit; floors outside this range saturate.
CELL_MIN = -2**31
CELL_MAX = 2**31 - 1


class DistanceMetric(Enum):
    """Distance function used to rank feature points."""

    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"

    def distance(self, p, q):
        dx = p[0] - q[0]
        dy = p[1] - q[1]
        if self is DistanceMetric.EUCLIDEAN:
            return math.sqrt(dx * dx + dy * dy)
        return abs(dx) + abs(dy)

    @classmethod
    def parse(cls, value):
        """Accept a member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise TypeError(f"Expected DistanceMetric or str, got {type(value).__name__}")
        try:
            return cls(value.lower())
        except ValueError:
            names = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown distance metric {value!r} (expected one of: {names})") from None


def neighborhood_size(radius):
    """Number of cells searched for a given neighbourhood radius."""
    return (2 * radius + 1) ** 2


def _check_radius(radius):
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)) or radius < 1:
        raise ValueError(f"radius must be an integer >= 1, got {radius!r}")


def _check_rank(rank, radius):
    size = neighborhood_size(radius)
    if isinstance(rank, bool) or not isinstance(rank, (int, np.integer)) or not 0 <= rank < size:
        raise ValueError(f"rank must be in [0, {size}) for radius {radius}, got {rank!r}")


def _split(v):
    """Cell index and fractional part of one coordinate component."""
    if not math.isfinite(v):
        return 0, math.nan
    base = math.floor(v)
    return min(max(base, CELL_MIN), CELL_MAX), v - base


def _split_array(v):
    """Array version of _split: (int64 cell indices, fractional parts)."""
    finite = np.isfinite(v)
    base = np.where(finite, np.floor(v), 0.0)
    frac = np.where(finite, v - base, np.nan)
    cells = np.clip(base, CELL_MIN, CELL_MAX).astype(np.int64)
    return cells, frac


def ranked_features(sample, table, metric=DistanceMetric.EUCLIDEAN, radius=1):
    """All feature points around ``sample``, nearest first.

    Returns a list of ``(distance, (x, y))`` pairs, one per cell in the
    ``(2 * radius + 1) ** 2`` neighbourhood, where ``(x, y)`` is the feature
    point's world position. The sort is stable so ties keep the row-major
    neighbour order.

    Non-finite samples are not rejected; their distances come out NaN.
    Cell indices saturate at the signed 32-bit range, so samples beyond
    +-2**31 all share the edge cells.
    """
    _check_radius(radius)
    metric = DistanceMetric.parse(metric)

    cx, fx = _split(float(sample[0]))
    cy, fy = _split(float(sample[1]))
    frac = (fx, fy)

    results = []
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            ox, oy = feature_offset(table.hash((cx + dx, cy + dy)))
            local = (dx + ox, dy + oy)
            world = (cx + dx + ox, cy + dy + oy)
            results.append((metric.distance(frac, local), world))

    results.sort(key=lambda item: item[0])
    return results


def evaluate(sample, table, metric=DistanceMetric.EUCLIDEAN, rank=0, radius=1):
    """Distance to, and position of, the rank-th nearest feature point.

    Args:
        sample: (x, y) sample coordinate.
        table: Shared PermutationTable.
        metric: DistanceMetric (or its name).
        rank: 0 for the nearest feature point, 1 for the second nearest...
        radius: Neighbourhood radius in cells. With the default of 1 (a 3x3
            search) ranks above 0 are right with high probability but not
            guaranteed; raise it when that matters.

    Returns:
        Tuple ``(distance, (x, y))``.

    Raises:
        ValueError: If rank or radius is out of range.
    """
    _check_radius(radius)
    _check_rank(rank, radius)
    return ranked_features(sample, table, metric, radius)[rank]

