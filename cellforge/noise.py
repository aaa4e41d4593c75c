"""Cellular noise over pixel grids, and the noise session that owns a table."""

import logging
from dataclasses import dataclass

import numpy as np

from .feature import FEATURE_OFFSETS
from .permutation import PermutationTable
from .worley import DistanceMetric, evaluate, _check_radius, _check_rank, _split_array

logger = logging.getLogger(__name__)


def worley_noise_2d(height, width, table, scale=32.0,
                    metric=DistanceMetric.EUCLIDEAN, rank=0, radius=1,
                    origin=(0, 0)):
    """Generate 2D Worley noise for a pixel grid.

    Args:
        height: Output height in pixels.
        width: Output width in pixels.
        table: PermutationTable shared by every sample.
        scale: Feature cell size in pixels (larger = bigger cells).
        metric: DistanceMetric (or its name).
        rank: Which nearest feature point to measure (0 = nearest).
        radius: Neighbourhood radius in cells.
        origin: (x, y) pixel offset of the top-left sample.

    Returns:
        Array of shape (height, width) holding raw distances.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale!r}")
    metric = DistanceMetric.parse(metric)
    _check_radius(radius)
    _check_rank(rank, radius)

    logger.debug("Rendering %dx%d Worley grid (scale=%s, rank=%d)",
                 width, height, scale, rank)

    # Continuous sample coordinates in cell space
    ox, oy = origin
    x_coords = (ox + np.arange(width, dtype=np.float64)) / scale
    y_coords = (oy + np.arange(height, dtype=np.float64)) / scale

    # Build meshgrids for vectorized lookup
    y_m, x_m = np.meshgrid(y_coords, x_coords, indexing='ij')

    # Integer cells and position inside them
    xi, xf = _split_array(x_m)
    yi, yf = _split_array(y_m)

    perm = table.values.astype(np.int64)
    distances = []
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            # Same fold as PermutationTable.hash for a 2D cell
            h = perm[perm[(xi + dx) & 0xFF] ^ ((yi + dy) & 0xFF)]
            ddx = xf - (dx + FEATURE_OFFSETS[h, 0])
            ddy = yf - (dy + FEATURE_OFFSETS[h, 1])
            if metric is DistanceMetric.EUCLIDEAN:
                distances.append(np.sqrt(ddx * ddx + ddy * ddy))
            else:
                distances.append(np.abs(ddx) + np.abs(ddy))

    ranked = np.sort(np.stack(distances), axis=0, kind="stable")
    return ranked[rank]


def fbm_2d(height, width, table, octaves=4, base_scale=64.0, persistence=0.5,
           lacunarity=2.0, metric=DistanceMetric.EUCLIDEAN, rank=0, radius=1):
    """Generate fractal Brownian motion noise (layered Worley noise).

    Args:
        height: Output height in pixels.
        width: Output width in pixels.
        table: PermutationTable shared by every octave.
        octaves: Number of noise layers.
        base_scale: Scale of the coarsest octave.
        persistence: Amplitude decay per octave (0-1).
        lacunarity: Frequency multiplier per octave.

    Returns:
        Array of shape (height, width), the amplitude-weighted mean of
        the octaves.
    """
    if octaves < 1:
        raise ValueError(f"octaves must be >= 1, got {octaves!r}")

    result = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    total_amplitude = 0.0
    scale = base_scale

    for _ in range(octaves):
        noise = worley_noise_2d(height, width, table, scale=scale,
                                metric=metric, rank=rank, radius=radius)
        result += amplitude * noise
        total_amplitude += amplitude
        amplitude *= persistence
        scale /= lacunarity

    return result / total_amplitude


def normalize(values):
    """Rescale an array to [0, 1]. Constant arrays map to zeros."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values
    lo = values.min()
    span = values.max() - lo
    if span == 0:
        return np.zeros_like(values)
    return (values - lo) / span


@dataclass
class NoiseConfig:
    """Configuration for a Worley noise session."""

    seed: int = 0x5EED
    metric: DistanceMetric = DistanceMetric.EUCLIDEAN
    rank: int = 0
    radius: int = 1

    # Sample coordinates are divided by this, so it is roughly the
    # feature spacing in pixels.
    scale: float = 32.0

    # Ignore the seed and use Ken Perlin's table.
    use_reference_table: bool = False

    def __post_init__(self):
        self.metric = DistanceMetric.parse(self.metric)
        _check_radius(self.radius)
        _check_rank(self.rank, self.radius)
        if not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale!r}")


class WorleyNoise:
    """A noise session: one config plus the table built from it.

    The table is built once here and reused for every query. Sessions with
    different seeds can coexist, and one session can be shared between
    threads since queries never mutate it.
    """

    def __init__(self, config=None, table=None):
        if config is None:
            config = NoiseConfig()
        self.config = config
        if table is not None:
            self.table = table
        elif config.use_reference_table:
            self.table = PermutationTable.reference()
        else:
            self.table = PermutationTable.build(config.seed)
        logger.debug("WorleyNoise session ready: %s", config)

    def feature(self, x, y):
        """(distance, world position) for a point in pixel space."""
        c = self.config
        return evaluate((x / c.scale, y / c.scale), self.table,
                        metric=c.metric, rank=c.rank, radius=c.radius)

    def sample(self, x, y):
        """Noise value at a point in pixel space."""
        return self.feature(x, y)[0]

    def grid(self, height, width, origin=(0, 0)):
        """Noise values for a pixel grid.

        Args:
            height: Output height in pixels.
            width: Output width in pixels.
            origin: (x, y) pixel offset of the top-left sample.

        Returns:
            Array of shape (height, width), equal pixel for pixel to
            ``sample(col, row)`` when origin is (0, 0).
        """
        c = self.config
        return worley_noise_2d(height, width, self.table, scale=c.scale,
                               metric=c.metric, rank=c.rank,
                               radius=c.radius, origin=origin)
