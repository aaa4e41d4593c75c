"""CellForge - Deterministic cellular (Worley) noise."""

import numpy as np

from .feature import SplitMix64, feature_offset
from .noise import NoiseConfig, WorleyNoise, fbm_2d, normalize, worley_noise_2d
from .permutation import PermutationTable
from .worley import DistanceMetric, evaluate, ranked_features

__version__ = "0.1.0"
__all__ = [
    "generate",
    "evaluate",
    "ranked_features",
    "feature_offset",
    "worley_noise_2d",
    "fbm_2d",
    "normalize",
    "DistanceMetric",
    "NoiseConfig",
    "PermutationTable",
    "SplitMix64",
    "WorleyNoise",
]


def generate(height, width, seed=None, **kwargs):
    """Generate a grid of Worley noise values.

    Args:
        height: Output height in pixels.
        width: Output width in pixels.
        seed: Seed for the permutation table. A random one is drawn
            if None.
        **kwargs: Additional NoiseConfig parameters (metric, rank,
            radius, scale, use_reference_table).

    Returns:
        numpy array of shape (height, width) with raw distances.
    """
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    config = NoiseConfig(seed=seed, **kwargs)
    return WorleyNoise(config).grid(height, width)
