"""Reproducible feature point placement inside a unit cell."""

import numpy as np

_U64_MASK = 0xFFFFFFFFFFFFFFFF
_GOLDEN_GAMMA = 0x9E3779B97F4A7C15


class SplitMix64:
    """Fixed-width 64-bit SplitMix generator.

    All arithmetic is masked to 64 bits, so the output stream depends only
    on the seed and never on the platform word size.
    """

    __slots__ = ("state",)

    def __init__(self, seed: int):
        self.state = seed & _U64_MASK

    def next_u64(self) -> int:
        self.state = (self.state + _GOLDEN_GAMMA) & _U64_MASK
        z = self.state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _U64_MASK
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _U64_MASK
        return z ^ (z >> 31)

    def random(self) -> float:
        """Uniform float in [0, 1) from the top 53 bits."""
        return (self.next_u64() >> 11) * (1.0 / (1 << 53))


def feature_offset(hash_byte: int) -> tuple:
    """Offset of a cell's feature point, given the cell's hash byte.

    The byte is widened to a 64-bit seed for a fresh SplitMix64, which
    draws x first and then y. Both lie in [0, 1) and are not kept away
    from the cell edges.

    Raises:
        ValueError: If ``hash_byte`` is not in [0, 256).
    """
    if not 0 <= hash_byte < 256:
        raise ValueError(f"hash_byte must be in [0, 256), got {hash_byte}")
    rng = SplitMix64(hash_byte)
    x = rng.random()
    y = rng.random()
    return (x, y)


def _build_offset_table():
    table = np.array([feature_offset(b) for b in range(256)], dtype=np.float64)
    table.setflags(write=False)
    return table


# feature_offset() only depends on the byte, so every offset is known up front.
FEATURE_OFFSETS = _build_offset_table()
