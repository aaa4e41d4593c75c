"""Permutation table used as the hash substrate for cellular noise."""

import logging
import operator

import numpy as np

from .feature import SplitMix64

logger = logging.getLogger(__name__)

# Same size Perlin used. Larger tables give better randomness but cost more
# to build, and construction dominates if done per query.
TABLE_SIZE = 256

_U64_MASK = 0xFFFFFFFFFFFFFFFF

# Ken Perlin's original permutation from the reference implementation.
KEN_PERLIN_TABLE = (
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7,
    225, 140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148, 247,
    120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32, 57, 177, 33,
    88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175, 74, 165, 71, 134,
    139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122, 60, 211, 133, 230, 220,
    105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54, 65, 25, 63, 161, 1, 216, 80,
    73, 209, 76, 132, 187, 208, 89, 18, 169, 200, 196, 135, 130, 116, 188, 159, 86,
    164, 100, 109, 198, 173, 186, 3, 64, 52, 217, 226, 250, 124, 123, 5, 202, 38,
    147, 118, 126, 255, 82, 85, 212, 207, 206, 59, 227, 47, 16, 58, 17, 182, 189,
    28, 42, 223, 183, 170, 213, 119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101,
    155, 167, 43, 172, 9, 129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232,
    178, 185, 112, 104, 218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12,
    191, 179, 162, 241, 81, 51, 145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181,
    199, 106, 157, 184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254, 138, 236,
    205, 93, 222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
)


class PermutationTable:
    """A pseudo-random permutation of the byte values [0, 256).

    Instances are immutable. Build one per seed and share it across every
    evaluation; hashing only reads from it.
    """

    __slots__ = ("_values", "_array")

    def __init__(self, values):
        values = tuple(int(v) for v in values)
        if len(values) != TABLE_SIZE or sorted(values) != list(range(TABLE_SIZE)):
            raise ValueError(
                f"Permutation table must contain each value 0-{TABLE_SIZE - 1} "
                f"exactly once"
            )
        array = np.array(values, dtype=np.uint8)
        array.setflags(write=False)
        self._values = values
        self._array = array

    @classmethod
    def build(cls, seed):
        """Generate a table from a seed.

        The seed is reduced to an unsigned 64-bit integer and drives a
        Fisher-Yates shuffle on a SplitMix64 stream. Only fixed-width integer
        arithmetic is involved, so a given seed yields the same table on every
        platform and with every numpy version.
        """
        seed = int(seed) & _U64_MASK
        logger.debug("Generating permutation table (seed=%d)...", seed)
        rng = SplitMix64(seed)
        values = list(range(TABLE_SIZE))
        for i in range(TABLE_SIZE - 1, 0, -1):
            j = rng.next_u64() % (i + 1)
            values[i], values[j] = values[j], values[i]
        table = cls(values)
        logger.debug("Permutation table generated")
        return table

    @classmethod
    def reference(cls):
        """Return Ken Perlin's classic permutation table."""
        return cls(KEN_PERLIN_TABLE)

    @property
    def values(self):
        """Read-only uint8 array of the table entries."""
        return self._array

    def hash(self, coords):
        """Reduce an integer coordinate vector to a single byte.

        Pearson-style fold: each component is cut to its low 8 bits, the
        accumulator starts at the first component and every following one
        is mixed in as ``table[acc] ^ component``. The table is applied once
        more to the result. Component order matters, so (1, 0) and (0, 1)
        hash differently.

        Raises:
            ValueError: If ``coords`` is empty.
            TypeError: If a component is not an integer.
        """
        values = self._values
        it = iter(coords)
        try:
            acc = operator.index(next(it)) & 0xFF
        except StopIteration:
            raise ValueError("Cannot hash an empty coordinate vector") from None
        for component in it:
            acc = values[acc] ^ (operator.index(component) & 0xFF)
        return values[acc]

    def format(self):
        """Pretty-print the table as a 16x16 grid."""
        lines = ["PermutationTable {"]
        for row in range(TABLE_SIZE // 16):
            chunk = self._values[row * 16:(row + 1) * 16]
            lines.append("\t" + "".join(f"{v:>3}| " for v in chunk))
        lines.append("}")
        return "\n".join(lines)

    def __repr__(self):
        return self.format()

    def __getitem__(self, index):
        return self._values[index]

    def __len__(self):
        return TABLE_SIZE

    def __iter__(self):
        return iter(self._values)

    def __eq__(self, other):
        if not isinstance(other, PermutationTable):
            return NotImplemented
        return self._values == other._values

    def __hash__(self):
        return hash(self._values)
