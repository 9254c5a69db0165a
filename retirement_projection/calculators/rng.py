"""Seeded random source used by the market path generator.

A 64-bit linear congruential generator feeds a Box–Muller transform.  The
generator carries no hidden global state, so two instances built from the
same seed produce the same normals in the same order on every platform.

Example
-------

>>> a, b = DeterministicRng(42), DeterministicRng(42)
>>> [a.sample_standard_normal() for _ in range(3)] == [b.sample_standard_normal() for _ in range(3)]
True
"""

from __future__ import annotations

import math
from typing import Optional

_MASK64 = (1 << 64) - 1
_SEED_OFFSET = 0x9E3779B97F4A7C15
_MULTIPLIER = 6364136223846793005
_INCREMENT = 1442695040888963407
_TWO_POW_53 = float(1 << 53)


class DeterministicRng:
    def __init__(self, seed: int):
        # seeds wrap modulo 2**64, so negative ints are accepted
        self.state = (seed + _SEED_OFFSET) & _MASK64
        self.cached_normal: Optional[float] = None

    def next_u64(self) -> int:
        self.state = (self.state * _MULTIPLIER + _INCREMENT) & _MASK64
        return self.state

    def next_f64_open01(self) -> float:
        """Uniform draw strictly inside (0, 1) built from the top 53 bits."""
        bits = self.next_u64() >> 11
        return (float(bits) + 0.5) / _TWO_POW_53

    def sample_standard_normal(self) -> float:
        """Return one N(0, 1) sample.

        Each pair of uniforms yields two normals; the second is held back and
        returned by the next call without advancing the generator.
        """
        if self.cached_normal is not None:
            cached = self.cached_normal
            self.cached_normal = None
            return cached

        u1 = self.next_f64_open01()
        u2 = self.next_f64_open01()
        r = math.sqrt(-2.0 * math.log(u1))
        theta = 2.0 * math.pi * u2

        self.cached_normal = r * math.sin(theta)
        return r * math.cos(theta)
