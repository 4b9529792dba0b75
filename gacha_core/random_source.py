"""Injectable uniform random sources for the Monte Carlo simulator."""

from __future__ import annotations

import random
from typing import Optional, Protocol

_UINT32_MASK = 0xFFFFFFFF


class RandomSource(Protocol):
    """Anything that yields uniform floats on ``[0, 1)``."""

    def next(self) -> float: ...


class PythonRandomSource:
    """Random source backed by :class:`random.Random`."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def next(self) -> float:
        return self._rng.random()


def _imul(a: int, b: int) -> int:
    return (a * b) & _UINT32_MASK


class Mulberry32Random:
    """Small 32-bit generator that reproduces the mulberry32 sequence.

    The state advances by a fixed odd increment and is then mixed, so two
    instances created with the same seed yield identical streams.
    """

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _UINT32_MASK

    def next(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _UINT32_MASK
        t = self._state
        r = _imul(t ^ (t >> 15), t | 1)
        r ^= (r + _imul(r ^ (r >> 7), r | 61)) & _UINT32_MASK
        return ((r ^ (r >> 14)) & _UINT32_MASK) / 4294967296
