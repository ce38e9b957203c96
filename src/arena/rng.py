"""Injectable random source for the battle engine.

Every random draw in the engine (evasion rolls, turn-order ties, terrain and
placement) goes through an object satisfying :class:`RandomSource`.
``random.Random`` already does, so production code passes a seeded
``random.Random`` and tests can pass a scripted stand-in.
"""
from __future__ import annotations
from typing import Optional, Protocol, Sequence, TypeVar
import random

T = TypeVar("T")


class RandomSource(Protocol):
    """The subset of ``random.Random`` the engine relies on."""

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def randrange(self, start: int, stop: Optional[int] = None) -> int:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Create a random source; a fixed seed makes a battle reproducible."""
    return random.Random(seed)


def ensure_rng(rng: Optional[RandomSource]) -> RandomSource:
    """Return ``rng`` or a fresh unseeded source when none was supplied."""
    return rng if rng is not None else make_rng()
