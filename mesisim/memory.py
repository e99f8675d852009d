"""A small word-addressed main memory filled with random values."""

from __future__ import annotations

import random

MEMORY_SIZE = 1024 * 4
MAX_INITIAL_VALUE = 1023


class Memory:
    """Main memory of ``MEMORY_SIZE`` words initialised to random values in 0..1023."""

    def __init__(self, rng: random.Random | None = None) -> None:
        rng = rng if rng is not None else random.Random()
        self.data = [rng.randint(0, MAX_INITIAL_VALUE) for _ in range(MEMORY_SIZE)]

    def _check(self, address: int) -> None:
        if address < 0 or address >= MEMORY_SIZE:
            raise IndexError(f"index out of range: {address}")

    def read(self, address: int) -> int:
        """Value stored at ``address``."""
        self._check(address)
        return self.data[address]

    def write(self, address: int, value: int) -> None:
        """Store ``value`` at ``address``."""
        self._check(address)
        self.data[address] = value