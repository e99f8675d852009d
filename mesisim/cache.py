"""Set-associative private cache addressed by 32-bit addresses."""

from __future__ import annotations

from collections.abc import Iterable

from mesisim.cacheset import CacheSet
from mesisim.types import MESIState

ADDRESS_BITS = 32
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1


def _log2_exact(value: int, what: str) -> int:
    if value <= 0 or value & (value - 1):
        raise ValueError(f"{what} must be a positive power of two, got {value}")
    return value.bit_length() - 1


class Cache:
    """A cache of ``num_sets`` sets, each holding ``num_lines`` blocks."""

    def __init__(self, num_sets: int, num_lines: int, block_size: int) -> None:
        self.offset_bits = _log2_exact(block_size, "block size")
        self.index_bits = _log2_exact(num_sets, "number of sets")
        if num_lines <= 0:
            raise ValueError(f"number of lines must be positive, got {num_lines}")
        self.num_sets = num_sets
        self.num_lines = num_lines
        self.block_size = block_size
        self.tag_bits = ADDRESS_BITS - (self.offset_bits + self.index_bits)
        self.index_mask = (1 << self.index_bits) - 1
        self.sets = [CacheSet(num_lines, block_size) for _ in range(num_sets)]

    def index_of(self, address: int) -> int:
        """Set index selected by ``address``."""
        return ((address & ADDRESS_MASK) >> self.offset_bits) & self.index_mask

    def tag_of(self, address: int) -> int:
        """Tag bits of ``address``."""
        return (address & ADDRESS_MASK) >> (self.offset_bits + self.index_bits)

    def _set_for(self, address: int) -> CacheSet:
        return self.sets[self.index_of(address)]

    def get_state(self, address: int) -> MESIState:
        """MESI state of the block holding ``address`` (I when absent)."""
        return self._set_for(address).get_state(self.tag_of(address))

    def update(self, address: int, state: MESIState, data: Iterable[int]) -> None:
        """Overwrite a resident block's state and data."""
        self._set_for(address).update_line(self.tag_of(address), state, data)

    def update_state(self, address: int, state: MESIState) -> None:
        """Change the state of a resident block; absent blocks are ignored."""
        self._set_for(address).update_line_state(self.tag_of(address), state)

    def add_line(self, address: int, state: MESIState) -> int:
        """Bring the block of ``address`` in; returns the write-back penalty in cycles."""
        return self._set_for(address).add_line(self.tag_of(address), state)

    def total_evictions(self) -> int:
        """Evictions over all sets."""
        return sum(s.num_evictions for s in self.sets)

    def total_writebacks(self) -> int:
        """Write-backs of evicted modified blocks over all sets."""
        return sum(s.num_writebacks for s in self.sets)

    def format_states(self) -> str:
        """Line states of every set on one line."""
        return "".join(f"Cache Set {i}: {s.format_states()}" for i, s in enumerate(self.sets))