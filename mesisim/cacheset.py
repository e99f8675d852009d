"""A set of cache lines kept in most-recently-used order."""

from __future__ import annotations

from collections.abc import Iterable

from mesisim.cacheline import CacheLine
from mesisim.types import MESIState

WRITEBACK_PENALTY = 100


class CacheSet:
    """Associative set with LRU replacement; index 0 is the most recently used line."""

    def __init__(self, num_lines: int, block_size: int) -> None:
        self.block_size = block_size
        self.lines: list[CacheLine] = [CacheLine(block_size) for _ in range(num_lines)]
        self.num_writebacks = 0
        self.num_evictions = 0

    def _find(self, tag: int) -> int | None:
        return next(
            (pos for pos, line in enumerate(self.lines) if line.valid and line.tag == tag),
            None,
        )

    def _move_to_front(self, pos: int) -> CacheLine:
        line = self.lines.pop(pos)
        self.lines.insert(0, line)
        return line

    def update_line(self, tag: int, state: MESIState, data: Iterable[int]) -> None:
        """Overwrite a resident line's state and data and mark it most recently used."""
        pos = self._find(tag)
        if pos is None:
            raise LookupError("Cache set not found")
        line = self.lines[pos]
        line.state = state
        line.valid = True
        line.tag = tag
        line.write_block(data)
        self._move_to_front(pos)

    def get_state(self, tag: int) -> MESIState:
        """State of the line holding ``tag``, or I when it is not resident."""
        pos = self._find(tag)
        return MESIState.I if pos is None else self.lines[pos].state

    def update_line_state(self, tag: int, state: MESIState) -> None:
        """Change a resident line's state; non-invalid lines become most recently used."""
        pos = self._find(tag)
        if pos is None:
            return
        self.lines[pos].state = state
        if state is not MESIState.I:
            self._move_to_front(pos)

    def add_line(self, tag: int, state: MESIState) -> int:
        """Place ``tag`` in the set, evicting the LRU line if needed.

        Returns the write-back penalty in cycles: 100 when a modified line
        was evicted, otherwise 0.
        """
        for predicate in (lambda ln: not ln.valid, lambda ln: ln.state is MESIState.I):
            pos = next((p for p, ln in enumerate(self.lines) if predicate(ln)), None)
            if pos is not None:
                line = self._move_to_front(pos)
                line.state = state
                line.valid = True
                line.tag = tag
                return 0

        victim = self.lines.pop()
        line = CacheLine(self.block_size)
        line.state = state
        line.valid = True
        line.tag = tag
        self.lines.insert(0, line)
        self.num_evictions += 1
        if victim.state is MESIState.M:
            self.num_writebacks += 1
            return WRITEBACK_PENALTY
        return 0

    def states(self) -> list[MESIState]:
        """States of all lines from most to least recently used."""
        return [line.state for line in self.lines]

    def format_states(self) -> str:
        """Compact text of the line states, e.g. `` M  I  ``."""
        return "".join(f" {state.name} " for state in self.states()) + " "