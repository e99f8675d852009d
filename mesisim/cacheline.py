"""A single cache line: state, tag, valid bit and a block of signed bytes."""

from __future__ import annotations

from collections.abc import Iterable

from mesisim.types import MESIState

WORD_SIZE = 4


def _to_int8(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class CacheLine:
    """One block of a cache set."""

    def __init__(self, block_size: int) -> None:
        self.data: list[int] = [0] * block_size
        self.state = MESIState.I
        self.tag = 0
        self.valid = False

    def _check(self, offset: int) -> None:
        if offset < 0 or offset >= len(self.data):
            raise IndexError(f"index out of range: {offset}")

    def write_byte(self, offset: int, value: int) -> None:
        """Store the low byte of ``value`` at ``offset``."""
        self._check(offset)
        self.data[offset] = _to_int8(value)

    def read_byte(self, offset: int) -> int:
        """Return the signed byte at ``offset``."""
        self._check(offset)
        return self.data[offset]

    def read_word(self, offset: int) -> int:
        """Return the little-endian 32-bit signed word starting at ``offset``."""
        self._check(offset)
        if offset + WORD_SIZE > len(self.data):
            raise IndexError(f"index out of range: {offset}")
        value = 0
        for shift, byte in enumerate(self.data[offset:offset + WORD_SIZE]):
            value |= byte << (shift * 8)
        return _to_int32(value)

    def write_block(self, data: Iterable[int]) -> None:
        """Replace the whole block; the size must match."""
        block = [_to_int8(b) for b in data]
        if len(block) != len(self.data):
            raise ValueError("Data size does not match cache line size")
        self.data = block

    def describe(self) -> str:
        """Multi-line human-readable dump of the line."""
        return "\n".join(
            [
                f"Cache Line State: {self.state.name}",
                f"Tag: {self.tag}",
                f"Valid: {int(self.valid)}",
                "Data: " + "".join(f"{b} " for b in self.data),
            ]
        )