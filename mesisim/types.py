"""Enumerations and the bus request record shared by the simulator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProcessMESIResult(Enum):
    """Outcome of a cache access under the MESI protocol."""

    CACHE_HIT = 0
    CACHE_MISS = 1


class BusTransaction(Enum):
    """Signal placed on the bus by a requesting core."""

    MEMREAD = 0
    INVALIDATE = 1
    RWITM = 2


class MESIState(Enum):
    """State of a cache line."""

    M = 0
    E = 1
    S = 2
    I = 3  # noqa: E741


class ProcessorState(Enum):
    """Execution state of a core."""

    FREE = 0
    READ_MEMORY = 1
    WRITE_MEMORY = 2
    DONE = 3


class InstructionType(Enum):
    """Kind of memory instruction in a trace."""

    LOAD = 0
    STORE = 1


class TransactionType(Enum):
    """Kind of bus transaction."""

    BUSRD = 0
    BUSRDX = 1


@dataclass
class Request:
    """A pending bus transaction and the cycle costs it accumulates."""

    transaction: BusTransaction
    processor_id: int
    kind: TransactionType
    address: int
    done: bool = False
    counter: int = 0
    to_be_updated_state: MESIState | None = None
    eviction: int = 0
    other_back: int = 0
    self_get: int = 0
    total_counter: int = 0

    def total_cost(self) -> int:
        """Cycles the request occupies the bus: eviction, remote write-back and fetch."""
        return self.eviction + self.other_back + self.self_get