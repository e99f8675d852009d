"""A core that replays a memory trace through its private MESI cache."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from os import PathLike
from typing import TYPE_CHECKING

from mesisim.cache import ADDRESS_MASK, Cache
from mesisim.protocol import MESIProtocol
from mesisim.types import InstructionType, MESIState, ProcessMESIResult, ProcessorState

if TYPE_CHECKING:
    from mesisim.bus import Bus

Instruction = tuple[InstructionType, int]

_KINDS = {
    "R": InstructionType.LOAD,
    "r": InstructionType.LOAD,
    "W": InstructionType.STORE,
    "w": InstructionType.STORE,
}


def parse_trace(lines: Iterable[str]) -> list[Instruction]:
    """Parse trace lines such as ``R 0x817b08`` into (kind, address) pairs."""
    instructions: list[Instruction] = []
    for line in lines:
        line = line.rstrip("\n")
        kind = _KINDS.get(line[:1])
        if kind is None:
            raise ValueError("Invalid instruction type in trace file")
        address = int(line[2:].strip(), 16) & ADDRESS_MASK
        instructions.append((kind, address))
    return instructions


def read_trace(path: str | PathLike[str]) -> list[Instruction]:
    """Read and parse a trace file."""
    with open(path, encoding="utf-8") as handle:
        return parse_trace(handle)


class Processor:
    """One core: executes a load/store trace, stalling on bus requests."""

    def __init__(
        self,
        processor_id: int,
        num_sets: int,
        num_lines: int,
        block_size: int,
        instructions: Sequence[Instruction],
        bus: Bus,
    ) -> None:
        self.processor_id = processor_id
        self.cache = Cache(num_sets, num_lines, block_size)
        self.protocol = MESIProtocol()
        self.bus = bus
        self.state = ProcessorState.FREE
        self.instructions: list[Instruction] = list(instructions)
        self.instruction_index = 0
        self.halted = False
        self.num_cycles = 0
        self.total_instructions = len(self.instructions)
        self.num_reads = sum(1 for kind, _ in self.instructions if kind is InstructionType.LOAD)
        self.num_writes = self.total_instructions - self.num_reads
        self.idle_cycles = 0
        self.num_misses = 0
        self.num_evictions = 0
        self.num_writebacks = 0
        self.num_bus_invalidations = 0
        self.data_traffic = 0

    @classmethod
    def from_trace(
        cls,
        processor_id: int,
        num_sets: int,
        num_lines: int,
        block_size: int,
        path: str | PathLike[str],
        bus: Bus,
    ) -> Processor:
        """Build a core whose instructions come from the trace file at ``path``."""
        return cls(processor_id, num_sets, num_lines, block_size, read_trace(path), bus)

    def cycle(self) -> None:
        """Run one clock cycle; a core with no instructions left becomes DONE."""
        if self.instruction_index >= len(self.instructions):
            self.state = ProcessorState.DONE
            return
        self.num_cycles += 1
        self.execute()

    def execute(self) -> None:
        """Act according to the current execution state."""
        if self.state is ProcessorState.FREE:
            kind, address = self.instructions[self.instruction_index]
            result = self.execute_free(kind, address)
            if result is ProcessMESIResult.CACHE_HIT:
                self.instruction_index += 1
            else:
                self.num_misses += 1
        elif self.state in (ProcessorState.READ_MEMORY, ProcessorState.WRITE_MEMORY):
            self.idle_cycles += 1

    def execute_free(self, instruction_type: InstructionType, address: int) -> ProcessMESIResult:
        """Issue one access through the protocol; a miss moves the core to a waiting state."""
        if instruction_type is InstructionType.LOAD:
            result = self.protocol.read(self.processor_id, address, self.bus, self.cache)
            if result is ProcessMESIResult.CACHE_MISS:
                self.state = ProcessorState.READ_MEMORY
        else:
            result = self.protocol.write(self.processor_id, address, self.bus, self.cache)
            if result is ProcessMESIResult.CACHE_MISS:
                self.state = ProcessorState.WRITE_MEMORY
        return result

    def is_done(self) -> bool:
        """True once the whole trace has been executed."""
        return self.state is ProcessorState.DONE

    def cache_state(self, address: int) -> MESIState:
        """MESI state of ``address`` in this core's cache."""
        return self.cache.get_state(address)

    def update_cache_state(self, address: int, state: MESIState) -> None:
        """Change the state of a resident block."""
        self.cache.update_state(address, state)

    def add_cache_line(self, address: int, state: MESIState) -> int:
        """Allocate the block of ``address``; returns the write-back penalty."""
        return self.cache.add_line(address, state)

    def block_size(self) -> int:
        """Cache block size in bytes."""
        return self.cache.block_size

    def miss_rate(self) -> float:
        """Misses as a percentage of all instructions (NaN for an empty trace)."""
        if self.total_instructions == 0:
            return math.nan
        return self.num_misses / self.total_instructions * 100

    def update_state_to_free(self) -> None:
        """Resume after a bus request completes and move past the instruction."""
        if self.state is not ProcessorState.DONE:
            self.state = ProcessorState.FREE
            self.instruction_index += 1

    def total_writebacks(self) -> int:
        """Write-backs caused by snooping plus those from evicting modified blocks."""
        return self.num_writebacks + self.cache.total_writebacks()

    def format_stats(self) -> str:
        """Statistics report for this core."""
        self.num_evictions = self.cache.total_evictions()
        lines = [
            f"Core {self.processor_id} Statistics:",
            f"Total Instructions: {self.total_instructions}",
            f"Total Reads: {self.num_reads}",
            f"Total Writes: {self.num_writes}",
            f"Total Execution Cycles: {self.num_cycles}",
            f"Idle Cycles: {self.idle_cycles}",
            f"Cache Misses: {self.num_misses}",
            f"Cache Miss Rate: {self.miss_rate():.3g}%",
            f"Cache Evictions: {self.num_evictions}",
            f"Writebacks: {self.total_writebacks()}",
            f"Bus Invalidations: {self.num_bus_invalidations}",
            f"Data Traffic (Bytes): {self.data_traffic}",
        ]
        return "\n".join(lines) + "\n"

    def format_cache(self) -> str:
        """Line states of this core's cache."""
        return self.cache.format_states()