import math

import pytest

from mesisim.bus import MEMORY_LATENCY, Bus
from mesisim.processor import Processor, parse_trace, read_trace
from mesisim.types import InstructionType, MESIState, ProcessorState

BLOCK = 32


def make(instructions, bus=None, pid=0):
    bus = bus if bus is not None else Bus(BLOCK)
    proc = Processor(pid, 4, 2, BLOCK, instructions, bus)
    bus.add_processor(proc)
    return proc, bus


def test_parse_trace_kinds_and_addresses():
    result = parse_trace(["R 0x10\n", "w 20", "r 0x817b08", "W 0xFF"])
    assert result == [
        (InstructionType.LOAD, 0x10),
        (InstructionType.STORE, 0x20),
        (InstructionType.LOAD, 0x817B08),
        (InstructionType.STORE, 0xFF),
    ]


@pytest.mark.parametrize("line", ["X 0x10", "", "\n"])
def test_parse_trace_rejects_bad_kind(line):
    with pytest.raises(ValueError):
        parse_trace([line])


def test_parse_trace_rejects_bad_address():
    with pytest.raises(ValueError):
        parse_trace(["R zz"])


def test_read_trace_from_file(tmp_path):
    path = tmp_path / "t.trace"
    path.write_text("R 0x100\nW 0x200\n")
    assert read_trace(path) == [(InstructionType.LOAD, 0x100), (InstructionType.STORE, 0x200)]


def test_from_trace_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Processor.from_trace(0, 4, 2, BLOCK, tmp_path / "nope.trace", Bus(BLOCK))


def test_counts_reads_and_writes():
    proc, _ = make([(InstructionType.LOAD, 0), (InstructionType.STORE, 4), (InstructionType.LOAD, 8)])
    assert proc.total_instructions == 3
    assert proc.num_reads == 2
    assert proc.num_writes == 1
    assert proc.block_size() == BLOCK


def test_read_miss_then_bus_fill():
    proc, bus = make([(InstructionType.LOAD, 0x40)])
    proc.cycle()
    assert proc.halted
    assert proc.num_misses == 1
    assert proc.state is ProcessorState.READ_MEMORY
    assert not bus.is_done()

    jump = bus.cycle()
    assert jump == MEMORY_LATENCY
    assert bus.is_done()
    assert not proc.halted
    assert proc.cache_state(0x40) is MESIState.E
    assert proc.num_cycles == 1 + jump

    proc.cycle()
    assert proc.is_done()


def test_write_hit_on_exclusive_becomes_modified():
    proc, bus = make([(InstructionType.LOAD, 0x40), (InstructionType.STORE, 0x44)])
    proc.cycle()
    bus.cycle()
    proc.cycle()
    assert proc.cache_state(0x40) is MESIState.M
    assert bus.bus_transactions == 1
    assert proc.num_misses == 1


def test_update_state_to_free_leaves_done_alone():
    proc, _ = make([])
    proc.cycle()
    assert proc.is_done()
    proc.update_state_to_free()
    assert proc.is_done()
    assert proc.instruction_index == 0


def test_update_state_to_free_advances():
    proc, _ = make([(InstructionType.LOAD, 0)])
    proc.state = ProcessorState.READ_MEMORY
    proc.update_state_to_free()
    assert proc.state is ProcessorState.FREE
    assert proc.instruction_index == 1


def test_miss_rate():
    proc, bus = make([(InstructionType.LOAD, 0x40), (InstructionType.LOAD, 0x40)])
    proc.cycle()
    bus.cycle()
    proc.cycle()
    assert proc.num_misses == 1
    assert proc.miss_rate() == pytest.approx(50.0)


def test_miss_rate_empty_trace_is_nan():
    proc, _ = make([])
    rate = proc.miss_rate()
    assert math.isnan(rate) is True
    assert proc.total_instructions == 0
    assert proc.num_misses == 0


def test_format_stats_lines():
    proc, _ = make([(InstructionType.LOAD, 0), (InstructionType.STORE, 4)])
    lines = proc.format_stats().splitlines()
    assert lines[0] == "Core 0 Statistics:"
    assert "Total Instructions: 2" in lines
    assert "Total Reads: 1" in lines
    assert "Total Writes: 1" in lines
    assert lines[-1].startswith("Data Traffic (Bytes): ")


def test_format_cache_reports_every_set():
    proc, _ = make([])
    text = proc.format_cache()
    assert text.count("Cache Set") == 4
    assert text.count(" I ") == 8