"""Command-line driver: run four cores over a trace set and write a report."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from os import PathLike
from pathlib import Path

from mesisim.bus import Bus
from mesisim.processor import Processor

NUM_CORES = 4
DEFAULT_TRACE_DIR = Path("../traces")
PROGRAM = "L1simulate"
USAGE = (
    f"Usage: {PROGRAM} -t <tracefile> -s <number of set index bits> "
    "-E <number of lines per set> -b <block size in bytes> -o <output file>"
)


def build_system(
    trace_prefix: str,
    num_sets: int,
    num_lines: int,
    block_size: int,
    trace_dir: str | PathLike[str] = DEFAULT_TRACE_DIR,
) -> tuple[list[Processor], Bus]:
    """Create the bus and the cores, reading ``<prefix>_proc<i>.trace`` for each."""
    bus = Bus(block_size)
    processors = []
    for pid in range(NUM_CORES):
        path = Path(trace_dir) / f"{trace_prefix}_proc{pid}.trace"
        proc = Processor.from_trace(pid, num_sets, num_lines, block_size, path, bus)
        bus.add_processor(proc)
        processors.append(proc)
    return processors, bus


def run_simulation(processors: Sequence[Processor], bus: Bus) -> int:
    """Run until every core and the bus are finished; returns the final clock."""
    clock = 0
    while True:
        all_done = True
        for pid, proc in enumerate(processors):
            if proc.is_done():
                continue
            all_done = False
            if not proc.halted:
                proc.cycle()
            elif not bus.other_back(pid):
                proc.num_cycles += 1
            else:
                proc.idle_cycles += 1
        jump = bus.cycle()
        if all_done and bus.is_done():
            return clock
        clock += jump if jump else 1


def format_parameters(
    trace_prefix: str, set_index_bits: int, associativity: int, block_bits: int
) -> str:
    """Description of the simulated configuration."""
    cache_size = (1 << set_index_bits) * associativity * (1 << block_bits)
    lines = [
        "Simulation Parameters:",
        f"Trace File: {trace_prefix}",
        f"Set Index Bits: {set_index_bits}",
        f"Associativity: {associativity}",
        f"Block Bits: {block_bits}",
        f"Block Size (Bytes): {1 << block_bits}",
        f"Number of sets: {1 << set_index_bits}",
        f"Cache size (KB per core): {cache_size / 1024:g}",
        "Mesi Protocol: Enabled",
        "Write Policy: Write-back, Write-allocate",
        "Replacement Policy: LRU",
        "Bus: Central snooping bus",
    ]
    return "\n".join(lines) + "\n"


def format_report(
    trace_prefix: str,
    set_index_bits: int,
    associativity: int,
    block_bits: int,
    processors: Sequence[Processor],
    bus: Bus,
) -> str:
    """Full report: parameters, per-core statistics and the bus summary."""
    parts = [format_parameters(trace_prefix, set_index_bits, associativity, block_bits), "\n"]
    for proc in processors:
        parts.append(proc.format_stats())
        parts.append("\n")
    parts.append("Overall Bus Summary:\n")
    parts.append(f"Total Bus Transactions: {bus.bus_transactions}\n")
    parts.append(f"Total Bus Traffic (Bytes): {bus.total_bus_traffic}\n")
    return "".join(parts)


def _leading_int(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group())


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, run the simulation and write the report."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args == ["-h"]:
        print(USAGE)
        return 0
    if len(args) != 10:
        print(f"Try: {PROGRAM} -h", file=sys.stderr)
        return 1

    trace_prefix = ""
    output_file = ""
    set_index_bits = num_lines = block_bits = block_size = 0
    it = iter(args)
    try:
        for flag in it:
            if flag == "-h":
                print(USAGE)
                return 0
            if flag not in ("-t", "-s", "-E", "-b", "-o"):
                continue
            value = next(it, None)
            if value is None:
                raise ValueError(f"missing value for {flag}")
            if flag == "-t":
                trace_prefix = value
            elif flag == "-s":
                set_index_bits = _leading_int(value)
            elif flag == "-E":
                num_lines = _leading_int(value)
            elif flag == "-b":
                block_bits = _leading_int(value)
                block_size = 1 << block_bits if block_bits >= 0 else 0
            else:
                output_file = value
    except ValueError as exc:
        print(f"Invalid arguments: {exc}. Use -h for help.", file=sys.stderr)
        return 1

    if not trace_prefix or set_index_bits <= 0 or num_lines <= 0 or block_size <= 0 or not output_file:
        print("Invalid arguments. Use -h for help.", file=sys.stderr)
        return 1

    try:
        processors, bus = build_system(trace_prefix, 1 << set_index_bits, num_lines, block_size)
    except (OSError, ValueError) as exc:
        print(f"Could not load trace files: {exc}", file=sys.stderr)
        return 1

    run_simulation(processors, bus)
    report = format_report(trace_prefix, set_index_bits, num_lines, block_bits, processors, bus)
    with open(output_file, "w", encoding="utf-8") as handle:
        handle.write(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())