# mesisim

A trace-driven simulator of four processor cores, each with a private L1 data
cache, kept coherent by the MESI protocol over a central snooping bus.

The caches are set-associative, write-back and write-allocate, with LRU
replacement. Each core runs its own trace of loads and stores; the simulator
counts cycles, idle cycles, misses, evictions, write-backs, bus invalidations
and data traffic per core, plus the overall bus transactions and traffic.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Traces

Each core reads one trace file named `<prefix>_proc<N>.trace` for `N` in 0–3.
Every line holds an operation and a hexadecimal address:

```
R 0x817b08
W 0x817b0c
```

`R`/`r` is a load and `W`/`w` a store. Addresses are 32-bit; shorter ones are
padded with zeros on the left. Any other operation letter makes the trace
invalid (`ValueError`).

## Running

```
l1simulate -t app1 -s 6 -E 2 -b 5 -o run1.txt
```

- `-t` trace prefix (e.g. `app1`, read from `../traces/app1_proc0.trace` etc.,
  relative to the current directory)
- `-s` number of set index bits (there are 2^s sets)
- `-E` associativity (lines per set)
- `-b` number of block bits (blocks are 2^b bytes)
- `-o` file the report is written to

All five options must be given. `l1simulate -h` prints the usage line. The
command exits with status 1 when the arguments are missing or invalid, or when
a trace file cannot be read or parsed.

The report lists the simulation parameters, statistics for every core, and an
overall bus summary.

## Using it from Python

```python
from mesisim.cli import build_system, run_simulation, format_report

processors, bus = build_system("app1", 64, 2, 32, "../traces")
run_simulation(processors, bus)
print(format_report("app1", 6, 2, 5, processors, bus))
```

`build_system` takes the number of sets and the block size in bytes;
`format_report` takes them as bit counts. `run_simulation` returns the final
clock value.

Other pieces:

- `mesisim.processor` — `Processor` (built directly from a list of
  instructions, or with `Processor.from_trace`), `parse_trace`, `read_trace`
- `mesisim.bus` — `Bus`, the snooping bus serving one request at a time
- `mesisim.protocol` — `MESIProtocol`, the hit/miss decision for loads and stores
- `mesisim.cache`, `mesisim.cacheset`, `mesisim.cacheline` — `Cache`,
  `CacheSet`, `CacheLine`
- `mesisim.memory` — `Memory`, a 4096-word memory filled with random values
  in 0..1023
- `mesisim.types` — the enumerations (`MESIState`, `ProcessorState`, …) and
  the `Request` record

## Timing model

- Fetching a block from memory costs 100 cycles.
- Fetching a block from another cache costs `block_size / 2` cycles.
- Writing back a modified block, whether evicted or snooped, costs 100 cycles.
- An invalidation costs one cycle.
- The bus serves one request at a time, in the order the requests arrive.

## What it does not do

The simulation tracks line states, timing and traffic only; no data values
move between the caches and memory while a trace runs. `Memory` stands on its
own and is not connected to the caches or the bus. The number of cores is
fixed at four.