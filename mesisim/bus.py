"""Central snooping bus that serialises coherence transactions between cores."""

from __future__ import annotations

from collections import deque
from typing import Any

from mesisim.types import BusTransaction, MESIState, Request, TransactionType

MEMORY_LATENCY = 100


class Bus:
    """Serves one queued request at a time and charges its cycle cost to the cores."""

    def __init__(self, bandwidth: int) -> None:
        self.bandwidth = 4 * bandwidth
        self.processors: list[Any] = []
        self.queue: deque[Request] = deque()
        self.current_request: Request | None = None
        self.bus_transactions = 0
        self.total_bus_traffic = 0

    def add_processor(self, processor: Any) -> None:
        """Attach a core; its position becomes its processor id."""
        self.processors.append(processor)

    def add_to_queue(self, request: Request) -> None:
        """Append a request to the pending queue."""
        self.queue.append(request)

    def _finish(self, request: Request) -> None:
        owner = self.processors[request.processor_id]
        owner.halted = False
        owner.update_cache_state(request.address, request.to_be_updated_state)
        owner.update_state_to_free()
        self.current_request = None

    def cycle(self) -> int:
        """Advance the bus.

        Returns 0 when it moved a single cycle, or the number of cycles it
        skipped at once when every active core was waiting on it.
        """
        if self.current_request is None and self.queue:
            request = self.queue[0]
            self.current_request = request
            self.process_request(request)
            request.counter = request.total_cost()
            request.total_counter = request.counter

        request = self.current_request
        if request is None:
            return 0

        all_halted = all(p.halted or p.is_done() for p in self.processors)
        if not all_halted:
            request.counter -= 1
            if request.counter == 0:
                self.queue.popleft()
                self._finish(request)
            return 0

        jump = request.counter
        front = self.queue[0]
        for pid, proc in enumerate(self.processors):
            if proc.is_done():
                continue
            if not self.other_back(pid):
                if front.counter <= front.total_counter - front.other_back:
                    proc.num_cycles += jump
                else:
                    proc.idle_cycles = front.other_back - (front.total_counter - front.counter)
                    proc.num_cycles += front.self_get + front.eviction
            else:
                proc.idle_cycles += jump
        self.queue.popleft()
        request.counter = 0
        self._finish(request)
        return jump

    def process_request(self, request: Request) -> None:
        """Snoop the other caches and set the request's costs and final state."""
        if request.kind is TransactionType.BUSRD:
            self.process_read(request)
        elif request.kind is TransactionType.BUSRDX:
            self.process_read_exclusive(request)

    def _others(self, request: Request):
        for pid, proc in enumerate(self.processors):
            if pid != request.processor_id:
                yield pid, proc

    def _allocate(self, request: Request, block_size: int) -> None:
        requester = self.processors[request.processor_id]
        penalty = requester.add_cache_line(request.address, MESIState.I)
        if penalty > 0:
            request.eviction += penalty
            requester.data_traffic += block_size
            self.total_bus_traffic += block_size

    def process_read(self, request: Request) -> None:
        """Handle a bus read: holders drop to S, modified holders write back."""
        requester = self.processors[request.processor_id]
        block_size = requester.block_size()
        provider: int | None = None

        for pid, proc in self._others(request):
            state = proc.cache_state(request.address)
            if state in (MESIState.E, MESIState.S):
                provider = pid if provider is None else provider
                proc.update_cache_state(request.address, MESIState.S)
            elif state is MESIState.M:
                provider = pid if provider is None else provider
                proc.update_cache_state(request.address, MESIState.S)
                proc.data_traffic += block_size
                self.total_bus_traffic += block_size
                request.other_back += MEMORY_LATENCY
                proc.num_writebacks += 1

        self._allocate(request, block_size)

        requester.data_traffic += block_size
        self.total_bus_traffic += block_size
        if provider is None:
            request.self_get += MEMORY_LATENCY
            request.to_be_updated_state = MESIState.E
        else:
            request.self_get += block_size // 2
            self.processors[provider].data_traffic += block_size
            request.to_be_updated_state = MESIState.S

    def process_read_exclusive(self, request: Request) -> None:
        """Handle a read-for-ownership or invalidate: all other copies become I."""
        requester = self.processors[request.processor_id]
        block_size = requester.block_size()
        provider: int | None = None

        for pid, proc in self._others(request):
            state = proc.cache_state(request.address)
            if state is MESIState.M:
                proc.update_cache_state(request.address, MESIState.I)
                provider = pid if provider is None else provider
                proc.data_traffic += block_size
                self.total_bus_traffic += block_size
                request.other_back += MEMORY_LATENCY
                proc.num_writebacks += 1
            elif state in (MESIState.S, MESIState.E):
                proc.update_cache_state(request.address, MESIState.I)
                provider = pid if provider is None else provider

        self._allocate(request, block_size)
        request.to_be_updated_state = MESIState.M

        if request.transaction is BusTransaction.INVALIDATE:
            requester.num_bus_invalidations += 1
            request.self_get += 1
        elif provider is None:
            request.self_get += MEMORY_LATENCY
            requester.data_traffic += block_size
        else:
            request.self_get += block_size // 2
            requester.num_bus_invalidations += 1
            requester.data_traffic += block_size
            self.processors[provider].data_traffic += block_size
            self.total_bus_traffic += block_size

    def is_done(self) -> bool:
        """True when nothing is queued or in service."""
        return not self.queue and self.current_request is None

    def halt_processor(self, processor_id: int) -> None:
        """Stall a core until its request completes."""
        self.processors[processor_id].halted = True

    def bus_traffic(self) -> int:
        """Recompute and return the total traffic as the sum over all cores."""
        self.total_bus_traffic = sum(p.data_traffic for p in self.processors)
        return self.total_bus_traffic

    def max_execution_time(self) -> int:
        """Largest cycle count of any core."""
        return max((p.num_cycles for p in self.processors), default=0)

    def other_back(self, processor_id: int) -> bool:
        """True when the request at the head of the queue belongs to another core."""
        if not self.queue:
            return False
        return self.queue[0].processor_id != processor_id