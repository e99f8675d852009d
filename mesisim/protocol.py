"""Local MESI decisions for loads and stores issued by a core."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mesisim.types import (
    BusTransaction,
    MESIState,
    ProcessMESIResult,
    Request,
    TransactionType,
)

if TYPE_CHECKING:
    from mesisim.bus import Bus
    from mesisim.cache import Cache


class MESIProtocol:
    """Decides hit or miss for an access and posts bus requests when needed."""

    @staticmethod
    def _post(
        bus: Bus,
        transaction: BusTransaction,
        processor_id: int,
        kind: TransactionType,
        address: int,
    ) -> None:
        bus.bus_transactions += 1
        bus.add_to_queue(Request(transaction, processor_id, kind, address))
        bus.halt_processor(processor_id)

    def read(self, processor_id: int, address: int, bus: Bus, cache: Cache) -> ProcessMESIResult:
        """Handle a load; a miss queues a bus read and halts the core."""
        state = cache.get_state(address)
        if state in (MESIState.S, MESIState.E, MESIState.M):
            cache.update_state(address, state)
            return ProcessMESIResult.CACHE_HIT
        if state is MESIState.I:
            self._post(bus, BusTransaction.MEMREAD, processor_id, TransactionType.BUSRD, address)
            return ProcessMESIResult.CACHE_MISS
        raise RuntimeError("invalid state")

    def write(self, processor_id: int, address: int, bus: Bus, cache: Cache) -> ProcessMESIResult:
        """Handle a store; shared lines are invalidated elsewhere, misses read for ownership."""
        state = cache.get_state(address)
        if state is MESIState.S:
            self._post(bus, BusTransaction.INVALIDATE, processor_id, TransactionType.BUSRDX, address)
            return ProcessMESIResult.CACHE_HIT
        if state is MESIState.M:
            cache.update_state(address, state)
            return ProcessMESIResult.CACHE_HIT
        if state is MESIState.E:
            cache.update_state(address, MESIState.M)
            return ProcessMESIResult.CACHE_HIT
        if state is MESIState.I:
            self._post(bus, BusTransaction.RWITM, processor_id, TransactionType.BUSRDX, address)
            return ProcessMESIResult.CACHE_MISS
        raise RuntimeError("invalid state")