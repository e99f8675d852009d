import pytest

from mesisim.cacheset import CacheSet
from mesisim.types import MESIState


def test_empty_set_reports_invalid():
    cache_set = CacheSet(2, 8)
    assert cache_set.get_state(5) is MESIState.I
    assert cache_set.states() == [MESIState.I, MESIState.I]


def test_add_line_into_free_slot():
    cache_set = CacheSet(2, 8)
    assert cache_set.add_line(5, MESIState.E) == 0
    assert cache_set.get_state(5) is MESIState.E
    assert cache_set.states()[0] is MESIState.E
    assert cache_set.num_evictions == 0


def test_lru_eviction_of_clean_line():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.E)
    cache_set.add_line(2, MESIState.S)
    assert cache_set.add_line(3, MESIState.E) == 0
    assert cache_set.get_state(1) is MESIState.I
    assert cache_set.get_state(2) is MESIState.S
    assert cache_set.get_state(3) is MESIState.E
    assert cache_set.num_evictions == 1
    assert cache_set.num_writebacks == 0


def test_eviction_of_modified_line_costs_writeback():
    cache_set = CacheSet(1, 8)
    cache_set.add_line(1, MESIState.M)
    assert cache_set.add_line(2, MESIState.E) == 100
    assert cache_set.num_writebacks == 1
    assert cache_set.num_evictions == 1


def test_access_refreshes_recency():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.E)
    cache_set.add_line(2, MESIState.E)
    cache_set.update_line_state(1, MESIState.S)
    cache_set.add_line(3, MESIState.E)
    assert cache_set.get_state(1) is MESIState.S
    assert cache_set.get_state(2) is MESIState.I


def test_invalidated_line_is_reused_without_eviction():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.M)
    cache_set.add_line(2, MESIState.E)
    cache_set.update_line_state(1, MESIState.I)
    assert cache_set.add_line(3, MESIState.S) == 0
    assert cache_set.num_evictions == 0
    assert cache_set.get_state(3) is MESIState.S
    assert cache_set.get_state(2) is MESIState.E


def test_invalidation_does_not_move_line():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.E)
    cache_set.add_line(2, MESIState.E)
    cache_set.update_line_state(1, MESIState.I)
    assert cache_set.states() == [MESIState.E, MESIState.I]


def test_update_state_of_missing_tag_is_ignored():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.E)
    cache_set.update_line_state(9, MESIState.M)
    assert cache_set.get_state(9) is MESIState.I
    assert cache_set.get_state(1) is MESIState.E


def test_update_line_writes_data_and_state():
    cache_set = CacheSet(2, 4)
    cache_set.add_line(7, MESIState.E)
    cache_set.update_line(7, MESIState.M, [1, 2, 3, 4])
    assert cache_set.get_state(7) is MESIState.M
    assert cache_set.lines[0].data == [1, 2, 3, 4]


def test_update_line_missing_tag_raises():
    cache_set = CacheSet(2, 4)
    with pytest.raises(LookupError, match="Cache set not found"):
        cache_set.update_line(7, MESIState.M, [0, 0, 0, 0])


def test_format_states():
    cache_set = CacheSet(2, 8)
    cache_set.add_line(1, MESIState.M)
    assert cache_set.format_states() == " M  I  "