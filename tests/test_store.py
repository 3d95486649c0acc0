"""Tests for the bounded waveform store."""

import threading

from scopecapture.store import WaveformStore

from conftest import make_waveform


def test_store_defaults_to_capacity_100() -> None:
    assert WaveformStore().capacity == 100


def test_store_insert_and_list_in_order() -> None:
    store = WaveformStore(capacity=5)
    waveforms = [make_waveform(offset_s=i) for i in range(3)]

    for waveform in waveforms:
        store.insert(waveform)

    assert store.list() == waveforms
    assert store.size() == 3
    assert len(store) == 3


def test_store_never_exceeds_capacity() -> None:
    """Verify size stays within capacity after every insertion."""
    store = WaveformStore(capacity=3)

    for i in range(10):
        store.insert(make_waveform(offset_s=i))
        assert store.size() <= store.capacity


def test_store_evicts_earliest_capture_time() -> None:
    """Verify inserting capacity+1 waveforms evicts the oldest one."""
    store = WaveformStore(capacity=3)
    waveforms = [make_waveform(offset_s=i) for i in range(4)]

    evicted = []
    for waveform in waveforms:
        evicted.extend(store.insert(waveform))

    assert evicted == [waveforms[0]]
    assert store.list() == waveforms[1:]


def test_store_evicts_by_time_not_insertion_order() -> None:
    """Verify a late-inserted but older waveform is the one evicted."""
    store = WaveformStore(capacity=2)
    newer = make_waveform(offset_s=10)
    newest = make_waveform(offset_s=20)
    older = make_waveform(offset_s=0)

    store.insert(newer)
    store.insert(newest)
    evicted = store.insert(older)

    assert evicted == [older]
    assert store.list() == [newer, newest]


def test_store_tie_break_uses_insertion_order() -> None:
    """Verify waveforms with equal capture times are evicted first-in first-out."""
    store = WaveformStore(capacity=2)
    first = make_waveform(description="first")
    second = make_waveform(description="second")
    third = make_waveform(description="third")

    store.insert(first)
    store.insert(second)
    evicted = store.insert(third)

    assert evicted == [first]
    assert [w.description for w in store.list()] == ["second", "third"]


def test_store_capacity_clamped_to_one() -> None:
    """Verify capacities below one are clamped."""
    assert WaveformStore(capacity=0).capacity == 1

    store = WaveformStore(capacity=5)
    store.capacity = -3
    assert store.capacity == 1


def test_store_shrinking_capacity_evicts_oldest() -> None:
    store = WaveformStore(capacity=5)
    waveforms = [make_waveform(offset_s=i) for i in range(5)]
    for waveform in waveforms:
        store.insert(waveform)

    store.capacity = 2

    assert store.list() == waveforms[3:]


def test_store_clear() -> None:
    store = WaveformStore()
    store.insert(make_waveform())
    store.insert(make_waveform(offset_s=1))

    removed = store.clear()

    assert removed == 2
    assert store.list() == []
    # Store is usable again after clearing
    store.insert(make_waveform(offset_s=2))
    assert store.size() == 1


def test_store_list_is_snapshot() -> None:
    """Verify list() returns a copy that does not track later changes."""
    store = WaveformStore()
    store.insert(make_waveform())

    snapshot = store.list()
    store.insert(make_waveform(offset_s=1))
    snapshot.clear()

    assert store.size() == 2


def test_store_concurrent_inserts_respect_capacity() -> None:
    store = WaveformStore(capacity=10)

    def worker(base: int) -> None:
        for i in range(50):
            store.insert(make_waveform(offset_s=base * 100 + i))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.size() == 10
