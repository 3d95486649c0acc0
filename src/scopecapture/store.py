"""Bounded in-memory waveform store for ScopeCapture."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading

from scopecapture.waveform_data import CapturedWaveform

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
MIN_CAPACITY = 1


class WaveformStore:
    """Ordered, capacity-limited collection of captured waveforms.

    When an insertion pushes the store over capacity the waveform with the
    earliest capture time is evicted. Waveforms sharing a capture time are
    evicted in the order they were inserted.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._lock = threading.Lock()
        self._capacity = max(MIN_CAPACITY, int(capacity))
        # Insertion sequence -> waveform; dict order is insertion order
        self._waveforms: dict[int, CapturedWaveform] = {}
        # Min-heap of (capture_time, sequence) for eviction
        self._heap: list[tuple[object, int]] = []
        self._sequence = itertools.count()

    @property
    def capacity(self) -> int:
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        if value < MIN_CAPACITY:
            logger.warning(
                "Store capacity %d is below minimum, using %d", value, MIN_CAPACITY
            )
        with self._lock:
            self._capacity = max(MIN_CAPACITY, int(value))
            evicted = self._evict_overflow()
        for waveform in evicted:
            logger.info("Capacity reduced: removed waveform from %s", waveform.capture_time)

    def insert(self, waveform: CapturedWaveform) -> list[CapturedWaveform]:
        """Add a waveform, evicting the oldest ones if over capacity.

        Returns:
            The waveforms removed to make room (usually empty)
        """
        with self._lock:
            sequence = next(self._sequence)
            self._waveforms[sequence] = waveform
            heapq.heappush(self._heap, (waveform.capture_time, sequence))
            evicted = self._evict_overflow()
        for old in evicted:
            logger.info(
                "Memory limit reached: removed oldest waveform from %s",
                f"{old.capture_time:%H:%M:%S}",
            )
        return evicted

    def _evict_overflow(self) -> list[CapturedWaveform]:
        # Caller must hold the lock
        evicted = []
        while len(self._waveforms) > self._capacity:
            _, sequence = heapq.heappop(self._heap)
            evicted.append(self._waveforms.pop(sequence))
        return evicted

    def clear(self) -> int:
        """Remove all waveforms and return how many were removed."""
        with self._lock:
            count = len(self._waveforms)
            self._waveforms.clear()
            self._heap.clear()
        logger.info("Memory cleared: %d waveforms removed", count)
        return count

    def list(self) -> list[CapturedWaveform]:
        """Return a snapshot of the stored waveforms in insertion order."""
        with self._lock:
            return list(self._waveforms.values())

    def size(self) -> int:
        with self._lock:
            return len(self._waveforms)

    def __len__(self) -> int:
        return self.size()
