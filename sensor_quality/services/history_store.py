"""
History Store
=============
Bounded per-device raw snapshot history plus per-(device, kind) Kalman state.

Mutable state is sharded by device id: every per-device operation runs under
that device's re-entrant lock, so different devices proceed independently
while readings of one device are serialised. The validator and smoother hold
the same lock (``device_lock``) across a whole validate/smooth call.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sensor_quality.domain.sensors import MetricSnapshot, SensorKind
from sensor_quality.utils.concurrency import KeyedLocks, synchronized
from sensor_quality.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 1000
DEFAULT_COMPACT_TO = 500
DEFAULT_KALMAN_CAPACITY = 100


class HistoryStore:
    """
    In-memory history shared by the validator and the smoother.

    Raw history is a FIFO per device (oldest evicted past ``capacity``).
    Kalman state is a FIFO of previous filtered outputs per (device, kind).
    """

    def __init__(
        self,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
        compact_to: int = DEFAULT_COMPACT_TO,
        kalman_capacity: int = DEFAULT_KALMAN_CAPACITY,
    ):
        """
        Initialize the history store.

        Args:
            capacity: Maximum snapshots kept per device
            compact_to: Snapshots kept per device after compact()
            kalman_capacity: Maximum filtered values kept per (device, kind)
        """
        if capacity < 1 or kalman_capacity < 1:
            raise ValueError("History capacities must be >= 1")
        self.capacity = capacity
        self.compact_to = max(0, compact_to)
        self.kalman_capacity = kalman_capacity

        self._lock = threading.Lock()
        self._device_locks = KeyedLocks()
        self._snapshots: dict[str, deque[MetricSnapshot]] = {}
        self._kalman: dict[str, dict[SensorKind, deque[float]]] = {}
        self._last_validation: dict[str, datetime] = {}

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def device_lock(self, device_id: str) -> Iterator[None]:
        """Exclusive access to one device's history and filter state."""
        with self._device_locks.hold(device_id):
            yield

    @synchronized
    def _buffer(self, device_id: str, create: bool = False) -> deque[MetricSnapshot] | None:
        buffer = self._snapshots.get(device_id)
        if buffer is None and create:
            buffer = deque(maxlen=self.capacity)
            self._snapshots[device_id] = buffer
        return buffer

    @synchronized
    def device_ids(self) -> list[str]:
        return list(self._snapshots)

    # ------------------------------------------------------------------
    # Raw history
    # ------------------------------------------------------------------

    def append(self, device_id: str, snapshot: MetricSnapshot) -> None:
        """Push a snapshot; the oldest entry is evicted past capacity."""
        with self.device_lock(device_id):
            self._buffer(device_id, create=True).append(snapshot)

    def _prior(self, device_id: str, before: datetime | None) -> Iterator[MetricSnapshot]:
        """Snapshots newest first, optionally only those strictly older than ``before``."""
        buffer = self._buffer(device_id)
        if not buffer:
            return
        cutoff = ensure_utc(before) if before is not None else None
        for snapshot in reversed(buffer):
            if cutoff is not None and snapshot.timestamp >= cutoff:
                continue
            yield snapshot

    def size(self, device_id: str, before: datetime | None = None) -> int:
        with self.device_lock(device_id):
            if before is None:
                buffer = self._buffer(device_id)
                return len(buffer) if buffer else 0
            return sum(1 for _ in self._prior(device_id, before))

    def recent(self, device_id: str, n: int) -> list[MetricSnapshot]:
        """Up to ``n`` snapshots, most recent first."""
        if n <= 0:
            return []
        with self.device_lock(device_id):
            result: list[MetricSnapshot] = []
            for snapshot in self._prior(device_id, None):
                result.append(snapshot)
                if len(result) >= n:
                    break
            return result

    def values(
        self,
        device_id: str,
        kind: SensorKind,
        n: int | None = None,
        before: datetime | None = None,
    ) -> list[float]:
        """
        Most recent non-missing values of ``kind``, oldest first.

        Args:
            device_id: Device to read
            kind: Metric to extract
            n: Maximum number of values (all when None)
            before: Only consider snapshots strictly older than this time
        """
        if n is not None and n <= 0:
            return []
        with self.device_lock(device_id):
            collected: list[float] = []
            for snapshot in self._prior(device_id, before):
                value = snapshot.get(kind)
                if value is None:
                    continue
                collected.append(value)
                if n is not None and len(collected) >= n:
                    break
            collected.reverse()
            return collected

    def last_value(self, device_id: str, kind: SensorKind, before: datetime | None = None) -> float | None:
        """Most recent non-missing reading of ``kind``."""
        found = self.values(device_id, kind, 1, before)
        return found[0] if found else None

    def last_snapshot(self, device_id: str, before: datetime | None = None) -> MetricSnapshot | None:
        with self.device_lock(device_id):
            return next(self._prior(device_id, before), None)

    def last_timestamp(self, device_id: str, before: datetime | None = None) -> datetime:
        """
        Timestamp of the newest snapshot.

        An empty history yields "now", which makes any elapsed-time
        computation against it zero.
        """
        snapshot = self.last_snapshot(device_id, before)
        return snapshot.timestamp if snapshot is not None else utc_now()

    # ------------------------------------------------------------------
    # Validation bookkeeping
    # ------------------------------------------------------------------

    def mark_validated(self, device_id: str, when: datetime) -> None:
        with self.device_lock(device_id):
            with self._lock:
                self._last_validation[device_id] = ensure_utc(when)

    def last_validation(self, device_id: str) -> datetime | None:
        with self.device_lock(device_id):
            return self._last_validation.get(device_id)

    # ------------------------------------------------------------------
    # Kalman state
    # ------------------------------------------------------------------

    def kalman_state(self, device_id: str, kind: SensorKind) -> list[float]:
        """Previous filtered values for (device, kind), oldest first."""
        with self.device_lock(device_id):
            states = self._kalman.get(device_id, {})
            return list(states.get(kind, ()))

    def push_kalman_state(self, device_id: str, kind: SensorKind, value: float) -> None:
        with self.device_lock(device_id):
            with self._lock:
                states = self._kalman.setdefault(device_id, {})
            buffer = states.get(kind)
            if buffer is None:
                buffer = deque(maxlen=self.kalman_capacity)
                states[kind] = buffer
            buffer.append(value)

    def kalman_state_count(self) -> int:
        with self._lock:
            return sum(len(states) for states in self._kalman.values())

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def compact(self) -> int:
        """
        Trim every device buffer to ``compact_to`` snapshots and every Kalman
        buffer to ``kalman_capacity`` values.

        Returns:
            Number of snapshots dropped
        """
        dropped = 0
        for device_id in self.device_ids():
            with self.device_lock(device_id):
                buffer = self._buffer(device_id)
                while buffer and len(buffer) > self.compact_to:
                    buffer.popleft()
                    dropped += 1
                for state in self._kalman.get(device_id, {}).values():
                    while len(state) > self.kalman_capacity:
                        state.popleft()
        if dropped:
            logger.debug("History compaction dropped %d snapshots", dropped)
        return dropped

    def clear(self, device_id: str) -> None:
        """Forget all history, Kalman state, bookkeeping and the lock of one device."""
        with self.device_lock(device_id):
            with self._lock:
                self._snapshots.pop(device_id, None)
                self._kalman.pop(device_id, None)
                self._last_validation.pop(device_id, None)
        # The next reading for this device creates a fresh lock
        self._device_locks.discard(device_id)
        logger.debug("Cleared history for device %s", device_id)

    def clear_all(self) -> None:
        with self._lock:
            device_ids = set(self._snapshots) | set(self._kalman) | set(self._last_validation)
        device_ids.update(self._device_locks.keys())
        for device_id in device_ids:
            self.clear(device_id)
