"""Decides when the supervisor should tell the shards to stop."""

from __future__ import annotations

import threading


class StopSignal:
    """Counts empty block reports in a row against a threshold."""

    def __init__(self, threshold: int) -> None:
        self._lock = threading.Lock()
        self._gap = 0
        self._threshold = threshold

    @property
    def stop_gap(self) -> int:
        with self._lock:
            return self._gap

    def stop_gap_inc(self) -> None:
        """Record one more empty report."""
        with self._lock:
            self._gap += 1

    def stop_gap_reset(self) -> None:
        """Record that transactions were executed."""
        with self._lock:
            self._gap = 0

    def gap_enough(self) -> bool:
        """True once the run of empty reports reaches the threshold."""
        with self._lock:
            return self._gap >= self._threshold