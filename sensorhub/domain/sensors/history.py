"""
Bounded reading history.

Fixed-capacity FIFO of DataPoints kept per sensor. Appending to a full buffer
evicts the oldest point in O(1).
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Iterator

from sensorhub.domain.sensors.reading import DataPoint

DEFAULT_HISTORY_CAPACITY = 1000


class BoundedHistory:
    """Insertion-ordered buffer holding at most ``capacity`` points."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY, points: Iterable[DataPoint] = ()):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._points: deque[DataPoint] = deque(points, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._points.maxlen

    def append(self, point: DataPoint) -> DataPoint | None:
        """Append ``point`` and return the evicted point, if any."""
        evicted = self._points[0] if len(self._points) == self._points.maxlen else None
        self._points.append(point)
        return evicted

    def snapshot(self) -> list[DataPoint]:
        """Copy of the buffer, oldest first."""
        return list(self._points)

    def latest(self) -> DataPoint | None:
        return self._points[-1] if self._points else None

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)
