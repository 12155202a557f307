"""Fixed-length rolling window of data points feeding the time-series charts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from .constants import DEFAULT_WINDOW_SIZE
from .models import DataPoint

SERIES_FIELDS = ("time", "cpu_temp", "cpu_usage", "memory_used")


@dataclass(frozen=True, slots=True)
class RollingWindow:
    """Immutable FIFO of data points, oldest first.

    The length is fixed when the window is initialized; ``push`` returns a new
    window and never changes the receiver.
    """

    points: Tuple[DataPoint, ...]

    @classmethod
    def initialize(cls, size: int = DEFAULT_WINDOW_SIZE) -> "RollingWindow":
        if size < 1:
            raise ValueError(f"Window size must be positive, got {size}")
        return cls(points=tuple(DataPoint.placeholder() for _ in range(size)))

    @property
    def size(self) -> int:
        return len(self.points)

    def push(self, point: DataPoint) -> "RollingWindow":
        return RollingWindow(points=self.points[1:] + (point,))

    def latest(self) -> DataPoint:
        return self.points[-1]

    def series(self, name: str) -> list:
        if name not in SERIES_FIELDS:
            raise ValueError(f"Unknown series field: {name!r}")
        return [getattr(point, name) for point in self.points]

    def as_list(self) -> list[dict]:
        return [point.as_dict() for point in self.points]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> DataPoint:
        return self.points[index]
