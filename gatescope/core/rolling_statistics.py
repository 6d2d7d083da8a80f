"""
Rolling Statistics Module

Per-block level reduction (mean absolute value, RMS) and a bounded
history of block RMS values for the scrolling output plot.

Technical assumptions:
- Statistics are taken over all samples of a block, no windowing
- The history is FIFO: when full, the oldest value is evicted
  before the newest is appended
- The plot x-axis is normalized to (0, 0.5] and does not represent
  elapsed time
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator
import numpy as np

DEFAULT_WINDOW_CAPACITY = 200


@dataclass(frozen=True)
class BlockStatistics:
    """Level statistics of one block."""
    mean_abs: float
    rms: float

    def rms_db(self) -> float:
        """RMS in dB re 1 V."""
        if self.rms == 0:
            return -np.inf
        return 20 * np.log10(self.rms)


def compute_mean_abs(data: np.ndarray) -> float:
    """Mean of the absolute sample values."""
    return float(np.mean(np.abs(data)))


def compute_rms(data: np.ndarray) -> float:
    """Root mean square of the samples."""
    return float(np.sqrt(np.mean(np.square(data))))


def reduce_block(data: np.ndarray) -> BlockStatistics:
    """
    Reduce a block to its level statistics.

    Args:
        data: Real samples (1D, not empty)

    Returns:
        BlockStatistics with mean_abs and rms, both >= 0
    """
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        raise ValueError("Cannot compute statistics of an empty block")
    return BlockStatistics(mean_abs=compute_mean_abs(data), rms=compute_rms(data))


def window_points(values: Iterable[float]) -> Iterator[tuple[float, float]]:
    """
    Yield plot points for a window snapshot.

    Point i of m values is (((i + 1) / m) / 2, values[i]).
    """
    values = list(values)
    m = len(values)
    for i, value in enumerate(values):
        yield ((i + 1.0) / m) / 2, value


class RollingWindow:
    """
    Bounded FIFO history of scalar values.

    Iteration and points() always reflect the contents at the time of
    the call; there is no cursor state between reads.
    """

    def __init__(self, capacity: int = DEFAULT_WINDOW_CAPACITY):
        if capacity < 1:
            raise ValueError("Capacity must be at least 1")
        self.capacity = capacity
        self._values: deque[float] = deque(maxlen=capacity)

    def append(self, value: float) -> "RollingWindow":
        """Append a value, evicting the oldest one when full."""
        self._values.append(float(value))
        return self

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[float]:
        return iter(list(self._values))

    @property
    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    def values(self) -> np.ndarray:
        """Copy of the window contents, oldest first."""
        return np.array(self._values, dtype=np.float64)

    def points(self) -> Iterator[tuple[float, float]]:
        """Plot points of the current contents (see window_points)."""
        return window_points(list(self._values))


class RollingStatistics:
    """Block reduction plus the rolling RMS history it feeds."""

    def __init__(self, capacity: int = DEFAULT_WINDOW_CAPACITY):
        self.window = RollingWindow(capacity)

    def reduce(self, block: np.ndarray) -> BlockStatistics:
        return reduce_block(block)

    def append(self, value: float) -> RollingWindow:
        return self.window.append(value)

    def reset(self) -> None:
        self.window.clear()
