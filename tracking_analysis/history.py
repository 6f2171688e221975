"""
Bounded history and the temporal smoothing built on it.

Individual frames are noisy, so the engine reasons over the last W frames:
- Scalars (attention) are smoothed with a linearly recency-weighted mean
- Labels (emotion, posture) change only once a quorum of frames agrees
- Booleans (suspicion) are debounced by counting true entries
"""

import logging
from collections import Counter, deque
from typing import Deque, Generic, Iterable, Iterator, List, Optional, Sequence, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar('T')


class HistoryBuffer(Generic[T]):
    """
    Fixed-capacity FIFO of recent values.

    Pushing past capacity evicts the oldest entry, so ``len(buffer)`` never
    exceeds ``capacity``. Iteration runs oldest to newest.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._values: Deque[T] = deque(maxlen=capacity)

    def push(self, value: T):
        self._values.append(value)

    def clear(self):
        self._values.clear()

    def values(self) -> List[T]:
        """Snapshot of the buffered values, oldest first."""
        return list(self._values)

    def count(self, value: T) -> int:
        return sum(1 for v in self._values if v == value)

    @property
    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    @property
    def latest(self) -> Optional[T]:
        return self._values[-1] if self._values else None

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._values))

    def __repr__(self) -> str:
        return f"HistoryBuffer(capacity={self.capacity}, size={len(self._values)})"


def weighted_recent_average(values: Sequence[float]) -> float:
    """
    Recency-weighted mean of a window.

    The i-th oldest of n samples (1-indexed) gets weight i, so the newest
    sample weighs n times the oldest. The result is clipped to the sample
    range to absorb floating-point drift.

    Args:
        values: Samples ordered oldest to newest (non-empty)

    Returns:
        Weighted average within [min(values), max(values)]
    """
    samples = np.asarray(values, dtype=float)
    if samples.size == 0:
        raise ValueError("Cannot average an empty window")

    weights = np.arange(1, samples.size + 1, dtype=float)
    average = np.average(samples, weights=weights)

    return float(np.clip(average, samples.min(), samples.max()))


def stabilize_label(
    labels: Iterable[str],
    current: str,
    quorum: int
) -> str:
    """
    Majority vote with hysteresis.

    The most frequent label in the window replaces ``current`` only if it
    occurs at least ``quorum`` times, or while the window still holds fewer
    than ``quorum`` samples (bootstrap). Ties on the top count keep
    ``current`` when it is one of the tied labels, otherwise the tied label
    seen first, scanning oldest to newest, wins.

    Args:
        labels: Window of labels, oldest first
        current: Label reported on the previous tick
        quorum: Minimum count required to adopt a label

    Returns:
        Label to report for this tick
    """
    window = list(labels)
    if not window:
        return current

    counts = Counter(window)
    top_count = max(counts.values())
    tied = [label for label in counts if counts[label] == top_count]

    # Counter preserves first-insertion order, i.e. oldest-first encounter
    dominant = current if current in tied else tied[0]

    if top_count >= quorum or len(window) < quorum:
        if dominant != current:
            logger.debug(f"Label change {current!r} -> {dominant!r} ({top_count}/{len(window)})")
        return dominant

    return current
