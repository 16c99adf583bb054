"""Fixed-size rolling buffer of float values.

Suitable for keeping a short history over a stream, eg: for a moving average.
Position 0 is always the oldest value and ``window_size - 1`` the one added
most recently. The buffer starts out full of zeros; there is no notion of an
unwritten slot.
"""
from __future__ import annotations

from typing import Iterator, List


class WindowIndexError(IndexError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Index {index} is outside the bounds of window of size {size}")
        self.index = index
        self.size = size


class RollingArray:
    def __init__(self, window_size: int) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self.window_size = window_size
        self._max_position = window_size - 1
        self._values: List[float] = [0.0] * window_size
        self._offset = 0

    def add(self, value: float) -> None:
        """Shift the window left by one and put ``value`` in the newest slot."""
        self._offset += 1
        self.set_at(self._max_position, value)

    def _slot(self, position: int) -> int:
        if position < 0 or position > self._max_position:
            raise WindowIndexError(position, self.window_size)
        return (self._offset + position) % self.window_size

    def set_at(self, position: int, value: float) -> None:
        self._values[self._slot(position)] = float(value)

    def get_at(self, position: int) -> float:
        return self._values[self._slot(position)]

    __getitem__ = get_at
    __setitem__ = set_at

    def __len__(self) -> int:
        return self.window_size

    def __iter__(self) -> Iterator[float]:
        for position in range(self.window_size):
            yield self._values[(self._offset + position) % self.window_size]

    def values(self) -> List[float]:
        """Window contents, oldest first."""
        return list(self)

    def total(self) -> float:
        return sum(self._values)

    def mean(self) -> float:
        return self.total() / self.window_size

    def __repr__(self) -> str:
        return f"RollingArray(window_size={self.window_size}, values={self.values()})"


__all__ = ["RollingArray", "WindowIndexError"]
