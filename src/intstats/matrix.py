"""Matrix helpers: column iteration over a 2D array and the empty-column matrix."""
from __future__ import annotations

from typing import Any, Iterator

import numpy as np


class MatrixColumnIterator(Iterator[float]):
    """
    Iterate one column of a rectangular numeric array over rows
    ``[row_offset, row_limit)``. A negative ``row_limit`` means every row.
    Single pass: once exhausted it stays exhausted.
    """

    def __init__(self, values: Any, column_index: int, row_offset: int = 0, row_limit: int = -1) -> None:
        self._values = np.asarray(values, dtype=float)
        if self._values.ndim != 2:
            raise ValueError(f"expected a 2D array, got {self._values.ndim} dimension(s)")
        self.column_index = column_index
        self._row = row_offset
        self._max = self._values.shape[0] if row_limit < 0 else row_limit

    def __iter__(self) -> "MatrixColumnIterator":
        return self

    def __next__(self) -> float:
        if self._row >= self._max:
            raise StopIteration(
                f"Matrix column {self.column_index} does not have {self._row} rows within limit {self._max}"
            )
        value = self._values[self._row, self.column_index]
        self._row += 1
        return float(value)

    def __length_hint__(self) -> int:
        return max(0, self._max - self._row)

    def remove(self) -> None:
        raise NotImplementedError("matrix columns cannot be modified while iterating")


def zero_column_matrix(rows: int) -> np.ndarray:
    """A matrix with ``rows`` rows and no columns."""
    if rows < 0:
        raise ValueError("rows must be non-negative")
    return np.empty((rows, 0), dtype=float)


__all__ = ["MatrixColumnIterator", "zero_column_matrix"]
