"""TSV field conversion and a small numeric TSV reader.

``convert_columns`` is the hot path: it turns one row of raw text fields into
typed values using a parallel list of column types. Integer columns that turn
out to hold decimals are widened to ``float`` in place, so the widening sticks
for every later row sharing the same ``column_types`` list.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, MutableSequence, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from .logutil import get_logger
from .matrix import zero_column_matrix

# Optional sign then ASCII digits; no padding, no underscores
_INT_TEXT = re.compile(r"[+-]?[0-9]+")


@runtime_checkable
class ValueAdapter(Protocol):  # pragma: no cover - simple protocol
    def deserialize(self, text: str) -> Any: ...  # noqa: E701 - protocol stub


def _is_float(text: str) -> bool:
    if "_" in text:
        return False
    try:
        float(text)
    except ValueError:
        return False
    return True


def _convert(text: str, column_type: Any) -> Any:
    if isinstance(column_type, ValueAdapter):
        return column_type.deserialize(text)
    if column_type is str:
        return text
    if column_type is int:
        if not _INT_TEXT.fullmatch(text):
            raise ValueError(f"invalid integer literal {text!r}")
        return int(text)
    return column_type(text)


def convert_columns(values: Sequence[str], column_types: MutableSequence[Any]) -> List[Any]:
    """
    Convert ``values`` according to ``column_types`` (a type, any callable
    taking the text, or a ``ValueAdapter``).

    ``int`` columns accept only an optional sign followed by ASCII digits.
    Only ``min(len(values), len(column_types))`` fields are converted. When an
    ``int`` column fails on text that is a valid float the column is switched
    to ``float`` and the field retried once. Any other ``ValueError`` leaves
    the raw text in place of the converted value.
    """
    log = get_logger()
    converted: List[Any] = []
    for index in range(min(len(values), len(column_types))):
        text = values[index]
        try:
            converted.append(_convert(text, column_types[index]))
            continue
        except ValueError:
            if column_types[index] is not int or not _is_float(text):
                log.debug("column %d: keeping unconverted value %r", index, text)
                converted.append(text)
                continue
        log.debug("column %d: widening int to float for %r", index, text)
        column_types[index] = float
        converted.append(float(text))
    return converted


@dataclass
class TsvMatrix:
    names: Optional[List[str]]
    types: List[Any]
    data: np.ndarray

    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def columns(self) -> int:
        return self.data.shape[1]


def _as_number(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    return math.nan


def read_matrix(stream: Iterable[str], header: bool = False) -> TsvMatrix:
    """
    Read tab separated numeric data. Columns start as ``int`` and widen to
    ``float`` as needed; fields that convert to neither become NaN.

    Blank lines are skipped and never decide the column count, which comes
    from the header or the first line with fields. Input made only of blank
    lines produces a zero-column matrix with one row per line.
    """
    names: Optional[List[str]] = None
    types: List[Any] = []
    rows: List[List[float]] = []
    blank = 0
    for line in stream:
        line = line.rstrip("\r\n")
        if not line:
            blank += 1
            continue
        fields = line.split("\t")
        if header and names is None:
            names = fields
            types = [int] * len(fields)
            continue
        if not types:
            types = [int] * len(fields)
        converted = convert_columns(fields, types)
        row = [_as_number(v) for v in converted]
        # Short rows are padded so the result stays rectangular
        row.extend([math.nan] * (len(types) - len(row)))
        rows.append(row)

    if not types:
        data = zero_column_matrix(blank)
    else:
        data = np.array(rows, dtype=float).reshape(len(rows), len(types))
    return TsvMatrix(names=names, types=types, data=data)


__all__ = ["ValueAdapter", "convert_columns", "TsvMatrix", "read_matrix"]
