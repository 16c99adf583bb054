"""Integer coercion used when bulk-loading an estimator.

Integers pass through, reals are truncated toward zero and text is trimmed
then parsed as an optionally signed run of ASCII digits. Anything else is a
hard failure: bulk loading never skips values silently.
"""
from __future__ import annotations

import math
import numbers
import re
from typing import Any

_INT_RE = re.compile(r"[+-]?[0-9]+")


class CoercionError(ValueError):
    """Raised when a bulk-load item cannot be read as an integer."""

    def __init__(self, value: Any, reason: str = "not an integer") -> None:
        super().__init__(f"cannot coerce {value!r} to int: {reason}")
        self.value = value


def to_int(value: Any) -> int:
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if math.isnan(value) or math.isinf(value):
            raise CoercionError(value, "not a finite number")
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    if isinstance(value, str):
        text = value.strip()
        if not _INT_RE.fullmatch(text):
            raise CoercionError(value)
        return int(text)
    raise CoercionError(value, f"unsupported type {type(value).__name__}")


__all__ = ["CoercionError", "to_int"]
