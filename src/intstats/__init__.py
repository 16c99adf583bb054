"""Package metadata for intstats.

The version is read from importlib.metadata so that an editable install or
wheel reports what pyproject.toml declares. A hardcoded fallback keeps direct
source usage (no installation) importable.
"""

from __future__ import annotations

from importlib import metadata as _metadata

from .histogram import IntegerStats
from .rolling import RollingArray, WindowIndexError

__all__ = ["__version__", "IntegerStats", "RollingArray", "WindowIndexError"]

_FALLBACK_VERSION = "0.3.0"  # MUST match pyproject.toml [project].version

try:  # pragma: no cover - success path covered indirectly via CLI test
	__version__ = _metadata.version("intstats")  # type: ignore[assignment]
except Exception:  # pragma: no cover - fallback exercised if metadata missing
	__version__ = _FALLBACK_VERSION
