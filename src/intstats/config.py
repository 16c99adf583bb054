from dataclasses import dataclass
from typing import Tuple


@dataclass
class StatsConfig:
    # Histogram width; values at or above capacity-1 share the top bucket
    capacity: int = 1000
    # Rolling window size for moving averages
    window: int = 10
    # Percentiles reported when none are requested explicitly
    percentiles: Tuple[int, ...] = (50, 90, 95, 99)

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        if self.window <= 0:
            raise ValueError("window must be positive")


# Capacity used when reading a bare stream with no explicit configuration
DEFAULT_STREAM_CAPACITY = 1000
