"""
Telemetry channel - Time series of one measured quantity.

Provides:
- Bounded sample storage
- Running statistics that survive buffer trimming
- Numpy view of buffered values
"""

from dataclasses import dataclass
from typing import List
import numpy as np


@dataclass
class ChannelConfig:
    """Configuration for a telemetry channel."""
    name: str = "unnamed"
    unit: str = ""
    precision: int = 2
    buffer_size: int = 36000  # One hour at 10 Hz


class TelemetryChannel:
    """Single telemetry channel (e.g. reported speed).

    Keeps the most recent samples up to the buffer size while
    min/max/mean cover every sample ever recorded in the session.
    """

    def __init__(self, config: ChannelConfig | None = None, name: str = "channel"):
        """Initialize channel.

        Args:
            config: Channel configuration
            name: Channel name (used if config not provided)
        """
        self.config = config or ChannelConfig(name=name)

        self._values: List[float] = []

        # Running statistics
        self._min: float = float('inf')
        self._max: float = float('-inf')
        self._sum: float = 0.0
        self._count: int = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def count(self) -> int:
        """Number of samples recorded since the last clear."""
        return self._count

    @property
    def max_value(self) -> float:
        return self._max if self._count > 0 else 0.0

    @property
    def mean(self) -> float:
        return self._sum / self._count if self._count > 0 else 0.0

    @property
    def last_value(self) -> float:
        return self._values[-1] if self._values else 0.0

    def record(self, value: float) -> None:
        """Record a new sample.

        Args:
            value: Sample value
        """
        self._values.append(value)

        self._min = min(self._min, value)
        self._max = max(self._max, value)
        self._sum += value
        self._count += 1

        # Trim oldest samples, statistics keep them
        if len(self._values) > self.config.buffer_size:
            del self._values[0]

    def get_values(self) -> np.ndarray:
        return np.array(self._values)

    def clear(self) -> None:
        """Clear all recorded data."""
        self._values.clear()
        self._min = float('inf')
        self._max = float('-inf')
        self._sum = 0.0
        self._count = 0

    def get_state(self) -> dict:
        """Get channel summary.

        Returns:
            Dictionary with channel statistics
        """
        precision = self.config.precision
        has_data = self._count > 0
        return {
            "name": self.config.name,
            "unit": self.config.unit,
            "count": self._count,
            "min": round(self._min, precision) if has_data else None,
            "max": round(self._max, precision) if has_data else None,
            "mean": round(self.mean, precision) if has_data else None,
            "last": round(self.last_value, precision) if has_data else None,
            # Over buffered samples only
            "recent_median": round(float(np.median(self.get_values())), precision) if has_data else None,
        }
