"""
Position fixes - Raw sensor samples and derived telemetry state.

Provides:
- GeoFix: immutable geolocation sample
- RoutePoint: route projection of a fix
- TelemetrySnapshot: running position/distance/speed state
"""

from dataclasses import dataclass
from typing import Optional, Tuple


MPS_TO_KMH = 3.6


@dataclass(frozen=True)
class GeoFix:
    """A single geolocation sample from the location sensor."""
    latitude: float          # Degrees
    longitude: float         # Degrees
    timestamp: float         # Seconds (monotonic or epoch)
    speed_mps: Optional[float] = None  # Instantaneous speed, None if not reported

    def to_point(self) -> "RoutePoint":
        """Project the fix onto a route point."""
        return RoutePoint(lat=self.latitude, lng=self.longitude, timestamp=self.timestamp)


@dataclass(frozen=True)
class RoutePoint:
    """Reduced {lat, lng, timestamp} projection stored in the route."""
    lat: float
    lng: float
    timestamp: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "timestamp": self.timestamp}


@dataclass
class TelemetrySnapshot:
    """Running telemetry state, updated on every accepted fix."""
    current_position: Optional[Tuple[float, float]] = None
    cumulative_distance_km: float = 0.0
    current_speed_kmh: float = 0.0

    def copy(self) -> "TelemetrySnapshot":
        """Get an independent copy of the snapshot."""
        return TelemetrySnapshot(
            current_position=self.current_position,
            cumulative_distance_km=self.cumulative_distance_km,
            current_speed_kmh=self.current_speed_kmh,
        )

    def to_dict(self) -> dict:
        return {
            "current_position": list(self.current_position) if self.current_position else None,
            "cumulative_distance_km": self.cumulative_distance_km,
            "current_speed_kmh": self.current_speed_kmh,
        }
