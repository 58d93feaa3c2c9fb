"""
Telemetry module - Live GPS stream processing.

This module contains:
- GeoFix / RoutePoint / TelemetrySnapshot: Position data model
- PositionStreamProcessor: Route, distance and speed from fixes
- TelemetryChannel: Time series with running statistics
- LocationSource: Sensor boundary and replay source
"""

from drivecoach.telemetry.fix import GeoFix, RoutePoint, TelemetrySnapshot
from drivecoach.telemetry.channel import TelemetryChannel, ChannelConfig
from drivecoach.telemetry.geo import haversine_km, route_distance_km
from drivecoach.telemetry.processor import PositionStreamProcessor, ProcessorConfig
from drivecoach.telemetry.source import LocationSource, ListLocationSource

__all__ = [
    "GeoFix",
    "RoutePoint",
    "TelemetrySnapshot",
    "TelemetryChannel",
    "ChannelConfig",
    "haversine_km",
    "route_distance_km",
    "PositionStreamProcessor",
    "ProcessorConfig",
    "LocationSource",
    "ListLocationSource",
]
