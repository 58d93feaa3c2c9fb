"""
Position stream processor - Turns live GPS fixes into route, distance and speed.

Provides:
- Incremental haversine distance accumulation
- Append-only route recording
- Speed tracking from sensor-reported speed
- Push notifications to subscribers on every fix
- Lossless queueing of fixes between sensor and consumer
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Tuple
import logging

from drivecoach.errors import Condition, SensorUnavailable
from drivecoach.telemetry.channel import ChannelConfig, TelemetryChannel
from drivecoach.telemetry.fix import MPS_TO_KMH, GeoFix, RoutePoint, TelemetrySnapshot
from drivecoach.telemetry.geo import EARTH_RADIUS_KM, haversine_km
from drivecoach.telemetry.source import LocationSource


logger = logging.getLogger(__name__)

Subscriber = Callable[[Tuple[RoutePoint, ...], TelemetrySnapshot], None]


@dataclass
class ProcessorConfig:
    """Position stream processor configuration."""
    earth_radius_km: float = EARTH_RADIUS_KM
    speed_buffer_size: int = 36000  # Speed samples kept for analysis


class PositionStreamProcessor:
    """Consumes GeoFix samples for one driving session.

    Every accepted fix is appended to the route, adds the haversine
    leg from the previous point to the cumulative distance, and
    updates the current speed when the sensor reports one. Speed is
    never derived from position deltas, so it stays stale while the
    sensor omits it.

    Out-of-order timestamps are appended as received and only counted.
    While paused, fixes are held in the queue and applied on resume.

    Usage:
        processor = PositionStreamProcessor(source=gps)
        processor.subscribe(on_update)
        processor.start()
        await processor.follow()
        processor.stop()
    """

    def __init__(
        self,
        config: ProcessorConfig | None = None,
        source: LocationSource | None = None,
    ):
        """Initialize processor.

        Args:
            config: Processor configuration
            source: Location source (can be set later)
        """
        self.config = config or ProcessorConfig()
        self._source = source

        # State
        self._started: bool = False
        self._paused: bool = False
        self._source_open: bool = False
        self._route: List[RoutePoint] = []
        self._snapshot = TelemetrySnapshot()
        self._out_of_order_count: int = 0

        # Fixes delivered but not yet applied
        self._pending: Deque[GeoFix] = deque()

        self._subscribers: List[Subscriber] = []
        self._speed = TelemetryChannel(ChannelConfig(
            name="speed_kmh",
            unit="km/h",
            precision=1,
            buffer_size=self.config.speed_buffer_size,
        ))

        self.conditions: List[Condition] = []

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def route(self) -> Tuple[RoutePoint, ...]:
        """Read-only snapshot of the route."""
        return tuple(self._route)

    @property
    def snapshot(self) -> TelemetrySnapshot:
        """Copy of the current telemetry state."""
        return self._snapshot.copy()

    @property
    def speed_channel(self) -> TelemetryChannel:
        return self._speed

    @property
    def pending_count(self) -> int:
        """Number of queued fixes not yet applied."""
        return len(self._pending)

    @property
    def out_of_order_count(self) -> int:
        return self._out_of_order_count

    def set_source(self, source: LocationSource) -> None:
        self._source = source

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback receiving (route, snapshot) after each fix."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def start(self, session_active: bool = True) -> Optional[Condition]:
        """Begin accepting fixes.

        Args:
            session_active: Whether the owning session is active

        Returns:
            SENSOR_UNAVAILABLE if the location source failed to open,
            None otherwise
        """
        if not session_active:
            return None

        # A source attached after start still gets opened
        if self._source is not None and not self._source_open:
            try:
                self._source.open()
            except SensorUnavailable as e:
                logger.warning("Location sensor unavailable: %s", e)
                return self._report(Condition.from_error(e))
            self._source_open = True

        if not self._started:
            self._started = True
            logger.debug("Position stream started")
        return None

    def on_fix(self, fix: GeoFix) -> bool:
        """Apply a fix to the route and telemetry state.

        Args:
            fix: Fix delivered by the sensor

        Returns:
            True if the fix was accepted
        """
        if not self._started:
            logger.debug("Ignoring fix while stopped")
            return False
        if self._paused:
            self._pending.append(fix)
            return False

        point = fix.to_point()

        if self._route:
            previous = self._route[-1]
            if point.timestamp <= previous.timestamp:
                self._out_of_order_count += 1
                logger.debug(
                    "Fix at %s not after previous %s, appending as received",
                    point.timestamp, previous.timestamp,
                )
            self._snapshot.cumulative_distance_km += haversine_km(
                previous.lat, previous.lng, point.lat, point.lng,
                radius_km=self.config.earth_radius_km,
            )

        self._route.append(point)
        self._snapshot.current_position = (point.lat, point.lng)

        if fix.speed_mps is not None:
            self._snapshot.current_speed_kmh = fix.speed_mps * MPS_TO_KMH
            self._speed.record(self._snapshot.current_speed_kmh)

        self._notify()
        return True

    def pause(self) -> bool:
        """Hold incoming fixes back without ending the stream.

        Returns:
            True if the processor was paused
        """
        if not self._started or self._paused:
            return False
        self._paused = True
        logger.debug("Position stream paused")
        return True

    def resume(self) -> bool:
        """Apply the fixes held while paused and accept new ones.

        Returns:
            True if the processor was resumed
        """
        if not self._paused:
            return False
        self._paused = False
        applied = self.drain()
        logger.debug("Position stream resumed, %d held fixes applied", applied)
        return True

    def feed(self, fix: GeoFix) -> None:
        """Queue a fix from a push-style sensor callback. Never drops."""
        self._pending.append(fix)

    def drain(self) -> int:
        """Apply all queued fixes in arrival order.

        Returns:
            Number of fixes accepted
        """
        accepted = 0
        while self._pending and not self._paused:
            if self.on_fix(self._pending.popleft()):
                accepted += 1
        return accepted

    async def follow(self, source: LocationSource | None = None) -> Optional[Condition]:
        """Consume fixes from a location source until it ends or we stop.

        Args:
            source: Source to follow (defaults to the attached source)

        Returns:
            SENSOR_UNAVAILABLE if the sensor failed mid-stream, None otherwise
        """
        if source is not None:
            self.set_source(source)
        if self._source is None:
            return None

        condition = self.start()
        if condition is not None:
            return condition

        try:
            async for fix in self._source.fixes():
                if not self._started:
                    break
                self.feed(fix)
                self.drain()
        except SensorUnavailable as e:
            # Keep the route and last known telemetry
            logger.warning("Location sensor lost: %s", e)
            return self._report(Condition.from_error(e))
        return None

    def stop(self) -> None:
        """Stop accepting fixes. Idempotent; accumulated state stays readable."""
        if not self._started:
            return
        self._paused = False
        self.drain()
        self._started = False
        self._close_source()
        logger.debug(
            "Position stream stopped: %d points, %.3f km",
            len(self._route), self._snapshot.cumulative_distance_km,
        )

    def reset(self) -> None:
        """Discard all session state so the processor can serve a new session."""
        self._started = False
        self._paused = False
        self._close_source()
        self._route = []
        self._snapshot = TelemetrySnapshot()
        self._pending.clear()
        self._out_of_order_count = 0
        self._speed.clear()
        self.conditions = []

    def get_state(self) -> Dict:
        """Get processor state.

        Returns:
            Dictionary containing processor state
        """
        return {
            "started": self._started,
            "paused": self._paused,
            "route_points": len(self._route),
            "pending_fixes": len(self._pending),
            "out_of_order_fixes": self._out_of_order_count,
            "snapshot": self._snapshot.to_dict(),
            "speed": self._speed.get_state(),
        }

    def _notify(self) -> None:
        route = tuple(self._route)
        for callback in list(self._subscribers):
            callback(route, self._snapshot.copy())

    def _close_source(self) -> None:
        if self._source is not None and self._source_open:
            self._source.close()
        self._source_open = False

    def _report(self, condition: Condition) -> Condition:
        self.conditions.append(condition)
        return condition
