"""Tests for the drivecoach telemetry module."""

import asyncio

import numpy as np
import pytest

from drivecoach.errors import Condition
from drivecoach.telemetry.channel import ChannelConfig, TelemetryChannel
from drivecoach.telemetry.fix import GeoFix, RoutePoint, TelemetrySnapshot
from drivecoach.telemetry.geo import haversine_km, leg_distances_km, route_distance_km
from drivecoach.telemetry.processor import PositionStreamProcessor
from drivecoach.telemetry.source import ListLocationSource


SAO_PAULO_A = (-23.5505, -46.6333)
SAO_PAULO_B = (-23.5515, -46.6343)


def _fix(lat: float, lng: float, t: float, speed: float | None = None) -> GeoFix:
    return GeoFix(latitude=lat, longitude=lng, timestamp=t, speed_mps=speed)


def _street(n: int = 5) -> list[GeoFix]:
    """Fixes along a short diagonal street, one per second."""
    return [
        _fix(-23.5505 - 0.0005 * i, -46.6333 - 0.0004 * i, float(i), 10.0 + i)
        for i in range(n)
    ]


class TestGeo:
    """Test great-circle helpers."""

    def test_zero_distance(self):
        """Test identical points are zero apart."""
        assert haversine_km(*SAO_PAULO_A, *SAO_PAULO_A) == 0.0

    def test_one_degree_latitude(self):
        """Test one degree of latitude on the mean sphere."""
        distance = haversine_km(0.0, 0.0, 1.0, 0.0)

        assert distance == pytest.approx(6371 * np.pi / 180, rel=1e-9)

    def test_symmetric(self):
        """Test distance does not depend on direction."""
        forward = haversine_km(*SAO_PAULO_A, *SAO_PAULO_B)
        backward = haversine_km(*SAO_PAULO_B, *SAO_PAULO_A)

        assert forward == pytest.approx(backward)

    def test_vectorized_matches_pairwise(self):
        """Test numpy route length matches summed pairwise legs."""
        points = [f.to_point() for f in _street(6)]

        legs = leg_distances_km(points)
        expected = [
            haversine_km(a.lat, a.lng, b.lat, b.lng)
            for a, b in zip(points, points[1:])
        ]

        assert np.allclose(legs, expected)
        assert route_distance_km(points) == pytest.approx(sum(expected))

    def test_short_route_has_no_length(self):
        """Test routes with fewer than two points."""
        assert route_distance_km([]) == 0.0
        assert route_distance_km([RoutePoint(1.0, 2.0, 0.0)]) == 0.0


class TestTelemetryChannel:
    """Test telemetry channel."""

    def test_statistics(self):
        """Test running statistics."""
        channel = TelemetryChannel(name="speed_kmh")

        for v in [10.0, 30.0, 20.0]:
            channel.record(v)

        assert channel.count == 3
        assert channel.max_value == 30.0
        assert channel.mean == pytest.approx(20.0)
        assert channel.last_value == 20.0
        assert channel.get_state()["min"] == 10.0

    def test_buffer_trim_keeps_statistics(self):
        """Test trimming the buffer does not forget the maximum."""
        channel = TelemetryChannel(ChannelConfig(name="speed", buffer_size=2))

        channel.record(90.0)
        channel.record(10.0)
        channel.record(20.0)

        assert len(channel.get_values()) == 2
        assert channel.max_value == 90.0
        assert channel.get_state()["recent_median"] == 15.0
        assert channel.count == 3

    def test_empty_state(self):
        """Test state of an empty channel."""
        state = TelemetryChannel().get_state()

        assert state["count"] == 0
        assert state["max"] is None


class TestPositionStreamProcessor:
    """Test position stream processor."""

    def test_rejects_fixes_before_start(self):
        """Test fixes are ignored until started."""
        processor = PositionStreamProcessor()

        assert not processor.on_fix(_fix(*SAO_PAULO_A, 0.0))
        assert processor.route == ()

    def test_inactive_session_does_not_start(self):
        """Test start is refused for an inactive session."""
        processor = PositionStreamProcessor()
        processor.start(session_active=False)

        assert not processor.is_started

    def test_first_fix_seeds_route(self):
        """Test first fix sets position but no distance."""
        processor = PositionStreamProcessor()
        processor.start()

        processor.on_fix(_fix(*SAO_PAULO_A, 0.0))

        snapshot = processor.snapshot
        assert len(processor.route) == 1
        assert snapshot.current_position == SAO_PAULO_A
        assert snapshot.cumulative_distance_km == 0.0

    def test_two_fix_scenario(self):
        """Test two fixes one second apart without reported speed."""
        processor = PositionStreamProcessor()
        processor.start()

        processor.on_fix(_fix(*SAO_PAULO_A, 0.0))
        processor.on_fix(_fix(*SAO_PAULO_B, 1.0))

        snapshot = processor.snapshot
        assert snapshot.cumulative_distance_km == pytest.approx(
            haversine_km(*SAO_PAULO_A, *SAO_PAULO_B)
        )
        assert snapshot.cumulative_distance_km == pytest.approx(0.15, abs=0.01)
        assert snapshot.current_speed_kmh == 0.0

    def test_speed_conversion(self):
        """Test reported m/s speed becomes km/h."""
        processor = PositionStreamProcessor()
        processor.start()

        processor.on_fix(_fix(*SAO_PAULO_A, 0.0, speed=10.0))

        assert processor.snapshot.current_speed_kmh == pytest.approx(36.0)

    def test_missing_speed_keeps_previous(self):
        """Test speed stays stale when the sensor omits it."""
        processor = PositionStreamProcessor()
        processor.start()

        processor.on_fix(_fix(*SAO_PAULO_A, 0.0, speed=5.0))
        processor.on_fix(_fix(*SAO_PAULO_B, 1.0))

        assert processor.snapshot.current_speed_kmh == pytest.approx(18.0)
        assert processor.speed_channel.count == 1

    def test_incremental_matches_one_shot(self):
        """Test streamed distance equals route length computed at once."""
        processor = PositionStreamProcessor()
        processor.start()

        for fix in _street(3):
            processor.on_fix(fix)

        f1, f2, f3 = _street(3)
        expected = (
            haversine_km(f1.latitude, f1.longitude, f2.latitude, f2.longitude)
            + haversine_km(f2.latitude, f2.longitude, f3.latitude, f3.longitude)
        )
        assert processor.snapshot.cumulative_distance_km == pytest.approx(expected)
        assert processor.snapshot.cumulative_distance_km == pytest.approx(
            route_distance_km(processor.route)
        )

    def test_distance_never_decreases(self):
        """Test cumulative distance is monotonic."""
        processor = PositionStreamProcessor()
        processor.start()

        distances = []
        for fix in _street(8):
            processor.on_fix(fix)
            distances.append(processor.snapshot.cumulative_distance_km)

        assert all(b >= a for a, b in zip(distances, distances[1:]))

    def test_out_of_order_appended(self):
        """Test out-of-order fixes are appended as received and counted."""
        processor = PositionStreamProcessor()
        processor.start()

        processor.on_fix(_fix(*SAO_PAULO_A, 5.0))
        processor.on_fix(_fix(*SAO_PAULO_B, 3.0))
        processor.on_fix(_fix(*SAO_PAULO_B, 3.0))

        assert [p.timestamp for p in processor.route] == [5.0, 3.0, 3.0]
        assert processor.out_of_order_count == 2

    def test_subscribers_notified_per_fix(self):
        """Test a push notification for every accepted fix."""
        processor = PositionStreamProcessor()
        updates = []
        processor.subscribe(lambda route, snap: updates.append((len(route), snap)))
        processor.start()

        for fix in _street(4):
            processor.on_fix(fix)

        assert [n for n, _ in updates] == [1, 2, 3, 4]
        assert isinstance(updates[-1][1], TelemetrySnapshot)

    def test_stop_is_idempotent(self):
        """Test stopping twice leaves the snapshot unchanged."""
        processor = PositionStreamProcessor()
        processor.start()
        for fix in _street(3):
            processor.on_fix(fix)

        processor.stop()
        first = processor.snapshot
        processor.stop()

        assert processor.snapshot == first
        assert len(processor.route) == 3
        assert not processor.on_fix(_fix(*SAO_PAULO_A, 10.0))

    def test_feed_queues_without_dropping(self):
        """Test queued fixes are all applied in arrival order."""
        processor = PositionStreamProcessor()
        processor.start()

        fixes = _street(6)
        for fix in fixes:
            processor.feed(fix)

        assert processor.pending_count == 6
        assert processor.drain() == 6
        assert [p.timestamp for p in processor.route] == [f.timestamp for f in fixes]

    def test_stop_applies_pending_fixes(self):
        """Test stop drains the queue before refusing fixes."""
        processor = PositionStreamProcessor()
        processor.start()

        for fix in _street(3):
            processor.feed(fix)
        processor.stop()

        assert len(processor.route) == 3
        assert processor.pending_count == 0

    def test_pause_holds_fixes_until_resume(self):
        """Test paused fixes are queued and applied in order on resume."""
        processor = PositionStreamProcessor()
        processor.start()
        street = _street(4)
        processor.on_fix(street[0])

        assert processor.pause()
        assert not processor.pause()
        for fix in street[1:]:
            assert not processor.on_fix(fix)

        assert len(processor.route) == 1
        assert processor.pending_count == 3
        assert processor.drain() == 0

        assert processor.resume()

        assert [p.timestamp for p in processor.route] == [0.0, 1.0, 2.0, 3.0]
        assert processor.snapshot.cumulative_distance_km == pytest.approx(
            route_distance_km([f.to_point() for f in street])
        )
        assert not processor.resume()

    def test_pause_during_follow(self):
        """Test following continues across a pause without losing fixes."""
        source = ListLocationSource(_street(6), interval_s=0.01)
        processor = PositionStreamProcessor()

        async def drive():
            task = asyncio.create_task(processor.follow(source))
            while len(processor.route) < 2:
                await asyncio.sleep(0.001)
            processor.pause()
            while processor.pending_count < 1 and not task.done():
                await asyncio.sleep(0.001)
            processor.resume()
            return await task

        condition = asyncio.run(drive())

        assert condition is None
        assert len(processor.route) == 6
        assert processor.pending_count == 0

    def test_sensor_denied_on_start(self):
        """Test permission denial keeps the processor stopped."""
        source = ListLocationSource(_street(3), available=False)
        processor = PositionStreamProcessor(source=source)

        condition = processor.start()

        assert condition == Condition.SENSOR_UNAVAILABLE
        assert not processor.is_started
        assert processor.conditions == [Condition.SENSOR_UNAVAILABLE]

    def test_follow_source(self):
        """Test following an async location source."""
        source = ListLocationSource(_street(5))
        processor = PositionStreamProcessor()

        condition = asyncio.run(processor.follow(source))

        assert condition is None
        assert len(processor.route) == 5
        assert source.is_open

    def test_sensor_lost_mid_stream(self):
        """Test sensor loss keeps the route collected so far."""
        source = ListLocationSource(_street(5), fail_after=3)
        processor = PositionStreamProcessor()

        condition = asyncio.run(processor.follow(source))

        assert condition == Condition.SENSOR_UNAVAILABLE
        assert len(processor.route) == 3
        assert processor.snapshot.cumulative_distance_km > 0

    def test_reset(self):
        """Test reset discards session state."""
        processor = PositionStreamProcessor()
        processor.start()
        for fix in _street(3):
            processor.on_fix(fix)

        processor.reset()

        assert processor.route == ()
        assert processor.snapshot == TelemetrySnapshot()
        assert not processor.is_started
        assert processor.speed_channel.count == 0
