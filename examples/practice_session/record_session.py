#!/usr/bin/env python3
"""
Practice Session Example

This example demonstrates how to:
1. Start a practice session with an in-memory backend
2. Stream GPS fixes through the position processor
3. Record driving errors and monitoring events
4. Pause and resume the session
5. Finish, inspect the result and export it

Run with: python record_session.py
"""

from pathlib import Path

import numpy as np

from drivecoach import GeoFix, SessionScoringEngine, SessionType, Severity
from drivecoach.session import (
    ExporterConfig,
    InMemoryProgressStorage,
    InMemorySessionStorage,
    SessionExporter,
)


class StepClock:
    """Clock advanced by the example instead of waiting in real time."""

    def __init__(self):
        self.t = 0.0

    def now(self) -> float:
        return self.t


def synthetic_drive(n: int = 240) -> list[GeoFix]:
    """Fixes along a gentle curve, one per second, with varying speed."""
    t = np.arange(n, dtype=float)
    lat = -23.5505 + 0.00012 * t
    lng = -46.6333 + 0.00004 * np.sin(t / 30.0)
    speed = 8.0 + 4.0 * np.sin(t / 45.0)
    return [GeoFix(float(a), float(b), float(c), float(s)) for a, b, c, s in zip(lat, lng, t, speed)]


def main():
    print("=" * 60)
    print("DriveCoach Practice Session Example")
    print("=" * 60)

    output_dir = Path(__file__).parent / "output"

    # Step 1: Setup
    print("\n1. Starting practice session...")
    clock = StepClock()
    progress = InMemoryProgressStorage()
    engine = SessionScoringEngine(InMemorySessionStorage(), progress, clock=clock)
    session = engine.start_session(SessionType.PRACTICE)
    print(f"   Session: {session.id}")

    # Step 2: Drive
    print("\n2. Driving (240 fixes, 1 Hz)...")
    for step, fix in enumerate(synthetic_drive()):
        clock.t = fix.timestamp
        engine.processor.on_fix(fix)

        if step == 60:
            engine.record_error(Severity.LIGHT, "Late turn signal")
            engine.record_telemetry_event("harsh_brakes")
        if step == 120:
            engine.pause_session()
            print(f"   Paused at {engine.elapsed_seconds}s")
            clock.t += 300  # Coffee break, not counted
            engine.resume_session()
            print("   Resumed")
        if step == 180:
            engine.record_error(Severity.SERIOUS, "Rolled through stop sign")

        if (step + 1) % 60 == 0:
            snap = engine.processor.snapshot
            print(f"   {step + 1:3d}s: {snap.current_speed_kmh:5.1f} km/h, "
                  f"{snap.cumulative_distance_km:.3f} km")

    # Step 3: Finish
    print("\n3. Finishing...")
    result = engine.stop_session()
    for key, value in result.summary().items():
        print(f"   {key}: {value}")

    # Step 4: Progress
    record = progress.filter("local")[0]
    print(f"\n4. Progress: {record.total_xp} XP over {record.total_sessions} session(s)")

    # Step 5: Export
    print("\n5. Exporting...")
    exporter = SessionExporter(ExporterConfig(output_dir=str(output_dir)))
    print(f"   JSON: {exporter.export_json(result.session)}")
    print(f"   CSV:  {exporter.export_route_csv(result.session)}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
