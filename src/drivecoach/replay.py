"""
Session replay - Drive a recorded fix file through a full session.

Provides:
- Fix file loading (CSV or JSON)
- Replay clock driven by fix timestamps
- Distance-triggered checkpoints for simulation replays
"""

from pathlib import Path
from typing import List, Optional, Tuple
import csv
import json
import logging

from drivecoach.config import ReplayConfig
from drivecoach.models import SessionType
from drivecoach.session.engine import EngineConfig, SessionScoringEngine, StopResult
from drivecoach.session.storage import (
    InMemoryProgressStorage,
    InMemorySessionStorage,
    ProgressStorage,
    SessionStorage,
)
from drivecoach.telemetry.fix import GeoFix, RoutePoint, TelemetrySnapshot
from drivecoach.telemetry.source import ListLocationSource


logger = logging.getLogger(__name__)


class ReplayClock:
    """Clock that follows the timestamp of the latest replayed fix."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance_to(self, timestamp: float) -> None:
        # Never run backwards on out-of-order fixes
        self._now = max(self._now, timestamp)


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def load_fixes(path: Path) -> List[GeoFix]:
    """Load fixes from a CSV or JSON file.

    CSV needs latitude, longitude and timestamp columns and may have a
    speed column (m/s). JSON is a list of objects with the same keys.

    Args:
        path: Input file

    Returns:
        Fixes in file order
    """
    path = Path(path)

    if path.suffix.lower() == ".json":
        with open(path) as f:
            rows = json.load(f)
    else:
        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))

    fixes = []
    for row in rows:
        fixes.append(GeoFix(
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            timestamp=float(row["timestamp"]),
            speed_mps=_optional_float(row.get("speed")),
        ))

    logger.info("Loaded %d fixes from %s", len(fixes), path)
    return fixes


async def replay_session(
    fixes: List[GeoFix],
    config: ReplayConfig | None = None,
    session_storage: SessionStorage | None = None,
    progress_storage: ProgressStorage | None = None,
) -> Tuple[SessionScoringEngine, StopResult]:
    """Replay fixes through a complete session.

    In simulation/exam replays each checkpoint resolves once the
    cumulative distance reaches its trigger distance; indices listed
    in ``config.missed_checkpoints`` are recorded as misses.

    Args:
        fixes: Recorded fixes
        config: Replay configuration
        session_storage: Session store (in-memory if None)
        progress_storage: Progress store (in-memory if None)

    Returns:
        Tuple of (engine, stop result)
    """
    config = config or ReplayConfig()
    clock = ReplayClock(fixes[0].timestamp if fixes else 0.0)

    engine = SessionScoringEngine(
        session_storage if session_storage is not None else InMemorySessionStorage(),
        progress_storage if progress_storage is not None else InMemoryProgressStorage(),
        clock=clock,
        config=EngineConfig(user_key=config.user_key),
    )

    if engine.start_session(config.session_type) is None:
        return engine, StopResult(conditions=tuple(engine.conditions))

    result: List[StopResult] = []

    def on_update(route: Tuple[RoutePoint, ...], snapshot: TelemetrySnapshot) -> None:
        clock.advance_to(route[-1].timestamp)

        course = engine.course
        while course is not None and not course.is_complete:
            checkpoint = course.current
            if snapshot.cumulative_distance_km * 1000 < checkpoint.distance_m:
                break
            passed = course.current_index not in config.missed_checkpoints
            logger.info("Checkpoint %d (%s): %s", checkpoint.id, checkpoint.instruction,
                        "passed" if passed else "missed")
            finished = engine.handle_checkpoint_pass(passed)
            if finished is not None:
                result.append(finished)

    engine.processor.subscribe(on_update)
    try:
        await engine.processor.follow(ListLocationSource(fixes))
    finally:
        engine.processor.unsubscribe(on_update)

    if not result:
        result.append(engine.stop_session())

    return engine, result[0]


def print_report(result: StopResult) -> None:
    """Print the result screen for a replayed session."""
    summary = result.summary()

    print("\n" + "=" * 60)
    print("SESSION RESULT")
    print("=" * 60)

    if not summary["finished"]:
        print("Session did not finish")
        print(f"Conditions: {', '.join(summary['conditions']) or 'none'}")
        return

    minutes, seconds = divmod(summary["duration_seconds"], 60)
    print(f"Type:      {summary['session_type']}")
    print(f"Score:     {summary['final_score']} ({summary['band']}, "
          f"{'pass' if summary['passing'] else 'fail'})")
    print(f"XP:        +{summary['xp_earned']}")
    print(f"Time:      {minutes:02d}:{seconds:02d}")
    print(f"Distance:  {summary['distance_km']:.3f} km")
    print(f"Top speed: {summary['max_speed_kmh']:.1f} km/h")
    print(f"Errors:    {summary['light_errors']} light, {summary['serious_errors']} serious")
    if summary["conditions"]:
        print(f"Warnings:  {', '.join(summary['conditions'])}")
    print("=" * 60)
