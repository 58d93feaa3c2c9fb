"""
DriveCoach - Live driving-session telemetry and scoring.

This package provides the core of a driving-instruction coach:
- GPS fix stream processing into route, distance and speed
- Session lifecycle with pause/resume and monotonic elapsed time
- Error accumulation, final score and XP award
- Checkpoint-driven simulated exams
- User progress aggregation and session export
"""

__version__ = "0.1.0"

from drivecoach.session.engine import SessionScoringEngine
from drivecoach.telemetry.processor import PositionStreamProcessor
from drivecoach.telemetry.fix import GeoFix
from drivecoach.models import Session, SessionType, Severity

__all__ = [
    "SessionScoringEngine",
    "PositionStreamProcessor",
    "GeoFix",
    "Session",
    "SessionType",
    "Severity",
    "__version__",
]
