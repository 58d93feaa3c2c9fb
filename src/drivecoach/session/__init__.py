"""
Session module - Driving session lifecycle and persistence boundary.

This module contains:
- SessionScoringEngine: Session state machine and final scoring
- SessionStorage / ProgressStorage: Persistence protocols
- InMemorySessionStorage / InMemoryProgressStorage: Dict-backed stores
- SessionExporter: JSON and CSV export of finished sessions
"""

from drivecoach.session.engine import EngineConfig, SessionScoringEngine, StopResult
from drivecoach.session.exporter import ExporterConfig, SessionExporter
from drivecoach.session.storage import (
    InMemoryProgressStorage,
    InMemorySessionStorage,
    ProgressStorage,
    SessionStorage,
)

__all__ = [
    "EngineConfig",
    "SessionScoringEngine",
    "StopResult",
    "SessionExporter",
    "ExporterConfig",
    "SessionStorage",
    "ProgressStorage",
    "InMemorySessionStorage",
    "InMemoryProgressStorage",
]
