"""
Scoring module - Session score, XP and progress bookkeeping.

This module contains:
- compute_score / compute_xp: Final score and XP formulas
- SessionTimer: Elapsed active time from a monotonic clock
- CheckpointCourse: Checkpoint-driven exam scoring
- UserProgress: Lifetime aggregate across sessions
"""

from drivecoach.scoring.rules import (
    ScoringConfig,
    compute_score,
    compute_xp,
    is_passing,
    score_band,
)
from drivecoach.scoring.timer import Clock, MonotonicClock, SessionTimer
from drivecoach.scoring.checkpoints import Checkpoint, CheckpointCourse, DEFAULT_COURSE
from drivecoach.scoring.progress import UserProgress

__all__ = [
    "ScoringConfig",
    "compute_score",
    "compute_xp",
    "is_passing",
    "score_band",
    "Clock",
    "MonotonicClock",
    "SessionTimer",
    "Checkpoint",
    "CheckpointCourse",
    "DEFAULT_COURSE",
    "UserProgress",
]
