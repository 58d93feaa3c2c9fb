"""
Scoring rules - Session score and experience point formulas.

Provides:
- Score from light/serious error counts
- XP from score and driving time
- Pass/fail and result bands for the result screen

The XP formula must stay exactly as is: stored sessions were
awarded with it.
"""

from dataclasses import dataclass
from typing import Iterable

from drivecoach.models import ErrorEvent, Severity


@dataclass
class ScoringConfig:
    """Scoring constants."""
    max_score: int = 100
    light_penalty: int = 1
    serious_penalty: int = 5

    xp_per_minute: int = 10
    xp_per_score_point: float = 0.5
    excellence_threshold: int = 90       # Inclusive
    excellence_bonus_xp: int = 50

    pass_threshold: int = 70             # Inclusive
    checkpoint_miss_penalty: int = 5


DEFAULT_SCORING = ScoringConfig()

# Lower bound (inclusive) of each result band, best first
SCORE_BANDS = (
    (90, "excellent"),
    (80, "very_good"),
    (70, "good"),
    (60, "needs_practice"),
    (0, "keep_practicing"),
)


def compute_score(
    errors: Iterable[ErrorEvent],
    config: ScoringConfig = DEFAULT_SCORING,
) -> int:
    """Score a session from its errors.

    score = max(0, 100 - light * 1 - serious * 5)

    Args:
        errors: Session errors
        config: Scoring constants

    Returns:
        Score in [0, 100]
    """
    light = 0
    serious = 0
    for error in errors:
        if error.severity == Severity.LIGHT:
            light += 1
        elif error.severity == Severity.SERIOUS:
            serious += 1

    score = config.max_score - light * config.light_penalty - serious * config.serious_penalty
    return min(config.max_score, max(0, score))


def compute_xp(
    score: int,
    duration_seconds: int,
    config: ScoringConfig = DEFAULT_SCORING,
) -> int:
    """Experience points for a finished session.

    xp = floor(duration / 60) * 10 + floor(score * 0.5) (+50 if score >= 90)

    Args:
        score: Final score (0-100)
        duration_seconds: Active driving time
        config: Scoring constants

    Returns:
        Non-negative XP award
    """
    duration_seconds = max(0, int(duration_seconds))
    score = max(0, score)

    xp = (duration_seconds // 60) * config.xp_per_minute
    xp += int(score * config.xp_per_score_point)
    if score >= config.excellence_threshold:
        xp += config.excellence_bonus_xp
    return xp


def is_passing(score: int, config: ScoringConfig = DEFAULT_SCORING) -> bool:
    return score >= config.pass_threshold


def score_band(score: int) -> str:
    """Result band label shown with the final score."""
    for lower, label in SCORE_BANDS:
        if score >= lower:
            return label
    return SCORE_BANDS[-1][1]
