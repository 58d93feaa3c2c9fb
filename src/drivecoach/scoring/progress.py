"""
User progress - Lifetime aggregate across finished sessions.

Provides:
- UserProgress record
- Incremental update from one finished session
"""

from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Optional


@dataclass
class UserProgress:
    """Progress aggregate for one user."""
    user_key: str
    id: Optional[str] = None
    total_xp: int = 0
    total_sessions: int = 0
    total_hours: float = 0.0
    avg_score: float = 0.0
    best_score: int = 0
    last_session_date: Optional[str] = None  # YYYY-MM-DD

    def apply_session(
        self,
        score: int,
        xp_earned: int,
        elapsed_seconds: int,
        on_date: date | None = None,
    ) -> "UserProgress":
        """Fold one finished session into the aggregate.

        The average is a weighted incremental mean, so it never needs
        the individual past scores.

        Args:
            score: Session final score
            xp_earned: Session XP award
            elapsed_seconds: Session driving time
            on_date: Session date (defaults to today)

        Returns:
            New aggregate (self is not modified)
        """
        count = self.total_sessions
        return replace(
            self,
            total_xp=self.total_xp + xp_earned,
            total_sessions=count + 1,
            total_hours=self.total_hours + elapsed_seconds / 3600,
            avg_score=(self.avg_score * count + score) / (count + 1),
            best_score=max(self.best_score, score),
            last_session_date=(on_date or date.today()).isoformat(),
        )

    def changes_from(self, previous: "UserProgress") -> dict:
        """Fields that differ from a previous version of this aggregate."""
        before = asdict(previous)
        return {k: v for k, v in asdict(self).items() if before.get(k) != v}

    def to_dict(self) -> dict:
        return asdict(self)
