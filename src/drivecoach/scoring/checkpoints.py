"""
Checkpoint course - Scripted waypoints for simulated exam sessions.

Provides:
- Checkpoint definitions with spoken instructions
- The default exam route
- Running score that deducts a fixed penalty per missed checkpoint
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from drivecoach.models import ErrorEvent, Severity
from drivecoach.scoring.rules import DEFAULT_SCORING, ScoringConfig


@dataclass(frozen=True)
class Checkpoint:
    """A scripted waypoint."""
    id: int
    kind: str
    instruction: str
    distance_m: float  # Trigger distance from course start


DEFAULT_COURSE = (
    Checkpoint(1, "stop", "Stop at the traffic light", 50.0),
    Checkpoint(2, "turn_right", "Turn right", 100.0),
    Checkpoint(3, "parking", "Start parallel parking here", 200.0),
    Checkpoint(4, "turn_left", "Turn left", 300.0),
    Checkpoint(5, "stop", "Stop at the line", 400.0),
)


class CheckpointCourse:
    """Advances through checkpoints one at a time.

    This is a separate accumulator from the light/serious error
    formula: it starts at the maximum score and loses a fixed penalty
    for every missed checkpoint.
    """

    def __init__(
        self,
        checkpoints: Sequence[Checkpoint] = DEFAULT_COURSE,
        config: ScoringConfig | None = None,
    ):
        """Initialize course.

        Args:
            checkpoints: Ordered checkpoints (at least one)
            config: Scoring constants
        """
        if not checkpoints:
            raise ValueError("A course needs at least one checkpoint")

        self.config = config or DEFAULT_SCORING
        self._checkpoints = tuple(checkpoints)
        self._index: int = 0
        self._score: int = self.config.max_score
        self._missed: List[int] = []
        self._completed: bool = False

    @property
    def checkpoints(self) -> tuple:
        return self._checkpoints

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[Checkpoint]:
        """Checkpoint awaiting an outcome, None once the course is done."""
        if self._completed:
            return None
        return self._checkpoints[self._index]

    @property
    def score(self) -> int:
        return self._score

    @property
    def missed(self) -> List[int]:
        return list(self._missed)

    @property
    def is_complete(self) -> bool:
        return self._completed

    @property
    def progress(self) -> float:
        """Fraction of checkpoints resolved (0-1)."""
        resolved = len(self._checkpoints) if self._completed else self._index
        return resolved / len(self._checkpoints)

    def handle_pass(self, passed: bool) -> Optional[ErrorEvent]:
        """Resolve the current checkpoint and advance.

        Args:
            passed: Whether the driver executed the checkpoint correctly

        Returns:
            The serious ErrorEvent recorded for a miss, None on a pass
        """
        if self._completed:
            raise RuntimeError("Course already complete")

        error = None
        if not passed:
            checkpoint = self._checkpoints[self._index]
            error = ErrorEvent(
                severity=Severity.SERIOUS,
                description=f"Missed checkpoint: {checkpoint.instruction}",
                checkpoint=self._index,
            )
            self._missed.append(self._index)
            self._score = max(0, self._score - self.config.checkpoint_miss_penalty)

        if self._index < len(self._checkpoints) - 1:
            self._index += 1
        else:
            self._completed = True

        return error

    def get_state(self) -> dict:
        current = self.current
        return {
            "current_index": self._index,
            "total": len(self._checkpoints),
            "current_instruction": current.instruction if current else None,
            "score": self._score,
            "missed": list(self._missed),
            "complete": self._completed,
        }
