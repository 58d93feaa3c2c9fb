"""
Session data model - Driving sessions and the events they accumulate.

Provides:
- Severity / SessionType / SessionStatus enums
- ErrorEvent records
- Session aggregate with its storage record projection
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from drivecoach.telemetry.fix import RoutePoint


class Severity(Enum):
    """Driving error severity."""
    LIGHT = "light"
    SERIOUS = "serious"


class SessionType(Enum):
    PRACTICE = "practice"
    SIMULATION = "simulation"
    EXAM = "exam"


class SessionStatus(Enum):
    """Session lifecycle: idle -> starting -> active -> finished."""
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    FINISHED = "finished"


# Counters carried in the session telemetry record
TELEMETRY_EVENT_KINDS = (
    "harsh_brakes",
    "harsh_accelerations",
    "sharp_turns",
    "distraction_events",
)


@dataclass(frozen=True)
class ErrorEvent:
    """A discrete driving error."""
    severity: Severity
    description: str = ""
    checkpoint: Optional[int] = None    # Checkpoint index in checkpoint mode
    timestamp: Optional[float] = None   # Elapsed seconds otherwise

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "description": self.description,
            "checkpoint": self.checkpoint,
            "timestamp": self.timestamp,
        }


@dataclass
class Session:
    """Driving session aggregate.

    Created in STARTING, ACTIVE once storage accepted it, and FINISHED
    exactly once. final_score and xp_earned are set at finish and not
    changed afterwards.
    """
    session_type: SessionType = SessionType.PRACTICE
    user_key: str = ""
    id: Optional[str] = None
    status: SessionStatus = SessionStatus.IDLE
    start_time: Optional[str] = None    # ISO-8601 wall clock, for display
    end_time: Optional[str] = None
    duration_seconds: int = 0
    route: Tuple[RoutePoint, ...] = ()
    errors: List[ErrorEvent] = field(default_factory=list)
    telemetry_counts: Dict[str, int] = field(
        default_factory=lambda: {kind: 0 for kind in TELEMETRY_EVENT_KINDS}
    )
    distance_km: float = 0.0
    max_speed_kmh: float = 0.0
    avg_speed_kmh: float = 0.0
    final_score: Optional[int] = None
    xp_earned: Optional[int] = None

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.FINISHED

    @property
    def duration_minutes(self) -> int:
        return self.duration_seconds // 60

    @property
    def light_error_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == Severity.LIGHT)

    @property
    def serious_error_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == Severity.SERIOUS)

    def to_record(self) -> Dict[str, Any]:
        """Project the session onto the stored record layout."""
        return {
            "id": self.id,
            "user_key": self.user_key,
            "session_type": self.session_type.value,
            "status": self.status.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_seconds": self.duration_seconds,
            "duration_minutes": self.duration_minutes,
            "route_data": [p.to_dict() for p in self.route],
            "telemetry_data": dict(self.telemetry_counts),
            "errors": [e.to_dict() for e in self.errors],
            "distance_km": self.distance_km,
            "max_speed_kmh": self.max_speed_kmh,
            "avg_speed_kmh": self.avg_speed_kmh,
            "final_score": self.final_score,
            "xp_earned": self.xp_earned,
        }
