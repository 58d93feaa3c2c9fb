"""
Session scoring engine - Driving session lifecycle and final scoring.

Provides:
- idle -> starting -> active -> finished state machine
- Pause/resume of elapsed-time accumulation
- Error and telemetry event accumulation
- Checkpoint-driven exam mode
- Final score, XP and best-effort user progress update
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from drivecoach.errors import Condition, StorageUnavailable
from drivecoach.models import (
    TELEMETRY_EVENT_KINDS,
    ErrorEvent,
    Session,
    SessionStatus,
    SessionType,
    Severity,
)
from drivecoach.scoring.checkpoints import DEFAULT_COURSE, Checkpoint, CheckpointCourse
from drivecoach.scoring.progress import UserProgress
from drivecoach.scoring.rules import ScoringConfig, compute_score, compute_xp, is_passing, score_band
from drivecoach.scoring.timer import Clock, SessionTimer
from drivecoach.session.storage import ProgressStorage, SessionStorage
from drivecoach.telemetry.fix import RoutePoint, TelemetrySnapshot
from drivecoach.telemetry.processor import PositionStreamProcessor


logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Session engine configuration."""
    user_key: str = "local"
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    persist_progress: bool = True


@dataclass
class StopResult:
    """Outcome of a stop request."""
    session: Optional[Session] = None
    conditions: Tuple[Condition, ...] = ()
    progress: Optional[UserProgress] = None

    @property
    def finished(self) -> bool:
        return self.session is not None and self.session.is_finished

    def raise_for_conditions(self) -> None:
        """Raise the exception for the first reported condition, if any."""
        if self.conditions:
            condition = self.conditions[0]
            raise condition.error_type(f"Stop reported {condition.value}")

    def summary(self) -> Dict[str, Any]:
        """Result screen data for a finished session."""
        if not self.finished:
            return {"finished": False, "conditions": [c.value for c in self.conditions]}

        session = self.session
        return {
            "finished": True,
            "session_id": session.id,
            "session_type": session.session_type.value,
            "final_score": session.final_score,
            "xp_earned": session.xp_earned,
            "passing": is_passing(session.final_score),
            "band": score_band(session.final_score),
            "duration_seconds": session.duration_seconds,
            "distance_km": round(session.distance_km, 3),
            "max_speed_kmh": round(session.max_speed_kmh, 1),
            "light_errors": session.light_error_count,
            "serious_errors": session.serious_error_count,
            "conditions": [c.value for c in self.conditions],
        }


class SessionScoringEngine:
    """Runs one user's driving sessions, one at a time.

    Owns the position stream processor for the current session and
    the elapsed-time timer. Storage and sensor failures are logged and
    reported through ``conditions``; they never abort a session.

    Usage:
        engine = SessionScoringEngine(InMemorySessionStorage())
        engine.start_session(SessionType.PRACTICE)
        engine.processor.on_fix(fix)
        engine.record_error(Severity.LIGHT, "Late signal")
        result = engine.stop_session()
    """

    def __init__(
        self,
        session_storage: SessionStorage,
        progress_storage: ProgressStorage | None = None,
        processor: PositionStreamProcessor | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        """Initialize engine.

        Args:
            session_storage: Session persistence collaborator
            progress_storage: User progress collaborator (optional)
            processor: Position stream processor (created if None)
            clock: Monotonic time source for elapsed time
            config: Engine configuration
        """
        self.config = config or EngineConfig()
        self.session_storage = session_storage
        self.progress_storage = progress_storage
        self.processor = processor or PositionStreamProcessor()
        self.timer = SessionTimer(clock)

        self._session: Optional[Session] = None
        self._course: Optional[CheckpointCourse] = None
        self._paused: bool = False
        self._last_result: Optional[StopResult] = None

        self.conditions: List[Condition] = []

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status if self._session else SessionStatus.IDLE

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def course(self) -> Optional[CheckpointCourse]:
        return self._course

    @property
    def elapsed_seconds(self) -> int:
        if self._session is not None and self._session.is_finished:
            return self._session.duration_seconds
        return self.timer.elapsed_seconds

    def current_score(self) -> int:
        """Score the session would get if stopped now."""
        if self._course is not None:
            return self._course.score
        errors = self._session.errors if self._session else []
        return compute_score(errors, self.config.scoring)

    def start_session(
        self,
        session_type: SessionType = SessionType.PRACTICE,
        checkpoints: Sequence[Checkpoint] | None = None,
    ) -> Optional[Session]:
        """Start a new session.

        Simulation and exam sessions run the default checkpoint course
        unless checkpoints are given.

        Args:
            session_type: Kind of session
            checkpoints: Checkpoint course for exam mode

        Returns:
            The active session, or None if it could not be started
        """
        if self.status in (SessionStatus.STARTING, SessionStatus.ACTIVE):
            logger.warning("Cannot start a session while one is %s", self.status.value)
            self._report(Condition.INVALID_STATE)
            return None

        session = Session(
            session_type=session_type,
            user_key=self.config.user_key,
            status=SessionStatus.STARTING,
            start_time=_utc_now(),
        )
        self._session = session
        self._course = None
        self._last_result = None

        try:
            created = self.session_storage.create(session)
        except StorageUnavailable as e:
            logger.error("Could not create session: %s", e)
            self._session = None
            self._report(Condition.from_error(e))
            return None
        except BaseException:
            self._session = None
            raise

        if self._session is not session:
            # Stopped while starting
            return None

        session.id = created.id
        session.status = SessionStatus.ACTIVE
        self._paused = False

        if checkpoints is None and session_type != SessionType.PRACTICE:
            checkpoints = DEFAULT_COURSE
        self._course = CheckpointCourse(checkpoints, self.config.scoring) if checkpoints else None

        self.timer.start()
        self.processor.reset()
        self.processor.subscribe(self._on_telemetry)
        condition = self.processor.start(session_active=True)
        if condition is not None:
            # Session runs on without GPS distance/speed
            self._report(condition)

        logger.info("Session %s started (%s)", session.id, session_type.value)
        return session

    def pause_session(self) -> bool:
        """Freeze elapsed time and hold GPS fixes until resume.

        Returns:
            True if the session was paused
        """
        if self.status != SessionStatus.ACTIVE or self._paused:
            self._report(Condition.INVALID_STATE)
            return False

        self.timer.pause()
        self.processor.pause()
        self._paused = True
        logger.info("Session %s paused at %ds", self._session.id, self.timer.elapsed_seconds)
        return True

    def resume_session(self) -> bool:
        """Restart elapsed time and GPS accumulation.

        Returns:
            True if the session was resumed
        """
        if self.status != SessionStatus.ACTIVE or not self._paused:
            self._report(Condition.INVALID_STATE)
            return False

        self.timer.resume()
        self.processor.resume()
        if not self.processor.is_started:
            # Retry a sensor that was unavailable at start
            condition = self.processor.start(session_active=True)
            if condition is not None:
                self._report(condition)
        self._paused = False
        logger.info("Session %s resumed", self._session.id)
        return True

    def record_error(self, severity: Severity | str, description: str = "") -> bool:
        """Append a driving error to the active session.

        Args:
            severity: Error severity ("light" or "serious")
            description: What happened

        Returns:
            True if recorded; False (with INVALID_STATE reported) otherwise
        """
        if self.status != SessionStatus.ACTIVE:
            logger.warning("Rejected error %r: no active session", description)
            self._report(Condition.INVALID_STATE)
            return False

        self._session.errors.append(ErrorEvent(
            severity=Severity(severity),
            description=description,
            timestamp=self.timer.elapsed,
        ))
        return True

    def record_telemetry_event(self, kind: str) -> bool:
        """Count a monitoring event (harsh brake, distraction, ...).

        Args:
            kind: One of TELEMETRY_EVENT_KINDS

        Returns:
            True if counted
        """
        if kind not in TELEMETRY_EVENT_KINDS:
            raise ValueError(f"Unknown telemetry event kind: {kind}")
        if self.status != SessionStatus.ACTIVE:
            self._report(Condition.INVALID_STATE)
            return False

        self._session.telemetry_counts[kind] += 1
        return True

    def handle_checkpoint_pass(self, passed: bool) -> Optional[StopResult]:
        """Resolve the current checkpoint in exam mode.

        A miss records a serious error. Resolving the last checkpoint
        finishes the session.

        Args:
            passed: Whether the checkpoint was executed correctly

        Returns:
            Stop result when the course completed, None otherwise
        """
        if self.status != SessionStatus.ACTIVE or self._course is None:
            self._report(Condition.INVALID_STATE)
            return None

        error = self._course.handle_pass(passed)
        if error is not None:
            self._session.errors.append(error)

        if self._course.is_complete:
            return self.stop_session()
        return None

    def stop_session(self) -> StopResult:
        """Finish the current session.

        From idle this is a no-op; from starting it abandons the
        session; a second stop reports ALREADY_FINISHED and returns the
        first result unchanged.

        Returns:
            Stop result with the finished session and any conditions
        """
        status = self.status

        if status == SessionStatus.IDLE:
            logger.debug("Stop requested with no session")
            self._report(Condition.INVALID_STATE)
            return StopResult(conditions=(Condition.INVALID_STATE,))

        if status == SessionStatus.FINISHED:
            self._report(Condition.ALREADY_FINISHED)
            previous = self._last_result
            return StopResult(
                session=previous.session,
                conditions=(Condition.ALREADY_FINISHED,),
                progress=previous.progress,
            )

        if status == SessionStatus.STARTING:
            logger.info("Session abandoned while starting")
            self._session = None
            self._teardown()
            return StopResult()

        return self._finish()

    def get_state(self) -> Dict[str, Any]:
        """Get engine state.

        Returns:
            Dictionary containing engine state
        """
        session = self._session
        return {
            "status": self.status.value,
            "paused": self._paused,
            "session_id": session.id if session else None,
            "elapsed_seconds": self.elapsed_seconds,
            "error_count": len(session.errors) if session else 0,
            "current_score": self.current_score(),
            "course": self._course.get_state() if self._course else None,
            "telemetry": self.processor.get_state(),
        }

    def _finish(self) -> StopResult:
        session = self._session
        conditions: List[Condition] = []

        elapsed = self.timer.stop()
        self.processor.stop()
        self._paused = False

        snapshot = self.processor.snapshot
        speed = self.processor.speed_channel

        score = self.current_score()
        xp = compute_xp(score, elapsed, self.config.scoring)

        session.end_time = _utc_now()
        session.duration_seconds = elapsed
        session.route = self.processor.route
        session.distance_km = snapshot.cumulative_distance_km
        session.max_speed_kmh = speed.max_value
        session.avg_speed_kmh = speed.mean
        session.final_score = score
        session.xp_earned = xp
        session.status = SessionStatus.FINISHED

        logger.info(
            "Session %s finished: score=%d xp=%d duration=%ds distance=%.3fkm",
            session.id, score, xp, elapsed, session.distance_km,
        )

        stored = True
        try:
            self.session_storage.update(session.id, _finished_fields(session))
        except StorageUnavailable as e:
            logger.error("Could not persist finished session %s: %s", session.id, e)
            conditions.append(self._report(Condition.from_error(e)))
            stored = False

        # Progress only counts sessions that were stored
        progress = None
        if stored and self.progress_storage is not None and self.config.persist_progress:
            try:
                progress = self._update_progress(score, xp, elapsed)
            except StorageUnavailable as e:
                # Not rolled back: the session itself stays finished
                logger.error("Could not update progress for %s: %s", self.config.user_key, e)
                conditions.append(self._report(Condition.from_error(e)))

        self._teardown()

        self._last_result = StopResult(session=session, conditions=tuple(conditions), progress=progress)
        return self._last_result

    def _update_progress(self, score: int, xp: int, elapsed: int) -> UserProgress:
        records = self.progress_storage.filter(self.config.user_key)

        if records:
            current = records[0]
            updated = current.apply_session(score, xp, elapsed)
            return self.progress_storage.update(current.id, updated.changes_from(current))

        fresh = UserProgress(user_key=self.config.user_key).apply_session(score, xp, elapsed)
        return self.progress_storage.create(fresh)

    def _teardown(self) -> None:
        self.processor.unsubscribe(self._on_telemetry)
        self.processor.reset()
        self.timer.reset()
        self._paused = False

    def _on_telemetry(self, route: Tuple[RoutePoint, ...], snapshot: TelemetrySnapshot) -> None:
        if self._session is not None and self._session.status == SessionStatus.ACTIVE:
            self._session.route = route
            self._session.distance_km = snapshot.cumulative_distance_km

    def _report(self, condition: Condition) -> Condition:
        self.conditions.append(condition)
        return condition


def _finished_fields(session: Session) -> Dict[str, Any]:
    return {
        "status": session.status,
        "end_time": session.end_time,
        "duration_seconds": session.duration_seconds,
        "route": session.route,
        "errors": list(session.errors),
        "telemetry_counts": dict(session.telemetry_counts),
        "distance_km": session.distance_km,
        "max_speed_kmh": session.max_speed_kmh,
        "avg_speed_kmh": session.avg_speed_kmh,
        "final_score": session.final_score,
        "xp_earned": session.xp_earned,
    }


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
