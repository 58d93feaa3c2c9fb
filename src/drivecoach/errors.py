"""
Error conditions - Exceptions raised by collaborators and reported by the core.

Provides:
- Exception hierarchy for sensor, storage and lifecycle failures
- Condition enum used to report recovered failures to callers
"""

from enum import Enum


class DriveCoachError(Exception):
    """Base class for all drivecoach errors."""


class SensorUnavailable(DriveCoachError):
    """Location source cannot supply fixes (permission, timeout, no hardware)."""


class StorageUnavailable(DriveCoachError):
    """A persistence collaborator failed to read or write."""


class InvalidState(DriveCoachError):
    """Operation invoked outside its valid lifecycle state."""


class AlreadyFinished(DriveCoachError):
    """Session was already finished."""


class Condition(Enum):
    """Recovered condition reported back to the caller."""
    SENSOR_UNAVAILABLE = "sensor_unavailable"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    INVALID_STATE = "invalid_state"
    ALREADY_FINISHED = "already_finished"

    @property
    def error_type(self) -> type:
        """Exception class matching this condition."""
        return {v: k for k, v in _ERROR_CONDITIONS.items()}[self]

    @classmethod
    def from_error(cls, error: DriveCoachError) -> "Condition":
        """Map an exception to its condition."""
        for error_type, condition in _ERROR_CONDITIONS.items():
            if isinstance(error, error_type):
                return condition
        raise ValueError(f"No condition for {type(error).__name__}")


_ERROR_CONDITIONS = {
    SensorUnavailable: Condition.SENSOR_UNAVAILABLE,
    StorageUnavailable: Condition.STORAGE_UNAVAILABLE,
    InvalidState: Condition.INVALID_STATE,
    AlreadyFinished: Condition.ALREADY_FINISHED,
}
