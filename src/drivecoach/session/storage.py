"""
Session storage - Persistence boundary for sessions and user progress.

Provides:
- SessionStorage / ProgressStorage protocols
- Dict-backed in-memory implementations

Any backend (REST client, database) satisfying the protocols can be
used; all operations may raise StorageUnavailable.
"""

from dataclasses import replace
from typing import Any, Dict, List, Protocol
import uuid

from drivecoach.errors import StorageUnavailable
from drivecoach.models import Session
from drivecoach.scoring.progress import UserProgress


class SessionStorage(Protocol):
    def create(self, session: Session) -> Session: ...

    def update(self, session_id: str, fields: Dict[str, Any]) -> Session: ...


class ProgressStorage(Protocol):
    def filter(self, user_key: str) -> List[UserProgress]: ...

    def create(self, progress: UserProgress) -> UserProgress: ...

    def update(self, progress_id: str, fields: Dict[str, Any]) -> UserProgress: ...


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemorySessionStorage:
    """Keeps session copies in a dict keyed by id."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create(self, session: Session) -> Session:
        """Store a new session and assign its id."""
        stored = replace(session, id=_new_id(), errors=list(session.errors))
        self._sessions[stored.id] = stored
        return replace(stored)

    def update(self, session_id: str, fields: Dict[str, Any]) -> Session:
        if session_id not in self._sessions:
            raise StorageUnavailable(f"Unknown session {session_id}")
        updated = replace(self._sessions[session_id], **fields)
        self._sessions[session_id] = updated
        return replace(updated)

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def list_sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)


class InMemoryProgressStorage:
    """Keeps progress aggregates in a dict keyed by id."""

    def __init__(self):
        self._records: Dict[str, UserProgress] = {}

    def filter(self, user_key: str) -> List[UserProgress]:
        return [replace(p) for p in self._records.values() if p.user_key == user_key]

    def create(self, progress: UserProgress) -> UserProgress:
        stored = replace(progress, id=_new_id())
        self._records[stored.id] = stored
        return replace(stored)

    def update(self, progress_id: str, fields: Dict[str, Any]) -> UserProgress:
        if progress_id not in self._records:
            raise StorageUnavailable(f"Unknown progress record {progress_id}")
        updated = replace(self._records[progress_id], **fields)
        self._records[progress_id] = updated
        return replace(updated)
