from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Literal

LOGGER = logging.getLogger(__name__)

SessionStatus = Literal["processing", "completed", "error"]

ANONYMOUS_SESSION_ID = "anonymous"


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    status: SessionStatus
    created_at: float
    last_activity_at: float
    result: dict[str, Any] | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "status": self.status,
            "startTime": _to_millis(self.created_at),
            "lastActivity": _to_millis(self.last_activity_at),
            "result": dict(self.result) if self.result is not None else None,
            "error": self.error,
        }


class SessionRegistry:
    """In-memory record of evaluation attempts keyed by client session id.

    Records are replaced wholesale on every transition, so callers only ever
    see immutable snapshots.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, SessionRecord] = {}

    def upsert(self, session_id: str) -> SessionRecord:
        now = self._clock()
        record = SessionRecord(
            session_id=session_id,
            status="processing",
            created_at=now,
            last_activity_at=now,
        )
        with self._lock:
            self._sessions[session_id] = record
        return record

    def get(self, session_id: str) -> SessionRecord | None:
        with self._lock:
            return self._sessions.get(session_id)

    def mark_completed(self, session_id: str, result: dict[str, Any]) -> bool:
        return self._transition(session_id, status="completed", result=dict(result), error=None)

    def mark_error(self, session_id: str, message: str) -> bool:
        return self._transition(session_id, status="error", result=None, error=message)

    def sweep(self, now: float, retention_seconds: float) -> int:
        cutoff = now - retention_seconds
        with self._lock:
            expired = [
                session_id
                for session_id, record in self._sessions.items()
                if record.last_activity_at < cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _transition(
        self,
        session_id: str,
        *,
        status: SessionStatus,
        result: dict[str, Any] | None,
        error: str | None,
    ) -> bool:
        now = self._clock()
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                LOGGER.debug("Dropping %s update for unknown session %s", status, session_id)
                return False
            self._sessions[session_id] = replace(
                current,
                status=status,
                last_activity_at=now,
                result=result,
                error=error,
            )
        return True


def _to_millis(timestamp: float) -> int:
    return int(round(timestamp * 1000))
