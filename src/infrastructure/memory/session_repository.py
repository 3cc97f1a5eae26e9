from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Callable

from src.application.use_cases.editing_session import EditingSession

logger = logging.getLogger(__name__)

# module-level in-memory store; sessions do not survive a restart
_MEM_SESSIONS: dict[str, EditingSession] = {}


class SessionRepository:
    """In-memory sessions, evicted after `idle_timeout` without a lookup.

    Sessions with an image operation in flight are never evicted.
    """

    def __init__(
        self,
        store: dict[str, EditingSession] | None = None,
        idle_timeout: timedelta | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._store = _MEM_SESSIONS if store is None else store
        self.idle_timeout = idle_timeout
        self._clock = clock

    def add(self, session: EditingSession) -> EditingSession:
        self.evict_idle()
        session.last_used = self._clock()
        self._store[session.id] = session
        return session

    def get(self, session_id: str) -> EditingSession | None:
        self.evict_idle()
        session = self._store.get(session_id)
        if session is not None:
            session.last_used = self._clock()
        return session

    def delete(self, session_id: str) -> bool:
        session = self._store.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def evict_idle(self) -> int:
        if not self.idle_timeout:
            return 0
        cutoff = self._clock() - self.idle_timeout
        expired = [
            sid
            for sid, s in self._store.items()
            if s.last_used < cutoff and not s.orchestrator.busy
        ]
        for sid in expired:
            self.delete(sid)
        if expired:
            logger.info("Evicted %d idle session(s)", len(expired))
        return len(expired)
