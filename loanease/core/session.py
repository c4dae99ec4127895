import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from datetime import timedelta
from typing import Dict, Optional

from loanease.core.config import settings
from loanease.models.domain_models import ConversationSession, LoanApplication, utc_now

logger = logging.getLogger(__name__)


class SessionStore:
    """
    In-memory sessions and loan applications.

    Sessions are kept ordered by last_activity_at (refreshed by put). When the store is over
    capacity, or a session has been idle longer than the TTL, it is dropped
    together with every application it created.
    """

    def __init__(self, max_entries: Optional[int] = None, idle_ttl_minutes: Optional[int] = None):
        self.max_entries = max_entries or settings.SESSION_MAX_ENTRIES
        self.idle_ttl = timedelta(
            minutes=idle_ttl_minutes if idle_ttl_minutes is not None else settings.SESSION_IDLE_TTL_MINUTES
        )
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()
        self._applications: Dict[str, LoanApplication] = {}
        self._app_owner: Dict[str, str] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._guard = threading.RLock()

    # -------------------------
    # Sessions
    # -------------------------

    def get(self, session_id: str) -> Optional[ConversationSession]:
        with self._guard:
            self._evict_expired()
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ConversationSession:
        with self._guard:
            session = self.get(session_id)
            if session is None:
                session = ConversationSession(id=session_id)
                self._sessions[session_id] = session
                logger.info("session created: %s", session_id)
                self._evict_overflow()
            return session

    def put(self, session: ConversationSession):
        with self._guard:
            session.last_activity_at = utc_now()
            self._sessions[session.id] = session
            self._sessions.move_to_end(session.id)
            if session.application is not None:
                self.put_application(session.application, owner_id=session.id)
            self._evict_overflow()

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    # -------------------------
    # Applications
    # -------------------------

    def get_application(self, application_id: str) -> Optional[LoanApplication]:
        with self._guard:
            return self._applications.get(application_id)

    def put_application(self, application: LoanApplication, owner_id: Optional[str] = None):
        with self._guard:
            self._applications[application.id] = application
            if owner_id:
                self._app_owner[application.id] = owner_id

    # -------------------------
    # Concurrency
    # -------------------------

    @contextmanager
    def lock(self, session_id: str):
        """
        Serialize turns for one session id; other sessions are not blocked.

        A lock lives while its session is stored or while a turn holds or waits
        on it, so ids that never become sessions do not accumulate locks.
        """
        with self._guard:
            session_lock = self._locks.setdefault(session_id, threading.Lock())
            self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            with session_lock:
                yield
        finally:
            with self._guard:
                self._lock_users[session_id] -= 1
                if not self._lock_users[session_id]:
                    del self._lock_users[session_id]
                    if session_id not in self._sessions:
                        self._locks.pop(session_id, None)

    # -------------------------
    # Eviction
    # -------------------------

    def _drop(self, session_id: str):
        self._sessions.pop(session_id, None)
        # a lock in use is released by its last holder
        if session_id not in self._lock_users:
            self._locks.pop(session_id, None)
        owned = [app_id for app_id, owner in self._app_owner.items() if owner == session_id]
        for app_id in owned:
            self._applications.pop(app_id, None)
            self._app_owner.pop(app_id, None)

    def _evict_expired(self):
        if self.idle_ttl.total_seconds() <= 0:
            return
        cutoff = utc_now() - self.idle_ttl
        # oldest activity first, so stop at the first fresh session
        for session_id, session in list(self._sessions.items()):
            if session.last_activity_at >= cutoff:
                break
            logger.info("session expired after idle timeout: %s", session_id)
            self._drop(session_id)

    def _evict_overflow(self):
        while len(self._sessions) > self.max_entries:
            session_id = next(iter(self._sessions))
            logger.info("session evicted (capacity %s): %s", self.max_entries, session_id)
            self._drop(session_id)


# Singleton
session_store = SessionStore()
