"""
Session Registry

Process-wide map of session id to ThinkingSession, with creation limits,
idle eviction and an optional background cleanup thread.

Lock ordering: a session's lock may be held while taking the registry
lock, never the other way around. Removal (delete, evict) therefore takes
the session's write lock first and the registry lock second.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import ThinkingConfig
from ..exceptions import LimitExceeded, NotFound
from ..logging_config import configure_logger_for_debug_trace
from .session import ThinkingSession

logger = configure_logger_for_debug_trace(__name__)


class SessionRegistry:
    """
    Registry of live thinking sessions.

    All methods are thread-safe. Sessions are looked up without taking
    their locks; callers lock the returned session themselves and must
    check `session.closed` after acquiring it.
    """

    def __init__(
        self,
        config: Optional[ThinkingConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or ThinkingConfig()
        self._clock = clock
        self._sessions: Dict[str, ThinkingSession] = {}
        self._lock = threading.RLock()
        self._stats = {
            "sessions_created": 0,
            "sessions_deleted": 0,
            "sessions_evicted": 0,
            "sessions_merged": 0,
        }
        self._cleanup_thread: Optional[threading.Thread] = None
        self._cleanup_stop = threading.Event()

    # =========================================================================
    # Creation and lookup
    # =========================================================================

    def create_session(
        self,
        title: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> ThinkingSession:
        """
        Create and register a session.

        An existing session is returned unchanged when session_id is
        already registered.

        Raises:
            LimitExceeded: max_sessions sessions are registered
        """
        with self._lock:
            if session_id is not None and session_id in self._sessions:
                session = self._sessions[session_id]
                session.touch()
                return session

            self._check_capacity()
            session = ThinkingSession(self.config, session_id=session_id, title=title, clock=self._clock)
            self._sessions[session.session_id] = session
            self._stats["sessions_created"] += 1

        logger.info("Created session %s", session.session_id)
        return session

    def add(self, session: ThinkingSession) -> ThinkingSession:
        """
        Register an externally built session (e.g. a merge result).

        Raises:
            LimitExceeded: max_sessions sessions are registered
        """
        with self._lock:
            if session.session_id not in self._sessions:
                self._check_capacity()
                self._stats["sessions_merged"] += 1
            self._sessions[session.session_id] = session
            session.touch()
        return session

    def _check_capacity(self) -> None:
        if len(self._sessions) >= self.config.max_sessions:
            raise LimitExceeded(
                f"Registry already holds {len(self._sessions)} sessions (max {self.config.max_sessions})",
                {"limit": "max_sessions", "max": self.config.max_sessions},
            )

    def get(self, session_id: str) -> ThinkingSession:
        """
        Look up a session and mark it accessed.

        Raises:
            NotFound: no session with this id
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFound(f"Session '{session_id}' not found", {"session_id": session_id})
            session.touch()
            return session

    def get_or_create(self, session_id: Optional[str], title: Optional[str] = None) -> ThinkingSession:
        return self.lookup_or_create(session_id, title=title)[0]

    def lookup_or_create(
        self,
        session_id: Optional[str],
        title: Optional[str] = None,
    ) -> Tuple[ThinkingSession, bool]:
        """
        Look up a session, creating it when the id is unknown or None.

        Returns:
            (session, created) where created is True only if this call
            registered the session

        Raises:
            LimitExceeded: a session must be created and max_sessions are registered
        """
        with self._lock:
            if session_id is not None and session_id in self._sessions:
                return self.get(session_id), False
            return self.create_session(title=title, session_id=session_id), True

    def contains(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def list_sessions(self) -> List[ThinkingSession]:
        """Registered sessions in creation order."""
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # =========================================================================
    # Removal
    # =========================================================================

    def delete(self, session_id: str) -> None:
        """
        Delete a session. Waits for in-flight operations on it to finish.

        Raises:
            NotFound: no session with this id
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"Session '{session_id}' not found", {"session_id": session_id})

        with session.lock.write_locked():
            with self._lock:
                if session.closed or self._sessions.get(session_id) is not session:
                    raise NotFound(f"Session '{session_id}' not found", {"session_id": session_id})
                del self._sessions[session_id]
                session.closed = True
                self._stats["sessions_deleted"] += 1

        logger.info("Deleted session %s", session_id)

    def discard_if_empty(self, session: ThinkingSession) -> bool:
        """
        Unregister a session that never accepted a thought.

        Used to undo an implicit creation whose first append was rejected.
        The caller holds the session's write lock. The creation is removed
        from the stats as well, so the registry looks as it did before.

        Returns:
            True if the session was removed
        """
        with self._lock:
            if (
                session.closed
                or not session.is_empty()
                or self._sessions.get(session.session_id) is not session
            ):
                return False
            del self._sessions[session.session_id]
            session.closed = True
            self._stats["sessions_created"] -= 1

        logger.debug("Discarded empty session %s", session.session_id)
        return True

    def evict_expired(self) -> int:
        """
        Remove sessions idle for longer than session_timeout_seconds.

        Each candidate is rechecked under its write lock, so an append that
        raced the sweep keeps its session alive.

        Returns:
            Number of sessions evicted
        """
        timeout = self.config.session_timeout_seconds
        with self._lock:
            candidates = [s for s in self._sessions.values() if s.idle_seconds() > timeout]

        evicted = 0
        for session in candidates:
            with session.lock.write_locked():
                if session.closed or session.idle_seconds() <= timeout:
                    continue
                with self._lock:
                    if self._sessions.get(session.session_id) is session:
                        del self._sessions[session.session_id]
                        self._stats["sessions_evicted"] += 1
                        evicted += 1
                session.closed = True

        if evicted:
            logger.info("Evicted %d idle session(s)", evicted)
        return evicted

    # =========================================================================
    # Background cleanup
    # =========================================================================

    def start_auto_cleanup(self) -> bool:
        """
        Start the background eviction thread.

        Returns:
            True if a thread was started, False if one is already running
        """
        if self._cleanup_thread is not None and self._cleanup_thread.is_alive():
            return False

        self._cleanup_stop.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop,
            name="seqthink-session-cleanup",
            daemon=True,
        )
        self._cleanup_thread.start()
        logger.debug("Auto cleanup started (every %ss)", self.config.cleanup_interval_seconds)
        return True

    def stop_auto_cleanup(self, timeout: float = 5.0) -> None:
        self._cleanup_stop.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join(timeout=timeout)
            self._cleanup_thread = None

    def _cleanup_loop(self) -> None:
        interval = max(1, self.config.cleanup_interval_seconds)
        while not self._cleanup_stop.wait(interval):
            try:
                self.evict_expired()
            except Exception as e:
                # Keep the sweeper alive; the next pass retries
                logger.error("Session cleanup failed: %s", e, exc_info=True)

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = dict(self._stats)
            stats["active_sessions"] = len(self._sessions)
        stats["max_sessions"] = self.config.max_sessions
        stats["auto_cleanup_running"] = (
            self._cleanup_thread is not None and self._cleanup_thread.is_alive()
        )
        return stats
