from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from uuid import UUID

from globetrotter.core.errors import SessionNotFoundError, UsernameTakenError
from globetrotter.destinations.registry import DestinationStore
from globetrotter.session import PlaySession, RoundTiming
from globetrotter.usernames import UsernameRegistry, normalize_username


logger = logging.getLogger(__name__)

DEFAULT_IDLE_SECONDS = 30 * 60


class SessionManager:
    """In-memory map of live play sessions.

    Nothing here outlives the process. A session ends when it is closed, when
    it has been idle for `idle_seconds`, or when the server stops.
    """

    def __init__(
        self,
        *,
        timing: RoundTiming | None = None,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timing = timing or RoundTiming()
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._sessions: dict[UUID, PlaySession] = {}
        self._last_seen: dict[UUID, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _is_idle(self, session_id: UUID, now: float) -> bool:
        return now - self._last_seen.get(session_id, now) >= self.idle_seconds

    def create(
        self,
        *,
        username: str,
        store: DestinationStore,
        registry: UsernameRegistry,
        rng: random.Random | None = None,
    ) -> PlaySession:
        username = username.strip()
        if not username:
            raise ValueError("username is required")

        self.sweep(registry=registry)

        # A live session keeps its name even if the registry claim lapsed.
        key = normalize_username(username)
        if any(normalize_username(s.username) == key for s in self._sessions.values()):
            raise UsernameTakenError(f"Username {username!r} is already taken")

        session = PlaySession(username=username, store=store, timing=self.timing, rng=rng)
        if not registry.register(username, owner=str(session.session_id)):
            raise UsernameTakenError(f"Username {username!r} is already taken")

        self._sessions[session.session_id] = session
        self._last_seen[session.session_id] = self._clock()
        logger.info("Session %s started for %s", session.session_id, username)
        return session

    def get(self, session_id: UUID) -> PlaySession | None:
        session = self._sessions.get(session_id)
        if session is None or self._is_idle(session_id, self._clock()):
            return None
        return session

    def require(self, session_id: UUID) -> PlaySession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError("Session not found")
        return session

    def touch(self, session: PlaySession, *, registry: UsernameRegistry) -> None:
        """Record player activity and keep the username claim alive."""

        self._last_seen[session.session_id] = self._clock()
        if not registry.touch(session.username, owner=str(session.session_id)):
            logger.warning("Session %s lost its claim on %r", session.session_id, session.username)

    def close(self, session_id: UUID, *, registry: UsernameRegistry) -> PlaySession:
        session = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError("Session not found")
        session.close()
        registry.release(session.username, owner=str(session_id))
        logger.info("Session %s closed", session_id)
        return session

    def sweep(self, *, registry: UsernameRegistry) -> int:
        """Close sessions idle for longer than `idle_seconds`. Returns how many were closed."""

        now = self._clock()
        stale = [sid for sid in self._sessions if self._is_idle(sid, now)]
        for sid in stale:
            self.close(sid, registry=registry)
        if stale:
            logger.info("Swept %d idle sessions", len(stale))
        return len(stale)

    def close_all(self, *, registry: UsernameRegistry | None = None) -> None:
        for sid, session in list(self._sessions.items()):
            session.close()
            if registry is not None:
                registry.release(session.username, owner=str(sid))
        self._sessions.clear()
        self._last_seen.clear()


_SESSIONS: SessionManager | None = None


def init_sessions(*, timing: RoundTiming | None = None, idle_seconds: float = DEFAULT_IDLE_SECONDS) -> SessionManager:
    global _SESSIONS
    if _SESSIONS is None:
        _SESSIONS = SessionManager(timing=timing, idle_seconds=idle_seconds)
    return _SESSIONS


def reset_sessions_for_tests() -> None:
    global _SESSIONS
    if _SESSIONS is not None:
        _SESSIONS.close_all()
    _SESSIONS = None


def get_sessions() -> SessionManager:
    if _SESSIONS is None:
        raise RuntimeError("Sessions not initialized. Call init_sessions() at startup.")
    return _SESSIONS
