"""In-memory session store with periodic expiry cleanup."""
import asyncio
import contextlib
import logging
import secrets
import time
from dataclasses import dataclass

from blog.config import settings

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    session_id: str
    user_id: int
    created_at: float
    expires_at: float

    @property
    def is_authenticated(self) -> bool:
        return time.time() <= self.expires_at


class SessionStore:
    """
    Server-side session records keyed by the id held in the session cookie.

    Sessions are ephemeral: a server restart means re-login.  Call
    ``start_cleanup()`` on app startup and ``stop_cleanup()`` on shutdown.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    def create(self, user_id: int, ttl_seconds: int | None = None) -> Session:
        """Create an authenticated session bound to *user_id*."""
        if ttl_seconds is None:
            ttl_seconds = settings.SESSION_TTL_SECONDS
        now = time.time()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=now,
            expires_at=now + ttl_seconds,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str | None) -> Session | None:
        """Return a live (non-expired) session, or None."""
        if session_id is None:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if not session.is_authenticated:
            del self._sessions[session_id]
            return None
        return session

    def destroy(self, session_id: str) -> None:
        """Remove a session (logout).  Unknown ids are ignored."""
        self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        now = time.time()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Cleaned up %d expired session(s)", len(expired))
        return len(expired)

    def start_cleanup(self) -> None:
        """Start the periodic cleanup background task."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        """Stop the periodic cleanup background task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()


# Module-level singleton shared across all request handlers.
session_store = SessionStore()
