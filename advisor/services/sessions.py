"""Session history store for multi-turn conversations.

A session is a list of role-tagged messages keyed by the client-supplied
session id. The history is passed verbatim to every expert call, so it is
kept in the shape the chat-completion APIs expect:
``{"role": "user" | "assistant", "content": str}``.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

from advisor.config import settings

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory sessions with idle TTL, a session cap and a history cap."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_sessions: int | None = None,
        history_limit: int | None = None,
    ):
        self.ttl_seconds = (
            settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self.max_sessions = (
            settings.max_sessions if max_sessions is None else max_sessions
        )
        self.history_limit = (
            settings.session_history_limit
            if history_limit is None else history_limit
        )
        self._sessions: dict[str, list[dict[str, str]]] = {}
        self._last_activity: dict[str, float] = {}

    def get_history(self, session_id: str) -> list[dict[str, str]]:
        """Return a copy of the session's messages (empty if unknown)."""
        return list(self._sessions.get(session_id, []))

    def touch(self, session_id: str) -> None:
        """Mark the session as active now."""
        self._last_activity[session_id] = time.time()

    def append(self, session_id: str, *messages: dict[str, str]) -> None:
        """Append messages to a session, trimming to history_limit."""
        history = self._sessions.setdefault(session_id, [])
        history.extend(messages)
        if self.history_limit and len(history) > self.history_limit:
            del history[: len(history) - self.history_limit]
        self.touch(session_id)

    def clear(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""
        if session_id not in self._sessions:
            return False
        del self._sessions[session_id]
        self._last_activity.pop(session_id, None)
        logger.info("Session %s cleared", session_id)
        return True

    def cleanup(self) -> int:
        """Remove idle sessions, then the least recently active over the cap.

        Returns:
            Number of sessions removed.
        """
        now = time.time()
        removed = 0

        for session_id, last in list(self._last_activity.items()):
            if now - last > self.ttl_seconds:
                if session_id in self._sessions:
                    del self._sessions[session_id]
                    removed += 1
                del self._last_activity[session_id]

        if len(self._sessions) > self.max_sessions:
            by_activity = sorted(
                self._sessions, key=lambda sid: self._last_activity[sid],
            )
            overflow = by_activity[: len(self._sessions) - self.max_sessions]
            for session_id in overflow:
                del self._sessions[session_id]
                del self._last_activity[session_id]
            removed += len(overflow)
            logger.info(
                "Evicted %d old sessions (remaining: %d)",
                len(overflow), len(self._sessions),
            )

        return removed

    def stats(self) -> dict[str, Any]:
        """Summary used by the performance endpoint."""
        lengths = [len(h) for h in self._sessions.values()]
        details = []
        for session_id, history in self._sessions.items():
            last = self._last_activity.get(session_id)
            details.append({
                "id": session_id[:8] + "...",
                "messages": len(history),
                "last_activity": (
                    datetime.fromtimestamp(last, UTC).isoformat()
                    if last else None
                ),
            })
        return {
            "active_sessions": len(self._sessions),
            "average_history_length": (
                round(sum(lengths) / len(lengths), 2) if lengths else 0.0
            ),
            "session_details": details,
        }


# Global session store instance
_session_store = SessionStore()


def get_session_store() -> SessionStore:
    """Get the global session store."""
    return _session_store
