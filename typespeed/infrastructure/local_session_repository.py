"""Local in-memory implementation of Session Repository."""

from datetime import datetime
from typing import Dict

from ..domain.entities.typing_session import TypingSession
from ..domain.interfaces.session_repository import SessionRepository


class LocalSessionRepository(SessionRepository):
    """Local in-memory implementation of the Session Repository.

    Stores active typing sessions in a dictionary keyed by session ID.
    """

    def __init__(self):
        """Initialize the local session repository with an empty dictionary."""
        self._sessions: Dict[str, TypingSession] = {}

    async def save_session(self, session: TypingSession) -> None:
        """Save a session to the in-memory dictionary.

        Args:
            session: The session entity to save.
        """
        self._sessions[str(session.id)] = session

    async def get_session(self, session_id: str) -> TypingSession:
        """Retrieve a session by ID from the in-memory dictionary.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            TypingSession: The session entity.

        Raises:
            ValueError: If the session is not found.
        """
        if session_id not in self._sessions:
            raise ValueError(f"Session with id {session_id} not found")

        return self._sessions[session_id]

    async def delete_session(self, session_id: str) -> None:
        """Delete a session from the in-memory dictionary.

        Raises:
            ValueError: If the session is not found.
        """
        if session_id not in self._sessions:
            raise ValueError(f"Session with id {session_id} not found")

        del self._sessions[session_id]

    async def delete_inactive_since(self, cutoff: datetime) -> list[str]:
        """Delete sessions idle since before ``cutoff`` and return their IDs."""
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.last_activity_at < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        return expired

    def clear(self) -> None:
        """Clear all sessions from the dictionary."""
        self._sessions.clear()

    def get_all_sessions(self) -> Dict[str, TypingSession]:
        """Get all sessions.

        Returns:
            Dict[str, TypingSession]: Dictionary of all sessions.
        """
        return self._sessions.copy()
