"""Session Repository interface."""

from datetime import datetime
from typing import Protocol

from ..entities.typing_session import TypingSession


class SessionRepository(Protocol):
    """Protocol defining the interface for active typing session storage.

    Sessions live here from start until they are completed or abandoned.
    """

    async def save_session(self, session: TypingSession) -> None:
        """Save a session to the repository.

        Args:
            session: The session entity to save.
        """
        ...

    async def get_session(self, session_id: str) -> TypingSession:
        """Retrieve a session by ID from the repository.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            TypingSession: The session entity.

        Raises:
            ValueError: If the session is not found.
        """
        ...

    async def delete_session(self, session_id: str) -> None:
        """Delete a session from the repository.

        Raises:
            ValueError: If the session is not found.
        """
        ...

    async def delete_inactive_since(self, cutoff: datetime) -> list[str]:
        """Delete sessions whose last activity is older than ``cutoff``.

        Returns:
            list[str]: IDs of the removed sessions.
        """
        ...
