"""Statistics Repository interface."""

from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from ..entities.statistics import StatisticsRecord, UserStatistics


class LeaderboardEntry(BaseModel):
    user_id: str
    best_wpm: int
    language: str


@runtime_checkable
class StatisticsRepository(Protocol):
    """Protocol for per-user statistics storage.

    Implementations can keep statistics in memory or in DynamoDB.
    """

    async def find_by_user_id(self, user_id: str) -> Optional[UserStatistics]:
        """Return the user's statistics, or None if they have none yet."""
        ...

    async def save(self, statistics: UserStatistics) -> None:
        ...

    async def add_record(self, user_id: str, record: StatisticsRecord) -> UserStatistics:
        """Append a record to the user's history, creating it if needed."""
        ...

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        """Users ranked by their best net WPM."""
        ...
