"""Local in-memory implementation of Statistics Repository."""

from typing import Dict, Optional

from ..domain.entities.statistics import DEFAULT_HISTORY_LIMIT, StatisticsRecord, UserStatistics
from ..domain.interfaces.statistics_repository import LeaderboardEntry, StatisticsRepository


class LocalStatisticsRepository(StatisticsRepository):
    """Local in-memory implementation of the Statistics Repository.

    Stores one UserStatistics aggregate per user in a dictionary.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._statistics: Dict[str, UserStatistics] = {}
        self.history_limit = history_limit

    async def find_by_user_id(self, user_id: str) -> Optional[UserStatistics]:
        return self._statistics.get(user_id)

    async def save(self, statistics: UserStatistics) -> None:
        self._statistics[statistics.user_id] = statistics

    async def add_record(self, user_id: str, record: StatisticsRecord) -> UserStatistics:
        statistics = await self.find_by_user_id(user_id)
        if statistics is None:
            statistics = UserStatistics(user_id=user_id, history_limit=self.history_limit)

        statistics.add_record(record)
        await self.save(statistics)
        return statistics

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        return build_leaderboard(self._statistics.values(), limit)

    def clear(self) -> None:
        self._statistics.clear()


def build_leaderboard(all_statistics, limit: int) -> list[LeaderboardEntry]:
    """Rank users by the net WPM of their overall personal best."""
    entries = []
    for statistics in all_statistics:
        best = statistics.get_personal_best()
        if best is not None:
            entries.append(LeaderboardEntry(
                user_id=statistics.user_id,
                best_wpm=best.net_wpm,
                language=best.language,
            ))

    entries.sort(key=lambda entry: entry.best_wpm, reverse=True)
    return entries[:limit]
