"""DynamoDB implementation of Statistics Repository."""

import logging
from typing import Any, Dict, Optional

import aioboto3

from ..domain.entities.statistics import DEFAULT_HISTORY_LIMIT, StatisticsRecord, UserStatistics
from ..domain.interfaces.statistics_repository import LeaderboardEntry, StatisticsRepository
from .local_statistics_repository import build_leaderboard

logger = logging.getLogger(__name__)


class DynamoDBStatisticsRepository(StatisticsRepository):
    """DynamoDB repository for per-user typing statistics.

    Each user is stored as a single item. The aggregate is kept as a JSON
    document so float metrics never have to be converted to Decimal.
    """

    def __init__(
        self,
        table_name: str,
        region_name: str = "us-east-1",
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        """Initialize the DynamoDB statistics repository.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
            history_limit: Maximum number of records kept per user.
        """
        self.table_name = table_name
        self.region_name = region_name
        self.history_limit = history_limit
        self._session = aioboto3.Session()

    async def find_by_user_id(self, user_id: str) -> Optional[UserStatistics]:
        """Retrieve a user's statistics from DynamoDB.

        Args:
            user_id: The user identifier.

        Returns:
            Optional[UserStatistics]: The statistics, or None when the user has no item.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": user_id})

            if "Item" not in response:
                return None

            return self._item_to_statistics(response["Item"])

    async def save(self, statistics: UserStatistics) -> None:
        """Save a user's statistics to DynamoDB.

        Raises:
            Exception: If the save operation fails.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._statistics_to_item(statistics))

    async def add_record(self, user_id: str, record: StatisticsRecord) -> UserStatistics:
        statistics = await self.find_by_user_id(user_id)
        if statistics is None:
            statistics = UserStatistics(user_id=user_id, history_limit=self.history_limit)

        statistics.add_record(record)
        await self.save(statistics)
        return statistics

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        """Scan every user item and rank them by best net WPM."""
        all_statistics = []
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            scan_kwargs: Dict[str, Any] = {}
            while True:
                response = await table.scan(**scan_kwargs)
                for item in response.get("Items", []):
                    try:
                        all_statistics.append(self._item_to_statistics(item))
                    except ValueError as e:
                        logger.warning(f"Skipping unreadable statistics item {item.get('id')}: {e}")

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key

        return build_leaderboard(all_statistics, limit)

    def _statistics_to_item(self, statistics: UserStatistics) -> Dict[str, Any]:
        """Convert a UserStatistics aggregate to a DynamoDB item."""
        return {
            "id": statistics.user_id,
            "session_count": statistics.session_count,
            "statistics": statistics.model_dump_json(),
        }

    def _item_to_statistics(self, item: Dict[str, Any]) -> UserStatistics:
        """Convert a DynamoDB item to a UserStatistics aggregate.

        Raises:
            ValueError: If the stored document is not valid statistics JSON.
        """
        return UserStatistics.model_validate_json(item.get("statistics", ""))
