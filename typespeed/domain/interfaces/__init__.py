"""Domain interfaces for the TypeSpeed application."""

from .code_file_repository import CodeFileRepository
from .session_repository import SessionRepository
from .statistics_repository import LeaderboardEntry, StatisticsRepository

__all__ = ["CodeFileRepository", "SessionRepository", "StatisticsRepository", "LeaderboardEntry"]
