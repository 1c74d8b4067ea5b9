"""Statistics entities for completed typing sessions."""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

DEFAULT_HISTORY_LIMIT = 100


class StatisticsRecord(BaseModel):
    """Summary of one completed typing session."""

    session_id: UUID
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    language: str
    duration: float = Field(ge=0, description="Seconds")
    gross_wpm: int = Field(ge=0)
    net_wpm: int = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)
    errors: int = Field(default=0, ge=0)
    characters_typed: int = Field(default=0, ge=0)
    snippet_length: int = Field(default=0, ge=0)
    difficulty: float = Field(default=1.0)


class AverageMetrics(BaseModel):
    gross_wpm: int
    net_wpm: int
    accuracy: float
    errors: int
    duration: int
    characters_typed: int


class DailyProgress(BaseModel):
    date: str
    wpm: int
    accuracy: float
    sessions: int


class UserStatistics(BaseModel):
    """Running statistics for one user.

    The history keeps only the most recent ``history_limit`` records.
    Personal bests are tracked per language and survive eviction from the
    history.
    """

    user_id: str
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=1)
    records: list[StatisticsRecord] = Field(default_factory=list)
    personal_bests: dict[str, StatisticsRecord] = Field(default_factory=dict)

    @property
    def session_count(self) -> int:
        return len(self.records)

    def add_record(self, record: StatisticsRecord) -> None:
        self.records.append(record)
        if len(self.records) > self.history_limit:
            self.records = self.records[-self.history_limit:]

        best = self.personal_bests.get(record.language)
        if best is None or record.net_wpm > best.net_wpm:
            self.personal_bests[record.language] = record

    def clear(self) -> None:
        self.records = []
        self.personal_bests = {}

    def get_records_by_language(self, language: str) -> list[StatisticsRecord]:
        return [record for record in self.records if record.language.lower() == language.lower()]

    def get_recent_records(self, limit: int = 10) -> list[StatisticsRecord]:
        """Most recent records first."""
        ordered = sorted(self.records, key=lambda record: record.timestamp, reverse=True)
        return ordered[:limit]

    def get_personal_best(self, language: Optional[str] = None) -> Optional[StatisticsRecord]:
        if language is not None:
            for name, record in self.personal_bests.items():
                if name.lower() == language.lower():
                    return record
            return None

        best = None
        for record in self.personal_bests.values():
            if best is None or record.net_wpm > best.net_wpm:
                best = record
        return best

    def get_average_metrics(self, language: Optional[str] = None) -> Optional[AverageMetrics]:
        records = self.get_records_by_language(language) if language else self.records
        if not records:
            return None

        count = len(records)
        return AverageMetrics(
            gross_wpm=round(sum(r.gross_wpm for r in records) / count),
            net_wpm=round(sum(r.net_wpm for r in records) / count),
            accuracy=round(sum(r.accuracy for r in records) / count, 1),
            errors=round(sum(r.errors for r in records) / count),
            duration=round(sum(r.duration for r in records) / count),
            characters_typed=round(sum(r.characters_typed for r in records) / count),
        )

    def get_progress_over_time(self, days: int = 7, now: Optional[datetime] = None) -> list[DailyProgress]:
        """Daily averages of net WPM and accuracy over the last ``days`` days."""
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)

        by_date: dict[str, list[StatisticsRecord]] = defaultdict(list)
        for record in self.records:
            if record.timestamp >= cutoff:
                by_date[record.timestamp.date().isoformat()].append(record)

        return [
            DailyProgress(
                date=day,
                wpm=round(sum(r.net_wpm for r in records) / len(records)),
                accuracy=round(sum(r.accuracy for r in records) / len(records), 1),
                sessions=len(records),
            )
            for day, records in sorted(by_date.items())
        ]

    def get_total_practice_time(self) -> float:
        """Total practice time in seconds."""
        return sum(record.duration for record in self.records)

    def get_total_characters_typed(self) -> int:
        return sum(record.characters_typed for record in self.records)

    def get_most_practiced_language(self) -> Optional[str]:
        if not self.records:
            return None
        counts = Counter(record.language for record in self.records)
        return counts.most_common(1)[0][0]


def format_practice_time(seconds: float) -> str:
    """Render a duration as ``"1h 5m"`` or ``"12m"``."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
