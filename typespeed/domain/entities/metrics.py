"""Typing metrics value objects."""

from typing import Sequence

from pydantic import BaseModel, Field


class SessionMetrics(BaseModel):
    """Live metrics derived from a typing session's input log."""

    gross_wpm: int = Field(ge=0)
    net_wpm: int = Field(ge=0)
    burst_wpm: int = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)
    errors: int = Field(ge=0, description="Incorrect keystrokes, including corrected ones")
    uncorrected_errors: int = Field(ge=0, description="Positions currently marked incorrect")
    corrections: int = Field(ge=0)
    total_characters: int = Field(ge=0, description="Keystrokes in the input log")
    correct_characters: int = Field(ge=0)
    elapsed_time: float = Field(ge=0, description="Seconds since the first keystroke")
    progress: float = Field(ge=0, le=100)


class WPMMetrics(BaseModel):
    gross: int
    net: int
    burst: int


class AccuracyMetrics(BaseModel):
    overall: float
    last_minute: float
    by_character: dict[str, float] = Field(default_factory=dict)


class ErrorMetrics(BaseModel):
    count: int
    rate: float = Field(description="Errors per 100 keystrokes")
    most_common: list[str] = Field(default_factory=list, description="'expected→typed' pairs")


class TimingMetrics(BaseModel):
    average_key_delay: int = Field(description="Milliseconds between keystrokes")
    consistency: int = Field(description="Standard deviation of key delays in milliseconds")
    pause_count: int


class DifficultyFactors(BaseModel):
    symbol_density: float
    indentation_depth: float
    line_complexity: float


class DifficultyMetrics(BaseModel):
    score: float
    factors: DifficultyFactors


class DetailedMetrics(BaseModel):
    """Post-session breakdown of a typing session."""

    wpm: WPMMetrics
    accuracy: AccuracyMetrics
    errors: ErrorMetrics
    timing: TimingMetrics
    difficulty: DifficultyMetrics


WORD_LENGTH = 5
BURST_WINDOW_SECONDS = 10.0


def calculate_wpm(characters: int, seconds: float) -> float:
    """Words per minute for ``characters`` keystrokes over ``seconds``."""
    if seconds <= 0:
        return 0.0
    return (characters / WORD_LENGTH) / (seconds / 60)


def calculate_net_wpm(characters: int, errors: int, seconds: float) -> float:
    """Gross WPM minus errors per minute, never below zero."""
    if seconds <= 0:
        return 0.0
    return max(0.0, calculate_wpm(characters, seconds) - errors / (seconds / 60))


def calculate_accuracy(correct: int, total: int) -> float:
    """Percentage of correct keystrokes, 100 when nothing was typed."""
    if total <= 0:
        return 100.0
    return round(min(100.0, correct / total * 100), 1)


def calculate_burst_wpm(timestamps: Sequence[float], window_seconds: float = BURST_WINDOW_SECONDS) -> float:
    """Best WPM reached inside any ``window_seconds`` span of keystrokes.

    Every keystroke opens a window; the densest window wins. The whole log
    is rescanned on each call.
    """
    if len(timestamps) < 2 or window_seconds <= 0:
        return 0.0

    ordered = sorted(timestamps)
    best = 0
    start = 0
    for end, timestamp in enumerate(ordered):
        while timestamp - ordered[start] > window_seconds:
            start += 1
        best = max(best, end - start + 1)

    return (best / WORD_LENGTH) / (window_seconds / 60)
