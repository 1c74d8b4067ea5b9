"""Detailed post-session metrics."""

import math
import re
import time
from collections import Counter, defaultdict
from typing import Optional

from ..entities.metrics import (
    BURST_WINDOW_SECONDS,
    AccuracyMetrics,
    DetailedMetrics,
    DifficultyFactors,
    DifficultyMetrics,
    ErrorMetrics,
    TimingMetrics,
    WPMMetrics,
    calculate_accuracy,
    calculate_burst_wpm,
    calculate_net_wpm,
    calculate_wpm,
)
from ..entities.typing_session import CharacterInput, TypingSession

_SYMBOL_PATTERN = re.compile(r"[^a-zA-Z0-9\s]")
_LEADING_WHITESPACE = re.compile(r"^(\s*)")


class MetricsCalculator:
    """Service for calculating detailed typing metrics."""

    PAUSE_THRESHOLD = 2.0  # seconds
    LAST_MINUTE = 60.0

    def __init__(self, burst_window: float = BURST_WINDOW_SECONDS):
        self.burst_window = burst_window

    def calculate(self, session: TypingSession, now: Optional[float] = None) -> DetailedMetrics:
        """Break down a session's log into WPM, accuracy, error, timing and difficulty figures.

        Args:
            session: The session to analyse.
            now: Reference time in epoch seconds for running sessions.
        """
        inputs = session.inputs
        elapsed = session.elapsed_time(now)
        reference = session.ended_at if session.ended_at is not None else (time.time() if now is None else now)
        uncorrected = sum(1 for state in session.char_states if state is False)

        return DetailedMetrics(
            wpm=self._wpm_metrics(inputs, elapsed, uncorrected),
            accuracy=self._accuracy_metrics(inputs, reference),
            errors=self._error_metrics(inputs),
            timing=self._timing_metrics(inputs),
            difficulty=calculate_difficulty(session.snippet),
        )

    def _wpm_metrics(self, inputs: list[CharacterInput], elapsed: float, uncorrected: int) -> WPMMetrics:
        return WPMMetrics(
            gross=round(calculate_wpm(len(inputs), elapsed)),
            net=round(calculate_net_wpm(len(inputs), uncorrected, elapsed)),
            burst=round(calculate_burst_wpm([i.timestamp for i in inputs], self.burst_window)),
        )

    def _accuracy_metrics(self, inputs: list[CharacterInput], reference: float) -> AccuracyMetrics:
        recent = [i for i in inputs if i.timestamp >= reference - self.LAST_MINUTE]

        counts: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for entry in inputs:
            stats = counts[entry.expected]
            stats[1] += 1
            if entry.is_correct:
                stats[0] += 1

        return AccuracyMetrics(
            overall=_accuracy_of(inputs),
            last_minute=_accuracy_of(recent),
            by_character={
                character: round(correct / total * 100, 1)
                for character, (correct, total) in counts.items()
            },
        )

    def _error_metrics(self, inputs: list[CharacterInput]) -> ErrorMetrics:
        errors = [i for i in inputs if not i.is_correct]
        rate = len(errors) / max(len(inputs), 1) * 100
        pairs = Counter(f"{e.expected}→{e.actual}" for e in errors)

        return ErrorMetrics(
            count=len(errors),
            rate=round(rate, 1),
            most_common=[pair for pair, _ in pairs.most_common(5)],
        )

    def _timing_metrics(self, inputs: list[CharacterInput]) -> TimingMetrics:
        if len(inputs) < 2:
            return TimingMetrics(average_key_delay=0, consistency=0, pause_count=0)

        delays = [inputs[i].timestamp - inputs[i - 1].timestamp for i in range(1, len(inputs))]
        mean = sum(delays) / len(delays)
        variance = sum((d - mean) ** 2 for d in delays) / len(delays)

        return TimingMetrics(
            average_key_delay=round(mean * 1000),
            consistency=round(math.sqrt(variance) * 1000),
            pause_count=sum(1 for d in delays if d > self.PAUSE_THRESHOLD),
        )


def _accuracy_of(inputs: list[CharacterInput]) -> float:
    return calculate_accuracy(sum(1 for i in inputs if i.is_correct), len(inputs))


def calculate_difficulty(code: str) -> DifficultyMetrics:
    """Score a snippet from 1.0 to 2.0 by symbols, indentation and line length."""
    if not code:
        return DifficultyMetrics(
            score=1.0,
            factors=DifficultyFactors(symbol_density=0, indentation_depth=0, line_complexity=0),
        )

    lines = code.split("\n")
    symbol_density = len(_SYMBOL_PATTERN.findall(code)) / len(code)

    indents = [len(_LEADING_WHITESPACE.match(line).group(1)) for line in lines]
    indentation_depth = (sum(indents) / len(indents)) / 40

    line_complexity = (len(code) / len(lines)) / 80

    score = 1.0 + symbol_density * 0.5 + indentation_depth * 0.3 + line_complexity * 0.2

    return DifficultyMetrics(
        score=min(2.0, round(score, 2)),
        factors=DifficultyFactors(
            symbol_density=round(symbol_density, 2),
            indentation_depth=round(indentation_depth, 2),
            line_complexity=round(line_complexity, 2),
        ),
    )
