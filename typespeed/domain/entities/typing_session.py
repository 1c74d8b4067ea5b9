"""Typing session entity: the per-keystroke state machine."""

import time
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..errors import InvalidSessionStateError
from .language import Language
from .metrics import (
    BURST_WINDOW_SECONDS,
    SessionMetrics,
    calculate_accuracy,
    calculate_burst_wpm,
    calculate_net_wpm,
    calculate_wpm,
)

_INDENT_CHARACTERS = (" ", "\t")


class SessionState(str, Enum):
    """Typing session lifecycle states."""
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"


class CharacterInput(BaseModel):
    """One keystroke in the session's append-only input log."""

    expected: str
    actual: str
    timestamp: float
    is_correct: bool
    position: int = Field(ge=0)


def compute_skip_mask(text: str) -> list[bool]:
    """Mark the leading indentation of every line.

    Spaces and tabs before the first non-whitespace character of a line are
    skipped; newlines never are.
    """
    mask = []
    at_line_start = True
    for character in text:
        if character == "\n":
            mask.append(False)
            at_line_start = True
        elif at_line_start and character in _INDENT_CHARACTERS:
            mask.append(True)
        else:
            mask.append(False)
            if character not in _INDENT_CHARACTERS:
                at_line_start = False
    return mask


class TypingSession(BaseModel):
    """A typing practice session over a single snippet.

    The session moves ``idle -> active -> completed``; :meth:`reset` brings
    it back to ``idle`` from any state. The cursor advances on every
    keystroke whether or not it matched, and leading indentation is skipped
    automatically. Backspace rewinds the cursor but never removes entries
    from the input log.
    """

    id: UUID = Field(default_factory=uuid.uuid4)
    snippet: str
    language: Language
    file_path: Optional[str] = None
    state: SessionState = SessionState.IDLE
    position: int = Field(default=0, ge=0)
    started_at: Optional[float] = None
    ended_at: Optional[float] = None
    inputs: list[CharacterInput] = Field(default_factory=list)
    char_states: list[Optional[bool]] = Field(default_factory=list)
    corrections: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_activity_at: datetime = Field(default_factory=datetime.utcnow)

    _skip_mask: list[bool] = PrivateAttr(default_factory=list)

    @field_validator("snippet")
    @classmethod
    def _require_typable_character(cls, value: str) -> str:
        if all(compute_skip_mask(value)):
            raise ValueError("Snippet must contain at least one character to type")
        return value

    def model_post_init(self, __context) -> None:
        self._skip_mask = compute_skip_mask(self.snippet)
        if len(self.char_states) != len(self.snippet):
            self.char_states = [None] * len(self.snippet)
        if self.state == SessionState.IDLE and not self.inputs:
            self._skip_indentation()

    @classmethod
    def create(cls, snippet: str, language: Language, file_path: Optional[str] = None) -> "TypingSession":
        return cls(snippet=snippet, language=language, file_path=file_path)

    @property
    def length(self) -> int:
        return len(self.snippet)

    @property
    def skip_mask(self) -> list[bool]:
        return list(self._skip_mask)

    @property
    def is_complete(self) -> bool:
        return self.state == SessionState.COMPLETED

    @property
    def expected_character(self) -> str:
        """The next character the user has to type, or '' when done."""
        position = self.position
        while position < self.length and self._skip_mask[position]:
            position += 1
        return self.snippet[position] if position < self.length else ""

    @property
    def progress(self) -> float:
        return round(self.position / self.length * 100, 1)

    def type_character(self, character: str, timestamp: Optional[float] = None) -> CharacterInput:
        """Record a keystroke at the cursor and advance.

        Args:
            character: The typed character.
            timestamp: Event time in epoch seconds, defaults to now.

        Returns:
            CharacterInput: The log entry for this keystroke.

        Raises:
            ValueError: If ``character`` is not exactly one character.
            InvalidSessionStateError: If the session is already completed.
        """
        if len(character) != 1:
            raise ValueError("Input must be exactly one character")
        if self.state == SessionState.COMPLETED:
            raise InvalidSessionStateError(f"Cannot process input in state: {self.state.value}")

        timestamp = time.time() if timestamp is None else timestamp
        if self.state == SessionState.IDLE:
            self.state = SessionState.ACTIVE
            self.started_at = timestamp

        # Backspace may have left the cursor on indentation.
        self._skip_indentation()

        expected = self.snippet[self.position]
        entry = CharacterInput(
            expected=expected,
            actual=character,
            timestamp=timestamp,
            is_correct=character == expected,
            position=self.position,
        )
        self.inputs.append(entry)
        self.char_states[self.position] = entry.is_correct
        self.position += 1
        self._skip_indentation()
        self._touch()

        if self.position >= self.length:
            self._complete(timestamp)

        return entry

    def backspace(self) -> bool:
        """Move the cursor back over the last typed character.

        Skipped indentation is stepped over together with the character
        before it. Returns False when the cursor is already at 0.

        Raises:
            InvalidSessionStateError: If the session is already completed.
        """
        if self.state == SessionState.COMPLETED:
            raise InvalidSessionStateError(f"Cannot process backspace in state: {self.state.value}")
        if self.position == 0:
            return False

        target = self.position - 1
        while target > 0 and self._skip_mask[target]:
            target -= 1

        if not self._skip_mask[target] and self.char_states[target] is not None:
            self.corrections += 1

        for index in range(target, self.position):
            self.char_states[index] = None
        self.position = target
        self._touch()
        return True

    def finish(self, timestamp: Optional[float] = None) -> None:
        """Complete an active session before the end of the snippet."""
        if self.state == SessionState.COMPLETED:
            return
        if self.state != SessionState.ACTIVE:
            raise InvalidSessionStateError(f"Cannot complete session in state: {self.state.value}")
        self._complete(time.time() if timestamp is None else timestamp)

    def reset(self) -> None:
        """Discard all progress and return to idle."""
        self.state = SessionState.IDLE
        self.position = 0
        self.started_at = None
        self.ended_at = None
        self.inputs = []
        self.char_states = [None] * self.length
        self.corrections = 0
        self._skip_indentation()
        self._touch()

    def elapsed_time(self, now: Optional[float] = None) -> float:
        """Seconds between the first keystroke and completion (or ``now``)."""
        if self.started_at is None:
            return 0.0
        end = self.ended_at
        if end is None:
            end = time.time() if now is None else now
        return max(0.0, end - self.started_at)

    def calculate_metrics(
        self,
        now: Optional[float] = None,
        burst_window: float = BURST_WINDOW_SECONDS,
    ) -> SessionMetrics:
        """Derive live metrics from the input log. Does not mutate the session."""
        elapsed = self.elapsed_time(now)
        total = len(self.inputs)
        correct = sum(1 for entry in self.inputs if entry.is_correct)
        uncorrected = sum(1 for state in self.char_states if state is False)

        return SessionMetrics(
            gross_wpm=round(calculate_wpm(total, elapsed)),
            net_wpm=round(calculate_net_wpm(total, uncorrected, elapsed)),
            burst_wpm=round(calculate_burst_wpm([entry.timestamp for entry in self.inputs], burst_window)),
            accuracy=calculate_accuracy(correct, total),
            errors=total - correct,
            uncorrected_errors=uncorrected,
            corrections=self.corrections,
            total_characters=total,
            correct_characters=correct,
            elapsed_time=round(elapsed, 3),
            progress=self.progress,
        )

    def _skip_indentation(self) -> None:
        while self.position < self.length and self._skip_mask[self.position]:
            self.char_states[self.position] = True
            self.position += 1

    def _complete(self, timestamp: float) -> None:
        self.state = SessionState.COMPLETED
        self.ended_at = timestamp

    def _touch(self) -> None:
        self.last_activity_at = datetime.utcnow()
