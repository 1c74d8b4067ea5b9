"""WebSocket message models for live typing sessions."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from .metrics import DetailedMetrics, SessionMetrics
from .statistics import StatisticsRecord
from .typing_session import CharacterInput, SessionState


# ===== Client → Server Messages =====


class Keystroke(BaseModel):
    """A single typed character."""

    type: Literal["keystroke"] = "keystroke"
    character: str = Field(min_length=1, max_length=1)


class Backspace(BaseModel):
    type: Literal["backspace"] = "backspace"


class Reset(BaseModel):
    type: Literal["reset"] = "reset"


ClientMessage = Annotated[Union[Keystroke, Backspace, Reset], Field(discriminator="type")]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# ===== Server → Client Messages =====


class SessionReady(BaseModel):
    """Sent once the live session is attached."""

    type: Literal["session.ready"] = "session.ready"
    session_id: str
    snippet_length: int
    position: int
    expected_character: str
    state: SessionState


class KeystrokeResult(BaseModel):
    """Outcome of a keystroke with refreshed metrics."""

    type: Literal["keystroke.result"] = "keystroke.result"
    input: CharacterInput
    position: int
    expected_character: str
    state: SessionState
    metrics: SessionMetrics


class CursorUpdate(BaseModel):
    """Cursor moved without a keystroke (backspace or reset)."""

    type: Literal["cursor.update"] = "cursor.update"
    moved: bool
    position: int
    expected_character: str
    state: SessionState
    metrics: SessionMetrics


class MetricsTick(BaseModel):
    """Periodic read-only metrics refresh while the session is active."""

    type: Literal["metrics.tick"] = "metrics.tick"
    state: SessionState
    metrics: SessionMetrics


class SessionCompleted(BaseModel):
    type: Literal["session.completed"] = "session.completed"
    metrics: SessionMetrics
    detailed_metrics: DetailedMetrics
    record: Optional[StatisticsRecord] = None


class ErrorCode(str, Enum):
    """Error codes for WebSocket error messages."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_STATE = "INVALID_STATE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


ServerMessage = Union[
    SessionReady,
    KeystrokeResult,
    CursorUpdate,
    MetricsTick,
    SessionCompleted,
    ErrorMessage,
]
