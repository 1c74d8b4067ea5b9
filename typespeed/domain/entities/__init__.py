"""Domain entities for the TypeSpeed application."""

from .api_messages import (
    CharacterRequest,
    CompleteSessionRequest,
    ScanOptions,
    ScanRequest,
    StartSessionRequest,
)
from .code_file import CodeFile, CodeFileMetadata
from .language import (
    Language,
    detect_language,
    get_language_by_extension,
    get_language_by_name,
    supported_languages,
)
from .metrics import DetailedMetrics, SessionMetrics
from .statistics import StatisticsRecord, UserStatistics
from .typing_session import CharacterInput, SessionState, TypingSession
from .websocket_messages import (
    Backspace,
    ClientMessage,
    CursorUpdate,
    ErrorCode,
    ErrorMessage,
    Keystroke,
    KeystrokeResult,
    MetricsTick,
    Reset,
    ServerMessage,
    SessionCompleted,
    SessionReady,
)

__all__ = [
    # Code source entities
    "CodeFile",
    "CodeFileMetadata",
    "Language",
    "detect_language",
    "get_language_by_extension",
    "get_language_by_name",
    "supported_languages",
    # Session entities
    "TypingSession",
    "SessionState",
    "CharacterInput",
    # Metrics entities
    "SessionMetrics",
    "DetailedMetrics",
    # Statistics entities
    "StatisticsRecord",
    "UserStatistics",
    # HTTP request entities
    "ScanOptions",
    "ScanRequest",
    "StartSessionRequest",
    "CharacterRequest",
    "CompleteSessionRequest",
    # WebSocket message entities
    "ClientMessage",
    "ServerMessage",
    "Keystroke",
    "Backspace",
    "Reset",
    "SessionReady",
    "KeystrokeResult",
    "CursorUpdate",
    "MetricsTick",
    "SessionCompleted",
    "ErrorMessage",
    "ErrorCode",
]
