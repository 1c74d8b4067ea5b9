"""Live typing service driving one session over a WebSocket."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from ..entities.statistics import StatisticsRecord
from ..entities.typing_session import SessionState, TypingSession
from ..entities.websocket_messages import (
    Backspace,
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
    client_message_adapter,
)
from ..errors import InvalidSessionStateError
from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[TypingSession], Awaitable[Optional[StatisticsRecord]]]


class TypingService:
    """
    Per-connection service that owns the live side of a typing session.

    This service owns:
    - Applying keystrokes, backspaces and resets to the session
    - The periodic metrics tick (read-only)
    - Emitting server messages to the WebSocket layer via an async queue
    - Handing the finished session to the completion handler

    The service is unit-testable without sockets.
    """

    def __init__(
        self,
        session: TypingSession,
        metrics_calculator: Optional[MetricsCalculator] = None,
        tick_interval: float = 0.5,
        on_complete: Optional[CompletionHandler] = None,
    ):
        self.session = session
        self.metrics_calculator = metrics_calculator or MetricsCalculator()
        self.tick_interval = tick_interval
        self._on_complete = on_complete

        self.outbound_queue: asyncio.Queue[ServerMessage] = asyncio.Queue()

        self._running = False
        self._tick_task: Optional[asyncio.Task] = None

        logger.info(f"TypingService created for session {session.id}")

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the metrics tick and announce the session."""
        if self._running:
            logger.warning(f"Service {self.session.id} already running")
            return

        self._running = True
        self._tick_task = asyncio.create_task(self._tick_loop())

        await self._emit(SessionReady(
            session_id=str(self.session.id),
            snippet_length=self.session.length,
            position=self.session.position,
            expected_character=self.session.expected_character,
            state=self.session.state,
        ))
        logger.info(f"TypingService {self.session.id} started")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._tick_task:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass

        logger.info(f"TypingService {self.session.id} stopped")

    async def handle_message(self, message: Union[str, dict]) -> None:
        """Parse a client message and apply it to the session."""
        try:
            if isinstance(message, str):
                parsed = client_message_adapter.validate_json(message)
            else:
                parsed = client_message_adapter.validate_python(message)
        except ValidationError as e:
            logger.warning(f"Rejected client message for session {self.session.id}: {e.error_count()} errors")
            await self._emit_error(ErrorCode.INVALID_MESSAGE, "Expected a keystroke, backspace or reset message")
            return

        match parsed:
            case Keystroke():
                await self.submit_character(parsed.character)
            case Backspace():
                await self.backspace()
            case Reset():
                await self.reset()

    async def submit_character(self, character: str, timestamp: Optional[float] = None) -> None:
        try:
            entry = self.session.type_character(character, timestamp)
        except InvalidSessionStateError as e:
            await self._emit_error(ErrorCode.INVALID_STATE, str(e))
            return

        await self._emit(KeystrokeResult(
            input=entry,
            position=self.session.position,
            expected_character=self.session.expected_character,
            state=self.session.state,
            metrics=self.session.calculate_metrics(burst_window=self.metrics_calculator.burst_window),
        ))

        if self.session.is_complete:
            await self._finish()

    async def backspace(self) -> None:
        try:
            moved = self.session.backspace()
        except InvalidSessionStateError as e:
            await self._emit_error(ErrorCode.INVALID_STATE, str(e))
            return
        await self._emit_cursor_update(moved)

    async def reset(self) -> None:
        self.session.reset()
        logger.info(f"Session {self.session.id} reset")
        await self._emit_cursor_update(True)

    async def _finish(self) -> None:
        metrics = self.session.calculate_metrics(burst_window=self.metrics_calculator.burst_window)
        detailed = self.metrics_calculator.calculate(self.session)

        record = None
        if self._on_complete is not None:
            try:
                record = await self._on_complete(self.session)
            except Exception as e:
                logger.error(f"Failed to record session {self.session.id}: {e}", exc_info=True)
                await self._emit_error(ErrorCode.INTERNAL_ERROR, "Session completed but could not be recorded")

        await self._emit(SessionCompleted(metrics=metrics, detailed_metrics=detailed, record=record))
        logger.info(f"Session {self.session.id} completed at {metrics.net_wpm} net WPM")

    async def _tick_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.tick_interval)
            if self.session.state == SessionState.ACTIVE:
                await self._emit(MetricsTick(
                    state=self.session.state,
                    metrics=self.session.calculate_metrics(burst_window=self.metrics_calculator.burst_window),
                ))

    async def _emit_cursor_update(self, moved: bool) -> None:
        await self._emit(CursorUpdate(
            moved=moved,
            position=self.session.position,
            expected_character=self.session.expected_character,
            state=self.session.state,
            metrics=self.session.calculate_metrics(burst_window=self.metrics_calculator.burst_window),
        ))

    async def _emit_error(self, code: ErrorCode, message: str) -> None:
        await self._emit(ErrorMessage(code=code, message=message))

    async def _emit(self, message: ServerMessage) -> None:
        await self.outbound_queue.put(message)
