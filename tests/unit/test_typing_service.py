"""Unit tests for the live typing service."""

import asyncio
import json
import uuid

import pytest

from typespeed.domain.entities import (
    CursorUpdate,
    ErrorCode,
    ErrorMessage,
    KeystrokeResult,
    MetricsTick,
    SessionCompleted,
    SessionReady,
    SessionState,
    StatisticsRecord,
    TypingSession,
    get_language_by_name,
)
from typespeed.domain.services import TypingService


@pytest.fixture
def session():
    return TypingSession.create(snippet="ab", language=get_language_by_name("python"))


def drain(service):
    messages = []
    while not service.outbound_queue.empty():
        messages.append(service.outbound_queue.get_nowait())
    return messages


class TestTypingService:
    """Tests for TypingService."""

    @pytest.mark.asyncio
    async def test_start_emits_session_ready(self, session):
        service = TypingService(session, tick_interval=10)

        await service.start()
        try:
            message = await service.outbound_queue.get()
        finally:
            await service.stop()

        assert isinstance(message, SessionReady)
        assert message.session_id == str(session.id)
        assert message.snippet_length == 2
        assert message.expected_character == "a"
        assert message.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, session):
        service = TypingService(session, tick_interval=10)
        await service.start()

        await service.stop()
        await service.stop()

        assert not service.running

    @pytest.mark.asyncio
    async def test_keystroke_message(self, session):
        service = TypingService(session)

        await service.handle_message(json.dumps({"type": "keystroke", "character": "a"}))

        [message] = drain(service)
        assert isinstance(message, KeystrokeResult)
        assert message.input.is_correct
        assert message.position == 1
        assert message.expected_character == "b"
        assert message.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_completion_calls_handler_and_emits_result(self, session):
        record = StatisticsRecord(
            session_id=session.id, language="Python", duration=1.0, gross_wpm=24, net_wpm=24, accuracy=100.0,
        )
        completed = []

        async def on_complete(finished):
            completed.append(finished)
            return record

        service = TypingService(session, on_complete=on_complete)

        await service.submit_character("a", timestamp=100.0)
        await service.submit_character("b", timestamp=101.0)

        messages = drain(service)
        assert [type(m) for m in messages] == [KeystrokeResult, KeystrokeResult, SessionCompleted]
        assert completed == [session]
        assert messages[-1].record == record
        assert messages[-1].metrics.accuracy == 100.0
        assert messages[-1].detailed_metrics.errors.count == 0

    @pytest.mark.asyncio
    async def test_completion_handler_failure_is_reported(self, session):
        async def on_complete(finished):
            raise ConnectionError("dynamodb unavailable")

        service = TypingService(session, on_complete=on_complete)

        await service.handle_message({"type": "keystroke", "character": "a"})
        await service.handle_message({"type": "keystroke", "character": "b"})

        messages = drain(service)
        assert [type(m) for m in messages] == [KeystrokeResult, KeystrokeResult, ErrorMessage, SessionCompleted]
        assert messages[2].code == ErrorCode.INTERNAL_ERROR
        assert messages[3].record is None
        assert session.is_complete

    @pytest.mark.asyncio
    async def test_keystroke_after_completion_is_an_error(self, session):
        service = TypingService(session)
        await service.submit_character("a", timestamp=1.0)
        await service.submit_character("b", timestamp=2.0)
        drain(service)

        await service.handle_message({"type": "keystroke", "character": "c"})

        [message] = drain(service)
        assert isinstance(message, ErrorMessage)
        assert message.code == ErrorCode.INVALID_STATE

    @pytest.mark.asyncio
    async def test_backspace_and_reset_emit_cursor_updates(self, session):
        service = TypingService(session)
        await service.submit_character("x", timestamp=1.0)
        drain(service)

        await service.handle_message({"type": "backspace"})
        await service.handle_message({"type": "backspace"})
        await service.handle_message({"type": "reset"})

        messages = drain(service)
        assert all(isinstance(m, CursorUpdate) for m in messages)
        assert [m.moved for m in messages] == [True, False, True]
        assert messages[0].metrics.corrections == 1
        assert messages[-1].state == SessionState.IDLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        "not json",
        {"type": "unknown"},
        {"type": "keystroke", "character": "ab"},
        {"type": "keystroke"},
    ])
    async def test_invalid_messages_produce_errors(self, session, payload):
        service = TypingService(session)

        await service.handle_message(payload)

        [message] = drain(service)
        assert isinstance(message, ErrorMessage)
        assert message.code == ErrorCode.INVALID_MESSAGE
        assert session.position == 0

    @pytest.mark.asyncio
    async def test_metrics_tick_while_active(self, session):
        service = TypingService(session, tick_interval=0.01)
        await service.submit_character("a")
        await service.start()
        try:
            seen = []
            while not any(isinstance(m, MetricsTick) for m in seen):
                seen.append(await asyncio.wait_for(service.outbound_queue.get(), timeout=1.0))
        finally:
            await service.stop()

        tick = next(m for m in seen if isinstance(m, MetricsTick))
        assert tick.state == SessionState.ACTIVE
        assert tick.metrics.total_characters == 1

    @pytest.mark.asyncio
    async def test_no_tick_while_idle(self, session):
        service = TypingService(session, tick_interval=0.01)
        await service.start()
        await asyncio.sleep(0.05)
        await service.stop()

        assert [type(m) for m in drain(service)] == [SessionReady]


def test_session_ids_are_unique():
    python = get_language_by_name("python")

    assert TypingSession.create("a", python).id != TypingSession.create("a", python).id
    assert isinstance(TypingSession.create("a", python).id, uuid.UUID)
