"""TypeSpeed Controller for handling business logic and coordination."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from fastapi import WebSocket, status

from ..domain.entities import (
    ErrorCode,
    ErrorMessage,
    ScanRequest,
    StartSessionRequest,
    StatisticsRecord,
    TypingSession,
    get_language_by_name,
    supported_languages,
)
from ..domain.entities.statistics import format_practice_time
from ..domain.errors import InvalidSessionStateError
from ..domain.interfaces.code_file_repository import CodeFileRepository
from ..domain.interfaces.session_repository import SessionRepository
from ..domain.interfaces.statistics_repository import StatisticsRepository
from ..domain.services import (
    CodeFormatter,
    MetricsCalculator,
    SnippetSelector,
    SyntaxHighlighter,
    TypingService,
    validate_scan_path,
)
from ..infrastructure.project_scanner import ProjectScanner
from ..infrastructure.upload_loader import UploadLoader
from .websocket_handler import WebSocketHandler

logger = logging.getLogger(__name__)


class TypeSpeedController:
    """
    Controller for coordinating typing practice operations.

    This controller is injected with all necessary repositories and services
    and handles the business logic for each endpoint, keeping the API layer thin.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        code_file_repository: CodeFileRepository,
        statistics_repository: StatisticsRepository,
        scanner: Optional[ProjectScanner] = None,
        upload_loader: Optional[UploadLoader] = None,
        snippet_selector: Optional[SnippetSelector] = None,
        metrics_calculator: Optional[MetricsCalculator] = None,
        allowed_scan_paths: Optional[list[str]] = None,
        default_snippet_lines: int = 50,
        min_snippet_lines: int = 10,
        max_snippet_lines: int = 200,
        tick_interval: float = 0.5,
        session_timeout: int = 1800,
        cleanup_interval: int = 300,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            session_repository: Repository for live typing sessions
            code_file_repository: Repository for loaded practice files
            statistics_repository: Repository for per-user statistics
            scanner: Folder scanner used by the scan endpoint
            upload_loader: Loader used by the upload endpoint
            snippet_selector: Picks the practice window from a file
            metrics_calculator: Produces the detailed post-session metrics
            allowed_scan_paths: Directories that may be scanned
            default_snippet_lines: Snippet length when the client sends none
            min_snippet_lines: Lower bound for the requested snippet length
            max_snippet_lines: Upper bound for the requested snippet length
            tick_interval: Seconds between WebSocket metrics ticks
            session_timeout: Seconds of inactivity before a session is dropped
            cleanup_interval: Seconds between inactive-session sweeps
        """
        self.session_repository = session_repository
        self.code_file_repository = code_file_repository
        self.statistics_repository = statistics_repository
        self.scanner = scanner or ProjectScanner()
        self.upload_loader = upload_loader or UploadLoader()
        self.snippet_selector = snippet_selector or SnippetSelector()
        self.metrics_calculator = metrics_calculator or MetricsCalculator()
        self.highlighter = SyntaxHighlighter()
        self.allowed_scan_paths = list(allowed_scan_paths or [])
        self.default_snippet_lines = default_snippet_lines
        self.min_snippet_lines = min_snippet_lines
        self.max_snippet_lines = max_snippet_lines
        self.tick_interval = tick_interval
        self.session_timeout = session_timeout
        self.cleanup_interval = cleanup_interval

        # Session id -> started_at of the run that was already recorded
        self._recorded_runs: Dict[str, Optional[float]] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

        logger.info("TypeSpeedController initialized with repositories")

    # Code sources

    def get_languages(self) -> list[dict]:
        return [
            {
                "name": language.name,
                "extensions": list(language.extensions),
                "indent_size": language.indent_size,
                "indent_style": language.indent_style,
            }
            for language in supported_languages()
        ]

    async def scan_folder(self, request: ScanRequest) -> dict:
        """
        Scan an allowed folder and load its source files.

        Raises:
            PathAccessError: If the folder is outside the allowed directories.
        """
        folder = validate_scan_path(request.folder_path, self.allowed_scan_paths)
        result = await asyncio.to_thread(self.scanner.scan_folder, folder, request.options)

        if request.replace:
            self.code_file_repository.clear()
        for code_file in result.files:
            self.code_file_repository.save(code_file)

        logger.info(f"Scan of {folder} loaded {len(result.files)} files")
        return {
            "folder_path": str(folder),
            "files_loaded": len(result.files),
            "total_files": self.code_file_repository.count(),
            "skipped": result.skipped,
            "errors": result.errors,
            "statistics": result.statistics.model_dump(),
        }

    def load_uploads(self, uploads: list[tuple[str, bytes]], replace: bool = False) -> dict:
        result = self.upload_loader.load(uploads)

        if replace:
            self.code_file_repository.clear()
        for code_file in result.files:
            self.code_file_repository.save(code_file)

        return {
            "files_loaded": len(result.files),
            "total_files": self.code_file_repository.count(),
            "skipped": result.skipped,
            "errors": result.errors,
        }

    def list_files(self, language: Optional[str] = None) -> list[dict]:
        if language:
            files = self.code_file_repository.find_by_language(self._resolve_language(language))
        else:
            files = self.code_file_repository.list_files()

        return [
            {
                "id": code_file.id,
                "path": code_file.path,
                "name": code_file.name,
                "language": code_file.language.name,
                "size": code_file.metadata.size,
                "lines": code_file.metadata.lines,
                "complexity": code_file.metadata.complexity,
            }
            for code_file in files
        ]

    def clear_files(self) -> int:
        count = self.code_file_repository.count()
        self.code_file_repository.clear()
        logger.info(f"Cleared {count} loaded files")
        return count

    # Sessions

    async def start_session(self, request: StartSessionRequest) -> dict:
        """
        Create a session from a loaded file.

        Raises:
            ValueError: If the file or language is unknown or no file is loaded.
        """
        if request.file_id:
            code_file = self.code_file_repository.get(request.file_id)
        else:
            language = self._resolve_language(request.language) if request.language else None
            code_file = self.code_file_repository.get_random_file(language)
            if code_file is None:
                raise ValueError("No code files loaded. Scan a folder or upload files first")

        max_lines = self.clamp_snippet_lines(request.max_lines)
        formatter = CodeFormatter(code_file.language)
        snippet = formatter.format(self.snippet_selector.select_snippet(code_file.content, max_lines))
        if not snippet.strip():
            # The window fell on blank lines only
            snippet = formatter.format(code_file.content)
        if not snippet.strip():
            raise ValueError(f"File {code_file.path} has no characters to type")

        session = TypingSession.create(snippet=snippet, language=code_file.language, file_path=code_file.path)
        await self.session_repository.save_session(session)
        logger.info(f"Created session {session.id} from {code_file.path} ({code_file.language.name})")

        snapshot = self._snapshot(session)
        snapshot["skip_mask"] = session.skip_mask
        snapshot["highlighted_html"] = self.highlighter.render(snippet, code_file.language)
        return snapshot

    def clamp_snippet_lines(self, requested: Optional[int]) -> int:
        if requested is None:
            requested = self.default_snippet_lines
        return max(self.min_snippet_lines, min(self.max_snippet_lines, requested))

    async def get_session_snapshot(self, session_id: str) -> dict:
        session = await self.session_repository.get_session(session_id)
        return self._snapshot(session)

    async def submit_character(self, session_id: str, character: str) -> dict:
        session = await self.session_repository.get_session(session_id)
        entry = session.type_character(character)
        await self.session_repository.save_session(session)

        snapshot = self._snapshot(session)
        snapshot["input"] = entry.model_dump()
        return snapshot

    async def backspace(self, session_id: str) -> dict:
        session = await self.session_repository.get_session(session_id)
        moved = session.backspace()
        await self.session_repository.save_session(session)

        snapshot = self._snapshot(session)
        snapshot["moved"] = moved
        return snapshot

    async def reset_session(self, session_id: str) -> dict:
        session = await self.session_repository.get_session(session_id)
        session.reset()
        await self.session_repository.save_session(session)
        logger.info(f"Session {session_id} reset")
        return self._snapshot(session)

    async def complete_session(self, session_id: str, user_id: str) -> dict:
        """
        Finish a session and record it in the user's statistics.

        Raises:
            ValueError: If the session is not found.
            InvalidSessionStateError: If the session was never started or was already recorded.
        """
        session = await self.session_repository.get_session(session_id)
        session.finish()
        await self.session_repository.save_session(session)

        record = await self.record_session(session, user_id)
        return {
            "session_id": session_id,
            "metrics": session.calculate_metrics(burst_window=self.metrics_calculator.burst_window).model_dump(),
            "detailed_metrics": self.metrics_calculator.calculate(session).model_dump(),
            "record": record.model_dump(mode="json"),
        }

    async def record_session(self, session: TypingSession, user_id: str) -> StatisticsRecord:
        """
        Append a completed session to the user's statistics once per run.

        Raises:
            InvalidSessionStateError: If the session is not completed or this run was already recorded.
        """
        if not session.is_complete:
            raise InvalidSessionStateError(f"Cannot record session in state: {session.state.value}")

        session_key = str(session.id)
        if session_key in self._recorded_runs and self._recorded_runs[session_key] == session.started_at:
            raise InvalidSessionStateError(f"Session {session_key} was already recorded")

        metrics = session.calculate_metrics(burst_window=self.metrics_calculator.burst_window)
        detailed = self.metrics_calculator.calculate(session)
        record = StatisticsRecord(
            session_id=session.id,
            language=session.language.name,
            duration=metrics.elapsed_time,
            gross_wpm=metrics.gross_wpm,
            net_wpm=metrics.net_wpm,
            accuracy=metrics.accuracy,
            errors=metrics.errors,
            characters_typed=metrics.total_characters,
            snippet_length=session.length,
            difficulty=detailed.difficulty.score,
        )

        await self.statistics_repository.add_record(user_id, record)
        self._recorded_runs[session_key] = session.started_at
        logger.info(f"Recorded session {session_key} for user {user_id}: {record.net_wpm} net WPM")
        return record

    # Statistics

    async def get_statistics(self, user_id: str) -> dict:
        statistics = await self.statistics_repository.find_by_user_id(user_id)
        if statistics is None:
            return {
                "user_id": user_id,
                "total_sessions": 0,
                "averages": None,
                "personal_best": None,
                "personal_bests": {},
                "total_practice_time": 0.0,
                "total_practice_time_text": format_practice_time(0),
                "total_characters_typed": 0,
                "most_practiced_language": None,
                "progress": [],
            }

        averages = statistics.get_average_metrics()
        best = statistics.get_personal_best()
        practice_time = statistics.get_total_practice_time()
        return {
            "user_id": user_id,
            "total_sessions": statistics.session_count,
            "averages": averages.model_dump() if averages else None,
            "personal_best": best.model_dump(mode="json") if best else None,
            "personal_bests": {
                language: record.model_dump(mode="json")
                for language, record in statistics.personal_bests.items()
            },
            "total_practice_time": practice_time,
            "total_practice_time_text": format_practice_time(practice_time),
            "total_characters_typed": statistics.get_total_characters_typed(),
            "most_practiced_language": statistics.get_most_practiced_language(),
            "progress": [day.model_dump() for day in statistics.get_progress_over_time()],
        }

    async def get_history(self, user_id: str, limit: int = 10, language: Optional[str] = None) -> list[dict]:
        statistics = await self.statistics_repository.find_by_user_id(user_id)
        if statistics is None:
            return []

        records = statistics.get_recent_records(statistics.session_count)
        if language:
            name = self._resolve_language(language).name
            records = [record for record in records if record.language == name]
        records = records[:limit]
        return [record.model_dump(mode="json") for record in records]

    async def clear_statistics(self, user_id: str) -> None:
        statistics = await self.statistics_repository.find_by_user_id(user_id)
        if statistics is None:
            raise ValueError(f"Statistics for user with id {user_id} not found")

        statistics.clear()
        await self.statistics_repository.save(statistics)
        logger.info(f"Cleared statistics for user {user_id}")

    async def get_leaderboard(self, limit: int = 10) -> list[dict]:
        entries = await self.statistics_repository.get_leaderboard(limit)
        return [entry.model_dump() for entry in entries]

    # WebSocket sessions

    async def handle_websocket_connection(self, websocket: WebSocket, session_id: str, user_id: str) -> None:
        logger.info(f"Handling new WebSocket connection from {websocket.client} for session {session_id}")

        try:
            session = await self.session_repository.get_session(session_id)
        except ValueError as e:
            logger.warning(f"WebSocket rejected: {e}")
            await websocket.send_text(
                ErrorMessage(code=ErrorCode.SESSION_NOT_FOUND, message=str(e)).model_dump_json()
            )
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        async def on_complete(completed: TypingSession) -> Optional[StatisticsRecord]:
            await self.session_repository.save_session(completed)
            try:
                return await self.record_session(completed, user_id)
            except InvalidSessionStateError as e:
                logger.warning(f"Session {completed.id} not recorded: {e}")
                return None

        typing_service = TypingService(
            session=session,
            metrics_calculator=self.metrics_calculator,
            tick_interval=self.tick_interval,
            on_complete=on_complete,
        )
        handler = WebSocketHandler(typing_service=typing_service)

        await typing_service.start()
        try:
            await handler.handle_websocket(websocket)
        finally:
            await self.session_repository.save_session(typing_service.session)
            logger.info(f"Session {session_id} saved after WebSocket disconnect")

    # Inactive session cleanup

    def start_cleanup_task(self) -> None:
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._periodic_session_cleanup())

    async def stop_cleanup_task(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def cleanup_inactive_sessions(self, now: Optional[datetime] = None) -> list[str]:
        """Drop sessions with no activity for longer than the session timeout."""
        cutoff = (now or datetime.utcnow()) - timedelta(seconds=self.session_timeout)
        removed = await self.session_repository.delete_inactive_since(cutoff)
        for session_id in removed:
            self._recorded_runs.pop(session_id, None)

        if removed:
            logger.info(f"Cleaned up {len(removed)} inactive sessions")
        return removed

    async def _periodic_session_cleanup(self) -> None:
        """
        Periodically remove abandoned sessions from the repository.
        """
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval)
                await self.cleanup_inactive_sessions()
            except asyncio.CancelledError:
                logger.debug("Session cleanup task cancelled")
                break
            except Exception as e:
                logger.error(f"Error cleaning up sessions: {e}", exc_info=True)

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "loaded_files": self.code_file_repository.count(),
            "repositories": {
                "session_repository": type(self.session_repository).__name__,
                "code_file_repository": type(self.code_file_repository).__name__,
                "statistics_repository": type(self.statistics_repository).__name__,
            },
        }

    def _resolve_language(self, name: str):
        language = get_language_by_name(name)
        if language is None:
            raise ValueError(f"Language {name} not supported")
        return language

    def _snapshot(self, session: TypingSession) -> dict:
        return {
            "session_id": str(session.id),
            "state": session.state.value,
            "language": session.language.name,
            "file_path": session.file_path,
            "snippet": session.snippet,
            "position": session.position,
            "expected_character": session.expected_character,
            "metrics": session.calculate_metrics(burst_window=self.metrics_calculator.burst_window).model_dump(),
        }
