"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from ..domain.entities import CharacterRequest, CompleteSessionRequest, ScanRequest, StartSessionRequest
from ..domain.entities.api_messages import USER_ID_PATTERN
from ..domain.errors import InvalidSessionStateError, PathAccessError
from ..domain.interfaces.statistics_repository import StatisticsRepository
from ..domain.services import MetricsCalculator
from ..infrastructure.dynamodb_statistics_repository import DynamoDBStatisticsRepository
from ..infrastructure.local_code_file_repository import LocalCodeFileRepository
from ..infrastructure.local_session_repository import LocalSessionRepository
from ..infrastructure.local_statistics_repository import LocalStatisticsRepository
from ..infrastructure.project_scanner import ProjectScanner
from .config import settings
from .controller import TypeSpeedController
from .middleware import (
    RateLimiter,
    RateLimitMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _create_statistics_repository() -> StatisticsRepository:
    if settings.statistics_backend == "dynamodb":
        logger.info(f"Using DynamoDB statistics table {settings.statistics_table_name}")
        return DynamoDBStatisticsRepository(
            table_name=settings.statistics_table_name,
            region_name=settings.aws_region,
            history_limit=settings.statistics_history_limit,
        )
    return LocalStatisticsRepository(history_limit=settings.statistics_history_limit)


# Initialize repositories and controller with injected dependencies
controller = TypeSpeedController(
    session_repository=LocalSessionRepository(),
    code_file_repository=LocalCodeFileRepository(),
    statistics_repository=_create_statistics_repository(),
    scanner=ProjectScanner(max_depth=settings.max_scan_depth, max_file_size=settings.max_file_size),
    metrics_calculator=MetricsCalculator(burst_window=settings.burst_window_seconds),
    allowed_scan_paths=settings.allowed_scan_paths,
    default_snippet_lines=settings.default_snippet_lines,
    min_snippet_lines=settings.min_snippet_lines,
    max_snippet_lines=settings.max_snippet_lines,
    tick_interval=settings.metrics_tick_interval,
    session_timeout=settings.session_timeout_seconds,
    cleanup_interval=settings.session_cleanup_interval_seconds,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller.start_cleanup_task()
    logger.info(f"{settings.app_name} {settings.app_version} started")
    yield
    await controller.stop_cleanup_task()


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

rate_limiter = RateLimiter(
    requests_per_minute=settings.rate_limit_per_minute,
    scan_requests_per_minute=settings.scan_rate_limit_per_minute,
)

# The last middleware added runs first
app.add_middleware(
    RequestSizeLimitMiddleware,
    max_size=settings.max_request_size,
    max_upload_size=settings.max_upload_request_size,
)
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(SecurityHeadersMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.trusted_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


def _http_error(e: Exception, action: str) -> HTTPException:
    """Map a domain error to the HTTP error returned to the client."""
    if isinstance(e, InvalidSessionStateError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PathAccessError):
        logger.warning(f"Rejected path while {action}: {e}")
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ValidationError):
        logger.warning(f"Invalid data while {action}: {e.error_count()} errors")
        return HTTPException(
            status_code=422,
            detail=[{"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]} for error in e.errors()],
        )
    if isinstance(e, ValueError):
        return HTTPException(status_code=404, detail=str(e))

    logger.error(f"Error {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Internal server error")


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/api/languages")
async def get_languages():
    return {"languages": controller.get_languages()}


@app.post("/api/scan")
async def scan_folder(request: ScanRequest):
    """Scan an allowed folder on the server for source files.

    Returns:
        Number of files loaded, per-file errors and scan totals.
    """
    try:
        return await controller.scan_folder(request)
    except Exception as e:
        raise _http_error(e, f"scanning {request.folder_path}")


@app.post("/api/files")
async def upload_files(
    files: list[UploadFile] = File(...),
    replace: bool = Form(False),
):
    """Load source files selected in the browser."""
    try:
        uploads = [(upload.filename or "", await upload.read()) for upload in files]
        return controller.load_uploads(uploads, replace=replace)
    except Exception as e:
        raise _http_error(e, "loading uploaded files")


@app.get("/api/files")
async def list_files(language: Optional[str] = Query(None, description="Only files of this language")):
    try:
        files = controller.list_files(language)
        return {"files": files, "count": len(files)}
    except Exception as e:
        raise _http_error(e, "listing files")


@app.delete("/api/files")
async def clear_files():
    return {"cleared": controller.clear_files()}


@app.post("/api/session/start")
async def start_session(request: StartSessionRequest):
    """Create a typing session from a random loaded file.

    The snippet is picked from a file of the requested language (or any
    language) and is limited to ``max_lines`` lines, clamped to the
    configured bounds.
    """
    try:
        return await controller.start_session(request)
    except Exception as e:
        raise _http_error(e, "starting session")


@app.get("/api/session/{session_id}")
async def get_session(session_id: str):
    try:
        return await controller.get_session_snapshot(session_id)
    except Exception as e:
        raise _http_error(e, f"reading session {session_id}")


@app.post("/api/session/{session_id}/input")
async def submit_character(session_id: str, request: CharacterRequest):
    try:
        return await controller.submit_character(session_id, request.character)
    except Exception as e:
        raise _http_error(e, f"submitting input to session {session_id}")


@app.post("/api/session/{session_id}/backspace")
async def backspace(session_id: str):
    try:
        return await controller.backspace(session_id)
    except Exception as e:
        raise _http_error(e, f"applying backspace to session {session_id}")


@app.post("/api/session/{session_id}/reset")
async def reset_session(session_id: str):
    try:
        return await controller.reset_session(session_id)
    except Exception as e:
        raise _http_error(e, f"resetting session {session_id}")


@app.post("/api/session/{session_id}/complete")
async def complete_session(session_id: str, request: CompleteSessionRequest):
    """Finish a session and add it to the user's statistics."""
    try:
        return await controller.complete_session(session_id, request.user_id)
    except Exception as e:
        raise _http_error(e, f"completing session {session_id}")


@app.get("/api/statistics/{user_id}")
async def get_statistics(user_id: str):
    try:
        return await controller.get_statistics(user_id)
    except Exception as e:
        raise _http_error(e, f"getting statistics for user {user_id}")


@app.get("/api/statistics/{user_id}/history")
async def get_history(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    language: Optional[str] = Query(None),
):
    try:
        records = await controller.get_history(user_id, limit=limit, language=language)
        return {"user_id": user_id, "records": records}
    except Exception as e:
        raise _http_error(e, f"getting history for user {user_id}")


@app.delete("/api/statistics/{user_id}")
async def clear_statistics(user_id: str):
    try:
        await controller.clear_statistics(user_id)
        return {"user_id": user_id, "cleared": True}
    except Exception as e:
        raise _http_error(e, f"clearing statistics for user {user_id}")


@app.get("/api/leaderboard")
async def get_leaderboard(limit: int = Query(10, ge=1, le=100)):
    try:
        return {"leaderboard": await controller.get_leaderboard(limit)}
    except Exception as e:
        raise _http_error(e, "building leaderboard")


@app.websocket("/ws/session/{session_id}")
async def websocket_endpoint(
    websocket: WebSocket,
    session_id: str,
    user_id: str = Query("default", pattern=USER_ID_PATTERN),
):
    """
    WebSocket endpoint for live typing sessions.

    Client messages:
    - {"type": "keystroke", "character": "x"}
    - {"type": "backspace"}
    - {"type": "reset"}

    Server messages: session.ready, keystroke.result, cursor.update,
    metrics.tick, session.completed and error. A completed session is
    recorded in the statistics of ``user_id``.
    """
    await websocket.accept()

    try:
        await controller.handle_websocket_connection(
            websocket=websocket,
            session_id=session_id,
            user_id=user_id,
        )
    except Exception as e:
        logger.error(f"Error handling websocket connection: {e}", exc_info=True)
        try:
            await websocket.close()
        except RuntimeError:
            pass
