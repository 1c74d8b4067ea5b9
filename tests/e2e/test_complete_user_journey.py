"""
End-to-end tests for the typing practice user journey.

The journey covers:
1. Loading code (folder scan and browser upload)
2. Starting a session from a random file
3. Typing over REST, including errors and backspace
4. Typing the same kind of session live over the WebSocket
5. Statistics, history and leaderboard for the recorded sessions
"""

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect

from typespeed.application import api
from typespeed.domain.entities import CharacterRequest

PYTHON_SOURCE = "\n".join(
    [
        "def fibonacci(n):",
        "\tif n < 2:",
        "\t\treturn n",
        "\treturn fibonacci(n - 1) + fibonacci(n - 2)",
        "",
        "",
        "def main():",
        "\tfor i in range(10):",
        "\t\tprint(fibonacci(i))",
        "",
        "main()",
    ]
) + "\n"


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "projects"
    (root / "demo").mkdir(parents=True)
    (root / "demo" / "fib.py").write_text(PYTHON_SOURCE)
    return root


@pytest.fixture
def client(project, monkeypatch):
    """A client for the app with clean repositories and the project folder allowed."""
    monkeypatch.setattr(api.controller, "allowed_scan_paths", [str(project)])
    api.controller.code_file_repository.clear()
    api.controller.session_repository.clear()
    api.controller.statistics_repository.clear()
    api.rate_limiter.reset()

    with TestClient(api.app) as test_client:
        yield test_client


def receive_until(websocket, message_type):
    """Read messages until one of ``message_type`` arrives, skipping metrics ticks."""
    while True:
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
        assert message["type"] == "metrics.tick", message


def test_health_and_languages(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = client.get("/api/languages")
    assert response.status_code == 200
    names = {language["name"] for language in response.json()["languages"]}
    assert {"Python", "Go", "TypeScript"} <= names


def test_scan_rejects_paths_outside_allowed_folders(client, tmp_path):
    response = client.post("/api/scan", json={"folder_path": str(tmp_path)})

    assert response.status_code == 403


def test_scan_validates_request(client):
    response = client.post("/api/scan", json={"folder_path": "   "})

    assert response.status_code == 422


def test_start_without_files_is_not_found(client):
    response = client.post("/api/session/start", json={})

    assert response.status_code == 404


def test_unknown_session_is_not_found(client):
    response = client.get("/api/session/does-not-exist")

    assert response.status_code == 404


def test_empty_package_files_are_not_loaded(client, project):
    (project / "empty" / "pkg").mkdir(parents=True)
    (project / "empty" / "pkg" / "__init__.py").write_text("")

    response = client.post("/api/scan", json={"folder_path": str(project / "empty")})
    assert response.status_code == 200
    assert response.json()["files_loaded"] == 0
    assert response.json()["skipped"] == ["pkg/__init__.py"]

    response = client.post("/api/session/start", json={})
    assert response.status_code == 404
    assert response.json()["detail"].startswith("No code files loaded")


def test_internal_validation_errors_are_unprocessable():
    with pytest.raises(ValidationError) as exc_info:
        CharacterRequest(character="")

    error = api._http_error(exc_info.value, "submitting input")

    assert error.status_code == 422
    assert error.detail[0]["loc"] == ["character"]


def test_scan_burst_is_rate_limited(client, project):
    for _ in range(api.rate_limiter.scan_requests_per_minute):
        response = client.post("/api/scan", json={"folder_path": str(project)})
        assert response.status_code == 200

    response = client.post("/api/scan", json={"folder_path": str(project)})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"


def test_general_rate_limit(client, monkeypatch):
    monkeypatch.setattr(api.rate_limiter, "requests_per_minute", 3)

    statuses = [client.get("/api/languages").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]


def test_oversized_request_is_rejected(client):
    response = client.post("/api/scan", json={"folder_path": "x" * 200_000})

    assert response.status_code == 413


def test_security_headers(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "frame-src 'none'" in response.headers["Content-Security-Policy"]


def test_upload_files(client):
    response = client.post(
        "/api/files",
        files=[
            ("files", ("fib.py", PYTHON_SOURCE.encode(), "text/plain")),
            ("files", ("notes.txt", b"not code", "text/plain")),
        ],
    )

    assert response.status_code == 200
    data = response.json()
    assert data["files_loaded"] == 1
    assert data["skipped"] == ["notes.txt"]

    response = client.get("/api/files", params={"language": "python"})
    assert response.json()["count"] == 1
    assert response.json()["files"][0]["name"] == "fib.py"

    response = client.delete("/api/files")
    assert response.json() == {"cleared": 1}


def test_rest_typing_journey(client, project):
    # Step 1: scan the project folder
    response = client.post("/api/scan", json={"folder_path": str(project / "demo")})
    assert response.status_code == 200
    assert response.json()["files_loaded"] == 1

    # Step 2: start a session
    response = client.post("/api/session/start", json={"language": "Python", "max_lines": 20})
    assert response.status_code == 200
    session = response.json()
    session_id = session["session_id"]
    snippet = session["snippet"]
    assert session["state"] == "idle"
    assert "\t" not in snippet

    # Completing before the first keystroke is a state conflict
    response = client.post(f"/api/session/{session_id}/complete", json={"user_id": "alice"})
    assert response.status_code == 409

    # Step 3: a wrong keystroke, then a correction
    response = client.post(f"/api/session/{session_id}/input", json={"character": "x"})
    assert response.status_code == 200
    assert response.json()["input"]["is_correct"] is False
    assert response.json()["state"] == "active"

    response = client.post(f"/api/session/{session_id}/backspace")
    assert response.json()["moved"] is True
    assert response.json()["metrics"]["corrections"] == 1

    # Step 4: type the rest of the snippet
    expected = response.json()["expected_character"]
    while expected:
        response = client.post(f"/api/session/{session_id}/input", json={"character": expected})
        assert response.status_code == 200
        expected = response.json()["expected_character"]
    assert response.json()["state"] == "completed"
    assert response.json()["metrics"]["uncorrected_errors"] == 0

    # Input after completion is rejected
    response = client.post(f"/api/session/{session_id}/input", json={"character": "a"})
    assert response.status_code == 409

    # Step 5: record the session
    response = client.post(f"/api/session/{session_id}/complete", json={"user_id": "alice"})
    assert response.status_code == 200
    result = response.json()
    assert result["record"]["language"] == "Python"
    assert result["detailed_metrics"]["errors"]["most_common"] == ["d→x"]

    response = client.post(f"/api/session/{session_id}/complete", json={"user_id": "alice"})
    assert response.status_code == 409

    # Step 6: statistics
    response = client.get("/api/statistics/alice")
    assert response.status_code == 200
    statistics = response.json()
    assert statistics["total_sessions"] == 1
    assert statistics["most_practiced_language"] == "Python"
    assert statistics["personal_bests"]["Python"]["session_id"] == session_id

    response = client.get("/api/statistics/alice/history")
    assert len(response.json()["records"]) == 1

    response = client.get("/api/leaderboard")
    assert [entry["user_id"] for entry in response.json()["leaderboard"]] == ["alice"]

    response = client.delete("/api/statistics/alice")
    assert response.status_code == 200
    assert client.get("/api/statistics/alice").json()["total_sessions"] == 0


def test_complete_requires_valid_user_id(client, project):
    client.post("/api/scan", json={"folder_path": str(project)})
    session_id = client.post("/api/session/start", json={}).json()["session_id"]

    response = client.post(f"/api/session/{session_id}/complete", json={"user_id": "a b"})

    assert response.status_code == 422


def test_websocket_typing_journey(client, project):
    client.post("/api/scan", json={"folder_path": str(project)})
    session = client.post("/api/session/start", json={"max_lines": 10}).json()
    session_id = session["session_id"]

    with client.websocket_connect(f"/ws/session/{session_id}?user_id=bob") as websocket:
        ready = receive_until(websocket, "session.ready")
        assert ready["session_id"] == session_id
        assert ready["state"] == "idle"

        # Invalid messages are reported without closing the connection
        websocket.send_json({"type": "dance"})
        error = receive_until(websocket, "error")
        assert error["code"] == "INVALID_MESSAGE"

        expected = ready["expected_character"]
        while True:
            websocket.send_json({"type": "keystroke", "character": expected})
            result = receive_until(websocket, "keystroke.result")
            assert result["input"]["is_correct"] is True
            expected = result["expected_character"]
            if result["state"] == "completed":
                break

        completed = receive_until(websocket, "session.completed")
        assert completed["metrics"]["accuracy"] == 100.0
        assert completed["record"]["session_id"] == session_id

        websocket.send_json({"type": "keystroke", "character": "x"})
        error = receive_until(websocket, "error")
        assert error["code"] == "INVALID_STATE"

    response = client.get("/api/statistics/bob")
    assert response.json()["total_sessions"] == 1

    # The session was recorded over the WebSocket already
    response = client.post(f"/api/session/{session_id}/complete", json={"user_id": "bob"})
    assert response.status_code == 409


def test_websocket_unknown_session(client):
    with client.websocket_connect("/ws/session/missing") as websocket:
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "SESSION_NOT_FOUND"

        with pytest.raises(WebSocketDisconnect):
            websocket.receive_json()
