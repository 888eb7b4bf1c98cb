"""Fixtures for exercising the FastAPI app in-process."""

import pytest
from fastapi.testclient import TestClient

from pairrun.dependencies import get_run_dispatcher
from pairrun.main import app

ORIGIN = "http://testserver"


@pytest.fixture
def client(run_dispatcher):
    """TestClient whose run endpoint uses a dispatcher rooted in tmp_path."""
    app.dependency_overrides[get_run_dispatcher] = lambda: run_dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def session_headers(client):
    """Headers a same-origin page sends after receiving its session cookies."""
    response = client.get("/health")
    assert response.status_code == 200
    return {
        "Origin": ORIGIN,
        "x-api-auth": client.cookies.get("__api_auth"),
        "x-csrf-token": client.cookies.get("__csrf_token"),
    }


@pytest.fixture
def run_code(client, session_headers):
    """POST /api/run as the editor page would."""

    def _run(language, code):
        return client.post(
            "/api/run",
            json={"language": language, "code": code},
            headers=session_headers,
        )

    return _run
