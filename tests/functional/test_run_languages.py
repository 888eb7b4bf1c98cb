"""Functional tests for running snippets on a live server."""

import time

import pytest


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_returns_200(self, async_client):
        """Health endpoint returns 200 OK."""
        response = await async_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_session_cookies_issued(self, async_client):
        """The first response hands out both session cookies."""
        assert len(async_client.cookies.get("__api_auth", "")) == 64
        assert len(async_client.cookies.get("__csrf_token", "")) == 64


class TestLanguageExecution:
    """Test POST /api/run across installed toolchains."""

    @pytest.mark.asyncio
    async def test_language_execution(self, async_client, session_headers, language_test_case):
        """Each language runs and prints the expected sum, or reports a missing tool."""
        start = time.perf_counter()
        response = await async_client.post(
            "/api/run",
            headers=session_headers,
            json={"code": language_test_case["code"], "language": language_test_case["lang"]},
        )
        latency = time.perf_counter() - start
        data = response.json()

        if response.status_code == 400 and data.get("exitCode") == 127:
            pytest.skip(data["error"])

        assert response.status_code == 200, (
            f"Failed for {language_test_case['lang']}: {response.text}"
        )
        assert data["ok"] is True, data
        assert language_test_case["expected_output"] in data["stdout"], (
            f"Expected '{language_test_case['expected_output']}' in stdout for "
            f"{language_test_case['lang']}, got: {data['stdout']}"
        )
        assert latency < 30.0, f"Execution took {latency:.1f}s, expected < 30s"


class TestRunErrors:
    @pytest.mark.asyncio
    async def test_unsupported_language(self, async_client, session_headers):
        response = await async_client.post(
            "/api/run", headers=session_headers, json={"code": "SELECT 1;", "language": "sql"}
        )
        assert response.status_code == 400
        data = response.json()
        assert data["exitCode"] == 2
        assert data["error"] == "SQL needs a concrete DB engine/connection."

    @pytest.mark.asyncio
    async def test_empty_code(self, async_client, session_headers):
        response = await async_client.post(
            "/api/run", headers=session_headers, json={"code": "  ", "language": "python"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Code is empty."}

    @pytest.mark.asyncio
    async def test_cross_origin_blocked(self, async_client, session_headers):
        headers = dict(session_headers, Origin="http://evil.example")
        response = await async_client.post(
            "/api/run", headers=headers, json={"code": "print(1)", "language": "python"}
        )
        assert response.status_code == 403
