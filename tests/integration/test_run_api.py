"""Integration tests for the run endpoint."""

import sys

import pytest

from pairrun.config import Candidate, DirectSpec

SQL_REASON = "SQL needs a concrete DB engine/connection."


class TestRunValidation:
    """Requests rejected before anything is spawned."""

    def test_empty_code(self, run_code):
        response = run_code("python", "")
        assert response.status_code == 400
        assert response.json() == {"error": "Code is empty."}

    def test_whitespace_code(self, run_code):
        response = run_code("python", "   \n")
        assert response.status_code == 400
        assert response.json()["error"] == "Code is empty."

    def test_unknown_language(self, run_code):
        response = run_code("brainfuck", "+++.")
        assert response.status_code == 400
        assert response.json() == {"error": "Unsupported language."}

    def test_empty_code_reported_before_unknown_language(self, run_code):
        response = run_code("brainfuck", "")
        assert response.json()["error"] == "Code is empty."

    def test_non_string_fields(self, client, session_headers):
        """Wrong-typed fields are treated as missing."""
        response = client.post(
            "/api/run",
            json={"language": "python", "code": 42},
            headers=session_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Code is empty."

    def test_missing_fields(self, client, session_headers):
        response = client.post("/api/run", json={}, headers=session_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Code is empty."

    @pytest.mark.parametrize(
        "body",
        [b"null", b"[]", b"\"print(1)\"", b"42", b""],
        ids=["null", "array", "string", "number", "empty"],
    )
    def test_non_object_body(self, client, session_headers, body):
        """Well-formed JSON that is not an object reads as empty fields."""
        response = client.post(
            "/api/run",
            content=body,
            headers=dict(session_headers, **{"Content-Type": "application/json"}),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Code is empty."}

    def test_malformed_body(self, client, session_headers):
        response = client.post(
            "/api/run",
            content=b"{not json",
            headers=dict(session_headers, **{"Content-Type": "application/json"}),
        )
        assert response.status_code == 422
        assert response.json()["error_type"] == "validation"

    def test_unsupported_language(self, run_code, run_dispatcher):
        """Unsupported languages answer 400 with a run-shaped body."""
        response = run_code("sql", "SELECT 1;")
        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "exitCode": 2,
            "timedOut": False,
            "stdout": "",
            "stderr": SQL_REASON,
            "error": SQL_REASON,
        }
        assert run_dispatcher.workspaces.list_workspaces() == []


class TestRunExecution:
    """Requests that reach a toolchain."""

    def test_direct_success(self, run_code, host_languages, run_dispatcher):
        response = run_code("python", "print(1 + 1)")
        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "exitCode": 0,
            "timedOut": False,
            "stdout": "2\n",
            "stderr": "",
        }
        assert run_dispatcher.workspaces.list_workspaces() == []

    def test_program_failure_is_200(self, run_code, host_languages):
        """A failing program is a successful request with ok false."""
        response = run_code("python", "import sys\nsys.stderr.write('boom')\nsys.exit(3)")
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["exitCode"] == 3
        assert body["stderr"] == "boom"
        assert "error" not in body

    def test_missing_runtime(self, run_code, patch_languages):
        patch_languages({
            "python": DirectSpec(
                ext="py", candidates=(Candidate("pair-run-test-no-such-binary", ("{file}",)),)
            )
        })
        response = run_code("python", "print(1)")
        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "exitCode": 127,
            "timedOut": False,
            "stdout": "",
            "stderr": "",
            "error": "No installed runtime found for python.",
        }

    def test_compiled_success(self, run_code, host_languages):
        response = run_code("c", "print('built')")
        assert response.status_code == 200
        assert response.json()["stdout"] == "built\n"
        assert response.json()["ok"] is True

    def test_compile_failure_is_200(self, run_code, host_languages):
        response = run_code("c", "def broken(:\n")
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["exitCode"] != 0
        assert "SyntaxError" in body["stderr"]

    def test_missing_compiler(self, run_code, patch_languages, compiled_spec_factory):
        patch_languages({"c": compiled_spec_factory(compiler_missing=True)})
        response = run_code("c", "print(1)")
        assert response.status_code == 400
        assert response.json()["error"] == "No installed compiler found for c."
        assert response.json()["exitCode"] == 127

    def test_missing_runtime_after_compile(
        self, run_code, patch_languages, compiled_spec_factory
    ):
        patch_languages({"c": compiled_spec_factory(runtime_missing=True)})
        response = run_code("c", "print(1)")
        assert response.status_code == 400
        assert response.json()["error"] == "Compiled c, but executable runtime is missing."

    def test_interpreter_fallback(self, run_code, patch_languages):
        """The first installed candidate wins."""
        patch_languages({
            "ruby": DirectSpec(
                ext="rb",
                candidates=(
                    Candidate("pair-run-test-no-such-binary", ("{file}",)),
                    Candidate(sys.executable, ("{file}",)),
                ),
            )
        })
        response = run_code("ruby", "print('fallback')")
        assert response.status_code == 200
        assert response.json()["stdout"] == "fallback\n"


class TestLanguagesAndHealth:
    def test_languages_listing(self, client):
        """The registry listing needs no session."""
        response = client.get("/api/languages")
        assert response.status_code == 200
        languages = response.json()["languages"]
        assert len(languages) == 50
        sql = next(lang for lang in languages if lang["id"] == "sql")
        assert sql == {
            "id": "sql",
            "kind": "unsupported",
            "ext": "sql",
            "filename": "main.sql",
            "reason": SQL_REASON,
        }

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "pair-run"
        assert body["languages"] == 50
        assert 0 < body["executable_languages"] < 50
