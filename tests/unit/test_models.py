"""Unit tests for run request/response models and results."""

import pytest

from pairrun.models import Completed, ExecutionResult, RunRequest, RunResponse


class TestRunRequest:
    """Tests for reading request bodies."""

    def test_object_payload(self):
        request = RunRequest.from_payload({"code": "print(1)", "language": "python"})
        assert request.code == "print(1)"
        assert request.language == "python"

    @pytest.mark.parametrize("payload", [None, [], "print(1)", 42, True])
    def test_non_object_payload_reads_as_empty(self, payload):
        """Anything but a JSON object yields empty fields."""
        request = RunRequest.from_payload(payload)
        assert request.code == ""
        assert request.language == ""

    def test_non_string_fields_read_as_empty(self):
        request = RunRequest.from_payload({"code": ["x"], "language": None})
        assert request.code == ""
        assert request.language == ""

    def test_extra_fields_ignored(self):
        request = RunRequest.from_payload({"code": "x", "language": "c", "stdin": "1"})
        assert request.code == "x"


class TestExecutionResult:
    def test_with_stderr_appends(self):
        result = ExecutionResult(exit_code=1, stderr="first\n")
        updated = result.with_stderr("second")
        assert updated.stderr == "first\nsecond"
        assert updated.exit_code == 1
        assert result.stderr == "first\n"

    def test_succeeded(self):
        assert ExecutionResult(exit_code=0).succeeded
        assert not ExecutionResult(exit_code=0, timed_out=True).succeeded
        assert not ExecutionResult(exit_code=2).succeeded
        assert Completed(result=ExecutionResult(exit_code=0)).ok


class TestRunResponse:
    def test_camel_case_content(self):
        body = RunResponse(ok=False, exit_code=3, timed_out=True).to_content()
        assert body == {
            "ok": False,
            "exitCode": 3,
            "timedOut": True,
            "stdout": "",
            "stderr": "",
        }
