"""Run dispatcher: resolves a language, runs its phases, normalizes the outcome."""

import asyncio
import time
from typing import Optional

import structlog

from ...config import (
    CompileSpec,
    ExecutionConfig,
    LanguageSpec,
    UnsupportedSpec,
    get_language,
    settings,
)
from ...models import (
    PHASE_COMPILE,
    PHASE_RUN,
    CompileFailed,
    Completed,
    ExecutionResult,
    Rejected,
    RunOutcome,
    RunResponse,
    ToolMissing,
    ToolNotFoundError,
    UnsupportedLanguageError,
    ValidationError,
)
from .process import ProcessRunner
from .workspace import Workspace, WorkspaceManager

logger = structlog.get_logger(__name__)

EMPTY_CODE_MESSAGE = "Code is empty."
UNKNOWN_LANGUAGE_MESSAGE = "Unsupported language."
UNSUPPORTED_EXIT_CODE = 2


class RunDispatcher:
    """Runs submitted code for a registry language.

    Each call owns a fresh workspace that is removed before the call returns.
    """

    def __init__(
        self,
        config: Optional[ExecutionConfig] = None,
        runner: Optional[ProcessRunner] = None,
        workspaces: Optional[WorkspaceManager] = None,
    ):
        config = config or settings.execution
        self._runner = runner or ProcessRunner(config)
        self._workspaces = workspaces or WorkspaceManager(config)
        self._semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(config.max_concurrent_runs)
            if config.max_concurrent_runs > 0
            else None
        )

    @property
    def workspaces(self) -> WorkspaceManager:
        return self._workspaces

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    def validate(self, language_id: str, source_code: str) -> LanguageSpec:
        """Check a request before any resources are allocated.

        Raises:
            ValidationError: empty code or unrecognized language
        """
        if not isinstance(source_code, str) or not source_code.strip():
            raise ValidationError(EMPTY_CODE_MESSAGE)
        spec = get_language(language_id)
        if spec is None:
            raise ValidationError(UNKNOWN_LANGUAGE_MESSAGE)
        return spec

    async def run(self, language_id: str, source_code: str) -> RunOutcome:
        """Execute source code and return the structured outcome."""
        try:
            spec = self.validate(language_id, source_code)
        except ValidationError as e:
            return Rejected(reason=e.message)

        if isinstance(spec, UnsupportedSpec):
            logger.info("Rejected unsupported language", language=language_id)
            return Rejected(reason=spec.reason)

        if self._semaphore is None:
            return await self._execute(language_id, source_code, spec)
        async with self._semaphore:
            return await self._execute(language_id, source_code, spec)

    async def _execute(
        self, language_id: str, source_code: str, spec: LanguageSpec
    ) -> RunOutcome:
        start = time.perf_counter()
        async with self._workspaces.workspace(source_code, spec) as ws:
            outcome = await self._run_phases(spec, ws)

        logger.info(
            "Run finished",
            language=language_id,
            workspace_id=ws.workspace_id[:12],
            outcome=type(outcome).__name__,
            exit_code=getattr(getattr(outcome, "result", None), "exit_code", None),
            timed_out=getattr(getattr(outcome, "result", None), "timed_out", False),
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return outcome

    async def _run_phases(self, spec: LanguageSpec, ws: Workspace) -> RunOutcome:
        values = ws.placeholder_values()
        cwd = str(ws.directory)

        if isinstance(spec, CompileSpec):
            compiled = await self._runner.run_candidates(spec.compile, values, cwd=cwd)
            if compiled.not_found:
                return ToolMissing(phase=PHASE_COMPILE, result=compiled)
            if compiled.exit_code != 0 or compiled.timed_out:
                return CompileFailed(result=compiled)
            candidates = spec.run
        else:
            candidates = spec.candidates

        result = await self._runner.run_candidates(candidates, values, cwd=cwd)
        if result.not_found:
            return ToolMissing(phase=PHASE_RUN, result=result)
        return Completed(result=result)


def _result_response(result: ExecutionResult, ok: bool) -> RunResponse:
    return RunResponse(
        ok=ok,
        exit_code=result.exit_code,
        timed_out=result.timed_out,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def tool_missing_message(language_id: str, spec: LanguageSpec, phase: str) -> str:
    """Message for a phase with no installed tool."""
    if not isinstance(spec, CompileSpec):
        return f"No installed runtime found for {language_id}."
    if phase == PHASE_COMPILE:
        return f"No installed compiler found for {language_id}."
    return f"Compiled {language_id}, but executable runtime is missing."


def outcome_to_response(language_id: str, outcome: RunOutcome) -> RunResponse:
    """Map a successful-path outcome to the response body.

    Raises:
        ValidationError: the request itself was invalid
        UnsupportedLanguageError: the language is never executed
        ToolNotFoundError: no candidate binary exists for a phase
    """
    spec = get_language(language_id)

    if isinstance(outcome, Rejected):
        if isinstance(spec, UnsupportedSpec):
            body = RunResponse(
                ok=False,
                exit_code=UNSUPPORTED_EXIT_CODE,
                timed_out=False,
                stdout="",
                stderr=outcome.reason,
                error=outcome.reason,
            )
            raise UnsupportedLanguageError(
                language_id, outcome.reason, payload=body.to_content()
            )
        raise ValidationError(outcome.reason)

    if isinstance(outcome, ToolMissing):
        message = tool_missing_message(language_id, spec, outcome.phase)
        direct = not isinstance(spec, CompileSpec)
        body = RunResponse(
            ok=False,
            error=message,
            exit_code=127,
            timed_out=False,
            stdout="" if direct else outcome.result.stdout,
            stderr="" if direct else outcome.result.stderr,
        )
        raise ToolNotFoundError(
            language_id, outcome.phase, message, payload=body.to_content()
        )

    if isinstance(outcome, CompileFailed):
        return _result_response(outcome.result, ok=False)

    return _result_response(outcome.result, ok=outcome.ok)
