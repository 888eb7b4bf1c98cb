"""Process spawning for run candidates.

Uses asyncio subprocesses with argument vectors (never a shell), a
per-candidate wall-clock timeout and bounded output capture.
"""

import asyncio
import codecs
import os
import signal
from typing import List, Mapping, Optional, Sequence

import structlog

from ...config import (
    PLACEHOLDER_KEYS,
    Candidate,
    ExecutionConfig,
    PlaceholderError,
    settings,
)
from ...config.languages import PLACEHOLDER_PATTERN
from ...models import ExecutionResult

logger = structlog.get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024
# Time allowed for pipes to close after a forced kill
KILL_GRACE_SECONDS = 2.0


def substitute_placeholders(template: str, values: Mapping[str, str]) -> str:
    """Expand ``{file}``/``{exe}``/``{dir}`` in a command template.

    Raises:
        PlaceholderError: if the values map carries keys outside the closed
            set, or the template references a placeholder with no value
    """
    extra = set(values) - PLACEHOLDER_KEYS
    if extra:
        raise PlaceholderError(
            f"Unexpected placeholder value(s): {', '.join(sorted(extra))}"
        )

    def _replace(match):
        key = match.group(1)
        if key not in PLACEHOLDER_KEYS or key not in values:
            raise PlaceholderError(f"No value for placeholder {{{key}}} in {template!r}")
        return values[key]

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def materialize_candidate(candidate: Candidate, values: Mapping[str, str]) -> Candidate:
    """Return a copy of the candidate with every placeholder expanded."""
    return Candidate(
        command=substitute_placeholders(candidate.command, values),
        args=tuple(substitute_placeholders(arg, values) for arg in candidate.args),
    )


def normalize_exit_code(returncode: Optional[int]) -> int:
    """Map asyncio return codes to shell-style exit codes.

    A process killed by signal N is reported as 128 + N.
    """
    if returncode is None:
        return 0
    if returncode < 0:
        return 128 - returncode
    return returncode


class _BoundedText:
    """Accumulates decoded text up to a character limit.

    Keeps accepting (and discarding) input past the limit so the reader can
    keep draining the pipe.
    """

    def __init__(self, limit: int):
        self._limit = limit
        self._parts: List[str] = []
        self._length = 0
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.discarded = 0

    def feed(self, data: bytes, final: bool = False) -> None:
        text = self._decoder.decode(data, final=final)
        if not text:
            return
        room = self._limit - self._length
        if room <= 0:
            self.discarded += len(text)
            return
        if len(text) > room:
            self.discarded += len(text) - room
            text = text[:room]
        self._parts.append(text)
        self._length += len(text)

    def getvalue(self) -> str:
        return "".join(self._parts)


class ProcessRunner:
    """Spawns candidate commands and collects their results."""

    def __init__(self, config: Optional[ExecutionConfig] = None):
        config = config or settings.execution
        self._timeout = config.exec_timeout_seconds
        self._max_output = config.max_output_chars

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def max_output(self) -> int:
        return self._max_output

    async def run_command(
        self, candidate: Candidate, cwd: Optional[str] = None
    ) -> ExecutionResult:
        """Spawn one already-materialized candidate and wait for it.

        Args:
            candidate: Command and arguments with placeholders expanded
            cwd: Working directory for the child

        Returns:
            ExecutionResult; ``not_found`` is set only when the binary is missing
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                candidate.command,
                *candidate.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                start_new_session=os.name == "posix",  # own process group for kill
            )
        except FileNotFoundError:
            logger.debug("Candidate binary not found", command=candidate.command)
            return ExecutionResult(exit_code=127, not_found=True)
        except OSError as e:
            logger.warning(
                "Failed to start candidate",
                command=candidate.command,
                error=str(e),
            )
            return ExecutionResult(exit_code=1).with_stderr(str(e))

        stdout = _BoundedText(self._max_output)
        stderr = _BoundedText(self._max_output)
        readers = [
            asyncio.ensure_future(self._drain(proc.stdout, stdout)),
            asyncio.ensure_future(self._drain(proc.stderr, stderr)),
        ]
        waiter = asyncio.ensure_future(proc.wait())

        timed_out = False
        try:
            _, pending = await asyncio.wait(
                readers + [waiter], timeout=self._timeout
            )
            if pending:
                timed_out = True
                self._kill(proc)
                _, pending = await asyncio.wait(pending, timeout=KILL_GRACE_SECONDS)
                for task in pending:
                    task.cancel()
                if proc.returncode is None:
                    await proc.wait()
                logger.warning(
                    "Candidate timed out",
                    command=candidate.command,
                    timeout=self._timeout,
                )
        except asyncio.CancelledError:
            # Caller went away; do not leave the child running
            self._kill(proc)
            for task in readers + [waiter]:
                task.cancel()
            raise

        if stdout.discarded or stderr.discarded:
            logger.info(
                "Output capped",
                command=candidate.command,
                stdout_discarded=stdout.discarded,
                stderr_discarded=stderr.discarded,
            )

        return ExecutionResult(
            exit_code=normalize_exit_code(proc.returncode),
            stdout=stdout.getvalue(),
            stderr=stderr.getvalue(),
            timed_out=timed_out,
            not_found=False,
        )

    async def run_candidates(
        self,
        candidates: Sequence[Candidate],
        values: Mapping[str, str],
        cwd: Optional[str] = None,
    ) -> ExecutionResult:
        """Try candidates in order, moving on only when a binary is missing.

        A candidate that starts is terminal for the list, whatever its exit
        status. The result is the last attempted candidate's result, or a
        not-found result when the list is empty.
        """
        last = ExecutionResult.nothing_ran()
        for candidate in candidates:
            resolved = materialize_candidate(candidate, values)
            last = await self.run_command(resolved, cwd=cwd)
            if not last.not_found:
                break
            logger.debug("Falling back to next candidate", command=resolved.command)
        return last

    @staticmethod
    async def _drain(stream: Optional[asyncio.StreamReader], sink: _BoundedText) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                sink.feed(b"", final=True)
                return
            sink.feed(chunk)

    @staticmethod
    def _kill(proc: asyncio.subprocess.Process) -> None:
        """Force-kill the process (and its group on POSIX)."""
        if os.name == "posix":
            try:
                os.killpg(proc.pid, signal.SIGKILL)
                return
            except (ProcessLookupError, PermissionError):
                pass
        try:
            proc.kill()
        except ProcessLookupError:
            pass
