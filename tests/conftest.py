"""Pytest configuration and shared fixtures."""

import os
import sys
from typing import Dict
from unittest.mock import patch

import pytest

# Set test environment before importing config
# Use setdefault to allow environment variables to override defaults
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("ENFORCE_ORIGIN_POLICY", "true")
os.environ.setdefault("ENFORCE_API_AUTH", "true")

from pairrun.config import Candidate, CompileSpec, DirectSpec, ExecutionConfig
from pairrun.config import languages as languages_module
from pairrun.services import ProcessRunner, RunDispatcher, WorkspaceManager

PYTHON = sys.executable
MISSING_BINARY = "pair-run-test-no-such-binary"

# Checks the source parses as Python, then "links" it by copying to the output
FAKE_COMPILER = (
    "import shutil, sys\n"
    "src = open(sys.argv[1], encoding='utf-8').read()\n"
    "compile(src, sys.argv[1], 'exec')\n"
    "shutil.copyfile(sys.argv[1], sys.argv[2])\n"
)


def host_python_spec() -> DirectSpec:
    """A python entry that falls back from a missing binary to this interpreter."""
    return DirectSpec(
        ext="py",
        candidates=(
            Candidate(MISSING_BINARY, ("{file}",)),
            Candidate(PYTHON, ("{file}",)),
        ),
    )


def fake_compiled_spec(compiler_missing=False, runtime_missing=False) -> CompileSpec:
    """A compiled entry whose toolchain is the current interpreter."""
    compiler = MISSING_BINARY if compiler_missing else PYTHON
    runtime = MISSING_BINARY if runtime_missing else PYTHON
    return CompileSpec(
        ext="c",
        filename="main.c",
        compile=(Candidate(compiler, ("-c", FAKE_COMPILER, "{file}", "{exe}")),),
        run=(Candidate(runtime, ("{exe}",)),),
    )


@pytest.fixture
def compiled_spec_factory():
    """Factory for compiled entries backed by the current interpreter."""
    return fake_compiled_spec


@pytest.fixture
def patch_languages():
    """Temporarily replace registry entries; yields a setter."""
    with patch.dict(languages_module._LANGUAGE_TABLE):

        def _set(entries: Dict[str, object]) -> None:
            languages_module._LANGUAGE_TABLE.update(entries)

        yield _set


@pytest.fixture
def host_languages(patch_languages):
    """Point python and c at toolchains that exist on every test host."""
    patch_languages({"python": host_python_spec(), "c": fake_compiled_spec()})


@pytest.fixture
def execution_config(tmp_path) -> ExecutionConfig:
    """Execution settings with workspaces under the test's tmp dir."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return ExecutionConfig(
        exec_timeout_seconds=10.0,
        max_output_chars=200_000,
        workspace_root=str(root),
        workspace_prefix="pair-run-test-",
        max_concurrent_runs=0,
    )


@pytest.fixture
def process_runner(execution_config) -> ProcessRunner:
    return ProcessRunner(execution_config)


@pytest.fixture
def workspace_manager(execution_config) -> WorkspaceManager:
    return WorkspaceManager(execution_config)


@pytest.fixture
def run_dispatcher(execution_config, process_runner, workspace_manager) -> RunDispatcher:
    return RunDispatcher(
        config=execution_config, runner=process_runner, workspaces=workspace_manager
    )
