"""Per-run workspace lifecycle.

Each run gets its own directory under the workspace root holding the
submitted source and, for compiled languages, the produced executable.
"""

import asyncio
import os
import shutil
import sys
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

import structlog

from ...config import ExecutionConfig, LanguageSpec, get_source_filename, settings

logger = structlog.get_logger(__name__)


def executable_name(platform: Optional[str] = None) -> str:
    """Name of the build output for the target OS."""
    platform = platform or sys.platform
    return "program.exe" if platform.startswith("win") else "program"


@dataclass
class Workspace:
    """Handle for one run's temporary directory."""

    workspace_id: str
    directory: Path
    source_path: Path
    executable_path: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def placeholder_values(self) -> Dict[str, str]:
        """Values for the ``{file}``, ``{exe}`` and ``{dir}`` placeholders."""
        return {
            "file": str(self.source_path),
            "exe": str(self.executable_path),
            "dir": str(self.directory),
        }


class WorkspaceManager:
    """Creates and removes run workspaces."""

    def __init__(self, config: Optional[ExecutionConfig] = None):
        self._config = config or settings.execution
        self._root = Path(self._config.get_workspace_root())
        self._prefix = self._config.workspace_prefix

    @property
    def root(self) -> Path:
        return self._root

    def materialize(self, source_code: str, spec: LanguageSpec) -> Workspace:
        """Create a workspace directory and write the source into it.

        Args:
            source_code: Submitted code, written verbatim as UTF-8
            spec: Language spec deciding the source file name

        Returns:
            Workspace with the resolved source and executable paths
        """
        workspace_id = uuid.uuid4().hex
        directory = self._root / f"{self._prefix}{workspace_id}"
        directory.mkdir(parents=True, exist_ok=False)

        workspace = Workspace(
            workspace_id=workspace_id,
            directory=directory,
            source_path=directory / get_source_filename(spec),
            executable_path=directory / executable_name(),
        )

        try:
            # newline="" keeps the submitted line endings intact
            with open(workspace.source_path, "w", encoding="utf-8", newline="") as f:
                f.write(source_code)
        except Exception:
            self.destroy(workspace)
            raise

        logger.debug(
            "Created workspace",
            workspace_id=workspace_id[:12],
            source_file=workspace.source_path.name,
        )
        return workspace

    def destroy(self, workspace: Workspace) -> bool:
        """Remove a workspace directory tree.

        Never raises: a failed removal is logged and reported as False so it
        cannot mask the run result.
        """
        try:
            if workspace.directory.exists():
                shutil.rmtree(workspace.directory)
            logger.debug("Destroyed workspace", workspace_id=workspace.workspace_id[:12])
            return True
        except Exception as e:
            logger.warning(
                "Failed to destroy workspace",
                workspace_id=workspace.workspace_id[:12],
                directory=str(workspace.directory),
                error=str(e),
            )
            return False

    @asynccontextmanager
    async def workspace(
        self, source_code: str, spec: LanguageSpec
    ) -> AsyncIterator[Workspace]:
        """Materialize a workspace for the duration of the block.

        Directory creation and removal run in a worker thread so a large
        tree does not stall other runs on the event loop.
        """
        ws = await asyncio.to_thread(self.materialize, source_code, spec)
        try:
            yield ws
        finally:
            await asyncio.to_thread(self.destroy, ws)

    def list_workspaces(self):
        """Workspace directories currently present under the root."""
        if not self._root.is_dir():
            return []
        return sorted(
            entry.path
            for entry in os.scandir(self._root)
            if entry.is_dir() and entry.name.startswith(self._prefix)
        )
