"""Subprocess execution for the helm and kubectl wrappers.

Every call to an external tool goes through CommandRunner.run, which
turns exit codes, missing executables and timeouts into a CommandResult.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


class CommandRunner:
    """Runs one external command per call.

    All specialized command modules (Helm, kubectl) use this runner for
    actual command execution. Commands never raise on a non-zero exit
    code; callers inspect the returned CommandResult.
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Commands run from working_dir, or the current directory when None."""
        self.working_dir = working_dir

    def which(self, tool: str) -> str | None:
        """Resolve a tool on PATH, returning its location or None."""
        return shutil.which(tool)

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to the runner's working_dir)
            capture_output: Whether to capture stdout/stderr
            timeout: Hard limit in seconds for the subprocess itself

        Returns:
            CommandResult; never raises for a failed command
        """
        argv = list(cmd)
        logger.debug("Running: {}", " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                cwd=cwd or self.working_dir,
                capture_output=capture_output,
                text=True,
                check=False,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            logger.debug("Executable not found: {}", exc)
            return CommandResult(success=False, stderr=str(exc), returncode=127)
        except subprocess.TimeoutExpired:
            logger.debug("Command timed out after {}s: {}", timeout, argv[0])
            return CommandResult(
                success=False,
                stderr=f"{argv[0]} timed out after {timeout}s",
                returncode=124,
            )

        logger.debug("Exit code {} from {}", result.returncode, argv[0])
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
