"""Lifecycle command runner.

Runs one command at a time as an external process:
- argv execution, never through a shell
- Inherited stdout/stderr
- Dry-run mode that only logs what would run
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
import subprocess
import time
from typing import Any, Mapping, Optional

from sample_tester.parsing.commands import Command

logger = logging.getLogger(__name__)


class ExecutionStatus(Enum):
    """Command execution status."""
    SUCCESS = "success"
    FAILED = "failed"
    SPAWN_ERROR = "spawn_error"
    SKIPPED = "skipped"


@dataclass
class ExecutorConfig:
    """Executor configuration."""
    dry_run: bool = False                       # Log commands without running them
    env: Optional[Mapping[str, str]] = None     # Child environment (default: inherited)


@dataclass
class ExecutionResult:
    """Result of command execution."""
    command: Command
    exit_code: int
    duration_ms: int
    status: ExecutionStatus
    error: Optional[OSError] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status in (ExecutionStatus.SUCCESS, ExecutionStatus.SKIPPED)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "command": self.command.argv,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "error": str(self.error) if self.error else None,
        }


class CommandExecutor:
    """Runs lifecycle commands in a working directory."""

    def __init__(self, config: ExecutorConfig | None = None):
        """Initialize executor with configuration."""
        self.config = config or ExecutorConfig()

    def run(self, command: Command, working_dir: Path) -> ExecutionResult:
        """
        Run a command to completion.

        Args:
            command: Command to run
            working_dir: Working directory

        Returns:
            ExecutionResult with execution details
        """
        if self.config.dry_run:
            logger.info(f"[dry-run] {command}")
            return ExecutionResult(
                command=command,
                exit_code=0,
                duration_ms=0,
                status=ExecutionStatus.SKIPPED,
            )

        logger.info(f"Running: {command}")
        start_time = time.time()

        try:
            result = subprocess.run(
                command.argv,
                cwd=working_dir,
                env=dict(self.config.env) if self.config.env is not None else None,
            )
        except OSError as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"Could not start {command.name}: {e}")
            return ExecutionResult(
                command=command,
                exit_code=-1,
                duration_ms=duration_ms,
                status=ExecutionStatus.SPAWN_ERROR,
                error=e,
            )

        duration_ms = int((time.time() - start_time) * 1000)

        if result.returncode == 0:
            status = ExecutionStatus.SUCCESS
        else:
            status = ExecutionStatus.FAILED
            logger.error(f"Command exited with status {result.returncode}: {command}")

        return ExecutionResult(
            command=command,
            exit_code=result.returncode,
            duration_ms=duration_ms,
            status=status,
        )
