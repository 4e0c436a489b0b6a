"""Command execution module.

This module runs lifecycle commands as external processes.
"""

from sample_tester.sandbox.executor import (
    CommandExecutor,
    ExecutionResult,
    ExecutionStatus,
    ExecutorConfig,
)

__all__ = [
    "CommandExecutor",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutorConfig",
]
