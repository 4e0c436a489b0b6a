"""
Lifecycle assembly and execution

A lifecycle is the ordered list of commands extracted from every tagged
code block of a README. It is built once and run from top to bottom,
stopping at the first command that fails.
"""

import io
import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Union

from sample_tester.errors import CommandFailedError, CommandSpawnError, ReadmeReadError
from sample_tester.parsing.codeblocks import extract_code_blocks
from sample_tester.parsing.commands import Command, to_commands
from sample_tester.sandbox.executor import (
    CommandExecutor,
    ExecutionResult,
    ExecutionStatus,
)

logger = logging.getLogger(__name__)


class Lifecycle(Sequence[Command]):
    """Immutable ordered sequence of commands"""

    __slots__ = ("_commands",)

    def __init__(self, commands: Iterable[Command] = ()):
        self._commands = tuple(commands)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Lifecycle(self._commands[index])
        return self._commands[index]

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __eq__(self, other) -> bool:
        if isinstance(other, Lifecycle):
            return self._commands == other._commands
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._commands)

    def __repr__(self) -> str:
        return f"Lifecycle({list(self._commands)!r})"

    def execute(
        self,
        working_dir: Union[str, Path],
        executor: Optional[CommandExecutor] = None,
    ) -> list[ExecutionResult]:
        """
        Run every command in order inside ``working_dir``

        Args:
            working_dir: Directory the commands run in
            executor: Command runner (default: a plain CommandExecutor)

        Returns:
            The result of every command that ran

        Raises:
            CommandFailedError: a command exited with a non-zero status
            CommandSpawnError: a command could not be started
        """
        executor = executor or CommandExecutor()
        working_dir = Path(working_dir)
        results = []

        for i, command in enumerate(self._commands, start=1):
            logger.debug(f"Step {i}/{len(self._commands)}: {command}")
            result = executor.run(command, working_dir)
            results.append(result)

            if result.status is ExecutionStatus.SPAWN_ERROR:
                raise CommandSpawnError(command, result.error)
            if result.status is ExecutionStatus.FAILED:
                raise CommandFailedError(command, result.exit_code)

        return results


def extract_lifecycle(
    lines: Iterable[str],
    service_name: str,
    image_ref: str,
    env: Optional[Mapping[str, str]] = None,
) -> Lifecycle:
    """
    Build a lifecycle from the tagged code blocks of a Markdown document

    Args:
        lines: Markdown lines, read once in order
        service_name: Cloud Run service name substituted into deploy commands
        image_ref: Container image reference substituted into registry URLs
        env: Environment used for ``${NAME}`` expansion (default: os.environ)

    Raises:
        ReadmeParseError: scanning or compiling a block failed
    """
    commands: list[Command] = []
    for block in extract_code_blocks(lines):
        commands.extend(to_commands(block, service_name, image_ref, env))
    return Lifecycle(commands)


def read_readme(path: Union[str, Path]) -> str:
    """
    Read a README as UTF-8 text

    Raises:
        ReadmeReadError: the file is missing, unreadable or not UTF-8
    """
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ReadmeReadError(path, e) from e


def parse_readme(
    path: Union[str, Path],
    service_name: str,
    image_ref: str,
    env: Optional[Mapping[str, str]] = None,
) -> Lifecycle:
    """Build a lifecycle from a README file"""
    lifecycle = extract_lifecycle(io.StringIO(read_readme(path)), service_name, image_ref, env)
    logger.debug(f"Parsed {len(lifecycle)} commands from {path}")
    return lifecycle
