"""
Exception hierarchy for the sample tester.

Parse errors are raised while scanning a README or compiling its code
blocks; execution errors are raised while running a lifecycle. The CLI is
the only layer that turns them into console output and exit codes.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from sample_tester.parsing.commands import Command


class SampleTesterError(Exception):
    """Base class for every error raised by this package"""
    pass


class ConfigurationError(SampleTesterError):
    """A required setting (project, service name, image) is missing or invalid"""
    pass


class ReadmeReadError(ConfigurationError):
    """A README exists but cannot be read as UTF-8 text"""

    def __init__(self, path: Union[str, Path], cause: Exception):
        super().__init__(f"cannot read README {path}: {cause}")
        self.path = path
        self.cause = cause


# ============================================================
# Parse errors
# ============================================================

class ReadmeParseError(SampleTesterError):
    """
    Base class for README scanning and compiling errors

    Attributes:
        line_number: 1-based line where the problem was detected, if known
    """

    message = "README parse error"

    def __init__(self, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is None:
            super().__init__(self.message)
        else:
            super().__init__(f"{self.message} (line {line_number})")


class EOFAfterCodeTagError(ReadmeParseError):
    """Input ended right after a code tag line"""
    message = "unexpected end of input after code tag"


class CodeBlockStartNotFoundError(ReadmeParseError):
    """The line after a code tag is not a fence"""
    message = "code block did not start immediately after code tag"


class CodeBlockNotClosedError(ReadmeParseError):
    """A tagged code block was opened but never closed"""
    message = "code block not closed before end of input"


class CodeBlockEndAfterLineContError(ReadmeParseError):
    """The last line of a code block ends with a line continuation"""
    message = "unexpected end of code block after line continuation"


# ============================================================
# Execution errors
# ============================================================

class LifecycleExecutionError(SampleTesterError):
    """A lifecycle command could not be run to a successful end"""

    def __init__(self, message: str, command: Optional["Command"] = None):
        super().__init__(message)
        self.command = command


class CommandFailedError(LifecycleExecutionError):
    """A command exited with a non-zero status"""

    def __init__(self, command: "Command", exit_code: int):
        super().__init__(f"command `{command}` exited with status {exit_code}", command)
        self.exit_code = exit_code


class CommandSpawnError(LifecycleExecutionError):
    """A command's executable could not be started"""

    def __init__(self, command: "Command", cause: OSError):
        super().__init__(f"could not start `{command}`: {cause}", command)
        self.cause = cause
