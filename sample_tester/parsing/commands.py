"""Compile tagged code blocks into commands.

Each code block goes through:
- Line continuation joining (trailing backslash)
- Environment variable expansion (``${NAME}``)
- Whitespace tokenization (no quoting, no pipes)
- Substitution of the Cloud Run service name and container image
"""

from dataclasses import dataclass, field
import logging
import os
import re
from typing import Mapping, Optional, Sequence

from sample_tester.errors import CodeBlockEndAfterLineContError

logger = logging.getLogger(__name__)


LINE_CONT = "\\"

GCLOUD = "gcloud"

QUIET_FLAG = "--quiet"

DEPLOY_VERBS = ("deploy", "update")

# ${NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

# gcr.io/... or us.gcr.io/..., either the whole token or after a `--flag=`;
# the value of `--image gcr.io/...` is a whole token and is replaced too
REGISTRY_REF_PATTERN = re.compile(r"(?:^|(?<==))(?:[a-z0-9-]+\.)?gcr\.io/\S*")


@dataclass(frozen=True)
class Command:
    """A command invocation: executable name plus argument vector."""
    name: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.name, *self.args]

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class SubstitutionContext:
    """Values substituted into compiled commands.

    An empty ``service_name`` or ``image_ref`` disables that substitution.
    ``env`` defaults to the process environment.
    """
    service_name: str = ""
    image_ref: str = ""
    env: Optional[Mapping[str, str]] = field(default=None, compare=False)

    def lookup(self, name: str) -> str:
        env = os.environ if self.env is None else self.env
        return env.get(name, "")


def to_commands(
    code_block: Sequence[str],
    service_name: str,
    image_ref: str,
    env: Optional[Mapping[str, str]] = None,
) -> list[Command]:
    """
    Compile one code block into commands.

    Args:
        code_block: Raw lines of the block
        service_name: Cloud Run service name to deploy to
        image_ref: Container Registry image reference to build and deploy
        env: Environment used for ``${NAME}`` expansion (default: os.environ)

    Returns:
        One command per non-empty logical line, in order

    Raises:
        CodeBlockEndAfterLineContError: the block ends with a continuation
    """
    ctx = SubstitutionContext(service_name=service_name, image_ref=image_ref, env=env)
    commands = []

    for line in _join_continuation_lines(code_block):
        tokens = expand_env(line, ctx.lookup).split()
        if not tokens:
            continue

        command = substitute(Command(tokens[0], tuple(tokens[1:])), ctx)
        logger.debug(f"Compiled command: {command}")
        commands.append(command)

    return commands


def _join_continuation_lines(code_block: Sequence[str]) -> list[str]:
    """Join lines ending with a backslash onto the following line."""
    logical = []
    current = ""

    for line in code_block:
        if line.endswith(LINE_CONT):
            current += line[:-len(LINE_CONT)]
            continue
        logical.append(current + line)
        current = ""

    if code_block and code_block[-1].endswith(LINE_CONT):
        raise CodeBlockEndAfterLineContError()

    return logical


def expand_env(line: str, lookup) -> str:
    """Replace every ``${NAME}`` with ``lookup(NAME)``."""
    return ENV_VAR_PATTERN.sub(lambda m: lookup(m.group(1)), line)


def substitute(command: Command, ctx: SubstitutionContext) -> Command:
    """
    Apply the Cloud Run substitutions to a command.

    - ``gcloud`` commands get ``--quiet`` so they never prompt
    - ``run services deploy|update X`` gets X replaced by the service name
    - Container Registry references get replaced by the image reference,
      keeping any ``--flag=`` prefix

    Substituting an already substituted command returns it unchanged.
    """
    args = list(command.args)

    if command.name == GCLOUD and (not args or args[0] != QUIET_FLAG):
        args.insert(0, QUIET_FLAG)

    if ctx.service_name:
        i = _service_name_index(args)
        if i is not None:
            args[i] = ctx.service_name

    if ctx.image_ref:
        args = [_replace_registry_ref(arg, ctx.image_ref) for arg in args]

    return Command(command.name, tuple(args))


def _service_name_index(args: list[str]) -> Optional[int]:
    """Index of the positional after `run services deploy|update`, if any."""
    for i in range(len(args) - 3):
        if args[i] == "run" and args[i + 1] == "services" and args[i + 2] in DEPLOY_VERBS:
            return i + 3
    return None


def _replace_registry_ref(token: str, image_ref: str) -> str:
    match = REGISTRY_REF_PATTERN.search(token)
    if not match:
        return token
    return token[:match.start()] + image_ref
