"""
Tagged code block extraction.

A README marks an executable code block by putting a hidden Markdown
comment on the line directly above its opening fence:

    [//]: # ({sst-run-unix})
    ```
    gcloud builds submit --tag=gcr.io/my-project/hello
    ```

The scanner is line based and rigid: no whitespace tolerance around the tag
or the fences and no alternate fence tokens. Untagged fenced blocks are
treated as ordinary prose.
"""

import logging
from enum import Enum
from typing import Iterable

from sample_tester.errors import (
    CodeBlockNotClosedError,
    CodeBlockStartNotFoundError,
    EOFAfterCodeTagError,
)

logger = logging.getLogger(__name__)


# ============================================================
# Markers
# ============================================================

CODE_TAG = "[//]: # ({sst-run-unix})"

FENCE = "```"

# Lines of one code block, in document order
CodeBlock = tuple[str, ...]


class ScanState(Enum):
    """Position of the scanner relative to a tagged block"""
    OUTSIDE = "outside"
    AFTER_TAG = "after_tag"
    IN_FENCE = "in_fence"


def is_code_tag(line: str) -> bool:
    """Whether ``line`` is exactly the code tag"""
    return line == CODE_TAG


def _strip_eol(line: str) -> str:
    """Drop a trailing line terminator, as left by file iteration"""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def extract_code_blocks(lines: Iterable[str]) -> list[CodeBlock]:
    """
    Extract the code blocks annotated with the code tag

    Args:
        lines: Markdown lines, read once in order (a file object works)

    Returns:
        Tagged code blocks in document order, possibly empty

    Raises:
        EOFAfterCodeTagError: input ended right after a tag
        CodeBlockStartNotFoundError: the line after a tag is not a fence
        CodeBlockNotClosedError: input ended inside a tagged block
    """
    blocks: list[CodeBlock] = []
    current: list[str] = []
    state = ScanState.OUTSIDE
    line_number = 0
    start_line = 0

    for raw in lines:
        line_number += 1
        line = _strip_eol(raw)

        if state is ScanState.OUTSIDE:
            if is_code_tag(line):
                state = ScanState.AFTER_TAG

        elif state is ScanState.AFTER_TAG:
            if line != FENCE:
                raise CodeBlockStartNotFoundError(line_number)
            current = []
            start_line = line_number
            state = ScanState.IN_FENCE

        elif state is ScanState.IN_FENCE:
            if line == FENCE:
                logger.debug(f"Found code block at line {start_line} with {len(current)} lines")
                blocks.append(tuple(current))
                state = ScanState.OUTSIDE
            else:
                current.append(line)

    if state is ScanState.AFTER_TAG:
        raise EOFAfterCodeTagError(line_number)
    if state is ScanState.IN_FENCE:
        raise CodeBlockNotClosedError(start_line)

    return blocks
