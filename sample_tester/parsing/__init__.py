"""
Parsing layer

Extracts tagged code blocks from a README and compiles them into commands.
"""

from sample_tester.parsing.codeblocks import (
    CODE_TAG,
    FENCE,
    CodeBlock,
    ScanState,
    extract_code_blocks,
    is_code_tag,
)
from sample_tester.parsing.commands import (
    Command,
    SubstitutionContext,
    expand_env,
    substitute,
    to_commands,
)
from sample_tester.parsing.markdown import FencedBlock, find_fenced_blocks

__all__ = [
    # codeblocks
    "CODE_TAG",
    "FENCE",
    "CodeBlock",
    "ScanState",
    "extract_code_blocks",
    "is_code_tag",
    # commands
    "Command",
    "SubstitutionContext",
    "expand_env",
    "substitute",
    "to_commands",
    # markdown
    "FencedBlock",
    "find_fenced_blocks",
]
