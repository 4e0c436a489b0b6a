"""
Fenced code block census

Uses markdown-it-py to find every fenced code block of a README, tagged or
not. Extraction itself is done by the line scanner in ``codeblocks``; this
module only feeds diagnostics (e.g. a README whose shell blocks were never
tagged).
"""

from dataclasses import dataclass

from markdown_it import MarkdownIt

# Info strings treated as shell code
SHELL_LANGUAGES = {"bash", "shell", "sh", "zsh", "console", ""}


@dataclass
class FencedBlock:
    """
    A fenced code block found by markdown-it

    Attributes:
        language: info string of the fence (may be empty)
        content: block content
        line_number: 1-based line of the opening fence
    """
    language: str
    content: str
    line_number: int

    @property
    def is_shell(self) -> bool:
        return self.language.lower() in SHELL_LANGUAGES


def find_fenced_blocks(content: str) -> list[FencedBlock]:
    """Return every fenced code block of a Markdown document, in order"""
    md = MarkdownIt()
    blocks: list[FencedBlock] = []

    for token in md.parse(content):
        if token.type != 'fence':
            continue
        language = token.info.strip() if token.info else ""
        line_num = token.map[0] + 1 if token.map else 1
        blocks.append(FencedBlock(
            language=language,
            content=token.content,
            line_number=line_num,
        ))

    return blocks
