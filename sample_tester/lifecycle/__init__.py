"""
Lifecycle layer

Assembles README commands into an ordered lifecycle and runs it.
"""

from sample_tester.lifecycle.lifecycle import (
    Lifecycle,
    extract_lifecycle,
    parse_readme,
    read_readme,
)
from sample_tester.lifecycle.defaults import (
    README_NAME,
    default_lifecycle,
    new_lifecycle,
)

__all__ = [
    # lifecycle
    "Lifecycle",
    "extract_lifecycle",
    "parse_readme",
    "read_readme",
    # defaults
    "README_NAME",
    "default_lifecycle",
    "new_lifecycle",
]
