"""
Lifecycle resolution for a sample directory

Samples document their build and deploy steps in README.md. A sample whose
README is missing, or carries no tagged code blocks, is built and deployed
with the default Cloud Build + Cloud Run lifecycle.
"""

import io
import logging
from pathlib import Path
from typing import Mapping, Optional, Union

from sample_tester.lifecycle.lifecycle import Lifecycle, extract_lifecycle, read_readme
from sample_tester.parsing.commands import GCLOUD, QUIET_FLAG, Command
from sample_tester.parsing.markdown import find_fenced_blocks

logger = logging.getLogger(__name__)

README_NAME = "README.md"


def default_lifecycle(service_name: str, image_ref: str) -> Lifecycle:
    """Build the image with Cloud Build, then deploy it to Cloud Run"""
    return Lifecycle([
        Command(GCLOUD, (QUIET_FLAG, "builds", "submit", f"--tag={image_ref}")),
        Command(GCLOUD, (
            QUIET_FLAG, "run", "deploy", service_name,
            f"--image={image_ref}",
            "--platform=managed",
        )),
    ])


def new_lifecycle(
    sample_dir: Union[str, Path],
    service_name: str,
    image_ref: str,
    env: Optional[Mapping[str, str]] = None,
) -> Lifecycle:
    """
    Resolve the lifecycle of a sample

    Args:
        sample_dir: Sample directory, expected to contain README.md
        service_name: Cloud Run service name
        image_ref: Container image reference
        env: Environment used for ``${NAME}`` expansion (default: os.environ)

    Returns:
        The README lifecycle, or the default lifecycle if the README has none

    Raises:
        ReadmeReadError: the README cannot be read as UTF-8 text
        ReadmeParseError: the README has malformed tagged blocks
    """
    readme_path = Path(sample_dir) / README_NAME

    if not readme_path.is_file():
        logger.info(f"No {README_NAME} in {sample_dir}, using default lifecycle")
        return default_lifecycle(service_name, image_ref)

    content = read_readme(readme_path)
    lifecycle = extract_lifecycle(io.StringIO(content), service_name, image_ref, env)
    if len(lifecycle) > 0:
        logger.info(f"Using {len(lifecycle)} commands from {readme_path}")
        return lifecycle

    shell_blocks = [
        b for b in find_fenced_blocks(content)
        if b.is_shell
    ]
    if shell_blocks:
        lines = ", ".join(str(b.line_number) for b in shell_blocks)
        logger.warning(
            f"{readme_path} has {len(shell_blocks)} untagged shell code blocks "
            f"(lines {lines}); using default lifecycle"
        )
    else:
        logger.info(f"No tagged code blocks in {readme_path}, using default lifecycle")

    return default_lifecycle(service_name, image_ref)
