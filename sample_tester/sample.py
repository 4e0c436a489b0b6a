"""
Sample module: one deployable sample directory

Resolves what a test run needs to know about a sample:
1. a unique Cloud Run service name derived from the directory name
2. the Container Registry image reference to build and deploy
3. the lifecycle that builds and deploys it
"""

import logging
import os
import random
import re
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from sample_tester.errors import ConfigurationError
from sample_tester.lifecycle import Lifecycle, new_lifecycle
from sample_tester.sandbox import CommandExecutor, ExecutionResult

logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

# Cloud Run service names: lowercase letters, digits and dashes, starting
# with a letter, at most 63 characters
SERVICE_NAME_MAX_LENGTH = 63

SUFFIX_LENGTH = 8

SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]+")

REGISTRY_HOST = "gcr.io"

PROJECT_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT")


# ============================================================
# Names
# ============================================================

def random_suffix(rng: Optional[random.Random] = None) -> str:
    """Random lowercase alphanumeric suffix"""
    rng = rng or random.Random()
    return "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))


def service_name_for(sample_dir: Union[str, Path], suffix: str) -> str:
    """
    Derive a valid Cloud Run service name from a sample directory

    Args:
        sample_dir: Sample directory; only its last component is used
        suffix: Suffix making the name unique

    Returns:
        ``<normalised directory name>-<suffix>``
    """
    base = Path(sample_dir).name.lower()
    base = INVALID_NAME_CHARS.sub("-", base)
    base = re.sub(r"-{2,}", "-", base)
    base = base.lstrip("-0123456789")

    max_base = SERVICE_NAME_MAX_LENGTH - len(suffix) - 1
    base = base[:max_base].rstrip("-") or "sample"

    return f"{base}-{suffix}"


def image_ref_for(project_id: str, service_name: str) -> str:
    """Container Registry image reference of a service"""
    return f"{REGISTRY_HOST}/{project_id}/{service_name}"


def resolve_project(
    project_id: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Project from the argument, else from the environment"""
    if project_id:
        return project_id

    env = os.environ if env is None else env
    for name in PROJECT_ENV_VARS:
        if env.get(name):
            return env[name]

    raise ConfigurationError(
        f"no Google Cloud project given; pass --project or set {PROJECT_ENV_VARS[0]}"
    )


# ============================================================
# Sample
# ============================================================

@dataclass
class Sample:
    """
    A sample under test

    Attributes:
        dir: Absolute sample directory
        service_name: Cloud Run service the sample is deployed to
        image_ref: Container image built from the sample
        lifecycle: Commands that build and deploy the sample
    """
    dir: Path
    service_name: str
    image_ref: str
    lifecycle: Lifecycle

    @classmethod
    def from_dir(
        cls,
        sample_dir: Union[str, Path],
        project_id: Optional[str] = None,
        service_name: Optional[str] = None,
        image_ref: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "Sample":
        """
        Set up a sample from its directory

        Service name and image reference are generated unless given.

        Raises:
            ConfigurationError: the directory does not exist, or no project
                is available to build the image reference
            ReadmeReadError: the README cannot be read as UTF-8 text
            ReadmeParseError: the README has malformed tagged blocks
        """
        path = Path(sample_dir).resolve()
        if not path.is_dir():
            raise ConfigurationError(f"sample directory does not exist: {sample_dir}")

        service_name = service_name or service_name_for(path, random_suffix())
        if not image_ref:
            image_ref = image_ref_for(resolve_project(project_id, env), service_name)

        logger.info(f"Sample {path.name}: service {service_name}, image {image_ref}")

        return cls(
            dir=path,
            service_name=service_name,
            image_ref=image_ref,
            lifecycle=new_lifecycle(path, service_name, image_ref, env),
        )

    def build_deploy(self, executor: Optional[CommandExecutor] = None) -> list[ExecutionResult]:
        """Run the sample's lifecycle in its directory"""
        return self.lifecycle.execute(self.dir, executor)
