import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from deploycfg.core.config.errors import ManifestParseError, ManifestReadError

logger = logging.getLogger(__name__)

__all__ = ["MANIFEST_ENV_VAR", "MANIFEST_FILENAMES", "find_manifest_file", "read_manifest"]

MANIFEST_ENV_VAR = "DEPLOYMENT_MANIFEST"
MANIFEST_FILENAMES = ("deployment-manifest.yaml", "deployment-manifest.yml")


def find_manifest_file(
    cwd: Path | None = None, env: Mapping[str, str] | None = None
) -> Path | None:
    """Find the deployment manifest, if there is one.

    Candidates are checked in priority order and the first path that exists
    wins, even when it is not a readable file (read_manifest reports that):
    1. The path named by the DEPLOYMENT_MANIFEST environment variable
    2. deployment-manifest.yaml in the working directory
    3. deployment-manifest.yml in the working directory

    Args:
        cwd: Directory to search instead of the current working directory
        env: Environment to read instead of ``os.environ``

    Returns:
        Path to the manifest, or None when no candidate exists
    """
    if cwd is None:
        cwd = Path.cwd()
    if env is None:
        env = os.environ

    candidates: list[Path] = []
    explicit = env.get(MANIFEST_ENV_VAR)
    if explicit:
        explicit_path = Path(explicit)
        candidates.append(explicit_path if explicit_path.is_absolute() else cwd / explicit_path)
    candidates.extend(cwd / name for name in MANIFEST_FILENAMES)

    for candidate in candidates:
        if candidate.exists():
            logger.debug("Found deployment manifest at %s", candidate)
            return candidate
        logger.debug("No deployment manifest at %s", candidate)

    return None


def read_manifest(path: Path) -> Any:
    """Read and parse a deployment manifest without validating it.

    Raises:
        ManifestReadError: If the file cannot be read
        ManifestParseError: If the content is not valid YAML
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(path, str(exc)) from exc

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ManifestParseError(path, str(exc)) from exc
