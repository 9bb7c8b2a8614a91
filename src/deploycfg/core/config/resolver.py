from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from deploycfg.core.config._types import ChangeRecord
from deploycfg.core.config.base_config import load_base_config
from deploycfg.core.config.locator import find_manifest_file, read_manifest
from deploycfg.core.config.merge import merge_manifest
from deploycfg.core.config.models import DeploymentManifestModel, SystemConfigModel
from deploycfg.core.config.validator import validate_manifest

logger = logging.getLogger(__name__)

__all__ = ["ResolvedConfig", "load_config", "resolve_config"]


@dataclass
class ResolvedConfig:
    """Outcome of a resolution call.

    ``manifest_path`` and ``manifest`` are None when no deployment manifest
    was found, in which case ``config`` is the base configuration itself.
    """

    config: SystemConfigModel
    changes: list[ChangeRecord] = field(default_factory=list)
    manifest_path: Path | None = None
    manifest: DeploymentManifestModel | None = None


def resolve_config(
    load_base: Callable[[], SystemConfigModel],
    manifest_path: Path | None = None,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ResolvedConfig:
    """Resolve the deployment configuration.

    Priority: deployment manifest > base configuration > defaults.

    Args:
        load_base: Returns the base configuration
        manifest_path: Use this manifest instead of searching for one
        cwd: Directory to search for the manifest
        env: Environment used to locate the manifest

    Returns:
        The resolved configuration and the changes the manifest applied

    Raises:
        ManifestReadError: If the manifest cannot be read
        ManifestParseError: If the manifest is not valid YAML
        ManifestValidationError: If the manifest breaks any rule
    """
    base = load_base()

    if manifest_path is None:
        manifest_path = find_manifest_file(cwd=cwd, env=env)
    if manifest_path is None:
        logger.info("No deployment manifest found, using base configuration only")
        return ResolvedConfig(config=base)

    logger.info("Loading deployment manifest: %s", manifest_path)
    document = read_manifest(manifest_path)
    manifest = validate_manifest(document, source=manifest_path)
    logger.info("Deployment manifest validated successfully")
    logger.info('Deployment prefix: "%s"', manifest.prefix)

    result = merge_manifest(base, manifest)
    return ResolvedConfig(
        config=result.config,
        changes=result.changes,
        manifest_path=manifest_path,
        manifest=manifest,
    )


def load_config(
    load_base: Callable[[], SystemConfigModel] = load_base_config,
    manifest_path: Path | None = None,
) -> SystemConfigModel:
    """Resolve and return only the final configuration."""
    return resolve_config(load_base, manifest_path).config
