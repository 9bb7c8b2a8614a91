"""Deployment configuration resolution.

The base configuration is loaded by the caller, a deployment manifest is
located and validated, and the manifest is merged on top. Each stage lives in
its own module:

- locator: finds and parses the manifest
- validator: schema checks and cross-field refinements
- merge: applies a validated manifest and records every change
- resolver: runs the stages in order
"""

from .errors import (
    BaseConfigError,
    ConfigResolutionError,
    ManifestParseError,
    ManifestReadError,
    ManifestValidationError,
    MergeInvariantError,
)
from .resolver import ResolvedConfig, load_config, resolve_config

__all__ = [
    "BaseConfigError",
    "ConfigResolutionError",
    "ManifestParseError",
    "ManifestReadError",
    "ManifestValidationError",
    "MergeInvariantError",
    "ResolvedConfig",
    "load_config",
    "resolve_config",
]
