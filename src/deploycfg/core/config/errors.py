"""Exceptions raised while resolving the deployment configuration.

Absence of a deployment manifest is never an error. Everything below is
fatal for a resolution call and is surfaced to the caller unchanged; nothing
in this package retries.
"""

from collections.abc import Sequence
from pathlib import Path

from deploycfg.core.config._types import FieldError


class ConfigResolutionError(Exception):
    """Base class for all configuration resolution failures."""


class ManifestReadError(ConfigResolutionError):
    """The deployment manifest exists but could not be read."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read deployment manifest {path}: {reason}")


class ManifestParseError(ConfigResolutionError):
    """The deployment manifest is not well-formed YAML."""

    def __init__(self, path: Path | None, reason: str):
        self.path = path
        self.reason = reason
        location = f" {path}" if path else ""
        super().__init__(f"Failed to parse YAML file{location}: {reason}")


class ManifestValidationError(ConfigResolutionError):
    """The deployment manifest violates one or more schema rules.

    Attributes:
        errors: Every violation found, in report order
        path: The manifest file, when the document came from disk
    """

    def __init__(self, errors: Sequence[FieldError], path: Path | None = None):
        self.errors = list(errors)
        self.path = path
        super().__init__(self.format_report())

    def format_report(self) -> str:
        header = "Deployment manifest validation failed"
        if self.path is not None:
            header += f" ({self.path})"
        lines = [f"{header}:"]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)


class BaseConfigError(ConfigResolutionError):
    """The base configuration document is missing, malformed or incomplete."""


class MergeInvariantError(ConfigResolutionError):
    """A validated manifest produced an inconsistent configuration.

    This indicates a gap between the manifest schema and the configuration
    model, not an operator mistake.
    """
