import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError

from deploycfg.core.config.errors import BaseConfigError
from deploycfg.core.config.models import SystemConfigModel

logger = logging.getLogger(__name__)

__all__ = ["BASE_CONFIG_ENV_VAR", "DEFAULT_BASE_CONFIG_PATH", "get_base_config_path", "load_base_config"]

BASE_CONFIG_ENV_VAR = "DEPLOYCFG_BASE_CONFIG"
DEFAULT_BASE_CONFIG_PATH = Path("bin") / "config.json"


def get_base_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Path of the base configuration: DEPLOYCFG_BASE_CONFIG or bin/config.json."""
    if env is None:
        env = os.environ
    return Path(env.get(BASE_CONFIG_ENV_VAR) or DEFAULT_BASE_CONFIG_PATH)


def load_base_config(path: Path | None = None) -> SystemConfigModel:
    """Load the base configuration written by the setup wizard.

    Args:
        path: Optional path to the JSON document. Defaults to get_base_config_path().

    Returns:
        The base configuration

    Raises:
        BaseConfigError: If the file is missing, is not JSON, or is incomplete
    """
    if path is None:
        path = get_base_config_path()

    if not path.exists():
        raise BaseConfigError(f"Base configuration not found at {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise BaseConfigError(f"Failed to parse base configuration {path}: {exc}") from exc
    except OSError as exc:
        raise BaseConfigError(f"Failed to read base configuration {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise BaseConfigError(f"Base configuration {path} must be a JSON object")

    try:
        config = SystemConfigModel.model_validate(data)
    except ValidationError as exc:
        raise BaseConfigError(f"Invalid base configuration {path}: {exc}") from exc

    logger.info("Loaded base configuration from %s", path)
    return config
