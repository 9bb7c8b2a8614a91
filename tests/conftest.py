"""
Global pytest configuration and fixtures.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

import pytest
import yaml

from deploycfg.core.config.models import SystemConfigModel

_BASE_CONFIG: dict[str, Any] = {
    "prefix": "genai-chatbot",
    "enableWaf": False,
    "createCMKs": False,
    "retainOnDelete": False,
    "ddbDeletionProtection": False,
    "enableS3TransferAcceleration": False,
    "advancedMonitoring": False,
    "logRetention": 7,
    "rateLimitPerIP": 400,
    "privateWebsite": False,
    "certificate": "",
    "domain": "",
    "logArchiveBucketName": "central-log-archive",
    "cfGeoRestrictEnable": False,
    "cfGeoRestrictList": [],
    "vpc": {
        "vpcId": "vpc-0123456789abcdef0",
        "createVpcEndpoints": True,
        "subnetIds": ["subnet-0123456789abcdef0"],
    },
    "bedrock": {"enabled": True, "region": "us-east-1", "roleArn": ""},
    "llms": {"sagemaker": [], "rateLimitPerIP": 100},
    "rag": {
        "enabled": True,
        "deployDefaultSagemakerModels": False,
        "crossEncodingEnabled": False,
        "engines": {
            "aurora": {"enabled": False},
            "opensearch": {"enabled": True},
            "kendra": {"enabled": False, "createIndex": False, "external": [], "enterprise": False},
            "knowledgeBase": {"enabled": False, "external": []},
        },
        "embeddingsModels": [
            {
                "provider": "bedrock",
                "name": "amazon.titan-embed-text-v1",
                "dimensions": 1536,
                "default": True,
            },
            {"provider": "bedrock", "name": "amazon.titan-embed-image-v1", "dimensions": 1024},
            {"provider": "openai", "name": "text-embedding-ada-002", "dimensions": 1536},
        ],
        "crossEncoderModels": [
            {"provider": "sagemaker", "name": "cross-encoder/ms-marco-MiniLM-L-12-v2", "default": True}
        ],
    },
}


@pytest.fixture
def base_config_data() -> dict[str, Any]:
    """A base configuration document as written by the setup wizard."""
    return copy.deepcopy(_BASE_CONFIG)


@pytest.fixture
def base_config(base_config_data: dict[str, Any]) -> SystemConfigModel:
    return SystemConfigModel.model_validate(base_config_data)


@pytest.fixture
def base_config_file(tmp_path: Path, base_config_data: dict[str, Any]) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(base_config_data, indent=2))
    return path


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Write a manifest document into tmp_path and return its path."""

    def _write(document: Any, name: str = "deployment-manifest.yaml") -> Path:
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document)
        else:
            path.write_text(yaml.safe_dump(document, sort_keys=False))
        return path

    return _write


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's environment from leaking into manifest lookup."""
    for var in ("DEPLOYMENT_MANIFEST", "DEPLOYCFG_BASE_CONFIG", "DEPLOYCFG_DEBUG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_logging_levels():
    """CLI tests reconfigure logging globally; undo it after each test."""
    root_logger = logging.getLogger()
    root_level = root_logger.level
    root_handlers = root_logger.handlers[:]
    yield
    root_logger.setLevel(root_level)
    for handler in root_logger.handlers[:]:
        if handler not in root_handlers:
            root_logger.removeHandler(handler)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("deploycfg"):
            logging.getLogger(name).setLevel(logging.NOTSET)
