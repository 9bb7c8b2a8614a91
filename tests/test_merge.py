import logging

import pytest

from deploycfg.core.config._types import UNDEFINED, ChangeRecord
from deploycfg.core.config.errors import MergeInvariantError
from deploycfg.core.config.merge import merge_manifest
from deploycfg.core.config.models import DeploymentManifestModel, SystemConfigModel
from deploycfg.core.config.validator import validate_manifest


def _merge(base: SystemConfigModel, document: dict):
    return merge_manifest(base, validate_manifest(document))


def _changes_for(result, path: str) -> list[ChangeRecord]:
    return [change for change in result.changes if change.path == path]


def test_prefix_only_manifest_changes_only_prefix(base_config: SystemConfigModel):
    result = _merge(base_config, {"prefix": "prod-cb"})

    expected = base_config.to_document()
    expected["prefix"] = "prod-cb"
    assert result.config.to_document() == expected
    assert result.changes == [ChangeRecord(path="prefix", old="genai-chatbot", new="prod-cb")]


def test_scalar_override(base_config: SystemConfigModel):
    result = _merge(base_config, {"prefix": "genai-chatbot", "enableWaf": True})

    assert result.config.enable_waf is True
    assert result.config.create_cmks is False
    assert _changes_for(result, "enableWaf") == [
        ChangeRecord(path="enableWaf", old=False, new=True)
    ]


def test_unchanged_value_is_still_recorded(base_config: SystemConfigModel):
    result = _merge(base_config, {"prefix": "genai-chatbot", "enableWaf": False})

    assert [change.path for change in result.changes] == ["prefix", "enableWaf"]
    assert str(_changes_for(result, "enableWaf")[0]) == "enableWaf: false → false"


def test_field_missing_from_base(base_config: SystemConfigModel):
    result = _merge(base_config, {"prefix": "genai-chatbot", "disableS3AccessLogs": True})

    change = _changes_for(result, "disableS3AccessLogs")[0]
    assert change.old is UNDEFINED
    assert change.to_dict() == {"path": "disableS3AccessLogs", "new": True}
    assert str(change) == "disableS3AccessLogs: undefined → true"
    assert result.config.disable_s3_access_logs is True


def test_null_base_value_is_kept_in_change_log(base_config_data: dict):
    base_config_data["domain"] = None
    base = SystemConfigModel.model_validate(base_config_data)

    result = _merge(base, {"prefix": "genai-chatbot", "domain": "chat.example.com"})

    change = _changes_for(result, "domain")[0]
    assert change.to_dict() == {"path": "domain", "old": None, "new": "chat.example.com"}
    assert str(change) == "domain: null → chat.example.com"


def test_group_is_merged_field_by_field(base_config: SystemConfigModel):
    result = _merge(
        base_config,
        {"prefix": "genai-chatbot", "vpc": {"subnetIds": ["subnet-11111111", "subnet-22222222"]}},
    )

    vpc = result.config.vpc
    assert vpc.vpc_id == "vpc-0123456789abcdef0"
    assert vpc.create_vpc_endpoints is True
    assert vpc.subnet_ids == ["subnet-11111111", "subnet-22222222"]
    assert [change.path for change in result.changes] == ["prefix", "vpc.subnetIds"]


def test_list_is_replaced_wholesale(base_config: SystemConfigModel):
    assert len(base_config.rag.embeddings_models) == 3

    result = _merge(
        base_config,
        {
            "prefix": "genai-chatbot",
            "rag": {
                "embeddingsModels": [
                    {"provider": "bedrock", "name": "cohere.embed-english-v3", "dimensions": 1024}
                ]
            },
        },
    )

    models = result.config.rag.embeddings_models
    assert len(models) == 1
    assert models[0].name == "cohere.embed-english-v3"
    change = _changes_for(result, "rag.embeddingsModels")[0]
    assert len(change.old) == 3
    assert change.new == [
        {"provider": "bedrock", "name": "cohere.embed-english-v3", "dimensions": 1024}
    ]


def test_untouched_groups_keep_their_extra_keys(base_config: SystemConfigModel):
    result = _merge(
        base_config,
        {"prefix": "genai-chatbot", "rag": {"engines": {"opensearch": {"enabled": False}, "knowledgeBase": {"enabled": True}}}},
    )

    document = result.config.to_document()
    assert document["llms"] == {"sagemaker": [], "rateLimitPerIP": 100}
    assert document["rag"]["engines"]["aurora"] == {"enabled": False}
    assert document["rag"]["engines"]["kendra"]["createIndex"] is False
    assert document["rag"]["engines"]["opensearch"] == {"enabled": False}
    assert document["rag"]["engines"]["knowledgeBase"] == {"enabled": True, "external": []}


def test_missing_group_is_created(base_config_data: dict):
    del base_config_data["vpc"]
    base = SystemConfigModel.model_validate(base_config_data)

    result = _merge(base, {"prefix": "genai-chatbot", "vpc": {"vpcId": "vpc-12345678"}})

    assert result.config.to_document()["vpc"] == {"vpcId": "vpc-12345678"}
    assert _changes_for(result, "vpc.vpcId")[0].old is UNDEFINED


def test_missing_guardrails_group_is_seeded(base_config: SystemConfigModel):
    result = _merge(
        base_config,
        {"prefix": "genai-chatbot", "bedrock": {"guardrails": {"enabled": True, "identifier": "abc123", "version": "2"}}},
    )

    bedrock = result.config.to_document()["bedrock"]
    assert bedrock == {
        "enabled": True,
        "region": "us-east-1",
        "roleArn": "",
        "guardrails": {"enabled": True, "identifier": "abc123", "version": "2"},
    }
    assert _changes_for(result, "bedrock.guardrails.enabled") == [
        ChangeRecord(path="bedrock.guardrails.enabled", old=False, new=True)
    ]
    assert _changes_for(result, "bedrock.guardrails.identifier")[0].old == ""


def test_disabling_guardrails_keeps_seeded_identity(base_config: SystemConfigModel):
    result = _merge(base_config, {"prefix": "genai-chatbot", "bedrock": {"guardrails": {"enabled": False}}})

    guardrails = result.config.bedrock.guardrails
    assert guardrails.enabled is False
    assert guardrails.identifier == ""
    assert guardrails.version == ""


def test_pipeline_replaces_base_atomically(base_config_data: dict):
    base_config_data["pipeline"] = {
        "enabled": True,
        "codecommit": {"existingRepositoryName": "legacy-config"},
        "branch": "develop",
        "requireApproval": False,
    }
    base = SystemConfigModel.model_validate(base_config_data)

    result = _merge(
        base,
        {
            "prefix": "genai-chatbot",
            "pipeline": {
                "enabled": True,
                "codecommit": {"createNew": True, "newRepositoryName": "chatbot-config"},
            },
        },
    )

    assert result.config.to_document()["pipeline"] == {
        "enabled": True,
        "codecommit": {
            "createNew": True,
            "newRepositoryName": "chatbot-config",
            "seedOnCreate": False,
        },
        "branch": "main",
        "requireApproval": True,
    }
    assert [change.path for change in result.changes] == ["prefix", "pipeline"]


@pytest.mark.parametrize("field", ["logArchiveBucketName", "cloudfrontLogBucketArn"])
def test_empty_bucket_reference_keeps_base_value(base_config_data: dict, field: str):
    base_config_data["cloudfrontLogBucketArn"] = "arn:aws:s3:::cf-logs"
    base = SystemConfigModel.model_validate(base_config_data)

    result = _merge(base, {"prefix": "genai-chatbot", field: ""})

    assert result.config.to_document()[field] == base_config_data[field]
    assert _changes_for(result, field) == []


def test_empty_certificate_clears_base_value(base_config_data: dict):
    base_config_data["certificate"] = (
        "arn:aws:acm:us-east-1:123456789012:certificate/12345678-1234-1234-1234-123456789012"
    )
    base = SystemConfigModel.model_validate(base_config_data)

    result = _merge(base, {"prefix": "genai-chatbot", "certificate": ""})

    assert result.config.certificate == ""
    assert len(_changes_for(result, "certificate")) == 1


def test_change_order_follows_traversal(base_config: SystemConfigModel):
    document = {
        "rag": {
            "embeddingsModels": [{"provider": "openai", "name": "text-embedding-3-small", "dimensions": 1536}],
            "engines": {"opensearch": {"enabled": True}},
            "enabled": True,
        },
        "vpc": {"s3VpcEndpointId": "vpce-0abc1234"},
        "enableWaf": True,
        "prefix": "prod-cb",
    }

    result = _merge(base_config, document)

    assert [change.path for change in result.changes] == [
        "prefix",
        "enableWaf",
        "vpc.s3VpcEndpointId",
        "rag.enabled",
        "rag.engines.opensearch.enabled",
        "rag.embeddingsModels",
    ]


def test_base_config_is_not_mutated(base_config: SystemConfigModel):
    before = base_config.to_document()

    _merge(
        base_config,
        {
            "prefix": "prod-cb",
            "vpc": {"subnetIds": ["subnet-11111111"]},
            "rag": {"embeddingsModels": [{"provider": "bedrock", "name": "m"}]},
            "bedrock": {"guardrails": {"enabled": False}},
        },
    )

    assert base_config.to_document() == before
    assert base_config.bedrock.guardrails is None


def test_changes_are_logged(base_config: SystemConfigModel, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="deploycfg.core.config.merge"):
        _merge(base_config, {"prefix": "prod-cb"})

    assert "prefix: genai-chatbot → prod-cb" in caplog.text
    assert "Applied 1 override(s) from deployment manifest" in caplog.text


def test_invalid_merge_result_is_reported(base_config: SystemConfigModel):
    # Bypasses validation to simulate a gap between manifest and configuration models
    manifest = DeploymentManifestModel.model_construct(prefix=["not", "a", "string"])

    with pytest.raises(MergeInvariantError, match="invalid configuration"):
        merge_manifest(base_config, manifest)
