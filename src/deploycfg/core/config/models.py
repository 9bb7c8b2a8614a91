from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

SupportedRegion = Literal[
    "af-south-1",
    "ap-east-1",
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-northeast-3",
    "ap-south-1",
    "ap-south-2",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-southeast-3",
    "ap-southeast-4",
    "ca-central-1",
    "eu-central-1",
    "eu-central-2",
    "eu-north-1",
    "eu-south-1",
    "eu-south-2",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "il-central-1",
    "me-central-1",
    "me-south-1",
    "sa-east-1",
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
]

ModelProvider = Literal["sagemaker", "bedrock", "openai", "nexus"]
ProviderType = Literal["SAML", "OIDC", "later"]


# ---------------------------------------------------------------------------
# Base configuration (config.json)
#
# Keys the engine does not override are kept as extras so that a resolved
# configuration carries everything the provisioning layer expects.
# ---------------------------------------------------------------------------


class VpcConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    vpc_id: str | None = None
    create_vpc_endpoints: bool | None = None
    subnet_ids: list[str] | None = None
    execute_api_vpc_endpoint_id: str | None = None
    s3_vpc_endpoint_id: str | None = None
    s3_vpc_endpoint_ips: list[str] | None = None


class SamlFederationConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    metadata_document_url: str | None = None


class OidcFederationConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    oidc_client: str | None = Field(default=None, alias="OIDCClient")
    oidc_secret: str | None = Field(default=None, alias="OIDCSecret")
    oidc_issuer_url: str | None = Field(default=None, alias="OIDCIssuerURL")


class CognitoFederationConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    enabled: bool | None = None
    auto_redirect: bool | None = None
    custom_provider_name: str | None = None
    custom_provider_type: str | None = None
    cognito_domain: str | None = None
    custom_saml: SamlFederationConfigModel | None = Field(default=None, alias="customSAML")
    custom_oidc: OidcFederationConfigModel | None = Field(default=None, alias="customOIDC")


class GuardrailsConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool = False
    identifier: str = ""
    version: str = ""


class BedrockConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    guardrails: GuardrailsConfigModel | None = None


class ExternalKnowledgeBaseConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    name: str
    knowledge_base_id: str
    region: str | None = None
    role_arn: str | None = None
    enabled: bool = True


class ModelDescriptorConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    provider: str
    name: str
    dimensions: int | float | None = None
    default: bool | None = None


class EngineToggleConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool = False


class KnowledgeBaseEngineConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool = False
    external: list[ExternalKnowledgeBaseConfigModel] = Field(default_factory=list)


class RagEnginesConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    opensearch: EngineToggleConfigModel = Field(default_factory=EngineToggleConfigModel)
    knowledge_base: KnowledgeBaseEngineConfigModel = Field(
        default_factory=KnowledgeBaseEngineConfigModel
    )


class RagConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    enabled: bool = False
    cross_encoding_enabled: bool = False
    engines: RagEnginesConfigModel = Field(default_factory=RagEnginesConfigModel)
    embeddings_models: list[ModelDescriptorConfigModel] = Field(default_factory=list)
    cross_encoder_models: list[ModelDescriptorConfigModel] = Field(default_factory=list)


class CodeCommitConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    existing_repository_name: str | None = None
    create_new: bool | None = None
    new_repository_name: str | None = None
    seed_on_create: bool | None = None


class PipelineConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    enabled: bool
    codecommit: CodeCommitConfigModel
    branch: str = "main"
    require_approval: bool = True
    notification_email: str | None = None


class SystemConfigModel(BaseModel):
    """The complete deployment configuration handed to provisioning."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    prefix: str
    enable_waf: bool | None = None
    create_cmks: bool | None = Field(default=None, alias="createCMKs")
    advanced_monitoring: bool | None = None
    retain_on_delete: bool | None = None
    ddb_deletion_protection: bool | None = None
    enable_s3_transfer_acceleration: bool | None = None
    log_retention: int | None = None
    rate_limit_per_ip: int | None = Field(default=None, alias="rateLimitPerIP")
    disable_s3_access_logs: bool | None = None
    log_archive_bucket_name: str | None = None
    cloudfront_log_bucket_arn: str | None = None
    private_website: bool | None = None
    certificate: str | None = None
    domain: str | None = None
    cf_geo_restrict_enable: bool | None = None
    cf_geo_restrict_list: list[str] | None = None
    vpc: VpcConfigModel | None = None
    cognito_federation: CognitoFederationConfigModel | None = None
    bedrock: BedrockConfigModel | None = None
    rag: RagConfigModel
    pipeline: PipelineConfigModel | None = None

    def to_document(self) -> dict[str, Any]:
        """Dump back to the camelCase JSON shape, keeping only keys that were present."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Deployment manifest (deployment-manifest.yaml)
#
# Every field is optional; which fields were actually written is tracked by
# pydantic's ``model_fields_set`` and drives the merge. Unknown keys are
# dropped here and reported by the validator.
# ---------------------------------------------------------------------------


class ManifestVpcModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    vpc_id: str | None = None
    create_vpc_endpoints: bool | None = None
    subnet_ids: list[str] | None = None
    execute_api_vpc_endpoint_id: str | None = None
    s3_vpc_endpoint_id: str | None = None
    s3_vpc_endpoint_ips: list[str] | None = None


class ManifestSamlModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    metadata_document_url: str


class ManifestOidcModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    oidc_client: str = Field(alias="OIDCClient")
    oidc_secret: str = Field(alias="OIDCSecret")
    oidc_issuer_url: str = Field(alias="OIDCIssuerURL")


class ManifestCognitoFederationModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    enabled: bool | None = None
    auto_redirect: bool | None = None
    custom_provider_name: str | None = None
    custom_provider_type: ProviderType | None = None
    cognito_domain: str | None = None
    custom_saml: ManifestSamlModel | None = Field(default=None, alias="customSAML")
    custom_oidc: ManifestOidcModel | None = Field(default=None, alias="customOIDC")


class ManifestGuardrailsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    enabled: bool
    identifier: str | None = None
    version: str | None = None


class ManifestBedrockModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    guardrails: ManifestGuardrailsModel | None = None


class ManifestExternalKnowledgeBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    name: str
    knowledge_base_id: str
    region: SupportedRegion | None = None
    role_arn: str | None = None
    enabled: bool = True


class ManifestModelDescriptorModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    provider: ModelProvider
    name: str
    dimensions: int | float | None = None
    default: bool | None = None


class ManifestEngineToggleModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    enabled: bool


class ManifestKnowledgeBaseEngineModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    enabled: bool
    external: list[ManifestExternalKnowledgeBaseModel] | None = None


class ManifestRagEnginesModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    opensearch: ManifestEngineToggleModel | None = None
    knowledge_base: ManifestKnowledgeBaseEngineModel | None = None


class ManifestRagModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    enabled: bool | None = None
    cross_encoding_enabled: bool | None = None
    engines: ManifestRagEnginesModel | None = None
    embeddings_models: list[ManifestModelDescriptorModel] | None = None
    cross_encoder_models: list[ManifestModelDescriptorModel] | None = None


class ManifestCodeCommitModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    existing_repository_name: str | None = None
    create_new: bool | None = None
    new_repository_name: str | None = None
    seed_on_create: bool = False


class ManifestPipelineModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    enabled: bool
    codecommit: ManifestCodeCommitModel
    branch: str = "main"
    require_approval: bool = True
    notification_email: str | None = None


class DeploymentManifestModel(BaseModel):
    """A validated deployment manifest."""

    model_config = ConfigDict(extra="ignore", frozen=True, alias_generator=to_camel)

    prefix: str
    enable_waf: bool | None = None
    create_cmks: bool | None = Field(default=None, alias="createCMKs")
    advanced_monitoring: bool | None = None
    retain_on_delete: bool | None = None
    ddb_deletion_protection: bool | None = None
    enable_s3_transfer_acceleration: bool | None = None
    log_retention: int | None = None
    rate_limit_per_ip: int | None = Field(default=None, alias="rateLimitPerIP")
    disable_s3_access_logs: bool | None = None
    log_archive_bucket_name: str | None = None
    cloudfront_log_bucket_arn: str | None = None
    private_website: bool | None = None
    certificate: str | None = None
    domain: str | None = None
    cf_geo_restrict_enable: bool | None = None
    cf_geo_restrict_list: list[str] | None = None
    vpc: ManifestVpcModel | None = None
    cognito_federation: ManifestCognitoFederationModel | None = None
    bedrock: ManifestBedrockModel | None = None
    rag: ManifestRagModel | None = None
    pipeline: ManifestPipelineModel | None = None
