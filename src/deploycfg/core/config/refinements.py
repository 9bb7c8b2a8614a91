"""Cross-field rules for the deployment manifest.

A refinement inspects one group of the manifest and yields a
:class:`FieldError` for each rule it finds broken. Groups opt in to
refinements by name through the ``x-refinements`` keyword of the schema, so
the schema file remains the single table describing what is checked where.

Refinements run only after every primitive check has been collected and only
on groups that are mappings. Conditions test for literal ``True`` so that a
flag which already failed its type check does not trigger a second,
misleading error.
"""

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from deploycfg.core.config._types import FieldError, FieldPath

Refinement = Callable[[Mapping[str, Any], FieldPath], Iterator[FieldError]]

REFINEMENTS: dict[str, Refinement] = {}


def refinement(name: str) -> Callable[[Refinement], Refinement]:
    """Register a refinement under the name used by ``x-refinements``."""

    def decorator(func: Refinement) -> Refinement:
        if name in REFINEMENTS:
            raise ValueError(f"Refinement '{name}' is already registered")
        REFINEMENTS[name] = func
        return func

    return decorator


def get_refinement(name: str) -> Refinement:
    try:
        return REFINEMENTS[name]
    except KeyError:
        raise ValueError(f"Unknown refinement '{name}' referenced by the manifest schema") from None


def _is_set(value: Any) -> bool:
    return value is not None and value != "" and value is not False


def _child(group: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = group.get(key)
    return value if isinstance(value, Mapping) else {}


@refinement("s3-endpoint-companion")
def s3_endpoint_companion(vpc: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    """Endpoint IPs are only meaningful together with the endpoint they belong to."""
    ips = vpc.get("s3VpcEndpointIps")
    if isinstance(ips, list) and ips and not _is_set(vpc.get("s3VpcEndpointId")):
        yield FieldError(
            path + ("s3VpcEndpointId",),
            "s3VpcEndpointId is required when s3VpcEndpointIps is provided",
        )


@refinement("federation-provider-name")
def federation_provider_name(
    federation: Mapping[str, Any], path: FieldPath
) -> Iterator[FieldError]:
    if federation.get("enabled") is not True:
        return
    if federation.get("customProviderType") == "later":
        return
    if "customProviderName" not in federation:
        yield FieldError(
            path + ("customProviderName",),
            "Provider name is required when federation is enabled",
        )


@refinement("federation-saml")
def federation_saml(federation: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    if federation.get("enabled") is not True or federation.get("customProviderType") != "SAML":
        return
    # A customSAML block without the URL is already reported by the schema.
    if "customSAML" not in federation:
        yield FieldError(
            path + ("customSAML", "metadataDocumentUrl"),
            "SAML metadata URL is required when provider type is SAML",
        )


@refinement("federation-oidc")
def federation_oidc(federation: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    if federation.get("enabled") is not True or federation.get("customProviderType") != "OIDC":
        return
    if "customOIDC" not in federation:
        yield FieldError(
            path + ("customOIDC",),
            "OIDC configuration (OIDCClient, OIDCSecret, OIDCIssuerURL) is required "
            "when provider type is OIDC",
        )


@refinement("guardrails-identity")
def guardrails_identity(guardrails: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    """Enabled guardrails must name the guardrail and the version to apply."""
    if guardrails.get("enabled") is not True:
        return
    for leaf in ("identifier", "version"):
        if leaf in guardrails:
            continue
        yield FieldError(
            path + (leaf,),
            "Guardrail identifier and version are required when guardrails are enabled",
        )


@refinement("rag-active-engine")
def rag_active_engine(rag: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    if rag.get("enabled") is not True:
        return
    engines = _child(rag, "engines")
    if _child(engines, "opensearch").get("enabled") is True:
        return
    if _child(engines, "knowledgeBase").get("enabled") is True:
        return
    yield FieldError(
        path + ("engines",),
        "At least one RAG engine (OpenSearch or Knowledge Base) must be enabled when RAG is enabled",
    )


@refinement("codecommit-source")
def codecommit_source(codecommit: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    """Exactly one repository source: an existing repository or a new one."""
    # A mistyped source (null included) is already reported by the schema
    if "existingRepositoryName" in codecommit and not isinstance(
        codecommit["existingRepositoryName"], str
    ):
        return
    if "createNew" in codecommit and not isinstance(codecommit["createNew"], bool):
        return
    has_existing = _is_set(codecommit.get("existingRepositoryName"))
    has_new = codecommit.get("createNew") is True
    if has_existing and has_new:
        yield FieldError(
            path,
            "Provide either existingRepositoryName OR createNew: true, not both",
        )
    elif not has_existing and not has_new:
        yield FieldError(
            path,
            "Provide either existingRepositoryName or createNew: true",
        )


@refinement("codecommit-new-name")
def codecommit_new_name(codecommit: Mapping[str, Any], path: FieldPath) -> Iterator[FieldError]:
    if codecommit.get("createNew") is True and not _is_set(codecommit.get("newRepositoryName")):
        yield FieldError(
            path + ("newRepositoryName",),
            "newRepositoryName is required when createNew is true",
        )
