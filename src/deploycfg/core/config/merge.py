"""Apply a validated deployment manifest on top of the base configuration.

One recursive routine walks the manifest model and decides, per field, how
the value reaches the configuration. The decision comes from
:data:`MERGE_POLICIES` when the field is listed there, and otherwise from the
kind of value:

``field``
    Scalars are replaced. A change is recorded even if the value is unchanged:
    writing a field in the manifest is itself a signal operators want to see.
``group``
    Nested models are merged field by field, creating the group in the base
    configuration if it is missing.
``replace_list``
    Lists replace the base list wholesale; entries are never reconciled.
``replace_group``
    The group replaces the base group atomically, defaults included.

Within each group scalars are applied first, then nested groups, then lists,
each in declaration order. The base configuration is deep-copied up front and
never mutated.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from deploycfg.core.config._types import UNDEFINED, ChangeRecord, MergePolicyName
from deploycfg.core.config.errors import MergeInvariantError
from deploycfg.core.config.models import DeploymentManifestModel, SystemConfigModel

logger = logging.getLogger(__name__)

__all__ = [
    "EMPTY_MEANS_ABSENT",
    "GROUP_SEEDS",
    "MERGE_POLICIES",
    "MergeResult",
    "merge_manifest",
]

# Fields whose policy differs from what their value kind implies.
MERGE_POLICIES: dict[str, MergePolicyName] = {
    # existingRepositoryName and createNew/newRepositoryName are mutually
    # exclusive; merging leaf by leaf could combine one of each.
    "pipeline": "replace_group",
}

# Shape of a group created from scratch when the base configuration lacks it.
GROUP_SEEDS: dict[str, dict[str, Any]] = {
    "bedrock.guardrails": {"enabled": False, "identifier": "", "version": ""},
}

# Optional ARN-like strings where "" means "not set" rather than "clear it".
EMPTY_MEANS_ABSENT: frozenset[str] = frozenset({"logArchiveBucketName", "cloudfrontLogBucketArn"})


@dataclass
class MergeResult:
    config: SystemConfigModel
    changes: list[ChangeRecord] = field(default_factory=list)


def _dump(value: Any) -> Any:
    """Plain JSON-shaped value for a manifest field, schema defaults included."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _policy_for(path: str, value: Any) -> MergePolicyName:
    if path in MERGE_POLICIES:
        return MERGE_POLICIES[path]
    if isinstance(value, BaseModel):
        return "group"
    if isinstance(value, list):
        return "replace_list"
    return "field"


_PASS_ORDER: dict[MergePolicyName, int] = {
    "field": 0,
    "group": 1,
    "replace_group": 1,
    "replace_list": 2,
}


def _present_fields(model: BaseModel) -> list[tuple[str, Any]]:
    """``(document key, value)`` for the fields the manifest actually wrote."""
    present = []
    for name, info in type(model).model_fields.items():
        if name not in model.model_fields_set:
            continue
        present.append((info.alias or name, getattr(model, name)))
    return present


def _record(
    changes: list[ChangeRecord], path: str, target: dict[str, Any], key: str, new: Any
) -> None:
    old = copy.deepcopy(target[key]) if key in target else UNDEFINED
    change = ChangeRecord(path=path, old=old, new=copy.deepcopy(new))
    logger.info("  %s", change)
    changes.append(change)
    target[key] = new


def _merge_group(
    target: dict[str, Any],
    model: BaseModel,
    prefix: str,
    changes: list[ChangeRecord],
) -> None:
    entries = []
    for key, value in _present_fields(model):
        path = f"{prefix}.{key}" if prefix else key
        entries.append((path, key, value, _policy_for(path, value)))
    # sorted() is stable: declaration order is kept inside each pass
    entries.sort(key=lambda entry: _PASS_ORDER[entry[3]])

    for path, key, value, policy in entries:
        if policy == "group":
            existing = target.get(key)
            if not isinstance(existing, dict):
                existing = copy.deepcopy(GROUP_SEEDS.get(path, {}))
                target[key] = existing
                logger.debug("Created missing group %s", path)
            _merge_group(existing, value, path, changes)
            continue

        if policy == "field" and key in EMPTY_MEANS_ABSENT and value == "":
            logger.debug("Skipping %s: empty value means not set", path)
            continue

        _record(changes, path, target, key, _dump(value))


def merge_manifest(base: SystemConfigModel, manifest: DeploymentManifestModel) -> MergeResult:
    """Merge ``manifest`` onto ``base`` and return the new configuration.

    Args:
        base: The base configuration; left untouched
        manifest: A manifest returned by ``validate_manifest``

    Returns:
        The merged configuration and one change record per applied field

    Raises:
        MergeInvariantError: If the merged document is not a valid configuration
    """
    document = copy.deepcopy(base.to_document())
    changes: list[ChangeRecord] = []

    _merge_group(document, manifest, "", changes)

    try:
        config = SystemConfigModel.model_validate(document)
    except ValidationError as exc:
        raise MergeInvariantError(
            f"Applying the deployment manifest produced an invalid configuration: {exc}"
        ) from exc

    if changes:
        logger.info("Applied %d override(s) from deployment manifest", len(changes))
    else:
        logger.info("No overrides applied")
    return MergeResult(config=config, changes=changes)
