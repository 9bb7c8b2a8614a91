"""Deployment manifest validation.

Validation happens in two passes over the raw (parsed but untyped) document:

1. Primitive checks: every field is checked against the JSON schema for
   type, bounds, enumerations and formats. ``iter_errors`` is used so that
   every violation is reported, not only the first one.
2. Refinements: cross-field rules registered in
   :mod:`deploycfg.core.config.refinements` and attached to groups by the
   schema's ``x-refinements`` keyword.

Only a document with no violations at all is turned into a typed
:class:`DeploymentManifestModel`.
"""

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator, validators
from jsonschema.exceptions import ValidationError as SchemaViolation
from pydantic import ValidationError

from deploycfg.core.config._types import FieldError, format_path
from deploycfg.core.config.errors import ManifestValidationError
from deploycfg.core.config.models import DeploymentManifestModel
from deploycfg.core.config.refinements import get_refinement
from deploycfg.core.config.schema_utils import find_unknown_keys, iter_groups, load_manifest_schema

logger = logging.getLogger(__name__)

__all__ = [
    "ManifestCheckResult",
    "check_manifest",
    "collect_manifest_errors",
    "validate_manifest",
]


@dataclass
class ManifestCheckResult:
    success: bool
    manifest: DeploymentManifestModel | None = None
    errors: list[FieldError] = field(default_factory=list)


def _pattern(
    validator: Any, pattern: str, instance: Any, schema: Mapping[str, Any]
) -> Iterator[SchemaViolation]:
    """``pattern`` where a trailing ``$`` anchors at the very end of the string.

    Python's ``$`` also matches before a final newline, so ``"prod\\n"`` would
    satisfy ``^[a-z]+$``. YAML block scalars produce exactly such values.
    """
    if not validator.is_type(instance, "string"):
        return
    match = re.search(pattern, instance)
    if match is None or (pattern.endswith("$") and match.end() != len(instance)):
        yield SchemaViolation(f"{instance!r} does not match {pattern!r}")


ManifestValidator = validators.extend(Draft202012Validator, {"pattern": _pattern})


@lru_cache(maxsize=1)
def get_manifest_validator() -> Draft202012Validator:
    schema = load_manifest_schema()
    ManifestValidator.check_schema(schema)
    return ManifestValidator(schema)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _missing_property(violation: SchemaViolation) -> str | None:
    # jsonschema reports one violation per missing property
    for name in violation.validator_value:
        if name not in violation.instance and violation.message.startswith(repr(name)):
            return str(name)
    return None


def _to_field_error(violation: SchemaViolation) -> FieldError:
    path = tuple(violation.absolute_path)
    schema = violation.schema if isinstance(violation.schema, Mapping) else {}
    messages = schema.get("messages", {})
    keyword = violation.validator

    if keyword == "required":
        missing = _missing_property(violation)
        if missing is None:
            return FieldError(path, violation.message)
        required_messages = messages.get("required", {})
        return FieldError(path + (missing,), required_messages.get(missing, "Required"))

    custom = messages.get(keyword)
    if isinstance(custom, str):
        return FieldError(path, custom)

    if keyword == "type":
        expected = violation.validator_value
        if isinstance(expected, list):
            expected = " or ".join(expected)
        return FieldError(path, f"Expected {expected}, received {_json_type(violation.instance)}")
    if keyword == "enum":
        allowed = ", ".join(str(value) for value in violation.validator_value)
        return FieldError(path, f"Invalid value {violation.instance!r}. Allowed values are: {allowed}")
    return FieldError(path, violation.message)


def _schema_errors(document: Any) -> list[FieldError]:
    validator = get_manifest_validator()
    return [_to_field_error(violation) for violation in validator.iter_errors(document)]


def _refinement_errors(document: Any) -> list[FieldError]:
    errors: list[FieldError] = []
    for path, schema, group in iter_groups(document):
        for name in schema.get("x-refinements", ()):
            errors.extend(get_refinement(name)(group, path))
    return errors


def collect_manifest_errors(document: Any) -> list[FieldError]:
    """Return every violation in ``document``; an empty list means it is valid.

    An empty YAML document parses to ``None`` and is checked as an empty
    mapping, so it fails on the missing prefix rather than on its type.
    """
    if document is None:
        document = {}
    errors = _schema_errors(document)
    errors.extend(_refinement_errors(document))
    return errors


def validate_manifest(document: Any, source: Path | None = None) -> DeploymentManifestModel:
    """Validate a parsed deployment manifest and return its typed form.

    Args:
        document: The parsed manifest (usually the result of ``yaml.safe_load``)
        source: Path the document was read from, used in error reports

    Returns:
        The validated manifest. Fields the document did not mention are
        absent from ``model_fields_set`` at every level.

    Raises:
        ManifestValidationError: If any rule is violated; carries all of them
    """
    errors = collect_manifest_errors(document)
    if errors:
        raise ManifestValidationError(errors, source)

    for path in find_unknown_keys(document):
        logger.warning("Ignoring unknown deployment manifest field: %s", format_path(path))

    try:
        return DeploymentManifestModel.model_validate(document)
    except ValidationError as exc:
        # The schema accepted something the typed model does not: report it
        # the same way instead of leaking a pydantic traceback.
        logger.error("Manifest schema and manifest model disagree: %s", exc)
        raise ManifestValidationError(
            [
                FieldError(tuple(issue["loc"]), issue["msg"])
                for issue in exc.errors()
            ],
            source,
        ) from exc


def check_manifest(document: Any) -> ManifestCheckResult:
    """Validate without raising; convenient for tests and dry runs."""
    try:
        manifest = validate_manifest(document)
    except ManifestValidationError as exc:
        return ManifestCheckResult(success=False, errors=exc.errors)
    return ManifestCheckResult(success=True, manifest=manifest)
