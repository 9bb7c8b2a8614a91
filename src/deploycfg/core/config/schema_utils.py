"""Utilities for working with the deployment manifest JSON schema."""

import json
from collections.abc import Iterator, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from deploycfg.core.config._types import FieldPath

SCHEMA_FILE = "deployment-manifest-schema-1.json"


@lru_cache(maxsize=1)
def load_manifest_schema() -> dict[str, Any]:
    """Load the deployment manifest schema shipped with the package.

    Note:
        This is cached since the schema doesn't change at runtime. Callers
        must treat the returned mapping as read-only.
    """
    schema_path = Path(__file__).parent.parent.parent / "schemas" / SCHEMA_FILE
    with open(schema_path) as f:
        return json.load(f)


def resolve_ref(schema: Mapping[str, Any], root: Mapping[str, Any]) -> Mapping[str, Any]:
    """Follow a local ``$ref`` (``#/$defs/...``) to the schema it names."""
    ref = schema.get("$ref")
    if not ref:
        return schema
    if not ref.startswith("#/"):
        raise ValueError(f"Only local schema references are supported, got {ref!r}")
    target: Any = root
    for part in ref[2:].split("/"):
        target = target[part]
    return resolve_ref(target, root)


def iter_groups(
    instance: Any,
    schema: Mapping[str, Any] | None = None,
    root: Mapping[str, Any] | None = None,
    path: FieldPath = (),
) -> Iterator[tuple[FieldPath, Mapping[str, Any], Mapping[str, Any]]]:
    """Walk every mapping in ``instance`` alongside the schema that describes it.

    Yields ``(path, group_schema, group_instance)`` depth-first, parents before
    children, following the property order declared in the schema. Values
    that the schema does not describe, or that are not mappings, are skipped.
    """
    if root is None:
        root = load_manifest_schema()
    if schema is None:
        schema = root
    schema = resolve_ref(schema, root)

    if isinstance(instance, Mapping):
        yield path, schema, instance
        for name, subschema in schema.get("properties", {}).items():
            if name in instance:
                yield from iter_groups(instance[name], subschema, root, path + (name,))
    elif isinstance(instance, list) and "items" in schema:
        for index, item in enumerate(instance):
            yield from iter_groups(item, schema["items"], root, path + (index,))


def find_unknown_keys(instance: Any) -> list[FieldPath]:
    """List keys of the manifest that the schema does not declare."""
    unknown: list[FieldPath] = []
    for path, schema, group in iter_groups(instance):
        declared = schema.get("properties")
        if declared is None:
            continue
        unknown.extend(path + (key,) for key in group if key not in declared)
    return unknown
