import json
from dataclasses import dataclass
from typing import Any, Literal, TypedDict


class _Undefined:
    """Marker for a field that does not exist in the base configuration."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()

FieldPath = tuple[str | int, ...]

MergePolicyName = Literal["field", "group", "replace_list", "replace_group"]


def format_path(path: FieldPath) -> str:
    """Join a field path with dots; an empty path is reported as ``root``."""
    if not path:
        return "root"
    return ".".join(str(part) for part in path)


def format_value(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class FieldError:
    """A single validation failure attributed to a field path."""

    path: FieldPath
    message: str

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)

    def to_dict(self) -> "FieldErrorDict":
        return {"path": self.dotted_path, "message": self.message}

    def __str__(self) -> str:
        return f"{self.dotted_path}: {self.message}"


@dataclass(frozen=True)
class ChangeRecord:
    """One overridden field: where it lives, what it was, what it became."""

    path: str
    old: Any
    new: Any

    def to_dict(self) -> "ChangeRecordDict":
        """JSON shape; ``old`` is omitted when the field did not exist before."""
        record: ChangeRecordDict = {"path": self.path, "new": self.new}
        if self.old is not UNDEFINED:
            record["old"] = self.old
        return record

    def __str__(self) -> str:
        return f"{self.path}: {format_value(self.old)} → {format_value(self.new)}"


class FieldErrorDict(TypedDict):
    path: str
    message: str


class _ChangeRecordBase(TypedDict):
    path: str
    new: Any


class ChangeRecordDict(_ChangeRecordBase, total=False):
    old: Any
