from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from kubectl_explain_appset.errors import DocumentDecodeError

# ----------------------------
# Optional-path lookups
# ----------------------------


class Presence(Enum):
    FOUND = "found"
    MISSING = "missing"
    WRONG_TYPE = "wrong-type"


@dataclass(frozen=True)
class Lookup:
    """
    Outcome of reading one path out of an untyped document.

    A null leaf counts as missing, the way the API server prunes nulls.
    """

    value: Any = None
    presence: Presence = Presence.MISSING
    detail: str = ""

    @property
    def found(self) -> bool:
        return self.presence is Presence.FOUND

    @property
    def wrong_type(self) -> bool:
        return self.presence is Presence.WRONG_TYPE

    def or_default(self, default: Any) -> Any:
        return self.value if self.found else default


MISSING = Lookup()


def _json_path(path: tuple[str, ...]) -> str:
    return "".join(f".{p}" for p in path)


def _type_name(value: Any) -> str:
    return type(value).__name__


def _mismatch(path: tuple[str, ...], value: Any, expected: str) -> Lookup:
    return Lookup(
        value=value,
        presence=Presence.WRONG_TYPE,
        detail=(
            f"{_json_path(path)} accessor error: {value!r} is of the type "
            f"{_type_name(value)}, expected {expected}"
        ),
    )


def lookup(obj: Any, *path: str) -> Lookup:
    """
    Walk `path` through nested mappings. Never raises.
    """
    current = obj
    for i, key in enumerate(path):
        if current is None:
            return MISSING
        if not isinstance(current, Mapping):
            return _mismatch(path[:i], current, "map")
        if key not in current:
            return MISSING
        current = current[key]
    if current is None:
        return MISSING
    return Lookup(value=current, presence=Presence.FOUND)


def _narrow(result: Lookup, path: tuple[str, ...], types: tuple, expected: str) -> Lookup:
    if not result.found:
        return result
    if not isinstance(result.value, types):
        return _mismatch(path, result.value, expected)
    return result


def as_string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def as_sequence(value: Any) -> list[Any] | None:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def as_mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def string_field(obj: Mapping[str, Any], key: str) -> str:
    """
    Read a string field of a bare mapping, "" when absent or not a string.
    """
    return as_string(obj.get(key)) or ""


# ----------------------------
# Document wrapper
# ----------------------------


class Document:
    """
    Read-only view over a decoded Kubernetes object.

    Rule code reads fields only through `get`, `string`, `sequence` and
    `mapping`; each returns a Lookup instead of raising on a missing or
    mistyped node.
    """

    def __init__(self, raw: Mapping[str, Any]):
        self._raw = raw

    @classmethod
    def from_raw(cls, raw: Any) -> "Document":
        if not isinstance(raw, Mapping):
            raise DocumentDecodeError(
                f"expected an object, got {_type_name(raw)}"
            )

        metadata = lookup(raw, "metadata")
        if metadata.found and not isinstance(metadata.value, Mapping):
            raise DocumentDecodeError(
                f"metadata must be an object, got {_type_name(metadata.value)}"
            )

        for key in ("name", "namespace"):
            field = lookup(raw, "metadata", key)
            if field.found and not isinstance(field.value, str):
                raise DocumentDecodeError(
                    f"metadata.{key} must be a string, got {_type_name(field.value)}"
                )

        return cls(raw)

    def get(self, *path: str) -> Lookup:
        return lookup(self._raw, *path)

    def string(self, *path: str) -> Lookup:
        return _narrow(self.get(*path), path, (str,), "string")

    def sequence(self, *path: str) -> Lookup:
        return _narrow(self.get(*path), path, (list, tuple), "list")

    def mapping(self, *path: str) -> Lookup:
        return _narrow(self.get(*path), path, (Mapping,), "map")

    @property
    def name(self) -> str:
        return self.string("metadata", "name").or_default("")

    @property
    def namespace(self) -> str:
        return self.string("metadata", "namespace").or_default("")

    @property
    def id(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def kind(self) -> str:
        return self.string("kind").or_default("")

    def __repr__(self) -> str:
        return f"Document({self.kind or '?'} {self.id})"
