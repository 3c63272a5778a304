import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from kubectl_explain_appset.document import Document, as_mapping, as_sequence, string_field

ANALYZER_NAME = "applicationset-analyzer"

# Label the ApplicationSet controller puts on every Application it generates.
APPLICATION_SET_LABEL = "argocd.argoproj.io/application-set-name"


@dataclass(frozen=True)
class Kind:
    group: str
    version: str
    plural: str
    kind: str

    def matches(self, obj: Mapping[str, Any]) -> bool:
        if obj.get("kind") != self.kind:
            return False
        api_version = obj.get("apiVersion")
        if not isinstance(api_version, str):
            return True
        group = api_version.rpartition("/")[0]
        return group == self.group


APPLICATION_SET = Kind("argoproj.io", "v1alpha1", "applicationsets", "ApplicationSet")
APPLICATION = Kind("argoproj.io", "v1alpha1", "applications", "Application")


# ----------------------------
# Parsed status entries
# ----------------------------


@dataclass(frozen=True)
class Condition:
    type: str
    status: str
    message: str

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "Condition":
        return cls(
            type=string_field(obj, "type"),
            status=string_field(obj, "status"),
            message=string_field(obj, "message"),
        )


@dataclass(frozen=True)
class SummaryEntry:
    """
    One row of ApplicationSet.status.applicationStatus.
    """

    name: str
    health: str
    sync: str
    message: str

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "SummaryEntry":
        return cls(
            name=string_field(obj, "application"),
            health=string_field(obj, "health"),
            sync=string_field(obj, "sync"),
            message=string_field(obj, "message"),
        )


def get_conditions(doc: Document) -> list[Condition]:
    """
    Conditions from status.conditions; non-object entries are skipped.
    """
    found = doc.sequence("status", "conditions")
    if not found.found:
        return []
    return [
        Condition.from_mapping(c) for c in found.value if as_mapping(c) is not None
    ]


def get_summary(doc: Document) -> list[Any] | None:
    """
    Raw status.applicationStatus rows, or None when the summary is absent.
    """
    found = doc.sequence("status", "applicationStatus")
    return as_sequence(found.value) if found.found else None


# ----------------------------
# Results
# ----------------------------


@dataclass(frozen=True)
class Finding:
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text}


@dataclass
class Report:
    resource_name: str
    details: list[str] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    complete: bool = True
    suppressed_errors: list[str] = field(default_factory=list)


@dataclass
class RunResult:
    name: str = ANALYZER_NAME
    details: str = ""
    findings: list[Finding] = field(default_factory=list)
    complete: bool = True
    diagnostics: list[str] = field(default_factory=list)

    @property
    def texts(self) -> list[str]:
        return [f.text for f in self.findings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "details": self.details,
            "findings": [f.to_dict() for f in self.findings],
            "complete": self.complete,
            "diagnostics": list(self.diagnostics),
        }


# ----------------------------
# Parsing utilities
# ----------------------------


def flatten_items(docs: Any) -> list[Any]:
    """
    Expand `kind: List` wrappers (as printed by `kubectl get -o yaml`).
    """
    seq = as_sequence(docs)
    if seq is None:
        seq = [docs]

    result: list[Any] = []
    for doc in seq:
        if doc is None:
            continue
        if isinstance(doc, Mapping) and str(doc.get("kind", "")).endswith("List"):
            result.extend(as_sequence(doc.get("items")) or [])
        else:
            result.append(doc)
    return result


def load_documents(path: str) -> list[Any]:
    """
    Load every object from a JSON or (multi-document) YAML file.
    """
    with open(path, encoding="utf-8") as f:
        if path.endswith(".json"):
            return flatten_items(json.load(f))
        return flatten_items(list(yaml.safe_load_all(f)))
