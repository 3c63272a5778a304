from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from kubectl_explain_appset.document import as_mapping, as_sequence


class GeneratorVariant(Enum):
    """
    ApplicationSet generator kinds, valued by their key in a generator entry.
    """

    GIT = "git"
    LIST = "list"
    CLUSTERS = "clusters"
    MATRIX = "matrix"
    MERGE = "merge"
    SCM_PROVIDER = "scmProvider"
    CLUSTER_DECISION_RESOURCE = "clusterDecisionResource"
    PULL_REQUEST = "pullRequest"
    PLUGIN = "plugin"
    EMPTY = ""


TAGGED_VARIANTS = [v for v in GeneratorVariant if v is not GeneratorVariant.EMPTY]


def classify(generator: Mapping[str, Any]) -> list[GeneratorVariant]:
    """
    Return every variant tagged in `generator`, in declaration order.

    An entry carrying none of the known tags is [EMPTY]. Keys that are not
    generator tags (e.g. `selector`) are ignored.
    """
    variants = [v for v in TAGGED_VARIANTS if v.value in generator]
    return variants or [GeneratorVariant.EMPTY]


# ----------------------------
# Per-variant structural checks
# ----------------------------
# Each validator receives the tag's value and returns problem descriptions
# that the caller prefixes with "<Label> generator at index N".


def _validate_git(gen: Mapping[str, Any]) -> list[str]:
    repo_url = gen.get("repoURL")
    if "repoURL" not in gen or repo_url is None or repo_url == "":
        return ["has empty repoURL"]
    return []


def _validate_list(gen: Mapping[str, Any]) -> list[str]:
    has_elements = "elements" in gen
    has_elements_yaml = "elementsYaml" in gen

    if not has_elements and not has_elements_yaml:
        return ["has no elements or elementsYaml"]

    elements = as_sequence(gen.get("elements")) if has_elements else None
    if elements is not None and len(elements) == 0:
        return ["has empty elements array"]
    return []


def _validate_clusters(gen: Mapping[str, Any]) -> list[str]:
    has_selector = "selector" in gen
    has_values = "values" in gen

    if not has_selector and not has_values:
        return ["has no selector or values"]

    values = as_mapping(gen.get("values")) if has_values else None
    if values is not None and len(values) == 0:
        return ["has empty values"]
    return []


Validator = Callable[[Mapping[str, Any]], list[str]]

# variant -> (label used in findings, validator)
VALIDATORS: dict[GeneratorVariant, tuple[str, Validator]] = {
    GeneratorVariant.GIT: ("Git", _validate_git),
    GeneratorVariant.LIST: ("List", _validate_list),
    GeneratorVariant.CLUSTERS: ("Cluster", _validate_clusters),
}


def validate_generator(generator: Mapping[str, Any]) -> list[tuple[str, str]]:
    """
    Run the checks of every tagged variant; returns (label, problem) pairs.

    A tag whose value is not an object is recognized but not validated.
    """
    problems: list[tuple[str, str]] = []
    for variant in classify(generator):
        if variant not in VALIDATORS:
            continue
        body = as_mapping(generator.get(variant.value))
        if body is None:
            continue
        label, validator = VALIDATORS[variant]
        problems.extend((label, p) for p in validator(body))
    return problems
