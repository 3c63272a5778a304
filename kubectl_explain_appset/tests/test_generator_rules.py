import pytest

from kubectl_explain_appset.config import AnalyzerConfig
from kubectl_explain_appset.document import Document
from kubectl_explain_appset.generators import (
    VALIDATORS,
    GeneratorVariant,
    classify,
    validate_generator,
)
from kubectl_explain_appset.rules.base_rule import RuleContext
from kubectl_explain_appset.rules.generator_rules import GeneratorsRule
from kubectl_explain_appset.store import RunContext

PREFIX = "ApplicationSet default/bad-generators-appset"


def appset_with(spec):
    return Document.from_raw(
        {
            "kind": "ApplicationSet",
            "metadata": {"name": "bad-generators-appset", "namespace": "default"},
            "spec": spec,
        }
    )


def check(spec):
    ctx = RuleContext(store=None, run=RunContext(), config=AnalyzerConfig())
    return GeneratorsRule().check(appset_with(spec), ctx)


# ----------------------------
# Classification
# ----------------------------


def test_classify_single_tag():
    assert classify({"git": {}}) == [GeneratorVariant.GIT]
    assert classify({"scmProvider": {}}) == [GeneratorVariant.SCM_PROVIDER]
    assert classify({"pullRequest": {}}) == [GeneratorVariant.PULL_REQUEST]


def test_classify_empty_and_untagged():
    assert classify({}) == [GeneratorVariant.EMPTY]
    assert classify({"selector": {"matchLabels": {}}}) == [GeneratorVariant.EMPTY]


def test_classify_multiple_tags_in_table_order():
    assert classify({"clusters": {}, "git": {}}) == [
        GeneratorVariant.GIT,
        GeneratorVariant.CLUSTERS,
    ]


def test_only_git_list_clusters_have_checks():
    assert set(VALIDATORS) == {
        GeneratorVariant.GIT,
        GeneratorVariant.LIST,
        GeneratorVariant.CLUSTERS,
    }


def test_non_object_tag_is_recognized_but_not_validated():
    assert validate_generator({"git": None}) == []
    assert validate_generator({"list": "elements"}) == []


# ----------------------------
# Generator list shape
# ----------------------------


@pytest.mark.parametrize("spec", [{}, {"generators": []}, {"generators": None}])
def test_no_generators_defined(spec):
    assert check(spec) == [f"{PREFIX} has no generators defined"]


def test_invalid_generators_configuration():
    findings = check({"generators": {"list": {}}})
    assert len(findings) == 1
    assert findings[0].startswith(f"{PREFIX} has invalid generators configuration: ")
    assert ".spec.generators accessor error" in findings[0]


def test_invalid_spec_is_invalid_configuration():
    doc = Document.from_raw(
        {"metadata": {"name": "bad-generators-appset", "namespace": "default"}, "spec": "x"}
    )
    ctx = RuleContext(store=None, run=RunContext(), config=AnalyzerConfig())
    findings = GeneratorsRule().check(doc, ctx)
    assert len(findings) == 1
    assert "has invalid generators configuration" in findings[0]


# ----------------------------
# Per-entry checks
# ----------------------------


def test_bad_generators():
    findings = check(
        {
            "generators": [
                {},
                {"git": {"repoURL": ""}},
                {"list": {"elements": []}},
                {"clusters": {}},
            ]
        }
    )
    assert findings == [
        f"{PREFIX} has empty generator at index 0",
        f"{PREFIX} Git generator at index 1 has empty repoURL",
        f"{PREFIX} List generator at index 2 has empty elements array",
        f"{PREFIX} Cluster generator at index 3 has no selector or values",
    ]


def test_invalid_entry_does_not_stop_iteration():
    findings = check({"generators": ["git", {"git": {}}]})
    assert findings == [
        f"{PREFIX} has invalid generator at index 0",
        f"{PREFIX} Git generator at index 1 has empty repoURL",
    ]


def test_git_with_repo_url_is_valid():
    assert check({"generators": [{"git": {"repoURL": "https://example.com/repo.git"}}]}) == []


@pytest.mark.parametrize(
    "list_gen",
    [
        {"elements": [{"cluster": "dev"}]},
        {"elementsYaml": "- cluster: dev"},
        {"elements": [], "elementsYaml": "- cluster: dev"},
    ],
)
def test_list_with_elements_or_yaml_has_no_missing_elements_finding(list_gen):
    findings = check({"generators": [{"list": list_gen}]})
    assert not any("has no elements or elementsYaml" in f for f in findings)


def test_list_without_elements():
    assert check({"generators": [{"list": {}}]}) == [
        f"{PREFIX} List generator at index 0 has no elements or elementsYaml"
    ]


def test_explicitly_empty_elements_alongside_yaml_still_flagged():
    assert check({"generators": [{"list": {"elements": [], "elementsYaml": "x"}}]}) == [
        f"{PREFIX} List generator at index 0 has empty elements array"
    ]


def test_clusters_with_empty_values():
    assert check({"generators": [{"clusters": {"values": {}}}]}) == [
        f"{PREFIX} Cluster generator at index 0 has empty values"
    ]


@pytest.mark.parametrize(
    "clusters_gen",
    [
        {"selector": {"matchLabels": {"env": "prod"}}},
        {"values": {"revision": "main"}},
        {"selector": {}, "values": {"revision": "main"}},
    ],
)
def test_clusters_with_selector_or_values_is_valid(clusters_gen):
    assert check({"generators": [{"clusters": clusters_gen}]}) == []


@pytest.mark.parametrize(
    "tag",
    ["matrix", "merge", "scmProvider", "clusterDecisionResource", "pullRequest", "plugin"],
)
def test_other_variants_are_not_empty_and_not_checked(tag):
    assert check({"generators": [{tag: {}}]}) == []


def test_entry_with_several_tags_gets_every_check():
    findings = check({"generators": [{"git": {}, "list": {}}]})
    assert findings == [
        f"{PREFIX} Git generator at index 0 has empty repoURL",
        f"{PREFIX} List generator at index 0 has no elements or elementsYaml",
    ]
