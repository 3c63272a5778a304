import json
import os

import pytest
import yaml

from kubectl_explain_appset.cli import build_parser, main
from kubectl_explain_appset.config import AnalyzerConfig
from kubectl_explain_appset.model import Finding, RunResult
from kubectl_explain_appset.output import render

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
APPSETS = os.path.join(FIXTURES_DIR, "appsets.yaml")

EXPECTED_FINDINGS = [
    "ApplicationSet argocd/guestbook has error condition: failed to render template",
    "Generated Application guestbook-dev is not healthy (status: Degraded): Deployment has minimum availability",
    "Generated Application guestbook-dev is not synced (status: OutOfSync)",
    "Application argocd/guestbook-dev is not healthy (status: Degraded): Readiness probe failed",
    "Application argocd/guestbook-dev is not synced (status: OutOfSync)",
    "Application argocd/guestbook-dev has failed operation: one or more objects failed to apply",
    "ApplicationSet argocd/broken has no generators defined",
    "ApplicationSet argocd/broken has no generated applications",
]


# ----------------------------
# Output rendering
# ----------------------------


def sample_result():
    return RunResult(
        details="Found 1 ApplicationSet(s) in the cluster\nApplicationSet: ns/a",
        findings=[Finding("ApplicationSet ns/a has no generators defined")],
        complete=False,
        diagnostics=["ns/a: listing applications failed: forbidden"],
    )


def test_render_text():
    text = render(sample_result(), "text")
    assert "Analyzer: applicationset-analyzer" in text
    assert "  1. ApplicationSet ns/a has no generators defined" in text
    assert "WARNING: analysis is incomplete" in text
    assert "  - ns/a: listing applications failed: forbidden" in text


def test_render_text_without_findings():
    text = render(RunResult(details="No ApplicationSets found in the cluster"), "text")
    assert "No issues found" in text
    assert "incomplete" not in text


def test_render_json_and_yaml_agree():
    from_json = json.loads(render(sample_result(), "json"))
    from_yaml = yaml.safe_load(render(sample_result(), "yaml"))
    assert from_json == from_yaml
    assert from_json["findings"] == [{"text": "ApplicationSet ns/a has no generators defined"}]
    assert from_json["complete"] is False


def test_render_unknown_format():
    with pytest.raises(ValueError):
        render(sample_result(), "xml")


# ----------------------------
# CLI
# ----------------------------


def test_config_from_args():
    args = build_parser().parse_args(
        ["--namespace", "argocd", "--workers", "2", "--disable-categories", "Applications"]
    )
    config = AnalyzerConfig.from_args(args)
    assert config.namespace == "argocd"
    assert config.workers == 2
    assert not config.category_enabled("Applications")
    assert config.category_enabled("Generators")


def test_invalid_workers_rejected():
    with pytest.raises(ValueError):
        AnalyzerConfig(workers=0)


def test_cli_json_output(capsys):
    assert main(["--file", APPSETS, "--format", "json"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["name"] == "applicationset-analyzer"
    assert [f["text"] for f in out["findings"]] == EXPECTED_FINDINGS
    assert out["complete"] is True
    assert out["details"].splitlines()[0] == "Found 2 ApplicationSet(s) in the cluster"


def test_cli_text_output_single_worker(capsys):
    assert main(["--file", APPSETS, "--workers", "1"]) == 0

    out = capsys.readouterr().out
    for i, text in enumerate(EXPECTED_FINDINGS, start=1):
        assert f"  {i}. {text}" in out
    assert "    App: guestbook-dev (Health: Degraded, Sync: OutOfSync)" in out


def test_cli_namespace_without_matches(capsys):
    assert main(["--file", APPSETS, "--namespace", "default", "--format", "yaml"]) == 0
    out = yaml.safe_load(capsys.readouterr().out)
    assert out["details"] == "No ApplicationSets found in the cluster"
    assert out["findings"] == []


def test_cli_missing_file(capsys, tmp_path):
    assert main(["--file", str(tmp_path / "nope.yaml")]) == 1
    assert "error:" in capsys.readouterr().err


def test_cli_plugins(capsys, tmp_path):
    (tmp_path / "extra.py").write_text(
        "from kubectl_explain_appset.rules.base_rule import AppSetRule\n"
        "\n"
        "\n"
        "class AlwaysRule(AppSetRule):\n"
        "    name = 'Always'\n"
        "    category = 'Extra'\n"
        "    priority = 900\n"
        "\n"
        "    def check(self, appset, context):\n"
        "        return [f'{appset.id} checked']\n"
    )

    assert main(["--file", APPSETS, "--plugins", str(tmp_path), "--format", "json"]) == 0

    texts = [f["text"] for f in json.loads(capsys.readouterr().out)["findings"]]
    assert texts[6] == "argocd/guestbook checked"
    assert texts[-1] == "argocd/broken checked"
