import json

import yaml

from kubectl_explain_appset.model import RunResult

# ----------------------------
# Output formatting
# ----------------------------


def render_text(result: RunResult) -> str:
    """
    Human-readable report.

    Findings keep engine order; they are already deterministic and grouped
    by ApplicationSet, so they are not re-sorted here.
    """
    lines = [f"Analyzer: {result.name}", "", result.details]

    if result.findings:
        lines.append(f"\nFindings ({len(result.findings)}):")
        for i, finding in enumerate(result.findings, start=1):
            lines.append(f"  {i}. {finding.text}")
    else:
        lines.append("\nNo issues found")

    if not result.complete:
        lines.append("\nWARNING: analysis is incomplete")

    if result.diagnostics:
        lines.append("\nDiagnostics:")
        for item in result.diagnostics:
            lines.append(f"  - {item}")

    return "\n".join(lines)


def render(result: RunResult, fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps(result.to_dict(), indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(result.to_dict(), sort_keys=False)
    if fmt == "text":
        return render_text(result)
    raise ValueError(f"Unknown output format: {fmt}")


def output_result(result: RunResult, fmt: str = "text") -> None:
    print(render(result, fmt))
