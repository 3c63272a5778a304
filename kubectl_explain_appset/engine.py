import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from kubectl_explain_appset.config import AnalyzerConfig
from kubectl_explain_appset.document import Document, as_mapping, lookup
from kubectl_explain_appset.errors import DocumentDecodeError, FetchError, RunFailedError
from kubectl_explain_appset.loader import get_default_rules
from kubectl_explain_appset.model import (
    Finding,
    Report,
    RunResult,
    SummaryEntry,
    get_conditions,
    get_summary,
)
from kubectl_explain_appset.rules.base_rule import AppSetRule, RuleContext
from kubectl_explain_appset.store import FetchPort, RunContext

logger = logging.getLogger(__name__)


# ----------------------------
# Details log
# ----------------------------


def build_details(appset: Document, config: AnalyzerConfig) -> list[str]:
    """
    Informational lines for one parent; never mixed into findings.
    """
    details = [f"{config.parent_kind.kind}: {appset.id}"]

    for cond in get_conditions(appset):
        details.append(f"  Condition: {cond.type} = {cond.status} ({cond.message})")

    summary = get_summary(appset)
    if summary is not None:
        details.append(f"  Generated {config.dependent_kind.kind}s: {len(summary)}")
        for row in summary:
            fields = as_mapping(row)
            if fields is None:
                continue
            entry = SummaryEntry.from_mapping(fields)
            if entry.name:
                details.append(
                    f"    App: {entry.name} (Health: {entry.health}, Sync: {entry.sync})"
                )

    return details


def _identify(raw: Any, index: int) -> str:
    if isinstance(raw, Mapping):
        name = lookup(raw, "metadata", "name").or_default(None)
        namespace = lookup(raw, "metadata", "namespace").or_default("")
        if isinstance(name, str) and isinstance(namespace, str):
            return f"{namespace}/{name}"
    return f"#{index}"


# ----------------------------
# Per-parent analysis
# ----------------------------


def run_rule(rule: AppSetRule, appset: Document, context: RuleContext) -> list[Finding]:
    texts = rule.check(appset, context)

    # ---- check() contract enforcement ----
    if not isinstance(texts, list):
        raise TypeError(f"{rule.name}.check() must return a list")
    for text in texts:
        if not isinstance(text, str):
            raise TypeError(f"{rule.name}.check() must return a list of str")

    if texts:
        logger.debug(
            "Rule '%s' produced %d finding(s) for %s", rule.name, len(texts), appset.id
        )
    return [Finding(t) for t in texts]


def analyze_appset(
    raw: Any,
    index: int,
    rules: list[AppSetRule],
    store: FetchPort | None,
    ctx: RunContext,
    config: AnalyzerConfig,
) -> Report:
    """
    Run every rule over one ApplicationSet, in rule order.

    A document that does not decode yields a single finding instead of
    aborting the run.
    """
    kind = config.parent_kind.kind
    try:
        appset = Document.from_raw(raw)
    except DocumentDecodeError as exc:
        ident = _identify(raw, index)
        logger.debug("Could not decode %s %s: %s", kind, ident, exc)
        return Report(
            resource_name=ident,
            details=[f"{kind}: {ident}"],
            findings=[Finding(f"{kind} {ident} could not be decoded: {exc}")],
        )

    context = RuleContext(store=store, run=ctx, config=config)
    findings: list[Finding] = []
    for rule in rules:
        findings.extend(run_rule(rule, appset, context))

    return Report(
        resource_name=appset.id,
        details=build_details(appset, config),
        findings=findings,
        complete=context.complete,
        suppressed_errors=list(context.suppressed_errors),
    )


# ----------------------------
# Analyzer
# ----------------------------


class Analyzer:
    """
    Analyzes every ApplicationSet the store returns.

    Each run is independent: nothing is cached between calls to run().
    """

    def __init__(
        self,
        store: FetchPort,
        config: AnalyzerConfig | None = None,
        rules: list[AppSetRule] | None = None,
    ):
        self.store = store
        self.config = config or AnalyzerConfig()
        if rules is None:
            rules = get_default_rules()
        self.rules = [r for r in rules if self.config.category_enabled(r.category)]

    def list_parents(self, ctx: RunContext) -> list[Any]:
        kind = self.config.parent_kind
        if self.config.namespace:
            return self.store.list_in_namespace(ctx, kind, self.config.namespace)
        return self.store.list_all(ctx, kind)

    def _analyze(self, ctx: RunContext, index: int, raw: Any) -> Report | None:
        if ctx.cancelled:
            return None
        return analyze_appset(raw, index, self.rules, self.store, ctx, self.config)

    def run(self, ctx: RunContext | None = None) -> RunResult:
        ctx = ctx or RunContext()
        kind = self.config.parent_kind.kind

        try:
            parents = self.list_parents(ctx)
        except FetchError as exc:
            logger.error("Error listing %ss: %s", kind, exc)
            result = RunResult(
                details=f"Failed to list {kind}s: {exc}",
                findings=[Finding(f"Error listing {kind}s: {exc}")],
                complete=False,
            )
            raise RunFailedError(f"failed to list {kind}s: {exc}", result) from exc

        if not parents:
            return RunResult(details=f"No {kind}s found in the cluster")

        logger.debug("Analyzing %d %s(s) with %d worker(s)", len(parents), kind, self.config.workers)

        if self.config.workers > 1 and len(parents) > 1:
            workers = min(self.config.workers, len(parents))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                # map() yields in submission order, whatever finishes first.
                reports = list(
                    pool.map(
                        lambda pair: self._analyze(ctx, *pair), enumerate(parents)
                    )
                )
        else:
            reports = [self._analyze(ctx, i, raw) for i, raw in enumerate(parents)]

        return self.aggregate(parents, reports)

    def aggregate(self, parents: list[Any], reports: list[Report | None]) -> RunResult:
        kind = self.config.parent_kind.kind
        details = [f"Found {len(parents)} {kind}(s) in the cluster"]
        findings: list[Finding] = []
        diagnostics: list[str] = []
        complete = True

        for report in reports:
            if report is None:
                complete = False
                continue
            details.extend(report.details)
            findings.extend(report.findings)
            diagnostics.extend(report.suppressed_errors)
            complete = complete and report.complete

        skipped = sum(1 for r in reports if r is None)
        if skipped:
            diagnostics.append(
                f"Run cancelled: {skipped} of {len(parents)} {kind}(s) not analyzed"
            )

        return RunResult(
            details="\n".join(details),
            findings=findings,
            complete=complete,
            diagnostics=diagnostics,
        )
