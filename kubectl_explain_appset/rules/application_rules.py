import logging

from kubectl_explain_appset.document import Document, as_mapping
from kubectl_explain_appset.errors import DocumentDecodeError, FetchError, RunCancelled
from kubectl_explain_appset.model import SummaryEntry, get_summary
from kubectl_explain_appset.rules.base_rule import AppSetRule, RuleContext

logger = logging.getLogger(__name__)

HEALTHY = "Healthy"
SYNCED = "Synced"
FAILED = "Failed"


class GeneratedApplicationsRule(AppSetRule):
    """
    Correlates the Applications an ApplicationSet generated.

    Two sources are consulted and reported independently:
    - the cached summary in status.applicationStatus
    - the live Applications carrying the application-set-name label

    They may disagree (the controller's cache lags the Applications), so
    findings from one never suppress findings from the other.
    """

    name = "GeneratedApplications"
    category = "Applications"
    priority = 30
    requires_store = True

    def check(self, appset: Document, context: RuleContext) -> list[str]:
        summary = get_summary(appset) or []
        findings = self.check_summary(summary, context)

        applications = self.fetch_applications(appset, context)
        if applications is None:
            return findings

        if not applications and not summary:
            findings.append(
                f"{context.subject(appset)} has no generated "
                f"{context.config.dependent_kind.kind.lower()}s"
            )

        for raw in applications:
            try:
                app = Document.from_raw(raw)
            except DocumentDecodeError as exc:
                logger.debug("Skipping undecodable %s: %s", context.config.dependent_kind.kind, exc)
                continue
            findings.extend(self.check_application(app, context))

        return findings

    # ----------------------------
    # Inline summary
    # ----------------------------

    def check_summary(self, summary: list, context: RuleContext) -> list[str]:
        kind = context.config.dependent_kind.kind
        findings = []

        for row in summary:
            fields = as_mapping(row)
            if fields is None:
                continue
            entry = SummaryEntry.from_mapping(fields)

            if entry.health and entry.health != HEALTHY:
                findings.append(
                    f"Generated {kind} {entry.name} is not healthy "
                    f"(status: {entry.health}): {entry.message}"
                )
            if entry.sync and entry.sync != SYNCED:
                findings.append(
                    f"Generated {kind} {entry.name} is not synced (status: {entry.sync})"
                )

        return findings

    # ----------------------------
    # Live Applications
    # ----------------------------

    def fetch_applications(self, appset: Document, context: RuleContext) -> list | None:
        """
        List the live dependents, or None when they could not be listed.

        Failures are not findings: the summary findings stand on their own.
        The error is kept for operators in context.suppressed_errors.
        """
        if context.store is None:
            return None

        kind = context.config.dependent_kind
        selector = f"{context.config.label_key}={appset.name}"
        try:
            return context.store.list_in_namespace(
                context.run, kind, appset.namespace, selector
            )
        except RunCancelled as exc:
            context.complete = False
            context.suppressed_errors.append(f"{appset.id}: {exc}")
            return None
        except FetchError as exc:
            logger.warning(
                "Could not list %ss for %s: %s", kind.kind, appset.id, exc
            )
            context.suppressed_errors.append(
                f"{appset.id}: listing {kind.plural} failed: {exc}"
            )
            return None

    def check_application(self, app: Document, context: RuleContext) -> list[str]:
        subject = f"{context.config.dependent_kind.kind} {app.id}"
        findings = []

        health = app.string("status", "health", "status").or_default("")
        if health and health != HEALTHY:
            message = app.string("status", "health", "message").or_default("")
            findings.append(
                f"{subject} is not healthy (status: {health}): {message}"
            )

        sync = app.string("status", "sync", "status").or_default("")
        if sync and sync != SYNCED:
            findings.append(f"{subject} is not synced (status: {sync})")

        phase = app.string("status", "operationState", "phase").or_default("")
        if phase == FAILED:
            message = app.string("status", "operationState", "message").or_default("")
            findings.append(f"{subject} has failed operation: {message}")

        return findings
