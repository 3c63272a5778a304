from kubectl_explain_appset.document import Document
from kubectl_explain_appset.model import get_conditions
from kubectl_explain_appset.rules.base_rule import AppSetRule, RuleContext


def triggered_conditions(
    appset: Document, context: RuleContext, triggers: dict[str, tuple[str, str]]
) -> list[str]:
    """
    Findings for conditions whose status matches a trigger, in the order
    status.conditions lists them.

    Unknown condition types are ignored; matching is case-sensitive.
    """
    findings = []
    subject = context.subject(appset)

    for cond in get_conditions(appset):
        trigger = triggers.get(cond.type)
        if trigger is None:
            continue
        status, text = trigger
        if cond.status == status:
            findings.append(f"{subject} {text}: {cond.message}")

    return findings


class ConditionsRule(AppSetRule):
    """
    Reports ApplicationSet conditions that signal an error.
    """

    name = "ApplicationSetConditions"
    category = "Conditions"
    priority = 10

    # condition type -> (status that triggers, finding suffix)
    triggers = {
        "ErrorOccurred": ("True", "has error condition"),
        "ParametersGenerated": ("False", "failed to generate parameters"),
        "ResourcesUpToDate": ("False", "resources are not up to date"),
    }

    def check(self, appset: Document, context: RuleContext) -> list[str]:
        return triggered_conditions(appset, context, self.triggers)


class ProgressingRule(AppSetRule):
    """
    Reports a rollout in progress. Runs after ConditionsRule, so it follows
    every error condition of the same ApplicationSet.
    """

    name = "ApplicationSetProgressing"
    category = "Conditions"
    priority = 15

    triggers = {
        "Progressing": ("True", "is in progressing state"),
    }

    def check(self, appset: Document, context: RuleContext) -> list[str]:
        return triggered_conditions(appset, context, self.triggers)
