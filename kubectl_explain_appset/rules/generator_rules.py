from kubectl_explain_appset.document import Document, as_mapping
from kubectl_explain_appset.generators import GeneratorVariant, classify, validate_generator
from kubectl_explain_appset.rules.base_rule import AppSetRule, RuleContext


class GeneratorsRule(AppSetRule):
    """
    Validates spec.generators entry by entry.

    A missing or unreadable generator list yields a single finding and no
    per-entry checks.
    """

    name = "ApplicationSetGenerators"
    category = "Generators"
    priority = 20

    def check(self, appset: Document, context: RuleContext) -> list[str]:
        subject = context.subject(appset)
        generators = appset.sequence("spec", "generators")

        if generators.wrong_type:
            return [f"{subject} has invalid generators configuration: {generators.detail}"]
        if not generators.found or len(generators.value) == 0:
            return [f"{subject} has no generators defined"]

        findings = []
        for i, entry in enumerate(generators.value):
            generator = as_mapping(entry)
            if generator is None:
                findings.append(f"{subject} has invalid generator at index {i}")
                continue

            if classify(generator) == [GeneratorVariant.EMPTY]:
                findings.append(f"{subject} has empty generator at index {i}")
                continue

            for label, problem in validate_generator(generator):
                findings.append(f"{subject} {label} generator at index {i} {problem}")

        return findings
