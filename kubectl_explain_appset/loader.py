import glob
import importlib
import importlib.util
import logging
import os
from types import ModuleType

from kubectl_explain_appset.rules.base_rule import AppSetRule

logger = logging.getLogger(__name__)

RULES_DIR = os.path.join(os.path.dirname(__file__), "rules")
RULES_PACKAGE = "kubectl_explain_appset.rules"

# ----------------------------
# Dynamic Rule Loader
# ----------------------------


def validate_rule(rule: AppSetRule):
    required_fields = ["name", "category", "priority"]
    for field in required_fields:
        if not hasattr(rule, field):
            raise ValueError(f"Rule {rule} missing required field '{field}'")

    if not isinstance(rule.name, str) or not rule.name:
        raise ValueError("Rule.name must be a non-empty string")
    if not isinstance(rule.category, str) or not rule.category:
        raise ValueError(f"Rule {rule.name}.category must be a non-empty string")
    if not isinstance(rule.priority, int) or isinstance(rule.priority, bool):
        raise ValueError(f"Rule {rule.name}.priority must be an integer")
    if not (0 <= rule.priority <= 1000):
        raise ValueError(f"Rule {rule.name}.priority must be between 0 and 1000")
    if not callable(getattr(rule, "check", None)):
        raise ValueError(f"Rule {rule.name} must define check()")


def sort_rules(rules: list[AppSetRule]) -> list[AppSetRule]:
    """
    Stage order: ascending priority, ties broken by name.
    """
    return sorted(rules, key=lambda r: (r.priority, r.name))


def _rules_in_module(module: ModuleType) -> list[AppSetRule]:
    rules = []
    for attr in sorted(dir(module)):
        cls = getattr(module, attr)
        if (
            isinstance(cls, type)
            and issubclass(cls, AppSetRule)
            and cls is not AppSetRule
            and cls.__module__ == module.__name__
        ):
            rules.append(cls())
    return rules


def _import_file(path: str) -> ModuleType | None:
    module_name = os.path.splitext(os.path.basename(path))[0]
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        return None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def load_rules(rule_folder=None) -> list[AppSetRule]:
    if rule_folder is None:
        rule_folder = RULES_DIR
    builtin = os.path.abspath(rule_folder) == os.path.abspath(RULES_DIR)

    rules: list[AppSetRule] = []

    for file in sorted(glob.glob(os.path.join(rule_folder, "*.py"))):
        if os.path.basename(file) == "base_rule.py":
            continue
        module_name = os.path.splitext(os.path.basename(file))[0]
        if builtin:
            module = importlib.import_module(f"{RULES_PACKAGE}.{module_name}")
        else:
            module = _import_file(file)
            if module is None:
                continue
        rules.extend(_rules_in_module(module))

    # ---- CONTRACT VALIDATION ----
    for rule in rules:
        validate_rule(rule)

    logger.debug("Loaded %d rule(s) from %s", len(rules), rule_folder)
    return sort_rules(rules)


def load_plugins(plugin_folder=None) -> list[AppSetRule]:
    if plugin_folder is None or not os.path.exists(plugin_folder):
        return []
    return load_rules(plugin_folder)


_DEFAULT_RULES = None


def get_default_rules() -> list[AppSetRule]:
    global _DEFAULT_RULES
    if _DEFAULT_RULES is None:
        _DEFAULT_RULES = load_rules(RULES_DIR)
    return list(_DEFAULT_RULES)
