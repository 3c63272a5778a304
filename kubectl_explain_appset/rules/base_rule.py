from dataclasses import dataclass, field

from kubectl_explain_appset.config import AnalyzerConfig
from kubectl_explain_appset.document import Document
from kubectl_explain_appset.store import FetchPort, RunContext


@dataclass
class RuleContext:
    """
    Per-parent state handed to every rule.

    Built fresh for each ApplicationSet, so rules running on different
    worker threads never share one.
    """

    store: FetchPort | None
    run: RunContext
    config: AnalyzerConfig
    complete: bool = True
    suppressed_errors: list[str] = field(default_factory=list)

    def subject(self, doc: Document) -> str:
        return f"{self.config.parent_kind.kind} {doc.id}"


class AppSetRule:
    """
    Base class for all ApplicationSet diagnostic rules.
    """

    # ---- Metadata (mandatory) ----
    name: str = "BaseRule"
    category: str = "Generic"
    priority: int = 100

    # ---- Contract requirements ----
    requires_store: bool = False

    def check(self, appset: Document, context: RuleContext) -> list[str]:
        """
        Must return a list of finding texts, in the order the underlying
        document lists the offending items. An empty list means healthy.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} priority={self.priority}>"
