from dataclasses import dataclass, field

from kubectl_explain_appset.model import (
    APPLICATION,
    APPLICATION_SET,
    APPLICATION_SET_LABEL,
    Kind,
)

DEFAULT_WORKERS = 4


@dataclass
class AnalyzerConfig:
    """
    Knobs for one analyzer. Everything defaults to the Argo CD kinds.
    """

    workers: int = DEFAULT_WORKERS
    namespace: str | None = None
    enabled_categories: list[str] | None = None
    disabled_categories: list[str] | None = None
    parent_kind: Kind = field(default=APPLICATION_SET)
    dependent_kind: Kind = field(default=APPLICATION)
    label_key: str = APPLICATION_SET_LABEL

    def __post_init__(self):
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ValueError(f"workers must be a positive integer, got {self.workers!r}")
        if not self.label_key:
            raise ValueError("label_key must be a non-empty string")

    def category_enabled(self, category: str) -> bool:
        if self.enabled_categories and category not in self.enabled_categories:
            return False
        if self.disabled_categories and category in self.disabled_categories:
            return False
        return True

    @classmethod
    def from_args(cls, args) -> "AnalyzerConfig":
        workers = getattr(args, "workers", None)
        return cls(
            workers=DEFAULT_WORKERS if workers is None else workers,
            namespace=getattr(args, "namespace", None),
            enabled_categories=getattr(args, "enable_categories", None),
            disabled_categories=getattr(args, "disable_categories", None),
        )
