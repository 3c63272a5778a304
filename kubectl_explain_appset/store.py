import logging
import threading
import time
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

import yaml

from kubectl_explain_appset.document import lookup
from kubectl_explain_appset.errors import FetchError, RunCancelled
from kubectl_explain_appset.model import Kind, load_documents

logger = logging.getLogger(__name__)


class RunContext:
    """
    Cancellation and deadline for one analyzer run.

    Passed to every Fetch Port call; ports must not start a request once
    `cancelled` is true and should bound requests by `remaining()`.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        if self._event.is_set():
            raise RunCancelled("run cancelled")
        if self.cancelled:
            raise RunCancelled("run deadline exceeded")


class FetchPort(Protocol):
    def list_all(self, ctx: RunContext, kind: Kind) -> list[dict[str, Any]]:
        ...

    def list_in_namespace(
        self,
        ctx: RunContext,
        kind: Kind,
        namespace: str,
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        ...


# ----------------------------
# Label selectors
# ----------------------------


def parse_label_selector(selector: str | None) -> list[tuple[str, str, str]]:
    """
    Parse equality-based selector terms into (key, op, value) triples.

    Supported: `k=v`, `k==v`, `k!=v`, `k` (exists), `!k` (does not exist).
    """
    terms: list[tuple[str, str, str]] = []
    if not selector:
        return terms

    for raw in selector.split(","):
        term = raw.strip()
        if not term:
            continue
        if "!=" in term:
            key, _, value = term.partition("!=")
            terms.append((key.strip(), "!=", value.strip()))
        elif "==" in term:
            key, _, value = term.partition("==")
            terms.append((key.strip(), "=", value.strip()))
        elif "=" in term:
            key, _, value = term.partition("=")
            terms.append((key.strip(), "=", value.strip()))
        elif term.startswith("!"):
            terms.append((term[1:].strip(), "!exists", ""))
        else:
            terms.append((term, "exists", ""))

    for key, _, _ in terms:
        if not key:
            raise ValueError(f"Invalid label selector: {selector!r}")
    return terms


def matches_selector(labels: Mapping[str, Any], selector: str | None) -> bool:
    for key, op, value in parse_label_selector(selector):
        if op == "=" and labels.get(key) != value:
            return False
        if op == "!=" and labels.get(key) == value:
            return False
        if op == "exists" and key not in labels:
            return False
        if op == "!exists" and key in labels:
            return False
    return True


# ----------------------------
# In-memory Fetch Port
# ----------------------------


class InMemoryStore:
    """
    Fetch Port over a fixed list of decoded documents.
    """

    def __init__(self, documents: Iterable[Any] = ()):
        self.documents = list(documents)

    def _of_kind(self, kind: Kind) -> list[dict[str, Any]]:
        return [
            d for d in self.documents if isinstance(d, Mapping) and kind.matches(d)
        ]

    def list_all(self, ctx: RunContext, kind: Kind) -> list[dict[str, Any]]:
        ctx.check()
        return self._of_kind(kind)

    def list_in_namespace(
        self,
        ctx: RunContext,
        kind: Kind,
        namespace: str,
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        ctx.check()
        try:
            parse_label_selector(label_selector)
        except ValueError as exc:
            raise FetchError(str(exc)) from exc

        result = []
        for doc in self._of_kind(kind):
            if lookup(doc, "metadata", "namespace").or_default("") != namespace:
                continue
            labels = lookup(doc, "metadata", "labels").or_default({})
            if not isinstance(labels, Mapping):
                continue
            if matches_selector(labels, label_selector):
                result.append(doc)
        return result


class FileStore(InMemoryStore):
    """
    InMemoryStore loaded from JSON / YAML dumps, e.g. `kubectl get -o yaml`.
    """

    def __init__(self, paths: Iterable[str]):
        documents: list[Any] = []
        for path in paths:
            try:
                loaded = load_documents(path)
            except (OSError, ValueError, yaml.YAMLError) as exc:
                raise FetchError(f"failed to load {path}: {exc}") from exc
            logger.debug("Loaded %d document(s) from %s", len(loaded), path)
            documents.extend(loaded)
        super().__init__(documents)
