import argparse
import logging
import sys

from kubectl_explain_appset.config import AnalyzerConfig
from kubectl_explain_appset.engine import Analyzer
from kubectl_explain_appset.errors import FetchError, RunFailedError
from kubectl_explain_appset.loader import get_default_rules, load_plugins, sort_rules
from kubectl_explain_appset.output import output_result
from kubectl_explain_appset.store import FileStore, RunContext

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Explain misconfigured or unhealthy Argo CD ApplicationSets"
    )

    parser.add_argument(
        "--file",
        action="append",
        dest="files",
        help="JSON/YAML dump to analyze instead of a live cluster (repeatable)",
    )
    parser.add_argument("--kubeconfig")
    parser.add_argument("--context")
    parser.add_argument("--namespace", help="Only analyze ApplicationSets in this namespace")

    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Seconds")

    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (text, json, yaml)",
    )

    parser.add_argument("--enable-categories", nargs="*", default=None)
    parser.add_argument("--disable-categories", nargs="*", default=None)
    parser.add_argument("--plugins", help="Folder with extra rule modules")
    parser.add_argument("--verbose", action="store_true")

    return parser


def build_store(args):
    if args.files:
        return FileStore(args.files)

    from kubectl_explain_appset.kube import KubernetesStore

    return KubernetesStore.from_kubeconfig(args.kubeconfig, args.context)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    try:
        config = AnalyzerConfig.from_args(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    rules = get_default_rules()
    if args.plugins:
        rules = sort_rules(rules + load_plugins(args.plugins))
    logger.debug("Loaded %d rules", len(rules))
    for r in rules:
        logger.debug("  - %s (category=%s, priority=%s)", r.name, r.category, r.priority)

    try:
        store = build_store(args)
        result = Analyzer(store, config, rules).run(RunContext(timeout=args.timeout))
    except (RunFailedError, FetchError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    output_result(result, args.format)
    return 0


if __name__ == "__main__":
    sys.exit(main())
