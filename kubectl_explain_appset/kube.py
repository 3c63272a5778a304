import logging
from typing import Any

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from kubectl_explain_appset.errors import FetchError
from kubectl_explain_appset.model import Kind
from kubectl_explain_appset.store import RunContext

logger = logging.getLogger(__name__)


class KubernetesStore:
    """
    Fetch Port listing custom resources through the Kubernetes API.
    """

    def __init__(self, api_client: client.ApiClient | None = None):
        self._api = client.CustomObjectsApi(api_client)

    @classmethod
    def from_kubeconfig(
        cls, kubeconfig: str | None = None, context: str | None = None
    ) -> "KubernetesStore":
        """
        In-cluster config first, kubeconfig file as fallback.

        An explicit kubeconfig path or context always selects the file.
        """
        try:
            if kubeconfig or context:
                config.load_kube_config(config_file=kubeconfig, context=context)
            else:
                try:
                    config.load_incluster_config()
                except ConfigException:
                    config.load_kube_config()
        except (ConfigException, OSError) as exc:
            raise FetchError(f"failed to get kubeconfig: {exc}") from exc

        return cls(client.ApiClient())

    @staticmethod
    def _request_kwargs(ctx: RunContext) -> dict[str, Any]:
        ctx.check()
        remaining = ctx.remaining()
        return {"_request_timeout": remaining} if remaining is not None else {}

    def _call(self, what: str, fn, *args, **kwargs) -> list[dict[str, Any]]:
        logger.debug("Listing %s", what)
        try:
            result = fn(*args, **kwargs)
        except ApiException as exc:
            raise FetchError(
                f"listing {what} failed: {exc.status} {exc.reason}"
            ) from exc
        except urllib3.exceptions.HTTPError as exc:
            raise FetchError(f"listing {what} failed: {exc}") from exc

        items = result.get("items") if isinstance(result, dict) else None
        return items if isinstance(items, list) else []

    def list_all(self, ctx: RunContext, kind: Kind) -> list[dict[str, Any]]:
        return self._call(
            kind.plural,
            self._api.list_cluster_custom_object,
            kind.group,
            kind.version,
            kind.plural,
            **self._request_kwargs(ctx),
        )

    def list_in_namespace(
        self,
        ctx: RunContext,
        kind: Kind,
        namespace: str,
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        kwargs = self._request_kwargs(ctx)
        if label_selector:
            kwargs["label_selector"] = label_selector
        return self._call(
            f"{kind.plural} in {namespace}",
            self._api.list_namespaced_custom_object,
            kind.group,
            kind.version,
            namespace,
            kind.plural,
            **kwargs,
        )
