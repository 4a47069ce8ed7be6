"""Kubernetes API collaborator backed by kubernetes_asyncio.

The sync core only depends on the ``ResourceApi`` protocol: one ``list``
call per resource kind returning raw, JSON-shaped objects (camelCase keys),
or raising on failure. ``KubernetesApi`` is the production implementation.
"""

from __future__ import annotations

from typing import Any, Protocol

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]

from kubesnap.models.resources import ResourceKind
from kubesnap.observability.logging import get_logger

_log = get_logger("kube.api")


class ResourceApi(Protocol):
    """Minimal list interface required by the fetcher."""

    async def list(self, kind: ResourceKind, namespace: str | None = None) -> list[dict[str, Any]]: ...


async def load_client_config(context: str = "") -> str:
    """Configure the default kubernetes_asyncio client.

    Uses the in-cluster service account unless an explicit *context* is
    requested, falling back to kubeconfig. Returns the source used.

    Raises:
        kubernetes_asyncio.config.ConfigException: if no configuration can be loaded.
    """
    if not context:
        try:
            # load_incluster_config() is synchronous in kubernetes-asyncio
            k8s_config.load_incluster_config()
            _log.info("k8s client configured from in-cluster service account")
            return "incluster"
        except k8s_config.ConfigException:
            pass
    await k8s_config.load_kube_config(context=context or None)
    _log.info("k8s client configured from kubeconfig", context=context or "<current>")
    return "kubeconfig"


class KubernetesApi:
    """Dispatches ``list`` calls to the generated kubernetes_asyncio API classes.

    Typed API responses are converted back to plain dicts with the client's
    own serializer so every kind (and the metrics custom objects) reaches
    the converters in the same shape.
    """

    def __init__(self, api_client: Any | None = None, request_timeout: float | None = None) -> None:
        self._api_client = api_client if api_client is not None else k8s_client.ApiClient()
        self._request_timeout = request_timeout
        self._apis: dict[str, Any] = {}

    def _api(self, name: str) -> Any:
        api = self._apis.get(name)
        if api is None:
            api = getattr(k8s_client, name)(self._api_client)
            self._apis[name] = api
        return api

    def _kwargs(self) -> dict[str, Any]:
        if self._request_timeout is None:
            return {}
        return {"_request_timeout": self._request_timeout}

    async def list(self, kind: ResourceKind, namespace: str | None = None) -> list[dict[str, Any]]:
        if kind.custom is not None:
            return await self._list_custom(kind, namespace)

        assert kind.api is not None and kind.list_all is not None
        api = self._api(kind.api)
        if namespace is not None and kind.namespaced:
            assert kind.list_namespaced is not None
            response = await getattr(api, kind.list_namespaced)(namespace, **self._kwargs())
        else:
            response = await getattr(api, kind.list_all)(**self._kwargs())
        return [self._api_client.sanitize_for_serialization(item) for item in response.items or []]

    async def _list_custom(self, kind: ResourceKind, namespace: str | None) -> list[dict[str, Any]]:
        ref = kind.custom
        assert ref is not None
        api = self._api("CustomObjectsApi")
        if namespace is not None and kind.namespaced:
            response = await api.list_namespaced_custom_object(
                ref.group, ref.version, namespace, ref.plural, **self._kwargs()
            )
        else:
            response = await api.list_cluster_custom_object(ref.group, ref.version, ref.plural, **self._kwargs())
        return list(response.get("items", []) or [])

    async def close(self) -> None:
        """Close the underlying aiohttp connection pool."""
        await self._api_client.close()
