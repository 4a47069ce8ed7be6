"""Metrics adapter for ``metrics.k8s.io/v1beta1``.

Node and pod metrics look like ordinary list results but are sampled, not
declarative: each item is an instantaneous usage reading over a short
window. They are listed cluster-wide through the same fetcher as every
other kind, so failures come back as soft ``FetchResult`` errors; whether
to surface them is the caller's decision.
"""

from __future__ import annotations

from typing import Any

from kubesnap.collector.fetcher import ScopeAwareFetcher
from kubesnap.kube.kinds import NODE_METRICS, POD_METRICS
from kubesnap.kube.quantity import parse_resource_map
from kubesnap.models.resources import FetchResult
from kubesnap.models.views import NodeMetricsView, PodMetricsView


def node_metrics_from_api(obj: dict[str, Any]) -> NodeMetricsView:
    metadata = obj.get("metadata") or {}
    usage = parse_resource_map(obj.get("usage"))
    return NodeMetricsView(
        name=str(metadata.get("name", "")),
        cpu=usage.get("cpu"),
        memory=usage.get("memory"),
        timestamp=obj.get("timestamp"),
        window=obj.get("window"),
    )


def pod_metrics_from_api(obj: dict[str, Any]) -> PodMetricsView:
    metadata = obj.get("metadata") or {}
    containers = {
        str(c.get("name", "")): parse_resource_map(c.get("usage")) for c in obj.get("containers") or []
    }
    return PodMetricsView(
        namespace=str(metadata.get("namespace", "")),
        name=str(metadata.get("name", "")),
        containers=containers,
        timestamp=obj.get("timestamp"),
        window=obj.get("window"),
    )


class MetricsAdapter:
    """Fetches node-level and pod-level usage samples."""

    def __init__(self, fetcher: ScopeAwareFetcher) -> None:
        self._fetcher = fetcher

    async def node_metrics(self) -> FetchResult[NodeMetricsView]:
        """Node usage samples; a missing metrics-server is expected, so failures log at debug."""
        return await self._fetcher.fetch(NODE_METRICS, node_metrics_from_api, quiet=True)

    async def pod_metrics(self) -> FetchResult[PodMetricsView]:
        return await self._fetcher.fetch(POD_METRICS, pod_metrics_from_api)
