"""Node enrichment: nodes joined with their pods and live metrics."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any

from kubesnap.kube.quantity import parse_resource_map
from kubesnap.models.views import TERMINAL_POD_PHASES, NodeMetricsView, NodeView, PodView

_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
_LEGACY_ROLE_LABEL = "kubernetes.io/role"


def _node_status(obj: dict[str, Any]) -> str:
    conditions = (obj.get("status") or {}).get("conditions") or []
    ready = next((c for c in conditions if c.get("type") == "Ready"), None)
    if ready is None:
        status = "Unknown"
    elif ready.get("status") == "True":
        status = "Ready"
    else:
        status = "NotReady"
    if (obj.get("spec") or {}).get("unschedulable"):
        status += ",SchedulingDisabled"
    return status


def _node_roles(labels: dict[str, str]) -> list[str]:
    roles = {key[len(_ROLE_LABEL_PREFIX) :] for key in labels if key.startswith(_ROLE_LABEL_PREFIX)}
    if _LEGACY_ROLE_LABEL in labels:
        roles.add(labels[_LEGACY_ROLE_LABEL])
    return sorted(r for r in roles if r)


def node_from_api(obj: dict[str, Any]) -> NodeView:
    metadata = obj.get("metadata") or {}
    status = obj.get("status") or {}
    allocatable = parse_resource_map(status.get("allocatable"))
    return NodeView(
        name=str(metadata.get("name", "")),
        status=_node_status(obj),
        roles=_node_roles(metadata.get("labels") or {}),
        version=str((status.get("nodeInfo") or {}).get("kubeletVersion", "")),
        created_at=metadata.get("creationTimestamp"),
        cpu_allocatable=allocatable.get("cpu"),
        memory_allocatable=allocatable.get("memory"),
    )


def enrich_nodes(
    nodes: list[NodeView],
    pods: list[PodView],
    node_metrics: list[NodeMetricsView],
) -> list[NodeView]:
    """Attach placed pods, their summed requests and the metrics sample to each node.

    Empty *pods* or *node_metrics* (their fetch failed) leave the pod lists
    empty and the usage fields ``None``; node order is preserved.
    """
    pods_by_node: dict[str, list[PodView]] = defaultdict(list)
    for pod in pods:
        if pod.node:
            pods_by_node[pod.node].append(pod)
    metrics_by_node = {m.name: m for m in node_metrics}

    for node in nodes:
        placed = pods_by_node.get(node.name, [])
        node.pods = [f"{p.namespace}/{p.name}" for p in placed]
        active = [c for p in placed if p.phase not in TERMINAL_POD_PHASES for c in p.containers if not c.init]
        node.cpu_requested = sum((c.cpu_request for c in active if c.cpu_request is not None), Decimal(0))
        node.memory_requested = sum((c.memory_request for c in active if c.memory_request is not None), Decimal(0))
        sample = metrics_by_node.get(node.name)
        if sample is not None:
            node.cpu_used = sample.cpu
            node.memory_used = sample.memory
    return nodes
