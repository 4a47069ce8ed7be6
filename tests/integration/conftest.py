"""Shared fixtures for kubesnap integration tests.

Provides an in-memory ``ResourceApi`` fake with realistic raw objects so the
orchestrator can be exercised end to end (fetch, convert, reconcile,
publish) without touching a real Kubernetes cluster.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from kubesnap.models.resources import ResourceKind
from kubesnap.state.snapshot import SharedState
from kubesnap.sync.orchestrator import SyncOrchestrator

# ---------------------------------------------------------------------------
# Raw object factories
# ---------------------------------------------------------------------------


def make_node(name: str, cpu: str = "4000m", memory: str = "16Gi") -> dict[str, Any]:
    return {
        "metadata": {"name": name, "labels": {"node-role.kubernetes.io/worker": ""}},
        "spec": {},
        "status": {
            "allocatable": {"cpu": cpu, "memory": memory, "pods": "110"},
            "conditions": [{"type": "Ready", "status": "True"}],
            "nodeInfo": {"kubeletVersion": "v1.29.2"},
        },
    }


def make_pod(
    name: str,
    namespace: str = "default",
    node: str | None = "n1",
    cpu: str = "500m",
    memory: str = "256Mi",
    phase: str = "Running",
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "containers": [{"name": "app", "image": "app:1", "resources": {"requests": {"cpu": cpu, "memory": memory}}}]
    }
    if node is not None:
        spec["nodeName"] = node
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
        "status": {
            "phase": phase,
            "containerStatuses": [{"name": "app", "ready": True, "restartCount": 0, "state": {"running": {}}}],
        },
    }


def make_pod_metrics(name: str, namespace: str = "default", cpu: str = "120m", memory: str = "100Mi") -> dict[str, Any]:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "window": "30s",
        "containers": [{"name": "app", "usage": {"cpu": cpu, "memory": memory}}],
    }


def make_node_metrics(name: str, cpu: str = "1", memory: str = "4Gi") -> dict[str, Any]:
    return {"metadata": {"name": name}, "window": "20s", "usage": {"cpu": cpu, "memory": memory}}


def make_named(name: str, namespace: str | None = None, **extra: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if namespace is not None:
        metadata["namespace"] = namespace
    return {"metadata": metadata, **extra}


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


@dataclass
class FakeKubeApi:
    """In-memory ResourceApi.

    ``objects`` maps a kind name to its raw items; ``failures`` maps a kind
    name to the exception its list call raises. Every call is recorded with
    whether the shared-state lock was held at that moment.
    """

    objects: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    state: SharedState | None = None
    delay: float = 0.0
    calls: list[tuple[str, str | None]] = field(default_factory=list)
    lock_held: list[bool] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    async def list(self, kind: ResourceKind, namespace: str | None = None) -> list[dict[str, Any]]:
        self.calls.append((kind.name, namespace))
        if self.state is not None:
            self.lock_held.append(self.state.locked())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if kind.name in self.failures:
                raise self.failures[kind.name]
            items = self.objects.get(kind.name, [])
            if namespace is not None:
                items = [o for o in items if o.get("metadata", {}).get("namespace") == namespace]
            return items
        finally:
            self.in_flight -= 1

    def called(self, kind: str) -> bool:
        return any(name == kind for name, _ in self.calls)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cluster_objects() -> dict[str, list[dict[str, Any]]]:
    """A small two-node cluster with pods in two namespaces and live metrics."""
    return {
        "nodes": [make_node("n1"), make_node("n2", cpu="8")],
        "pods": [
            make_pod("web-1", "shop", node="n1", cpu="500m"),
            make_pod("api-1", "shop", node="n2", cpu="1"),
            make_pod("agent-1", "ops", node="n2", cpu="100m"),
            make_pod("backup-1", "ops", node="n1", cpu="2", phase="Succeeded"),
        ],
        "node_metrics": [make_node_metrics("n1", cpu="1"), make_node_metrics("n2", cpu="2")],
        "pod_metrics": [
            make_pod_metrics("web-1", "shop", cpu="120m"),
            make_pod_metrics("api-1", "shop", cpu="300m"),
            make_pod_metrics("agent-1", "ops", cpu="50m"),
        ],
        "namespaces": [make_named("shop", status={"phase": "Active"}), make_named("ops", status={"phase": "Active"})],
        "services": [make_named("web", "shop", spec={"type": "ClusterIP", "ports": [{"port": 80}]})],
        "deployments": [make_named("web", "shop", spec={"replicas": 1}, status={"readyReplicas": 1})],
        "secrets": [make_named("creds", "shop", type="Opaque", data={"k": "v"})],
        "storage_classes": [make_named("standard", provisioner="kubernetes.io/no-provisioner")],
    }


@pytest.fixture()
def state() -> SharedState:
    return SharedState()


@pytest.fixture()
def fake_api(cluster_objects: dict[str, list[dict[str, Any]]], state: SharedState) -> FakeKubeApi:
    return FakeKubeApi(objects=cluster_objects, state=state)


@pytest.fixture()
def orchestrator(fake_api: FakeKubeApi, state: SharedState) -> SyncOrchestrator:
    return SyncOrchestrator(fake_api, state, max_concurrent=4)
