"""Sync orchestrator: one entry point per published collection.

Every entry point fetches through the scope-aware fetcher, reports failures
through the ``ErrorReporter`` and publishes its slice into ``SharedState``.
None of them raise; a failed fetch publishes an empty collection.

Entry points may run concurrently with each other. They only take the
shared-state lock to read the scoping context and to publish, so one slow
list call never blocks the others.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from kubesnap.collector.fetcher import Convert, ScopeAwareFetcher
from kubesnap.collector.metrics import MetricsAdapter
from kubesnap.convert import pod_from_api, row_converter
from kubesnap.kube import kinds
from kubesnap.kube.api import ResourceApi
from kubesnap.models.resources import ResourceKind
from kubesnap.models.views import ContainerView, NodeMetricsView, NodeView, PodView, ResourceRow
from kubesnap.observability.logging import get_logger
from kubesnap.observability.metrics import sync_duration_seconds
from kubesnap.state.snapshot import SharedState
from kubesnap.sync.errors import ErrorReporter
from kubesnap.sync.nodes import enrich_nodes, node_from_api
from kubesnap.utilization.grouping import rollup
from kubesnap.utilization.reconciler import UtilizationReconciler

T = TypeVar("T")

SyncTarget = Callable[[], Awaitable[list[Any]]]

_log = get_logger("sync.orchestrator")

UTILIZATION_SOURCE = "utilization"


class SyncOrchestrator:
    """Owns the fetch/convert/publish cycle for every collection in the snapshot."""

    def __init__(
        self,
        api: ResourceApi,
        state: SharedState,
        reporter: ErrorReporter | None = None,
        max_concurrent: int = 4,
    ) -> None:
        self._state = state
        self._reporter = reporter or ErrorReporter(state)
        self._fetcher = ScopeAwareFetcher(api, state)
        self._metrics = MetricsAdapter(self._fetcher)
        self._reconciler = UtilizationReconciler(self._fetcher, self._metrics)
        self._max_concurrent = max(1, max_concurrent)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _collect(self, kind: ResourceKind, convert: Convert[T], *, all_namespaces: bool = False) -> list[T]:
        """Fetch *kind*, reporting a failure under the kind's name."""
        result = await self._fetcher.fetch(kind, convert, all_namespaces=all_namespaces)
        if result.error is not None:
            await self._reporter.report(kind.name, result.error)
        return result.items

    async def _node_metrics(self) -> list[NodeMetricsView]:
        # Node metrics are best effort: a cluster without metrics-server
        # still gets a usable node table, so failures are not reported.
        result = await self._metrics.node_metrics()
        return result.items

    # ------------------------------------------------------------------
    # Generic kinds
    # ------------------------------------------------------------------

    async def sync_kind(self, kind: ResourceKind) -> list[ResourceRow]:
        """Fetch *kind* as generic rows and publish them under ``kind.name``."""
        with sync_duration_seconds.labels(target=kind.name).time():
            rows = await self._collect(kind, row_converter(kind))
            await self._state.publish(kind.name, rows)
        return rows

    async def sync_namespaces(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.NAMESPACES)

    async def sync_services(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.SERVICES)

    async def sync_config_maps(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.CONFIG_MAPS)

    async def sync_secrets(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.SECRETS)

    async def sync_replication_controllers(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.REPLICATION_CONTROLLERS)

    async def sync_pvcs(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.PVCS)

    async def sync_pvs(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.PVS)

    async def sync_service_accounts(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.SERVICE_ACCOUNTS)

    async def sync_deployments(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.DEPLOYMENTS)

    async def sync_stateful_sets(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.STATEFUL_SETS)

    async def sync_replica_sets(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.REPLICA_SETS)

    async def sync_daemon_sets(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.DAEMON_SETS)

    async def sync_jobs(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.JOBS)

    async def sync_cron_jobs(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.CRON_JOBS)

    async def sync_storage_classes(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.STORAGE_CLASSES)

    async def sync_ingresses(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.INGRESSES)

    async def sync_roles(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.ROLES)

    async def sync_role_bindings(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.ROLE_BINDINGS)

    async def sync_cluster_roles(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.CLUSTER_ROLES)

    async def sync_cluster_role_bindings(self) -> list[ResourceRow]:
        return await self.sync_kind(kinds.CLUSTER_ROLE_BINDINGS)

    # ------------------------------------------------------------------
    # Pods, nodes and metrics
    # ------------------------------------------------------------------

    async def sync_pods(self) -> list[PodView]:
        """Publish pods in the active scope, plus the selected pod's containers."""
        with sync_duration_seconds.labels(target=kinds.PODS.name).time():
            pods = await self._collect(kinds.PODS, pod_from_api)
            scope = await self._state.scope()
            collections: dict[str, list[Any]] = {kinds.PODS.name: pods}
            if scope.pod is not None:
                selected = next((p for p in pods if p.name == scope.pod), None)
                if selected is not None:
                    containers: list[ContainerView] = list(selected.containers)
                    collections["containers"] = containers
            await self._state.publish_many(collections)
        return pods

    async def sync_node_metrics(self) -> list[NodeMetricsView]:
        with sync_duration_seconds.labels(target="node_metrics").time():
            samples = await self._node_metrics()
            await self._state.publish("node_metrics", samples)
        return samples

    async def sync_nodes(self) -> list[NodeView]:
        """Publish nodes joined with their pods (all namespaces) and usage samples.

        When the node list itself fails the metrics and pod lists are
        skipped and an empty node collection is published.
        """
        with sync_duration_seconds.labels(target=kinds.NODES.name).time():
            result = await self._fetcher.fetch(kinds.NODES, node_from_api)
            if result.error is not None:
                await self._reporter.report(kinds.NODES.name, result.error)
                await self._state.publish(kinds.NODES.name, [])
                return []

            node_metrics = await self._node_metrics()
            pods = await self._collect(kinds.PODS, pod_from_api, all_namespaces=True)
            nodes = enrich_nodes(result.items, pods, node_metrics)
            await self._state.publish_many({kinds.NODES.name: nodes, "node_metrics": node_metrics})
        return nodes

    # ------------------------------------------------------------------
    # Utilization
    # ------------------------------------------------------------------

    async def sync_utilization(self) -> list[Any]:
        """Reconcile capacity, requests and usage, grouped by the selected qualifiers.

        Also publishes ``utilization_tree``: the same samples rolled up at
        every prefix of the qualifier list.
        """
        with sync_duration_seconds.labels(target=UTILIZATION_SOURCE).time():
            group_by = await self._state.group_by()
            result = await self._reconciler.reconcile(group_by)
            for error in result.errors:
                await self._reporter.report(UTILIZATION_SOURCE, error)
            await self._state.publish_many(
                {
                    UTILIZATION_SOURCE: result.rows,
                    "utilization_tree": rollup(result.samples, group_by),
                }
            )
        return result.rows

    # ------------------------------------------------------------------
    # Full cycle
    # ------------------------------------------------------------------

    def targets(self) -> dict[str, SyncTarget]:
        """Every entry point run by ``sync_all``, keyed by target name."""
        return {
            "namespaces": self.sync_namespaces,
            "pods": self.sync_pods,
            "services": self.sync_services,
            "config_maps": self.sync_config_maps,
            "stateful_sets": self.sync_stateful_sets,
            "replica_sets": self.sync_replica_sets,
            "jobs": self.sync_jobs,
            "cron_jobs": self.sync_cron_jobs,
            "secrets": self.sync_secrets,
            "replication_controllers": self.sync_replication_controllers,
            "deployments": self.sync_deployments,
            "daemon_sets": self.sync_daemon_sets,
            "storage_classes": self.sync_storage_classes,
            "roles": self.sync_roles,
            "role_bindings": self.sync_role_bindings,
            "cluster_roles": self.sync_cluster_roles,
            "cluster_role_bindings": self.sync_cluster_role_bindings,
            "ingresses": self.sync_ingresses,
            "persistent_volume_claims": self.sync_pvcs,
            "persistent_volumes": self.sync_pvs,
            "service_accounts": self.sync_service_accounts,
            "nodes": self.sync_nodes,
            UTILIZATION_SOURCE: self.sync_utilization,
        }

    async def sync_all(self) -> dict[str, int]:
        """Run every entry point with at most ``max_concurrent`` in flight.

        Returns the number of published items per target; a target that
        raised unexpectedly is logged and counted as -1.
        """
        semaphore = asyncio.Semaphore(self._max_concurrent)
        targets = self.targets()

        async def _bounded(target: SyncTarget) -> list[Any]:
            async with semaphore:
                return await target()

        t_start = time.monotonic()
        results = await asyncio.gather(*(_bounded(t) for t in targets.values()), return_exceptions=True)

        counts: dict[str, int] = {}
        for name, outcome in zip(targets, results, strict=True):
            if isinstance(outcome, BaseException):
                _log.error("sync_target_crashed", target=name, error=str(outcome))
                counts[name] = -1
            else:
                counts[name] = len(outcome)

        _log.info(
            "sync_cycle_complete",
            targets=len(targets),
            failed=sum(1 for c in counts.values() if c < 0),
            duration_ms=round((time.monotonic() - t_start) * 1000.0, 1),
        )
        return counts
