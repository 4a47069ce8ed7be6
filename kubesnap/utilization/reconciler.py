"""Utilization reconciler: capacity, requests and usage merged into one ledger.

The three stages run one after the other (never concurrently) to bound the
load put on the control-plane API. Each stage fails on its own: a failed
stage contributes no samples and one error message, and the remaining
stages still run. The result is whatever subset of the sources succeeded,
possibly none, and never an exception.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from kubesnap.collector.fetcher import ScopeAwareFetcher
from kubesnap.collector.metrics import MetricsAdapter
from kubesnap.kube.kinds import NODES, PODS
from kubesnap.models.utilization import AggregatedUtilization, Qualifier, ResourceSample
from kubesnap.observability.logging import get_logger
from kubesnap.observability.metrics import reconcile_rows
from kubesnap.utilization.grouping import aggregate
from kubesnap.utilization.ledger import (
    ResourceLedger,
    StageOutput,
    allocation_from_pod,
    merge,
    samples_from_node,
    samples_from_pod_metrics,
)

_log = get_logger("utilization.reconciler")

CAPACITY_ERROR = "Failed to extract node allocation metrics."
REQUEST_ERROR = "Failed to extract pod allocation metrics."
USAGE_ERROR = (
    "Failed to extract pod utilization metrics. "
    "Make sure you have a metrics-server deployed on your cluster."
)


@dataclass
class ReconcileResult:
    """Aggregated rows plus one error message per failed stage."""

    rows: list[AggregatedUtilization] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    samples: list[ResourceSample] = field(default_factory=list)
    duration_ms: float = 0.0


class UtilizationReconciler:
    """Orchestrates the capacity, request and usage stages."""

    def __init__(self, fetcher: ScopeAwareFetcher, metrics: MetricsAdapter) -> None:
        self._fetcher = fetcher
        self._metrics = metrics

    async def capacity_stage(self) -> StageOutput:
        """Allocatable resources of every node (cluster scope)."""
        result = await self._fetcher.fetch(NODES, samples_from_node)
        if not result.ok:
            return StageOutput(stage="capacity", error=f"{CAPACITY_ERROR} {result.error}")
        return StageOutput(stage="capacity", samples=[s for samples in result.items for s in samples])

    async def request_stage(self, namespace: str | None = None) -> StageOutput:
        """Requests and limits of every pod container in *namespace* (all namespaces when ``None``)."""
        result = await self._fetcher.fetch_in(PODS, allocation_from_pod, namespace)
        if not result.ok:
            return StageOutput(stage="request", error=f"{REQUEST_ERROR} {result.error}")
        output = StageOutput(stage="request")
        for allocation in result.items:
            if allocation is None:
                continue
            if allocation.node is not None:
                output.placements[(allocation.namespace, allocation.name)] = allocation.node
            output.samples.extend(allocation.samples)
        return output

    async def usage_stage(self, namespace: str | None = None) -> StageOutput:
        """Live usage of every pod container, restricted to *namespace* when given.

        Metrics are always listed cluster-wide; the namespace filter keeps the
        usage rows in the same scope as the request stage.
        """
        result = await self._metrics.pod_metrics()
        if not result.ok:
            _log.debug("pod_metrics_unavailable", error=result.error)
            return StageOutput(stage="usage", error=USAGE_ERROR)
        output = StageOutput(stage="usage")
        for view in result.items:
            if namespace is not None and view.namespace != namespace:
                continue
            output.samples.extend(samples_from_pod_metrics(view))
        return output

    async def collect(self) -> tuple[ResourceLedger, list[str]]:
        """Run the three stages in sequence and merge their samples.

        The namespace selection is read once up front; every stage of the pass
        uses it even if the selection changes while a list call is in flight.
        """
        namespace = await self._fetcher.resolve_namespace(PODS)
        outputs = [
            await self.capacity_stage(),
            await self.request_stage(namespace),
            await self.usage_stage(namespace),
        ]
        errors = [o.error for o in outputs if o.error is not None]
        for output in outputs:
            if output.error is not None:
                _log.debug("utilization_stage_failed", stage=output.stage, error=output.error)
        return merge(*outputs), errors

    async def reconcile(self, qualifiers: Sequence[Qualifier]) -> ReconcileResult:
        """Collect, merge and aggregate by *qualifiers*. Never raises."""
        t_start = time.monotonic()
        ledger, errors = await self.collect()
        samples = ledger.rows()
        rows = aggregate(samples, qualifiers)
        reconcile_rows.observe(len(samples))
        duration_ms = (time.monotonic() - t_start) * 1000.0
        _log.debug(
            "utilization_reconciled",
            ledger_rows=len(samples),
            buckets=len(rows),
            failed_stages=len(errors),
            duration_ms=round(duration_ms, 1),
        )
        return ReconcileResult(rows=rows, errors=errors, samples=samples, duration_ms=duration_ms)
