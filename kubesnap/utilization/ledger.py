"""Resource ledger: extraction of samples from each source and their merge.

Each extraction function maps one raw object to ledger samples. The ledger
then coalesces samples sharing a ``SampleKey``: populated measures are added
together, unset measures stay ``None``. Addition over exact Decimals is
associative and commutative, so the merged ledger does not depend on the
order in which the sources are folded in.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from kubesnap.kube.quantity import parse_resource_map
from kubesnap.models.utilization import MEASURES, POD_ENTITY, ResourceSample, SampleKey, add_measure
from kubesnap.models.views import TERMINAL_POD_PHASES, PodMetricsView


@dataclass
class PodAllocation:
    """Request-stage output for one pod: its placement and per-container samples."""

    namespace: str
    name: str
    node: str | None
    samples: list[ResourceSample] = field(default_factory=list)


@dataclass
class StageOutput:
    """Samples (and pod placements) produced by one reconciliation stage."""

    stage: str
    samples: list[ResourceSample] = field(default_factory=list)
    placements: dict[tuple[str, str], str] = field(default_factory=dict)
    error: str | None = None


def samples_from_node(obj: dict[str, Any]) -> list[ResourceSample]:
    """One sample per allocatable resource of a node."""
    name = str((obj.get("metadata") or {}).get("name", ""))
    allocatable = parse_resource_map((obj.get("status") or {}).get("allocatable"))
    return [
        ResourceSample(key=SampleKey.for_node(name, resource), node=name, allocatable=quantity)
        for resource, quantity in allocatable.items()
    ]


def allocation_from_pod(obj: dict[str, Any]) -> PodAllocation | None:
    """Requests and limits of every container of a pod.

    Pods in a terminal phase no longer hold their requests and yield ``None``.
    """
    metadata = obj.get("metadata") or {}
    spec = obj.get("spec") or {}
    phase = (obj.get("status") or {}).get("phase")
    if phase in TERMINAL_POD_PHASES:
        return None

    namespace = str(metadata.get("namespace", ""))
    pod = str(metadata.get("name", ""))
    node = spec.get("nodeName") or None
    allocation = PodAllocation(namespace=namespace, name=pod, node=node)
    for container in spec.get("containers") or []:
        resources = container.get("resources") or {}
        requests = parse_resource_map(resources.get("requests"))
        limits = parse_resource_map(resources.get("limits"))
        cname = str(container.get("name", ""))
        for resource in sorted(requests.keys() | limits.keys()):
            allocation.samples.append(
                ResourceSample(
                    key=SampleKey.for_container(namespace, pod, cname, resource),
                    node=node,
                    requested=requests.get(resource),
                    limit=limits.get(resource),
                )
            )
    return allocation


def samples_from_pod_metrics(view: PodMetricsView) -> list[ResourceSample]:
    """One usage sample per container and resource of a pod metrics reading."""
    return [
        ResourceSample(key=SampleKey.for_container(view.namespace, view.name, container, resource), used=quantity)
        for container, usage in view.containers.items()
        for resource, quantity in usage.items()
    ]


class ResourceLedger:
    """Merged view of all samples of one reconciliation pass, keyed by identity."""

    def __init__(self) -> None:
        self._rows: dict[SampleKey, ResourceSample] = {}
        self._placements: dict[tuple[str, str], str] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def add(self, sample: ResourceSample) -> None:
        row = self._rows.get(sample.key)
        if row is None:
            row = ResourceSample(key=sample.key)
            self._rows[sample.key] = row
        for measure in MEASURES:
            setattr(row, measure, add_measure(getattr(row, measure), getattr(sample, measure)))
        if sample.node is not None:
            row.node = sample.node
            if sample.key.entity == POD_ENTITY:
                self.place(sample.key.namespace, sample.key.name, sample.node)

    def place(self, namespace: str, pod: str, node: str) -> None:
        self._placements[(namespace, pod)] = node

    def extend(self, samples: Iterable[ResourceSample]) -> None:
        for sample in samples:
            self.add(sample)

    def merge(self, output: StageOutput) -> None:
        for (namespace, pod), node in output.placements.items():
            self.place(namespace, pod, node)
        self.extend(output.samples)

    def rows(self) -> list[ResourceSample]:
        """Merged rows in key order, pod rows resolved to their node when known."""
        rows: list[ResourceSample] = []
        for key in sorted(self._rows):
            row = self._rows[key]
            node = row.node
            if key.entity == POD_ENTITY and node is None:
                node = self._placements.get((key.namespace, key.name))
            rows.append(
                ResourceSample(
                    key=key,
                    node=node,
                    allocatable=row.allocatable,
                    requested=row.requested,
                    limit=row.limit,
                    used=row.used,
                )
            )
        return rows


def merge(*outputs: StageOutput) -> ResourceLedger:
    """Fold stage outputs into a fresh ledger; the order of *outputs* is irrelevant."""
    ledger = ResourceLedger()
    for output in outputs:
        ledger.merge(output)
    return ledger
