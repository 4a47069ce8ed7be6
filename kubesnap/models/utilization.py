"""Utilization ledger data structures.

A ResourceSample is one row of the reconciliation pipeline. Measures are
``Decimal | None``: ``None`` is "unknown" (no source reported it) and must
never be confused with a measured zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

NODE_ENTITY = "Node"
POD_ENTITY = "Pod"

MEASURES = ("allocatable", "requested", "limit", "used")


class Qualifier(StrEnum):
    """A grouping dimension for utilization aggregation."""

    RESOURCE = "resource"
    NODE = "node"
    NAMESPACE = "namespace"
    POD = "pod"
    CONTAINER = "container"


@dataclass(frozen=True, order=True)
class SampleKey:
    """Join key of the ledger: entity identity plus the resource name."""

    entity: str
    namespace: str
    name: str
    container: str
    resource: str

    @classmethod
    def for_node(cls, name: str, resource: str) -> SampleKey:
        return cls(NODE_ENTITY, "", name, "", resource)

    @classmethod
    def for_container(cls, namespace: str, pod: str, container: str, resource: str) -> SampleKey:
        return cls(POD_ENTITY, namespace, pod, container, resource)


@dataclass
class ResourceSample:
    """One ledger row; any subset of the measures may be populated."""

    key: SampleKey
    node: str | None = None
    allocatable: Decimal | None = None
    requested: Decimal | None = None
    limit: Decimal | None = None
    used: Decimal | None = None

    def value_of(self, qualifier: Qualifier) -> str | None:
        """Project this row onto one qualifier dimension."""
        key = self.key
        is_pod = key.entity == POD_ENTITY
        if qualifier == Qualifier.RESOURCE:
            return key.resource
        if qualifier == Qualifier.NODE:
            return self.node if is_pod else key.name
        if qualifier == Qualifier.NAMESPACE:
            return key.namespace if is_pod else None
        if qualifier == Qualifier.POD:
            return key.name if is_pod else None
        return key.container or None


@dataclass
class AggregatedUtilization:
    """One bucket of merged rows sharing the same qualifier values."""

    group: tuple[tuple[Qualifier, str | None], ...]
    allocatable: Decimal | None = None
    requested: Decimal | None = None
    limit: Decimal | None = None
    used: Decimal | None = None
    members: tuple[SampleKey, ...] = field(default_factory=tuple)
    depth: int = 0

    def value(self, qualifier: Qualifier) -> str | None:
        for q, v in self.group:
            if q == qualifier:
                return v
        raise KeyError(qualifier)

    @property
    def requested_pct(self) -> float | None:
        return _percent(self.requested, self.allocatable)

    @property
    def limit_pct(self) -> float | None:
        return _percent(self.limit, self.allocatable)

    @property
    def used_pct(self) -> float | None:
        return _percent(self.used, self.allocatable)

    @property
    def free(self) -> Decimal | None:
        """Allocatable minus the larger of requested and limit, floored at zero."""
        if self.allocatable is None:
            return None
        committed = max(self.requested or Decimal(0), self.limit or Decimal(0))
        return max(self.allocatable - committed, Decimal(0))

    def to_dict(self) -> dict[str, object]:
        return {
            "group": {q.value: v for q, v in self.group},
            "depth": self.depth,
            "allocatable": _fmt(self.allocatable),
            "requested": _fmt(self.requested),
            "limit": _fmt(self.limit),
            "used": _fmt(self.used),
            "free": _fmt(self.free),
            "requested_pct": self.requested_pct,
            "limit_pct": self.limit_pct,
            "used_pct": self.used_pct,
            "samples": len(self.members),
        }


def _percent(part: Decimal | None, whole: Decimal | None) -> float | None:
    if part is None or whole is None or whole == 0:
        return None
    return float(part * 100 / whole)


def _fmt(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def add_measure(a: Decimal | None, b: Decimal | None) -> Decimal | None:
    """Sum two optional measures; unknown plus unknown stays unknown."""
    if b is None:
        return a
    if a is None:
        return b
    return a + b
