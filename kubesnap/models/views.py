"""Display-shaped records published into the snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# Pods in these phases no longer hold their resource requests.
TERMINAL_POD_PHASES = frozenset({"Succeeded", "Failed"})


@dataclass
class ResourceRow:
    """Generic row for kinds without a dedicated view."""

    kind: str
    name: str
    namespace: str | None = None
    created_at: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    details: dict[str, str] = field(default_factory=dict)


@dataclass
class ContainerView:
    name: str
    image: str
    ready: bool = False
    restarts: int = 0
    state: str = "Unknown"
    cpu_request: Decimal | None = None
    memory_request: Decimal | None = None
    cpu_limit: Decimal | None = None
    memory_limit: Decimal | None = None
    init: bool = False


@dataclass
class PodView:
    namespace: str
    name: str
    node: str | None
    phase: str
    ready: str
    restarts: int = 0
    created_at: str | None = None
    containers: list[ContainerView] = field(default_factory=list)


@dataclass
class NodeMetricsView:
    """Instantaneous usage sample of one node from metrics.k8s.io."""

    name: str
    cpu: Decimal | None = None
    memory: Decimal | None = None
    timestamp: str | None = None
    window: str | None = None


@dataclass
class PodMetricsView:
    """Instantaneous per-container usage of one pod; container -> resource -> quantity."""

    namespace: str
    name: str
    containers: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    timestamp: str | None = None
    window: str | None = None


@dataclass
class NodeView:
    """A node joined with the pods placed on it and its live load."""

    name: str
    status: str
    roles: list[str] = field(default_factory=list)
    version: str = ""
    created_at: str | None = None
    cpu_allocatable: Decimal | None = None
    memory_allocatable: Decimal | None = None
    pods: list[str] = field(default_factory=list)
    cpu_requested: Decimal = Decimal(0)
    memory_requested: Decimal = Decimal(0)
    cpu_used: Decimal | None = None
    memory_used: Decimal | None = None

    @property
    def pod_count(self) -> int:
        return len(self.pods)

    @property
    def cpu_used_pct(self) -> float | None:
        return _percent(self.cpu_used, self.cpu_allocatable)

    @property
    def memory_used_pct(self) -> float | None:
        return _percent(self.memory_used, self.memory_allocatable)


def _percent(part: Decimal | None, whole: Decimal | None) -> float | None:
    if part is None or not whole:
        return None
    return float(part * 100 / whole)
