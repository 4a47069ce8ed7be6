"""Unit tests for kubesnap.sync.nodes."""

from __future__ import annotations

from decimal import Decimal

from kubesnap.models.views import ContainerView, NodeMetricsView, PodView
from kubesnap.sync.nodes import enrich_nodes, node_from_api


def _raw_node(
    name: str,
    ready: str = "True",
    labels: dict[str, str] | None = None,
    unschedulable: bool = False,
) -> dict:
    return {
        "metadata": {"name": name, "labels": labels or {}, "creationTimestamp": "2024-01-01T00:00:00Z"},
        "spec": {"unschedulable": unschedulable},
        "status": {
            "allocatable": {"cpu": "4", "memory": "8Gi"},
            "conditions": [{"type": "MemoryPressure", "status": "False"}, {"type": "Ready", "status": ready}],
            "nodeInfo": {"kubeletVersion": "v1.29.2"},
        },
    }


def _make_pod(
    name: str,
    node: str | None,
    cpu: str = "0.5",
    memory: str = "128",
    phase: str = "Running",
    namespace: str = "default",
) -> PodView:
    return PodView(
        namespace=namespace,
        name=name,
        node=node,
        phase=phase,
        ready="1/1",
        containers=[
            ContainerView(name="init", image="busybox", cpu_request=Decimal(10), init=True),
            ContainerView(name="app", image="nginx", cpu_request=Decimal(cpu), memory_request=Decimal(memory)),
        ],
    )


class TestNodeFromApi:
    def test_basic_fields(self) -> None:
        """A ready node reports its version and parsed allocatable with no usage yet."""
        node = node_from_api(_raw_node("n1"))
        assert node.name == "n1"
        assert node.status == "Ready"
        assert node.version == "v1.29.2"
        assert node.cpu_allocatable == Decimal(4)
        assert node.memory_allocatable == Decimal(8 * 1024**3)
        assert node.cpu_used is None

    def test_not_ready_and_cordoned(self) -> None:
        """Ready=False and cordoned nodes show in the status column."""
        assert node_from_api(_raw_node("n1", ready="False")).status == "NotReady"
        assert node_from_api(_raw_node("n1", unschedulable=True)).status == "Ready,SchedulingDisabled"

    def test_missing_ready_condition(self) -> None:
        """A node without a Ready condition has Unknown status."""
        raw = _raw_node("n1")
        raw["status"]["conditions"] = []
        assert node_from_api(raw).status == "Unknown"

    def test_roles(self) -> None:
        """Roles come from node-role labels and the legacy role label, sorted."""
        labels = {
            "node-role.kubernetes.io/control-plane": "",
            "node-role.kubernetes.io/etcd": "true",
            "kubernetes.io/role": "master",
            "topology.kubernetes.io/zone": "a",
        }
        assert node_from_api(_raw_node("n1", labels=labels)).roles == ["control-plane", "etcd", "master"]


class TestEnrichNodes:
    def test_pods_and_requests_attached(self) -> None:
        """Each node lists its pods and sums their app container requests."""
        nodes = [node_from_api(_raw_node("n1")), node_from_api(_raw_node("n2"))]
        pods = [_make_pod("a", "n1"), _make_pod("b", "n1", cpu="1.5", namespace="ops"), _make_pod("c", None)]

        enriched = enrich_nodes(nodes, pods, [])

        n1, n2 = enriched
        assert n1.pods == ["default/a", "ops/b"]
        assert n1.pod_count == 2
        # Init containers are excluded from the summed requests
        assert n1.cpu_requested == Decimal(2)
        assert n1.memory_requested == Decimal(256)
        assert n2.pods == []
        assert n2.cpu_requested == Decimal(0)

    def test_terminal_pods_listed_but_not_counted(self) -> None:
        """Finished pods stay listed but hold no requests."""
        nodes = [node_from_api(_raw_node("n1"))]
        pods = [_make_pod("a", "n1"), _make_pod("done", "n1", cpu="3", phase="Succeeded")]

        (n1,) = enrich_nodes(nodes, pods, [])

        assert n1.pod_count == 2
        assert n1.cpu_requested == Decimal("0.5")

    def test_metrics_attached(self) -> None:
        """Usage samples attach by node name and drive the used percentages."""
        nodes = [node_from_api(_raw_node("n1")), node_from_api(_raw_node("n2"))]
        metrics = [NodeMetricsView(name="n1", cpu=Decimal(1), memory=Decimal(2 * 1024**3))]

        n1, n2 = enrich_nodes(nodes, [], metrics)

        assert n1.cpu_used == Decimal(1)
        assert n1.cpu_used_pct == 25.0
        assert n1.memory_used_pct == 25.0
        assert n2.cpu_used is None
        assert n2.cpu_used_pct is None

    def test_sample_without_usage_leaves_load_unknown(self) -> None:
        """A metrics item with no usage does not read as a node at zero load."""
        nodes = [node_from_api(_raw_node("n1"))]

        (n1,) = enrich_nodes(nodes, [], [NodeMetricsView(name="n1")])

        assert n1.cpu_used is None
        assert n1.memory_used is None
        assert n1.cpu_used_pct is None

    def test_order_preserved(self) -> None:
        """Enrichment keeps the node order of the API."""
        nodes = [node_from_api(_raw_node(n)) for n in ("z", "a", "m")]
        assert [n.name for n in enrich_nodes(nodes, [], [])] == ["z", "a", "m"]
