"""Registry of the resource kinds kubesnap synchronizes.

Operation names follow the kubernetes_asyncio generated client convention:
``list_<singular>`` for cluster-scoped kinds, and
``list_<singular>_for_all_namespaces`` / ``list_namespaced_<singular>`` for
namespaced ones.
"""

from __future__ import annotations

from kubesnap.models.resources import CustomObjectRef, ResourceKind, Scope

REGISTRY: dict[str, ResourceKind] = {}


def _register(kind: ResourceKind) -> ResourceKind:
    if kind.name in REGISTRY:
        raise ValueError(f"ResourceKind {kind.name!r} registered twice")
    REGISTRY[kind.name] = kind
    return kind


def namespaced(name: str, display: str, api: str, singular: str) -> ResourceKind:
    return _register(
        ResourceKind(
            name=name,
            display=display,
            scope=Scope.NAMESPACED,
            api=api,
            list_all=f"list_{singular}_for_all_namespaces",
            list_namespaced=f"list_namespaced_{singular}",
        )
    )


def cluster(name: str, display: str, api: str, singular: str) -> ResourceKind:
    return _register(
        ResourceKind(name=name, display=display, scope=Scope.CLUSTER, api=api, list_all=f"list_{singular}")
    )


def custom(name: str, display: str, ref: CustomObjectRef, scope: Scope = Scope.CLUSTER) -> ResourceKind:
    return _register(ResourceKind(name=name, display=display, scope=scope, custom=ref))


NAMESPACES = cluster("namespaces", "Namespace", "CoreV1Api", "namespace")
NODES = cluster("nodes", "Node", "CoreV1Api", "node")
PVS = cluster("persistent_volumes", "PersistentVolume", "CoreV1Api", "persistent_volume")
STORAGE_CLASSES = cluster("storage_classes", "StorageClass", "StorageV1Api", "storage_class")
CLUSTER_ROLES = cluster("cluster_roles", "ClusterRole", "RbacAuthorizationV1Api", "cluster_role")
CLUSTER_ROLE_BINDINGS = cluster(
    "cluster_role_bindings", "ClusterRoleBinding", "RbacAuthorizationV1Api", "cluster_role_binding"
)

PODS = namespaced("pods", "Pod", "CoreV1Api", "pod")
SERVICES = namespaced("services", "Service", "CoreV1Api", "service")
CONFIG_MAPS = namespaced("config_maps", "ConfigMap", "CoreV1Api", "config_map")
SECRETS = namespaced("secrets", "Secret", "CoreV1Api", "secret")
REPLICATION_CONTROLLERS = namespaced(
    "replication_controllers", "ReplicationController", "CoreV1Api", "replication_controller"
)
PVCS = namespaced(
    "persistent_volume_claims", "PersistentVolumeClaim", "CoreV1Api", "persistent_volume_claim"
)
SERVICE_ACCOUNTS = namespaced("service_accounts", "ServiceAccount", "CoreV1Api", "service_account")
DEPLOYMENTS = namespaced("deployments", "Deployment", "AppsV1Api", "deployment")
STATEFUL_SETS = namespaced("stateful_sets", "StatefulSet", "AppsV1Api", "stateful_set")
REPLICA_SETS = namespaced("replica_sets", "ReplicaSet", "AppsV1Api", "replica_set")
DAEMON_SETS = namespaced("daemon_sets", "DaemonSet", "AppsV1Api", "daemon_set")
JOBS = namespaced("jobs", "Job", "BatchV1Api", "job")
CRON_JOBS = namespaced("cron_jobs", "CronJob", "BatchV1Api", "cron_job")
INGRESSES = namespaced("ingresses", "Ingress", "NetworkingV1Api", "ingress")
ROLES = namespaced("roles", "Role", "RbacAuthorizationV1Api", "role")
ROLE_BINDINGS = namespaced("role_bindings", "RoleBinding", "RbacAuthorizationV1Api", "role_binding")

# Usage sampling is never scoped: metrics are always listed cluster-wide.
NODE_METRICS = custom("node_metrics", "NodeMetrics", CustomObjectRef("metrics.k8s.io", "v1beta1", "nodes"))
POD_METRICS = custom("pod_metrics", "PodMetrics", CustomObjectRef("metrics.k8s.io", "v1beta1", "pods"))

# Kinds published as generic rows by the orchestrator's per-kind entry points.
TABLE_KINDS: tuple[ResourceKind, ...] = (
    NAMESPACES,
    SERVICES,
    CONFIG_MAPS,
    STATEFUL_SETS,
    REPLICA_SETS,
    JOBS,
    CRON_JOBS,
    SECRETS,
    REPLICATION_CONTROLLERS,
    DEPLOYMENTS,
    DAEMON_SETS,
    STORAGE_CLASSES,
    ROLES,
    ROLE_BINDINGS,
    CLUSTER_ROLES,
    CLUSTER_ROLE_BINDINGS,
    INGRESSES,
    PVCS,
    PVS,
    SERVICE_ACCOUNTS,
)


def get_kind(name: str) -> ResourceKind:
    """Look up a registered kind by name.

    Raises:
        KeyError: if the kind is not registered.
    """
    try:
        return REGISTRY[name]
    except KeyError:
        raise KeyError(f"Unknown resource kind: {name!r}") from None
