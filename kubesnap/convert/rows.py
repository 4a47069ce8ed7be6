"""Generic row conversion for table-style resource kinds.

Each kind gets the common metadata fields plus a handful of kind-specific
``details`` columns. Unknown kinds fall back to metadata only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubesnap.models.resources import ResourceKind
from kubesnap.models.views import ResourceRow

Details = Callable[[dict[str, Any]], dict[str, str]]


def _get(obj: dict[str, Any], *path: str, default: Any = None) -> Any:
    cur: Any = obj
    for part in path:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(part)
        if cur is None:
            return default
    return cur


def _replicas(obj: dict[str, Any]) -> dict[str, str]:
    desired = _get(obj, "spec", "replicas", default=0)
    ready = _get(obj, "status", "readyReplicas", default=0)
    return {"ready": f"{ready}/{desired}", "available": str(_get(obj, "status", "availableReplicas", default=0))}


def _daemon_set(obj: dict[str, Any]) -> dict[str, str]:
    return {
        "desired": str(_get(obj, "status", "desiredNumberScheduled", default=0)),
        "current": str(_get(obj, "status", "currentNumberScheduled", default=0)),
        "ready": str(_get(obj, "status", "numberReady", default=0)),
    }


def _job(obj: dict[str, Any]) -> dict[str, str]:
    completions = _get(obj, "spec", "completions", default=1)
    succeeded = _get(obj, "status", "succeeded", default=0)
    return {"completions": f"{succeeded}/{completions}"}


def _cron_job(obj: dict[str, Any]) -> dict[str, str]:
    return {
        "schedule": str(_get(obj, "spec", "schedule", default="")),
        "suspend": str(bool(_get(obj, "spec", "suspend", default=False))).lower(),
        "active": str(len(_get(obj, "status", "active", default=[]))),
        "last_schedule": str(_get(obj, "status", "lastScheduleTime", default="")),
    }


def _service(obj: dict[str, Any]) -> dict[str, str]:
    ports = _get(obj, "spec", "ports", default=[])
    return {
        "type": str(_get(obj, "spec", "type", default="ClusterIP")),
        "cluster_ip": str(_get(obj, "spec", "clusterIP", default="")),
        "ports": ",".join(f"{p.get('port')}/{p.get('protocol', 'TCP')}" for p in ports),
    }


def _data_count(obj: dict[str, Any]) -> dict[str, str]:
    details = {"data": str(len(obj.get("data") or {}))}
    if "type" in obj:
        details["type"] = str(obj["type"])
    return details


def _namespace(obj: dict[str, Any]) -> dict[str, str]:
    return {"status": str(_get(obj, "status", "phase", default=""))}


def _pvc(obj: dict[str, Any]) -> dict[str, str]:
    return {
        "status": str(_get(obj, "status", "phase", default="")),
        "volume": str(_get(obj, "spec", "volumeName", default="")),
        "capacity": str(_get(obj, "status", "capacity", "storage", default="")),
        "storage_class": str(_get(obj, "spec", "storageClassName", default="")),
    }


def _pv(obj: dict[str, Any]) -> dict[str, str]:
    claim = _get(obj, "spec", "claimRef", default={})
    return {
        "status": str(_get(obj, "status", "phase", default="")),
        "capacity": str(_get(obj, "spec", "capacity", "storage", default="")),
        "reclaim_policy": str(_get(obj, "spec", "persistentVolumeReclaimPolicy", default="")),
        "claim": f"{claim.get('namespace')}/{claim.get('name')}" if claim else "",
    }


def _storage_class(obj: dict[str, Any]) -> dict[str, str]:
    return {
        "provisioner": str(obj.get("provisioner", "")),
        "reclaim_policy": str(obj.get("reclaimPolicy", "")),
        "volume_binding_mode": str(obj.get("volumeBindingMode", "")),
    }


def _ingress(obj: dict[str, Any]) -> dict[str, str]:
    rules = _get(obj, "spec", "rules", default=[])
    return {
        "class": str(_get(obj, "spec", "ingressClassName", default="")),
        "hosts": ",".join(str(r.get("host", "*")) for r in rules),
    }


def _binding(obj: dict[str, Any]) -> dict[str, str]:
    subjects = obj.get("subjects") or []
    return {
        "role": f"{_get(obj, 'roleRef', 'kind', default='')}/{_get(obj, 'roleRef', 'name', default='')}",
        "subjects": ",".join(f"{s.get('kind')}/{s.get('name')}" for s in subjects),
    }


def _service_account(obj: dict[str, Any]) -> dict[str, str]:
    return {"secrets": str(len(obj.get("secrets") or []))}


DETAILS: dict[str, Details] = {
    "namespaces": _namespace,
    "services": _service,
    "config_maps": _data_count,
    "secrets": _data_count,
    "deployments": _replicas,
    "stateful_sets": _replicas,
    "replica_sets": _replicas,
    "replication_controllers": _replicas,
    "daemon_sets": _daemon_set,
    "jobs": _job,
    "cron_jobs": _cron_job,
    "persistent_volume_claims": _pvc,
    "persistent_volumes": _pv,
    "storage_classes": _storage_class,
    "ingresses": _ingress,
    "role_bindings": _binding,
    "cluster_role_bindings": _binding,
    "service_accounts": _service_account,
}


def row_converter(kind: ResourceKind) -> Callable[[dict[str, Any]], ResourceRow]:
    """Build the converter publishing *kind* as generic rows."""
    details = DETAILS.get(kind.name)

    def convert(obj: dict[str, Any]) -> ResourceRow:
        metadata = obj.get("metadata") or {}
        return ResourceRow(
            kind=kind.display,
            name=str(metadata.get("name", "")),
            namespace=metadata.get("namespace") if kind.namespaced else None,
            created_at=metadata.get("creationTimestamp"),
            labels=dict(metadata.get("labels") or {}),
            details=details(obj) if details is not None else {},
        )

    return convert
