"""Pod conversion, including per-container status and resources."""

from __future__ import annotations

from typing import Any

from kubesnap.kube.quantity import parse_resource_map
from kubesnap.models.views import TERMINAL_POD_PHASES, ContainerView, PodView


def _container_state(status: dict[str, Any] | None) -> str:
    if not status:
        return "Unknown"
    state = status.get("state") or {}
    if "running" in state and state["running"] is not None:
        return "Running"
    for key in ("waiting", "terminated"):
        detail = state.get(key)
        if detail is not None:
            return str(detail.get("reason") or key.capitalize())
    return "Unknown"


def _container(spec: dict[str, Any], status: dict[str, Any] | None, init: bool) -> ContainerView:
    resources = spec.get("resources") or {}
    requests = parse_resource_map(resources.get("requests"))
    limits = parse_resource_map(resources.get("limits"))
    return ContainerView(
        name=str(spec.get("name", "")),
        image=str(spec.get("image", "")),
        ready=bool((status or {}).get("ready", False)),
        restarts=int((status or {}).get("restartCount", 0)),
        state=_container_state(status),
        cpu_request=requests.get("cpu"),
        memory_request=requests.get("memory"),
        cpu_limit=limits.get("cpu"),
        memory_limit=limits.get("memory"),
        init=init,
    )


def pod_from_api(obj: dict[str, Any]) -> PodView:
    metadata = obj.get("metadata") or {}
    spec = obj.get("spec") or {}
    status = obj.get("status") or {}

    statuses = {s.get("name"): s for s in status.get("containerStatuses") or []}
    init_statuses = {s.get("name"): s for s in status.get("initContainerStatuses") or []}
    containers = [_container(c, init_statuses.get(c.get("name")), True) for c in spec.get("initContainers") or []]
    containers += [_container(c, statuses.get(c.get("name")), False) for c in spec.get("containers") or []]
    regular = [c for c in containers if not c.init]

    phase = str(status.get("phase", "Unknown"))
    if metadata.get("deletionTimestamp"):
        phase = "Terminating"
    elif phase not in TERMINAL_POD_PHASES:
        # A waiting container (CrashLoopBackOff, ImagePullBackOff, ...) explains more than "Running".
        for container in spec.get("containers") or []:
            waiting = ((statuses.get(container.get("name")) or {}).get("state") or {}).get("waiting")
            if waiting and waiting.get("reason"):
                phase = str(waiting["reason"])
                break

    return PodView(
        namespace=str(metadata.get("namespace", "")),
        name=str(metadata.get("name", "")),
        node=spec.get("nodeName") or None,
        phase=phase,
        ready=f"{sum(1 for c in regular if c.ready)}/{len(regular)}",
        restarts=sum(c.restarts for c in regular),
        created_at=metadata.get("creationTimestamp"),
        containers=containers,
    )
