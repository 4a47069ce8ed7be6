"""Kubernetes collaborators: API client wrapper, kind registry, quantities.

Submodules:
    api       -- ResourceApi protocol and the kubernetes_asyncio implementation.
    kinds     -- Registry of every synchronized resource kind and its scope.
    quantity  -- Exact parsing of resource quantities ("500m", "1Gi").
"""

from kubesnap.kube.api import KubernetesApi, ResourceApi, load_client_config
from kubesnap.kube.kinds import REGISTRY, get_kind
from kubesnap.kube.quantity import parse_quantity

__all__ = [
    "KubernetesApi",
    "REGISTRY",
    "ResourceApi",
    "get_kind",
    "load_client_config",
    "parse_quantity",
]
