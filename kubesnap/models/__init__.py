"""Core data structures for kubesnap."""

from kubesnap.models.config import KubeSnapConfig
from kubesnap.models.resources import CustomObjectRef, ErrorReport, FetchResult, ResourceKind, Scope
from kubesnap.models.utilization import AggregatedUtilization, Qualifier, ResourceSample, SampleKey
from kubesnap.models.views import (
    ContainerView,
    NodeMetricsView,
    NodeView,
    PodMetricsView,
    PodView,
    ResourceRow,
)

__all__ = [
    "AggregatedUtilization",
    "ContainerView",
    "CustomObjectRef",
    "ErrorReport",
    "FetchResult",
    "KubeSnapConfig",
    "NodeMetricsView",
    "NodeView",
    "PodMetricsView",
    "PodView",
    "Qualifier",
    "ResourceKind",
    "ResourceRow",
    "ResourceSample",
    "SampleKey",
    "Scope",
]
