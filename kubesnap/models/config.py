"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubesnap.models.utilization import Qualifier


@dataclass
class ClusterConfig:
    """Cluster connection settings."""

    context: str = ""
    request_timeout: int = 10


@dataclass
class SelectionConfig:
    """Initial scoping context and utilization grouping."""

    namespace: str = ""
    group_by: tuple[Qualifier, ...] = (Qualifier.RESOURCE, Qualifier.NODE)


@dataclass
class SyncConfig:
    """Sync cycle settings."""

    refresh_interval: int = 5
    max_concurrent: int = 4
    error_history: int = 50


@dataclass
class MetricsConfig:
    """Prometheus exposition configuration."""

    port: int = 0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class KubeSnapConfig:
    """Top-level kubesnap configuration."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
