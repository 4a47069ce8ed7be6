"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from kubesnap.models.config import (
    ClusterConfig,
    KubeSnapConfig,
    LogConfig,
    MetricsConfig,
    SelectionConfig,
    SyncConfig,
)
from kubesnap.models.utilization import Qualifier

# RFC 1123 label, the shape of a namespace name.
_NAMESPACE_RE = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBESNAP_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError:
        raise ValueError(f"KUBESNAP_{key} must be an integer, got: {raw!r}") from None
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    valid = {"json", "console"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log format: {value}. Must be one of {valid}")
    return value.lower()


def validate_namespace(value: str) -> str:
    value = value.strip()
    if value and not _NAMESPACE_RE.match(value):
        raise ValueError(f"Invalid namespace name: {value!r}")
    return value


def parse_group_by(value: str) -> tuple[Qualifier, ...]:
    """Parse a comma separated qualifier list such as ``"resource,node"``.

    An empty string yields an empty tuple (one global bucket).
    """
    qualifiers: list[Qualifier] = []
    for part in value.split(","):
        name = part.strip().lower()
        if not name:
            continue
        try:
            qualifier = Qualifier(name)
        except ValueError:
            valid = ", ".join(q.value for q in Qualifier)
            raise ValueError(f"Invalid qualifier: {name!r}. Must be one of {valid}") from None
        if qualifier in qualifiers:
            raise ValueError(f"Duplicate qualifier: {name!r}")
        qualifiers.append(qualifier)
    return tuple(qualifiers)


def load_config() -> KubeSnapConfig:
    """Load configuration from KUBESNAP_* environment variables.

    Raises:
        ValueError: if any variable holds an invalid value.
    """
    return KubeSnapConfig(
        cluster=ClusterConfig(
            context=_env("CONTEXT", "").strip(),
            request_timeout=_env_int("REQUEST_TIMEOUT", 10, min_val=1, max_val=120),
        ),
        selection=SelectionConfig(
            namespace=validate_namespace(_env("NAMESPACE", "")),
            group_by=parse_group_by(_env("GROUP_BY", "resource,node")),
        ),
        sync=SyncConfig(
            refresh_interval=_env_int("REFRESH_INTERVAL", 5, min_val=1, max_val=300),
            max_concurrent=_env_int("MAX_CONCURRENT_SYNCS", 4, min_val=1, max_val=32),
            error_history=_env_int("ERROR_HISTORY", 50, min_val=1, max_val=1000),
        ),
        metrics=MetricsConfig(
            port=_env_int("METRICS_PORT", 0, min_val=0, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
