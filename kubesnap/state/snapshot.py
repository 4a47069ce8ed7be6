"""Shared, lock-guarded snapshot consumed by the presentation layer.

One ``asyncio.Lock`` guards every read of the scoping context and every
publish. Callers hold it only for the copy/replace itself, never across a
network call. Each kind's slice is replaced wholesale: last publish wins.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from kubesnap.models.resources import ErrorReport
from kubesnap.models.utilization import AggregatedUtilization, Qualifier


@dataclass(frozen=True)
class ScopingContext:
    """Current selection: a namespace (``None`` = all namespaces) and a pod."""

    namespace: str | None = None
    pod: str | None = None


@dataclass
class Snapshot:
    """Point-in-time copy of the shared state."""

    scope: ScopingContext
    group_by: tuple[Qualifier, ...]
    collections: dict[str, list[Any]] = field(default_factory=dict)
    updated_at: dict[str, datetime] = field(default_factory=dict)
    errors: list[ErrorReport] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": {"namespace": self.scope.namespace, "pod": self.scope.pod},
            "group_by": [q.value for q in self.group_by],
            "collections": {name: [to_jsonable(i) for i in items] for name, items in self.collections.items()},
            "updated_at": {name: ts.isoformat() for name, ts in self.updated_at.items()},
            "errors": [to_jsonable(e) for e in self.errors],
        }


class SharedState:
    """Process-wide state container guarded by a single lock."""

    def __init__(
        self,
        namespace: str | None = None,
        group_by: tuple[Qualifier, ...] = (Qualifier.RESOURCE, Qualifier.NODE),
        error_history: int = 50,
    ) -> None:
        self._lock = asyncio.Lock()
        self._scope = ScopingContext(namespace=namespace or None)
        self._group_by = tuple(group_by)
        self._collections: dict[str, list[Any]] = {}
        self._updated_at: dict[str, datetime] = {}
        self._errors: deque[ErrorReport] = deque(maxlen=max(1, error_history))

    def locked(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Inbound selection (set by the presentation layer)
    # ------------------------------------------------------------------

    async def scope(self) -> ScopingContext:
        async with self._lock:
            return self._scope

    async def group_by(self) -> tuple[Qualifier, ...]:
        async with self._lock:
            return self._group_by

    async def select_namespace(self, namespace: str | None) -> None:
        """Select a namespace (``None`` for all). Clears the pod selection."""
        async with self._lock:
            self._scope = ScopingContext(namespace=namespace or None)

    async def select_pod(self, pod: str | None) -> None:
        async with self._lock:
            self._scope = dataclasses.replace(self._scope, pod=pod or None)

    async def set_group_by(self, qualifiers: tuple[Qualifier, ...] | list[Qualifier]) -> None:
        async with self._lock:
            self._group_by = tuple(qualifiers)

    # ------------------------------------------------------------------
    # Outbound publish (sync core)
    # ------------------------------------------------------------------

    async def publish(self, name: str, items: list[Any]) -> None:
        """Replace the collection *name* with *items*."""
        async with self._lock:
            self._collections[name] = list(items)
            self._updated_at[name] = datetime.now(tz=UTC)

    async def publish_many(self, collections: dict[str, list[Any]]) -> None:
        """Replace several collections under one lock acquisition."""
        async with self._lock:
            now = datetime.now(tz=UTC)
            for name, items in collections.items():
                self._collections[name] = list(items)
                self._updated_at[name] = now

    async def record_error(self, report: ErrorReport) -> None:
        async with self._lock:
            self._errors.append(report)

    async def get(self, name: str) -> list[Any]:
        async with self._lock:
            return list(self._collections.get(name, []))

    async def errors(self) -> list[ErrorReport]:
        async with self._lock:
            return list(self._errors)

    async def clear_errors(self) -> None:
        async with self._lock:
            self._errors.clear()

    async def snapshot(self) -> Snapshot:
        async with self._lock:
            return Snapshot(
                scope=self._scope,
                group_by=self._group_by,
                collections={name: list(items) for name, items in self._collections.items()},
                updated_at=dict(self._updated_at),
                errors=list(self._errors),
            )


def to_jsonable(value: Any) -> Any:
    """Convert published records (dataclasses, Decimals, datetimes) to JSON types."""
    if isinstance(value, AggregatedUtilization):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return value
