"""Resource kind, fetch result and error report data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class Scope(StrEnum):
    """Whether a resource kind is cluster-wide or namespace-partitioned."""

    CLUSTER = "cluster"
    NAMESPACED = "namespaced"


@dataclass(frozen=True)
class CustomObjectRef:
    """Aggregated/custom API coordinates, e.g. ``metrics.k8s.io/v1beta1/pods``."""

    group: str
    version: str
    plural: str


@dataclass(frozen=True)
class ResourceKind:
    """A category of cluster object and how to list it.

    Exactly one listing strategy is set: a typed API class with operation
    names (``api``, ``list_all``, ``list_namespaced``) or a ``custom`` object
    reference. The scope never changes after registration.
    """

    name: str
    display: str
    scope: Scope
    api: str | None = None
    list_all: str | None = None
    list_namespaced: str | None = None
    custom: CustomObjectRef | None = None

    def __post_init__(self) -> None:
        if (self.api is None) == (self.custom is None):
            raise ValueError(f"ResourceKind {self.name!r} needs exactly one of api/custom")
        if self.api is not None and not self.list_all:
            raise ValueError(f"ResourceKind {self.name!r} has no list_all operation")
        if self.scope == Scope.NAMESPACED and self.api is not None and not self.list_namespaced:
            raise ValueError(f"Namespaced ResourceKind {self.name!r} has no list_namespaced operation")

    @property
    def namespaced(self) -> bool:
        return self.scope == Scope.NAMESPACED


@dataclass
class FetchResult(Generic[T]):
    """Outcome of one list call: converted items in API order, or a soft failure."""

    kind: str
    items: list[T] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ErrorReport:
    """A labeled, user-visible error kept in the snapshot's error history."""

    source: str
    message: str
    reported_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
