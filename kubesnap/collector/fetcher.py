"""Scope-aware fetcher: one list call per resource kind, failures isolated.

The fetcher is written once against the ``ResourceApi`` protocol and
dispatches on the kind's scope tag:

* cluster-scoped kinds are always listed cluster-wide;
* namespaced kinds are listed in the selected namespace, or across all
  namespaces when none is selected.

Every failure (API error, transport error, timeout, conversion error) is
turned into an empty ``FetchResult`` carrying a labeled error. Nothing but
task cancellation escapes ``fetch``; retries belong to the transport layer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from kubesnap.kube.api import ResourceApi
from kubesnap.models.resources import FetchResult, ResourceKind
from kubesnap.observability.logging import get_logger
from kubesnap.observability.metrics import fetch_failures_total
from kubesnap.state.snapshot import SharedState

T = TypeVar("T")

Convert = Callable[[dict[str, Any]], T]

_log = get_logger("collector.fetcher")


def describe_error(exc: BaseException) -> str:
    """Short, single-line description of an API or transport failure."""
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None)
    if status is not None and reason is not None:
        return f"({status}) {reason}"
    text = str(exc).strip().splitlines()
    return f"{type(exc).__name__}: {text[0]}" if text else type(exc).__name__


class ScopeAwareFetcher:
    """Lists one resource kind per call and converts every item in API order."""

    def __init__(self, api: ResourceApi, state: SharedState) -> None:
        self._api = api
        self._state = state

    async def resolve_namespace(self, kind: ResourceKind, all_namespaces: bool = False) -> str | None:
        """Namespace to restrict the list call to, or ``None`` for cluster-wide."""
        if not kind.namespaced or all_namespaces:
            return None
        scope = await self._state.scope()
        return scope.namespace

    async def fetch(
        self,
        kind: ResourceKind,
        convert: Convert[T],
        *,
        all_namespaces: bool = False,
        quiet: bool = False,
    ) -> FetchResult[T]:
        """List *kind* and apply *convert* to each returned item.

        Args:
            kind:           The registered resource kind.
            convert:        Mapping from a raw object to its published shape.
            all_namespaces: Ignore the namespace selection for namespaced kinds.
            quiet:          Log failures at debug instead of warning (best-effort sources).
        """
        namespace = await self.resolve_namespace(kind, all_namespaces)
        return await self.fetch_in(kind, convert, namespace, quiet=quiet)

    async def fetch_in(
        self,
        kind: ResourceKind,
        convert: Convert[T],
        namespace: str | None,
        *,
        quiet: bool = False,
    ) -> FetchResult[T]:
        """Like ``fetch`` with an already resolved *namespace* (``None`` lists cluster-wide)."""
        if not kind.namespaced:
            namespace = None
        label = "namespaced resource" if kind.namespaced else "resource"

        try:
            raw_items = await self._api.list(kind, namespace)
            items = [convert(item) for item in raw_items]
        except Exception as exc:
            cause = describe_error(exc)
            fetch_failures_total.labels(kind=kind.name).inc()
            log = _log.debug if quiet else _log.warning
            log("fetch_failed", kind=kind.name, namespace=namespace, error=cause)
            return FetchResult(kind=kind.name, items=[], error=f"Failed to get {label} {kind.name}. {cause}")

        _log.debug("fetch_ok", kind=kind.name, namespace=namespace, count=len(items))
        return FetchResult(kind=kind.name, items=items)
