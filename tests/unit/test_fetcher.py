"""Unit tests for kubesnap.collector.fetcher.ScopeAwareFetcher."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]
from prometheus_client import REGISTRY

from kubesnap.collector.fetcher import ScopeAwareFetcher, describe_error
from kubesnap.kube import kinds
from kubesnap.state.snapshot import SharedState

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_api(items: list[dict] | None = None, error: Exception | None = None) -> MagicMock:
    api = MagicMock()
    if error is not None:
        api.list = AsyncMock(side_effect=error)
    else:
        api.list = AsyncMock(return_value=items or [])
    return api


def _named(name: str, namespace: str | None = None) -> dict:
    metadata = {"name": name}
    if namespace is not None:
        metadata["namespace"] = namespace
    return {"metadata": metadata}


def _name_of(obj: dict) -> str:
    return obj["metadata"]["name"]


def _failures(kind: str) -> float:
    return REGISTRY.get_sample_value("kubesnap_fetch_failures_total", {"kind": kind}) or 0.0


# ---------------------------------------------------------------------------
# TestNamespaceResolution
# ---------------------------------------------------------------------------


class TestNamespaceResolution:
    async def test_namespaced_kind_uses_selection(self) -> None:
        """Namespaced kinds are listed in the selected namespace."""
        api = _make_api([_named("web", "shop")])
        fetcher = ScopeAwareFetcher(api, SharedState(namespace="shop"))

        result = await fetcher.fetch(kinds.PODS, _name_of)

        api.list.assert_awaited_once_with(kinds.PODS, "shop")
        assert result.items == ["web"]

    async def test_namespaced_kind_without_selection_lists_all(self) -> None:
        """With no selection namespaced kinds are listed across all namespaces."""
        api = _make_api()
        fetcher = ScopeAwareFetcher(api, SharedState())

        await fetcher.fetch(kinds.DEPLOYMENTS, _name_of)

        api.list.assert_awaited_once_with(kinds.DEPLOYMENTS, None)

    async def test_cluster_kind_ignores_selection(self) -> None:
        """Cluster-scoped kinds are listed cluster-wide even with a selection."""
        api = _make_api([_named("n1")])
        fetcher = ScopeAwareFetcher(api, SharedState(namespace="shop"))

        await fetcher.fetch(kinds.NODES, _name_of)

        api.list.assert_awaited_once_with(kinds.NODES, None)

    async def test_all_namespaces_overrides_selection(self) -> None:
        """all_namespaces lists every namespace regardless of the selection."""
        api = _make_api()
        fetcher = ScopeAwareFetcher(api, SharedState(namespace="shop"))

        await fetcher.fetch(kinds.PODS, _name_of, all_namespaces=True)

        api.list.assert_awaited_once_with(kinds.PODS, None)

    async def test_selection_is_read_per_call(self) -> None:
        """Each fetch reads the selection current at call time."""
        state = SharedState(namespace="shop")
        api = _make_api()
        fetcher = ScopeAwareFetcher(api, state)

        await fetcher.fetch(kinds.SERVICES, _name_of)
        await state.select_namespace("billing")
        await fetcher.fetch(kinds.SERVICES, _name_of)

        assert [c.args[1] for c in api.list.await_args_list] == ["shop", "billing"]

    async def test_fetch_in_uses_given_namespace(self) -> None:
        """An already resolved namespace wins over the current selection."""
        api = _make_api()
        fetcher = ScopeAwareFetcher(api, SharedState(namespace="billing"))

        await fetcher.fetch_in(kinds.PODS, _name_of, "shop")

        api.list.assert_awaited_once_with(kinds.PODS, "shop")

    async def test_fetch_in_cluster_kind_drops_namespace(self) -> None:
        """Cluster-scoped kinds are listed cluster-wide whatever namespace is passed."""
        api = _make_api()
        fetcher = ScopeAwareFetcher(api, SharedState())

        await fetcher.fetch_in(kinds.NODES, _name_of, "shop")

        api.list.assert_awaited_once_with(kinds.NODES, None)


# ---------------------------------------------------------------------------
# TestFetchResults
# ---------------------------------------------------------------------------


class TestFetchResults:
    async def test_items_keep_api_order(self) -> None:
        """Converted items keep the order the API returned them in."""
        api = _make_api([_named("c"), _named("a"), _named("b")])
        fetcher = ScopeAwareFetcher(api, SharedState())

        result = await fetcher.fetch(kinds.NAMESPACES, _name_of)

        assert result.ok
        assert result.kind == "namespaces"
        assert result.items == ["c", "a", "b"]

    async def test_empty_list_is_success(self) -> None:
        """An empty list is a success, not an error."""
        fetcher = ScopeAwareFetcher(_make_api([]), SharedState())

        result = await fetcher.fetch(kinds.SECRETS, _name_of)

        assert result.ok
        assert result.items == []

    async def test_namespaced_failure_message(self) -> None:
        """API errors for namespaced kinds use the namespaced resource message."""
        api = _make_api(error=ApiException(status=403, reason="Forbidden"))
        fetcher = ScopeAwareFetcher(api, SharedState())

        result = await fetcher.fetch(kinds.PODS, _name_of)

        assert not result.ok
        assert result.items == []
        assert result.error == "Failed to get namespaced resource pods. (403) Forbidden"

    async def test_cluster_failure_message(self) -> None:
        """API errors for cluster kinds use the plain resource message."""
        api = _make_api(error=ApiException(status=500, reason="Internal Server Error"))
        fetcher = ScopeAwareFetcher(api, SharedState())

        result = await fetcher.fetch(kinds.NODES, _name_of)

        assert result.error == "Failed to get resource nodes. (500) Internal Server Error"

    async def test_transport_error_is_soft(self) -> None:
        """Transport errors become a soft failure instead of raising."""
        fetcher = ScopeAwareFetcher(_make_api(error=TimeoutError()), SharedState())

        result = await fetcher.fetch(kinds.JOBS, _name_of)

        assert result.error == "Failed to get namespaced resource jobs. TimeoutError"

    async def test_conversion_error_is_soft(self) -> None:
        """A converter error fails the whole kind softly."""

        def _boom(obj: dict) -> str:
            raise ValueError("cpu: Invalid quantity: 'lots'")

        fetcher = ScopeAwareFetcher(_make_api([_named("a")]), SharedState())

        result = await fetcher.fetch(kinds.CONFIG_MAPS, _boom)

        assert result.items == []
        assert result.error is not None
        assert "ValueError: cpu: Invalid quantity" in result.error

    async def test_failure_is_counted(self) -> None:
        """Every failure increments the per-kind failure counter."""
        before = _failures("cron_jobs")
        fetcher = ScopeAwareFetcher(_make_api(error=RuntimeError("down")), SharedState())

        await fetcher.fetch(kinds.CRON_JOBS, _name_of)

        assert _failures("cron_jobs") == before + 1


# ---------------------------------------------------------------------------
# TestDescribeError
# ---------------------------------------------------------------------------


class TestDescribeError:
    def test_api_exception(self) -> None:
        """API exceptions are described by status and reason."""
        assert describe_error(ApiException(status=404, reason="Not Found")) == "(404) Not Found"

    def test_first_line_only(self) -> None:
        """Only the first line of a multi-line message is kept."""
        assert describe_error(RuntimeError("first\nsecond")) == "RuntimeError: first"

    @pytest.mark.parametrize("exc", [TimeoutError(), ConnectionError("")])
    def test_empty_message(self, exc: Exception) -> None:
        """An exception without a message is described by its type name."""
        assert describe_error(exc) == type(exc).__name__
