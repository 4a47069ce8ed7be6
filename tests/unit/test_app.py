"""Unit tests for the kubesnap application bootstrap and CLI."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from kubesnap.app import KubeSnapApp, _ComponentError, main
from kubesnap.cli import cli
from kubesnap.cli.main import _override
from kubesnap.models.config import KubeSnapConfig, SelectionConfig, SyncConfig
from kubesnap.models.utilization import Qualifier

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_config() -> KubeSnapConfig:
    return KubeSnapConfig(
        selection=SelectionConfig(namespace="shop", group_by=(Qualifier.NODE,)),
        sync=SyncConfig(refresh_interval=1, max_concurrent=2, error_history=10),
    )


def _make_kube_api() -> MagicMock:
    api = MagicMock()
    api.list = AsyncMock(return_value=[])
    api.close = AsyncMock()
    return api


# ---------------------------------------------------------------------------
# TestKubeSnapApp
# ---------------------------------------------------------------------------


class TestKubeSnapApp:
    async def test_setup_wires_components(self) -> None:
        """setup() builds the client, shared state and orchestrator from the config."""
        kube_api = _make_kube_api()
        with (
            patch("kubesnap.app.setup_logging"),
            patch("kubesnap.app.load_client_config", AsyncMock(return_value="kubeconfig")),
            patch("kubesnap.app.KubernetesApi", return_value=kube_api) as api_cls,
        ):
            app = KubeSnapApp(_make_config())
            await app.setup()

        api_cls.assert_called_once_with(request_timeout=10)
        assert app.api is kube_api
        assert app.orchestrator is not None
        assert app.state is not None
        assert (await app.state.scope()).namespace == "shop"
        assert await app.state.group_by() == (Qualifier.NODE,)

    async def test_invalid_config_is_a_component_error(self) -> None:
        """A config ValueError surfaces as a 'config' component error."""
        with patch("kubesnap.app.load_config", side_effect=ValueError("Invalid log level: loud")):
            app = KubeSnapApp()
            with pytest.raises(_ComponentError) as exc_info:
                await app.setup()

        assert exc_info.value.component == "config"

    async def test_missing_kubeconfig_is_a_component_error(self) -> None:
        """Failing to load cluster credentials surfaces as a 'k8s_client' component error."""
        with (
            patch("kubesnap.app.setup_logging"),
            patch("kubesnap.app.load_client_config", AsyncMock(side_effect=RuntimeError("no kubeconfig"))),
        ):
            app = KubeSnapApp(_make_config())
            with pytest.raises(_ComponentError) as exc_info:
                await app.setup()

        assert exc_info.value.component == "k8s_client"

    async def test_start_then_stop(self) -> None:
        """start() runs at least one sync cycle and stop() closes the client."""
        kube_api = _make_kube_api()
        with (
            patch("kubesnap.app.setup_logging"),
            patch("kubesnap.app.load_client_config", AsyncMock(return_value="incluster")),
            patch("kubesnap.app.KubernetesApi", return_value=kube_api),
            patch("kubesnap.app.start_metrics_server", return_value=False),
        ):
            app = KubeSnapApp(_make_config())
            await app.start()
            assert app._running
            # Let the refresh loop run its first cycle
            await asyncio.sleep(0.05)
            await app.stop()

        assert not app._running
        assert kube_api.list.await_count > 0
        kube_api.close.assert_awaited_once()
        assert app.api is None

    async def test_stop_without_start_is_safe(self) -> None:
        """Stopping an app that never started is a no-op."""
        await KubeSnapApp().stop()

    async def test_main_exits_non_zero_on_bad_config(self) -> None:
        """main() exits with status 1 when the configuration is invalid."""
        with patch("kubesnap.app.load_config", side_effect=ValueError("KUBESNAP_REFRESH_INTERVAL must be an integer")):
            with pytest.raises(SystemExit) as exc_info:
                await main()

        assert exc_info.value.code == 1


# ---------------------------------------------------------------------------
# TestCli
# ---------------------------------------------------------------------------


class TestCli:
    def test_help_lists_commands(self) -> None:
        """The command group lists run and snapshot."""
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "snapshot" in result.output

    def test_invalid_group_by_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unknown qualifier is a usage error (exit code 2)."""
        monkeypatch.delenv("KUBESNAP_LOG_LEVEL", raising=False)
        result = CliRunner().invoke(cli, ["snapshot", "--group-by", "zone"])
        assert result.exit_code == 2
        assert "Invalid qualifier" in result.output

    def test_override(self) -> None:
        """Command-line options replace the environment values."""
        config = _override(KubeSnapConfig(), namespace="ops", group_by="pod,container", context=" prod ")
        assert config.selection.namespace == "ops"
        assert config.selection.group_by == (Qualifier.POD, Qualifier.CONTAINER)
        assert config.cluster.context == "prod"

    def test_override_keeps_unset_values(self) -> None:
        """Options left unset keep the configuration unchanged."""
        base = _make_config()
        config = _override(base, namespace=None, group_by=None, context=None)
        assert config == base
