"""Application bootstrap for kubesnap.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → shared state → orchestrator
              → metrics server → refresh loop

Shutdown stops components in reverse startup order. Each step's error is
caught and logged on its own so one failure does not prevent the rest from
shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from kubesnap.config import load_config
from kubesnap.kube.api import KubernetesApi, load_client_config
from kubesnap.models.config import KubeSnapConfig
from kubesnap.observability.logging import get_logger, setup_logging
from kubesnap.observability.metrics import start_metrics_server
from kubesnap.state.snapshot import SharedState
from kubesnap.sync.errors import ErrorReporter
from kubesnap.sync.orchestrator import SyncOrchestrator

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeSnapApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` on an app that was never started (or already stopped) is safe.
    """

    def __init__(self, config: KubeSnapConfig | None = None) -> None:
        self.config = config
        self.api: KubernetesApi | None = None
        self.state: SharedState | None = None
        self.orchestrator: SyncOrchestrator | None = None

        self._background_tasks: list[asyncio.Task[None]] = []
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        """Build every component without starting the refresh loop.

        Raises _ComponentError if the configuration or the K8s client cannot
        be loaded.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except ValueError as exc:
                raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info("kubesnap starting", version=_kubesnap_version())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Shared state and sync core -------------------------------
        self.state = SharedState(
            namespace=self.config.selection.namespace or None,
            group_by=self.config.selection.group_by,
            error_history=self.config.sync.error_history,
        )
        assert self.api is not None
        self.orchestrator = SyncOrchestrator(
            self.api,
            self.state,
            ErrorReporter(self.state),
            max_concurrent=self.config.sync.max_concurrent,
        )

    async def start(self) -> None:
        """Set up every component, then launch the metrics server and refresh loop."""
        await self.setup()
        assert self._log is not None
        assert self.config is not None

        # --- 5. Metrics server -------------------------------------------
        self._start_metrics_server()

        # --- 6. Refresh loop ---------------------------------------------
        task = asyncio.create_task(self._refresh_loop(), name="refresh-loop")
        self._background_tasks.append(task)

        self._running = True
        self._log.info("kubesnap started", refresh_interval=self.config.sync.refresh_interval)

    async def _start_k8s_client(self) -> None:
        """Load in-cluster config or kubeconfig and build the API wrapper."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting k8s client")
        try:
            source = await load_client_config(self.config.cluster.context)
            self.api = KubernetesApi(request_timeout=self.config.cluster.request_timeout)
            self._log.info("k8s client started", source=source)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_metrics_server(self) -> None:
        """Expose Prometheus metrics. Non-fatal: the sync loop runs without them."""
        assert self._log is not None
        assert self.config is not None
        port = self.config.metrics.port
        try:
            if start_metrics_server(port):
                self._log.info("metrics server started", port=port)
            else:
                self._log.info("metrics server disabled (metrics.port=0)")
        except OSError as exc:
            self._log.warning("metrics server failed to start; metrics disabled", port=port, error=str(exc))

    async def _refresh_loop(self) -> None:
        """Run a full sync cycle every ``refresh_interval`` seconds."""
        assert self.orchestrator is not None
        assert self.config is not None
        interval = self.config.sync.refresh_interval
        while True:
            try:
                await self.orchestrator.sync_all()
            except Exception as exc:
                if self._log:
                    self._log.error("sync_cycle_error", error=str(exc))
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the refresh loop and close the K8s client."""
        if not self._running and self._log is None:
            # Never started
            return

        log = self._log or get_logger("app")
        log.info("kubesnap shutting down")

        self._running = False

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        self.orchestrator = None
        await self._stop_k8s_client()

        log.info("kubesnap stopped")

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self.api is None:
            return
        log = self._log or get_logger("app")
        try:
            await asyncio.wait_for(self.api.close(), timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("k8s client close timed out", timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self.api = None


def _kubesnap_version() -> str:
    from kubesnap import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeSnapApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        # Block until shutdown is triggered (the refresh loop runs concurrently)
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()
