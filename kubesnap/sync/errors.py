"""Error reporting into the snapshot's error history."""

from __future__ import annotations

from kubesnap.models.resources import ErrorReport
from kubesnap.observability.logging import get_logger
from kubesnap.observability.metrics import errors_reported_total
from kubesnap.state.snapshot import SharedState

_log = get_logger("sync.errors")


class ErrorReporter:
    """Logs, counts and records user-visible errors. Never raises."""

    def __init__(self, state: SharedState) -> None:
        self._state = state

    async def report(self, source: str, message: str) -> ErrorReport:
        report = ErrorReport(source=source, message=message)
        errors_reported_total.labels(source=source).inc()
        _log.warning("error_reported", source=source, message=message)
        await self._state.record_error(report)
        return report
