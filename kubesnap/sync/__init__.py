"""Sync core: per-collection entry points publishing into shared state.

Submodules:
    orchestrator  -- SyncOrchestrator: fetch, convert, report, publish.
    nodes         -- Node conversion and enrichment with pods and metrics.
    errors        -- ErrorReporter: logged, counted and kept error history.
"""

from kubesnap.sync.errors import ErrorReporter
from kubesnap.sync.orchestrator import SyncOrchestrator

__all__ = ["ErrorReporter", "SyncOrchestrator"]
