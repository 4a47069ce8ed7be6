"""Shared snapshot state for kubesnap."""

from kubesnap.state.snapshot import ScopingContext, SharedState, Snapshot

__all__ = ["ScopingContext", "SharedState", "Snapshot"]
