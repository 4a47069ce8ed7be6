"""Utilization reconciliation for kubesnap.

Submodules:
    ledger      -- Sample extraction per source and identity-keyed merge.
    grouping    -- Aggregation of merged rows by a qualifier list.
    reconciler  -- Sequential capacity / request / usage stages.
"""

from kubesnap.utilization.grouping import aggregate, rollup
from kubesnap.utilization.ledger import ResourceLedger, StageOutput, merge
from kubesnap.utilization.reconciler import ReconcileResult, UtilizationReconciler

__all__ = [
    "ReconcileResult",
    "ResourceLedger",
    "StageOutput",
    "UtilizationReconciler",
    "aggregate",
    "merge",
    "rollup",
]
