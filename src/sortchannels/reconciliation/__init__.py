"""
Guild reconciliation engine.

Public API:
    - compute_target_order: natural-sort target order as minimal position edits
    - GuildLockRegistry: per-guild non-blocking gate
    - ReconciliationHandler: one lock/fetch/order/apply/release pass
"""

from sortchannels.reconciliation.handler import (
    ChannelSource,
    EditFailure,
    EditSink,
    ReconcileOutcome,
    ReconcileResult,
    ReconciliationHandler,
)
from sortchannels.reconciliation.lock_registry import GuildLockRegistry
from sortchannels.reconciliation.ordering import apply_edits, compute_target_order, natural_sort_key

__all__ = [
    "ChannelSource",
    "EditFailure",
    "EditSink",
    "GuildLockRegistry",
    "ReconcileOutcome",
    "ReconcileResult",
    "ReconciliationHandler",
    "apply_edits",
    "compute_target_order",
    "natural_sort_key",
]
