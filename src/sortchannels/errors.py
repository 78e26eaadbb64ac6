"""
Exception types raised by sort-channels.

Only failures that callers are expected to handle get their own class. Lock
contention is not an error: it is reported through
:class:`~sortchannels.reconciliation.handler.ReconcileOutcome`.
"""

from __future__ import annotations


class SortChannelsError(Exception):
    """Base class for every error raised by this package."""


class StoreError(SortChannelsError):
    """The persistent guild store could not complete an operation."""


class StoreReadError(StoreError):
    """Reading from the guild store failed."""


class StoreWriteError(StoreError):
    """Writing to the guild store failed."""


class GatewayError(SortChannelsError):
    """The chat platform rejected or could not serve a request."""
