"""Adapters between the chat platform and the reconciliation engine."""
