"""Shared helpers for sort-channels (logging)."""
