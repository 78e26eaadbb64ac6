"""Discord-facing layer: event dispatcher and cogs."""
