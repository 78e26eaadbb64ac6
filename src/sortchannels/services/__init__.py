"""Services sitting between the dispatcher and the guild store."""
