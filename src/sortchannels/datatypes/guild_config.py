"""
Persisted per-guild configuration record.

Record shape mirrors the stored guild document:
``{id, name, prefix, always_on_top: [id...], always_on_bottom: [id...], ignore: [id...]}``.
The three channel lists are stored but not consulted when ordering channels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_PREFIX = "."


@dataclass(slots=True)
class GuildConfig:
    """Persistent per-guild configuration values.

    ``prefix`` is None when the guild never set one; the configured default
    applies in that case.
    """

    guild_id: int
    name: str = ""
    prefix: Optional[str] = None
    always_on_top: List[int] = field(default_factory=list)
    always_on_bottom: List[int] = field(default_factory=list)
    ignore: List[int] = field(default_factory=list)

    def effective_prefix(self, default: str = DEFAULT_PREFIX) -> str:
        return self.prefix if self.prefix else default

    def to_record(self, default_prefix: str = DEFAULT_PREFIX) -> Dict[str, Any]:
        """Return the document form of this record."""
        return {
            "id": self.guild_id,
            "name": self.name,
            "prefix": self.effective_prefix(default_prefix),
            "always_on_top": list(self.always_on_top),
            "always_on_bottom": list(self.always_on_bottom),
            "ignore": list(self.ignore),
        }
