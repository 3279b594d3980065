"""Partner DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class Partner:
    id: UUID
    legal_entity_id: str
    bin: str
    name: str
    address: str | None = None


def fallback_partner_name(bin: str) -> str:
    """Display name for a counter-party nobody has named yet."""
    return f"BIN {bin}"
