"""
Parent-before-child ordering for chart-of-accounts seed data.

Seed rows name their parent by code.  ``resolve_seed_order`` repeatedly scans
the unresolved rows, releasing every row whose parent is already known
(existing in the database or released in an earlier pass).  A pass that
releases nothing means the remaining rows reference parents that never
appear, or reference each other in a cycle: that is reported as
UnresolvedAccountParentError instead of looping forever.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ledger_kernel.exceptions import UnresolvedAccountParentError
from ledger_kernel.models.account import AccountType


@dataclass(frozen=True)
class AccountSeed:
    code: str
    name: str
    account_type: AccountType
    parent_code: str | None = None
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CurrencySeed:
    code: str
    name: str
    decimals: int = 2
    symbol: str | None = None
    is_base_currency: bool = False
    is_active: bool = True


def resolve_seed_order(
    seeds: Sequence[AccountSeed],
    existing_codes: Iterable[str] = (),
) -> list[tuple[AccountSeed, ...]]:
    """
    Group seeds into passes; every parent precedes its children.

    Within a pass, input order is preserved.

    Raises:
        UnresolvedAccountParentError: If a pass makes no progress.
    """
    known = set(existing_codes)
    pending = list(seeds)
    passes: list[tuple[AccountSeed, ...]] = []

    while pending:
        ready = tuple(
            seed for seed in pending
            if seed.parent_code is None or seed.parent_code in known
        )
        if not ready:
            raise UnresolvedAccountParentError(
                [(seed.code, seed.parent_code or "") for seed in pending]
            )
        passes.append(ready)
        known.update(seed.code for seed in ready)
        released = {id(seed) for seed in ready}
        pending = [seed for seed in pending if id(seed) not in released]

    return passes
