"""
Account hierarchy built from a flat list in one pass.

The accounts are indexed by parent id once; the tree is then assembled by
visiting each account exactly once.  No repeated scans of the full list.

Accounts whose parent is not in the input (for example because the caller
filtered by type) are treated as roots.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Iterator
from uuid import UUID

from ledger_kernel.domain.dtos import AccountRecord


@dataclass(frozen=True)
class AccountNode:
    account: AccountRecord
    children: tuple[AccountNode, ...] = ()

    @property
    def code(self) -> str:
        return self.account.code


def build_account_tree(accounts: Iterable[AccountRecord]) -> tuple[AccountNode, ...]:
    """
    Build the account forest, roots and children ordered by code.

    Preconditions: accounts are acyclic (guaranteed by ChartService: a parent
        must exist before its child and parent_id is never changed).
    """
    by_id: dict[UUID, AccountRecord] = {}
    children_of: dict[UUID | None, list[AccountRecord]] = defaultdict(list)

    account_list = list(accounts)
    for account in account_list:
        by_id[account.id] = account

    for account in account_list:
        parent = account.parent_id if account.parent_id in by_id else None
        children_of[parent].append(account)

    def _node(account: AccountRecord) -> AccountNode:
        kids = sorted(children_of.get(account.id, ()), key=lambda a: a.code)
        return AccountNode(account=account, children=tuple(_node(k) for k in kids))

    roots = sorted(children_of.get(None, ()), key=lambda a: a.code)
    return tuple(_node(root) for root in roots)


def walk_tree(nodes: Iterable[AccountNode], depth: int = 0) -> Iterator[tuple[int, AccountNode]]:
    """Depth-first (depth, node) pairs, parents before children."""
    for node in nodes:
        yield depth, node
        yield from walk_tree(node.children, depth + 1)
