"""
Ledger Kernel

A multi-tenant double-entry bookkeeping core with:
- Balanced journal entries validated before any write
- Explicit draft -> posted transition
- Append-only general ledger with running balances
- Per-legal-entity chart of accounts and a shared currency registry
"""

__version__ = "0.1.0"
