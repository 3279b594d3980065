"""
Ledger Modules.

Orchestration layers over the ledger kernel.  Each module owns its
transaction boundary and returns tagged results for expected failures.

Modules:
- GL: direct journal entry work (record, post, cancel)
- Deals: deal-to-accounting bridge with mirror-entry detection
- Reporting: trial balance, balance sheet, income statement
"""
