"""
Module ORM Registry (``ledger_modules._orm_registry``).

Ensures every SQLAlchemy model is imported so that ``Base.metadata`` holds
their table definitions before tables are created.  Kernel models come
first because module tables reference them (deals -> currencies and partners,
deal_journal_entries -> journal_entries).

MUST NOT be imported at module level by ``ledger_kernel``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``ledger_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    import ledger_modules.partners.orm  # noqa: F401
    import ledger_modules.deals.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from ledger_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
