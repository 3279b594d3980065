"""
BaseSelector -- abstract base class for read-only query selectors.

Invariants enforced:
    - Read-only: selectors never call session.add(), delete(), flush() or
      commit().  Paired with ``read_only_scope()`` a stray write raises.
    - Selectors return frozen DTOs, not ORM instances.
    - The caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
