"""
General Ledger Module Models (``ledger_modules.gl.models``).

Frozen result objects returned by ``GLService``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.domain.dtos import JournalEntryRecord, PostingResult


class GLStatus(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass(frozen=True)
class GLResult:
    """
    Outcome of a GL operation.

    On REJECTED the transaction was rolled back and ``error_code`` carries
    the kernel exception's code.
    """

    status: GLStatus
    entry: JournalEntryRecord | None = None
    posting: PostingResult | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == GLStatus.SUCCESS
