"""
Document generation port (``ledger_modules.deals.documents``).

The bridge asks an external generator for the deal's primary document after
the accounting transaction has committed: a completion act for service
deals, a waybill for product deals.  Rendering, templating and storage live
outside this package.

Generators signal failure by raising ``DocumentGenerationError``.  The
bridge logs the failure and reports it on the result; it never undoes the
committed accounting.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ledger_kernel.exceptions import DocumentGenerationError
from ledger_modules.deals.models import Deal, DealType, GeneratedDocument


class DocumentKind(str, Enum):
    ACT = "act"  # completion act for services
    WAYBILL = "waybill"  # goods delivery note


NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
GENERATION_FAILED = "GENERATION_FAILED"


def document_kind_for(deal_type: DealType | str) -> DocumentKind:
    if DealType(deal_type) == DealType.SERVICE:
        return DocumentKind.ACT
    return DocumentKind.WAYBILL


@dataclass(frozen=True)
class DocumentRequest:
    """Business data handed to the generator."""

    deal: Deal
    kind: DocumentKind
    counterparty_bin: str
    counterparty_name: str | None = None

    @classmethod
    def for_deal(cls, deal: Deal, counterparty_name: str | None = None) -> DocumentRequest:
        return cls(
            deal=deal,
            kind=document_kind_for(deal.deal_type),
            counterparty_bin=deal.receiver_bin,
            counterparty_name=counterparty_name,
        )


class DocumentGenerator(ABC):
    """External document generation collaborator."""

    @abstractmethod
    def generate(self, request: DocumentRequest) -> GeneratedDocument:
        """
        Produce the document for a deal.

        Raises:
            DocumentGenerationError: with code NOT_IMPLEMENTED or
                GENERATION_FAILED.
        """
        ...


class NullDocumentGenerator(DocumentGenerator):
    """Default generator for deployments without a rendering backend."""

    def generate(self, request: DocumentRequest) -> GeneratedDocument:
        raise DocumentGenerationError(
            str(request.deal.id),
            f"no generator configured for {request.kind.value} documents",
            code=NOT_IMPLEMENTED,
        )
