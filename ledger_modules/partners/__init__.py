"""
Partner Module.

Per-tenant registry of counter-parties, keyed by BIN.  The deal bridge
finds or creates the partner for every deal and uses its name in entry
descriptions.
"""

from ledger_modules.partners.models import Partner, fallback_partner_name
from ledger_modules.partners.service import PartnerService

__all__ = ["Partner", "PartnerService", "fallback_partner_name"]
