"""
General Ledger Module.

Direct journal entry work with module-owned transactions.
"""

from ledger_modules.gl.models import GLResult, GLStatus
from ledger_modules.gl.service import GLService

__all__ = ["GLResult", "GLService", "GLStatus"]
