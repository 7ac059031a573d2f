"""
Advances Module.

Customer and supplier advances consumed against later invoices.
"""

from ledger_modules.advances.service import AdvanceService

__all__ = ["AdvanceService"]
