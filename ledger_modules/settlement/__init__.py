"""
Settlement Module.

Payments, discounts and plain write-offs against AR/AP entries.
"""

from ledger_modules.settlement.service import SettlementService

__all__ = ["SettlementService"]
