"""
Entries Module.

Recording new classified ledger entries.
"""

from ledger_modules.entries.service import EntryService

__all__ = ["EntryService"]
