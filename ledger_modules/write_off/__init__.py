"""
Write-Off Module.

Confirmed bad-debt write-offs with a per-event audit record.
"""

from ledger_modules.write_off.service import WriteOffProcessor

__all__ = ["WriteOffProcessor"]
