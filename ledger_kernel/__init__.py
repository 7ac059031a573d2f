"""
Ledger Kernel

Foundation layer of the bookkeeping settlement engine:
- Typed exception hierarchy and structured logging
- Immutable domain values and models (Decimal money, frozen dataclasses)
- Clock and transaction id generation
- Transactional store port with in-memory and SQLAlchemy adapters
"""

__version__ = "0.1.0"
