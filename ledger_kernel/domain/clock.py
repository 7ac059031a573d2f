"""
Clock and identifier generation.

Responsibility:
    Injectable time source and the generator for human-readable
    ``transaction_id`` values, so that settlement code never calls
    ``datetime.now()`` or ``random`` directly and tests stay deterministic.

Failure modes:
    - ``TransactionIdGenerator.next_id`` raises ``RuntimeError`` when it
      cannot find an unused id after ``max_attempts`` tries against the
      supplied ``is_taken`` predicate.
"""

import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

LEDGER_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of ``payment_date``, ``written_off_at`` and ``updated_at`` stamps."""

    @abstractmethod
    def now(self) -> datetime:
        """Current moment, always timezone-aware."""


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``LEDGER_EPOCH`` unless given another aware ``start``.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or LEDGER_EPOCH

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move one second forward and return the new moment."""
        self.advance(1)
        return self._current


class TransactionIdGenerator:
    """
    Generates ``TXN-YYYYMMDD-HHMMSS-RRR`` identifiers.

    The time part comes from the injected clock, the ``RRR`` suffix from an
    injectable ``random.Random``.  Global uniqueness within an owner's book
    is the store's concern: pass ``is_taken`` to have collisions re-drawn.
    """

    PREFIX = "TXN"

    def __init__(
        self,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        max_attempts: int = 1000,
    ):
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._max_attempts = max_attempts

    def format(self, moment: datetime, suffix: int) -> str:
        return f"{self.PREFIX}-{moment:%Y%m%d}-{moment:%H%M%S}-{suffix:03d}"

    def next_id(self, is_taken: Callable[[str], bool] | None = None) -> str:
        moment = self._clock.now()
        for _ in range(self._max_attempts):
            candidate = self.format(moment, self._rng.randrange(1000))
            if is_taken is None or not is_taken(candidate):
                return candidate
        raise RuntimeError(
            f"No free transaction id for {moment:%Y%m%d-%H%M%S} "
            f"after {self._max_attempts} attempts"
        )
