"""
Read-only query API over the journey store.

This is what external consumers (dashboards, the AI entry analysis) call.
Nothing here mutates state.
"""

import logging
from typing import Iterable, List, Optional, Union

from journeytrack.core.models import EntrySignal, Journey
from journeytrack.tracking.store import CacheStats, JourneyStore

logger = logging.getLogger(__name__)

SignalLike = Union[EntrySignal, str]


def normalize_signals(signals: Iterable[SignalLike]) -> List[EntrySignal]:
    """
    Normalize signal names to EntrySignal.

    Raises ValueError on unknown names.
    """
    normalized = []
    for signal in signals:
        try:
            normalized.append(EntrySignal(signal.lower() if isinstance(signal, str) else signal))
        except ValueError:
            raise ValueError(f"Invalid entry signal: {signal}") from None
    return normalized


class JourneyQuery:
    """Read accessors for tracked journeys."""

    def __init__(self, store: JourneyStore):
        self.store = store

    def get(self, address: str) -> Optional[Journey]:
        """Get one journey, or None if the address is not tracked."""
        return self.store.get(address)

    def get_all(self) -> List[Journey]:
        return self.store.get_all()

    def get_by_signal(self, signals: Iterable[SignalLike]) -> List[Journey]:
        """Get journeys whose current entry signal is one of signals."""
        return self.store.get_by_signal(normalize_signals(signals))

    def stats(self) -> CacheStats:
        return self.store.stats()

    def ranked(self, signals: Optional[Iterable[SignalLike]] = None, limit: Optional[int] = None) -> List[Journey]:
        """
        Journeys sorted by entry score, highest first.

        Ties break on drawdown (deeper first) and then address so the
        order is stable between calls.
        """
        journeys = self.get_by_signal(signals) if signals is not None else self.get_all()

        journeys.sort(
            key=lambda j: (-j.signals.score, -j.signals.drawdown_percent, j.address)
        )

        if limit is not None:
            journeys = journeys[:limit]

        return journeys
