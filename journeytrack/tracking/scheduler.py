"""
Throttled update cycle.

Callers hand over every token batch they see; the scheduler decides
whether it is time to poll, fetches prices for fresh tokens, folds them
into the store and evicts stale journeys.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol

from journeytrack.core.config import Config
from journeytrack.core.models import Candidate, PriceObservation
from journeytrack.tracking.store import JourneyStore

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    """Anything that can resolve addresses to current market data."""

    def fetch_prices(self, addresses: Iterable[str]) -> Dict[str, PriceObservation]:
        ...


@dataclass
class CycleResult:
    """Outcome of one run_cycle call."""
    ran: bool
    skipped_reason: Optional[str] = None  # "throttled" or "busy"
    candidates: int = 0
    fresh: int = 0
    observed: int = 0
    updated: int = 0
    discarded: int = 0
    evicted: int = 0
    tracked: int = 0


class UpdateScheduler:
    """
    Runs update cycles against a journey store.

    At most one cycle runs at a time. A call that arrives while another
    cycle is running, or sooner than min_cycle_interval after the last
    one, returns immediately without touching the store.
    """

    def __init__(
        self,
        store: JourneyStore,
        price_source: PriceSource,
        max_token_age: float = 3600.0,
        min_cycle_interval: float = 30.0,
    ):
        self.store = store
        self.price_source = price_source
        self.max_token_age = max_token_age
        self.min_cycle_interval = min_cycle_interval

        self.last_cycle_at: Optional[float] = None
        self._cycle_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config, store: JourneyStore, price_source: PriceSource) -> "UpdateScheduler":
        return cls(
            store,
            price_source,
            max_token_age=config.max_token_age_seconds,
            min_cycle_interval=config.min_cycle_interval_seconds,
        )

    def run_cycle(self, candidates: Iterable[Candidate], now: Optional[float] = None) -> CycleResult:
        """
        Refresh the store from a batch of candidates.

        Args:
            candidates: Tokens seen by the caller
            now: Cycle instant (defaults to wall clock)

        Returns:
            CycleResult describing what happened. A throttled or busy
            cycle is not an error.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("Update cycle already running, skipping")
            return CycleResult(ran=False, skipped_reason="busy")

        try:
            now = time.time() if now is None else now

            if self.last_cycle_at is not None and now - self.last_cycle_at < self.min_cycle_interval:
                logger.debug(f"Throttled: last cycle {now - self.last_cycle_at:.1f}s ago")
                return CycleResult(ran=False, skipped_reason="throttled")

            result = self._run(list(candidates), now)
            self.last_cycle_at = now
            self.store.mark_polled(now)
            return result
        finally:
            self._cycle_lock.release()

    def _run(self, candidates, now: float) -> CycleResult:
        result = CycleResult(ran=True, candidates=len(candidates))

        # Only pick up tokens inside the tracking window; older journeys age out via eviction
        fresh: Dict[str, Candidate] = {}
        for candidate in candidates:
            if now - candidate.detected_at <= self.max_token_age:
                fresh.setdefault(candidate.address, candidate)
        result.fresh = len(fresh)

        prices = self.price_source.fetch_prices(list(fresh)) if fresh else {}
        result.observed = len(prices)

        for address, candidate in fresh.items():
            observation = prices.get(address)
            if observation is None:
                continue

            if observation.market_cap <= 0:
                logger.debug(f"Discarding {candidate.symbol} ({address[:8]}): no usable market cap")
                result.discarded += 1
                continue

            self.store.upsert(
                address,
                candidate.symbol,
                observation,
                migration_hint=candidate.market_cap_hint,
                migrated_at=candidate.detected_at,
                now=now,
                social=candidate.social,
            )
            result.updated += 1

        result.evicted = self.store.evict_expired(now)
        result.tracked = len(self.store)

        logger.info(f"Updated {result.updated} tokens, cache size: {result.tracked}")
        return result
