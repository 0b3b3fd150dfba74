"""
In-memory journey store.

One keyed cache (token address -> Journey) shared by every caller in the
process. Journeys are immutable; an update builds a new Journey and swaps
it in under the write lock, so a reader always sees a complete journey
whose signals match its history.
"""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from journeytrack.core.config import Config
from journeytrack.core.models import (
    EntrySignal,
    Journey,
    LatestState,
    MarketCapMark,
    PriceObservation,
    PriceSnapshot,
    SocialMetrics,
)

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Aggregate view of the store."""
    total_tracked: int
    last_poll_at: Optional[float]
    signal_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_tracked": self.total_tracked,
            "last_poll_at": self.last_poll_at,
            "signal_counts": dict(self.signal_counts),
        }


class JourneyStore:
    """
    Keyed cache of token journeys.

    Keeps at most max_snapshots per journey, no closer together than
    min_snapshot_interval seconds, and drops journeys older than twice
    max_token_age.
    """

    def __init__(
        self,
        max_snapshots: int = 60,
        min_snapshot_interval: float = 30.0,
        max_token_age: float = 3600.0,
    ):
        if max_snapshots < 1:
            raise ValueError(f"max_snapshots must be positive: {max_snapshots}")

        self.max_snapshots = max_snapshots
        self.min_snapshot_interval = min_snapshot_interval
        self.max_token_age = max_token_age

        self._journeys: Dict[str, Journey] = {}
        self._lock = threading.Lock()
        self._last_poll_at: Optional[float] = None

    @classmethod
    def from_config(cls, config: Config) -> "JourneyStore":
        return cls(
            max_snapshots=config.max_snapshots,
            min_snapshot_interval=config.min_snapshot_interval_seconds,
            max_token_age=config.max_token_age_seconds,
        )

    # Writes

    def upsert(
        self,
        address: str,
        symbol: str,
        observation: PriceObservation,
        migration_hint: Optional[float] = None,
        migrated_at: Optional[float] = None,
        now: Optional[float] = None,
        social: Optional[SocialMetrics] = None,
    ) -> Journey:
        """
        Create or advance the journey for address.

        Args:
            address: Token mint address
            symbol: Token symbol (used only when creating)
            observation: Fresh market data
            migration_hint: Baseline market cap from the feed, if known
            migrated_at: Baseline instant (defaults to now)
            now: Observation instant (defaults to wall clock)
            social: Social metrics, attached only when creating

        Returns:
            The journey now stored for address
        """
        now = time.time() if now is None else now

        with self._lock:
            existing = self._journeys.get(address)

            if existing is None:
                journey = self._create(address, symbol, observation, migration_hint, migrated_at, now, social)
                logger.debug(f"Tracking {symbol} ({address[:8]}) from ${journey.migration_baseline.market_cap:,.0f}")
            else:
                journey = self._advance(existing, observation, now)

            self._journeys[address] = journey

        return journey

    def _create(
        self,
        address: str,
        symbol: str,
        observation: PriceObservation,
        migration_hint: Optional[float],
        migrated_at: Optional[float],
        now: float,
        social: Optional[SocialMetrics] = None,
    ) -> Journey:
        baseline_mcap = migration_hint if migration_hint and migration_hint > 0 else observation.market_cap
        baseline = MarketCapMark(baseline_mcap, migrated_at if migrated_at is not None else now)

        # ATH starts at the baseline and must already cover this first observation
        if observation.market_cap > baseline_mcap:
            ath = MarketCapMark(observation.market_cap, now)
        else:
            ath = baseline

        return Journey(
            address=address,
            symbol=symbol,
            migration_baseline=baseline,
            all_time_high=ath,
            latest=LatestState(observation.market_cap, observation.price, observation.liquidity, now),
            history=(self._snapshot(observation, now),),
            social=social,
        )

    def _advance(self, journey: Journey, observation: PriceObservation, now: float) -> Journey:
        ath = journey.all_time_high
        if observation.market_cap > ath.market_cap:
            ath = MarketCapMark(observation.market_cap, now)

        history = journey.history
        last = history[-1] if history else None
        if last is None or now - last.timestamp >= self.min_snapshot_interval:
            history = (history + (self._snapshot(observation, now),))[-self.max_snapshots:]

        return replace(
            journey,
            all_time_high=ath,
            latest=LatestState(observation.market_cap, observation.price, observation.liquidity, now),
            history=history,
        )

    @staticmethod
    def _snapshot(observation: PriceObservation, now: float) -> PriceSnapshot:
        return PriceSnapshot(
            timestamp=now,
            market_cap=observation.market_cap,
            price=observation.price,
            liquidity=observation.liquidity,
        )

    def evict_expired(self, now: Optional[float] = None) -> int:
        """
        Remove journeys older than twice the max tracked age.

        Returns number of journeys removed.
        """
        now = time.time() if now is None else now
        cutoff = 2 * self.max_token_age

        with self._lock:
            expired = [
                address for address, journey in self._journeys.items()
                if journey.age_seconds(now) > cutoff
            ]
            for address in expired:
                del self._journeys[address]

        if expired:
            logger.info(f"Evicted {len(expired)} expired journey(s)")

        return len(expired)

    def mark_polled(self, now: float) -> None:
        """Record the instant of the last completed poll."""
        with self._lock:
            self._last_poll_at = now

    # Reads

    def get(self, address: str) -> Optional[Journey]:
        """Get a journey by address, or None if untracked."""
        with self._lock:
            return self._journeys.get(address)

    def get_all(self) -> List[Journey]:
        """Get all tracked journeys."""
        with self._lock:
            return list(self._journeys.values())

    def get_by_signal(self, signals: Iterable[EntrySignal]) -> List[Journey]:
        """Get journeys whose entry signal is in signals."""
        wanted = set(signals)
        return [j for j in self.get_all() if j.entry_signal in wanted]

    def stats(self) -> CacheStats:
        """Counts by entry signal plus total tracked and last poll instant."""
        with self._lock:
            journeys = list(self._journeys.values())
            last_poll_at = self._last_poll_at

        signal_counts = {signal.value: 0 for signal in EntrySignal}
        for journey in journeys:
            signal_counts[journey.entry_signal.value] += 1

        return CacheStats(
            total_tracked=len(journeys),
            last_poll_at=last_poll_at,
            signal_counts=signal_counts,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._journeys)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._journeys
