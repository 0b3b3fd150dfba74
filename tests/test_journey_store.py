"""
Unit tests for the journey store.

Tests the shared cache:
- Journey creation and baseline handling
- ATH tracking and snapshot pacing
- Bounded history and eviction
- Read consistency
"""

import dataclasses
import threading

import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from journeytrack.core.config import Config
from journeytrack.core.models import EntrySignal, Journey, PriceObservation, SocialMetrics
from journeytrack.signals.engine import compute_signals
from journeytrack.tracking.store import JourneyStore

T0 = 1_700_000_000.0
MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"


def obs(market_cap, liquidity=50_000.0):
    return PriceObservation(market_cap=market_cap, price=market_cap / 1e9, liquidity=liquidity)


@pytest.fixture
def store():
    return JourneyStore(max_snapshots=60, min_snapshot_interval=30.0, max_token_age=3600.0)


class TestJourneyCreation:
    """Test first observation of a token."""

    def test_baseline_from_hint(self, store):
        """Feed market cap is the baseline; ATH starts at the same value."""
        journey = store.upsert(MINT, "POPCAT", obs(10_000), migration_hint=10_000, migrated_at=T0, now=T0)

        assert journey.migration_baseline.market_cap == 10_000
        assert journey.all_time_high.market_cap == 10_000
        assert journey.migration_baseline.at == T0
        assert len(journey.history) == 1
        assert journey.signals.pump_multiple == 1.0
        assert journey.entry_signal != EntrySignal.NO_DATA

    def test_baseline_from_observation_without_hint(self, store):
        """No hint: the first observation becomes the baseline."""
        journey = store.upsert(MINT, "POPCAT", obs(25_000), now=T0)

        assert journey.migration_baseline.market_cap == 25_000
        assert journey.migration_baseline.at == T0

    def test_zero_hint_ignored(self, store):
        """A non-positive hint falls back to the observation."""
        journey = store.upsert(MINT, "POPCAT", obs(25_000), migration_hint=0, now=T0)
        assert journey.migration_baseline.market_cap == 25_000

    def test_first_observation_above_hint_sets_ath(self, store):
        """ATH must cover the first observation when it beats the baseline."""
        journey = store.upsert(MINT, "POPCAT", obs(80_000), migration_hint=10_000, migrated_at=T0 - 300, now=T0)

        assert journey.migration_baseline.market_cap == 10_000
        assert journey.all_time_high.market_cap == 80_000
        assert journey.all_time_high.at == T0
        assert journey.signals.pump_multiple == 8.0


class TestJourneyUpdates:
    """Test subsequent observations."""

    def test_ath_advances_and_never_drops(self, store):
        """ATH follows new highs and stays put on pullbacks."""
        store.upsert(MINT, "POPCAT", obs(10_000), migration_hint=10_000, migrated_at=T0, now=T0)
        store.upsert(MINT, "POPCAT", obs(300_000), now=T0 + 60)
        journey = store.upsert(MINT, "POPCAT", obs(150_000), now=T0 + 120)

        assert journey.all_time_high.market_cap == 300_000
        assert journey.all_time_high.at == T0 + 60
        assert journey.latest.market_cap == 150_000
        assert journey.signals.drawdown_percent == 50
        assert journey.all_time_high.market_cap >= journey.migration_baseline.market_cap
        assert journey.all_time_high.market_cap >= journey.latest.market_cap

    def test_social_metrics_kept_across_updates(self, store):
        """Social metrics are attached on creation and never replaced."""
        social = SocialMetrics(source_type="tweet", author_followers=12_000, like_count=340)
        store.upsert(MINT, "POPCAT", obs(10_000), now=T0, social=social)
        journey = store.upsert(
            MINT, "POPCAT", obs(20_000), now=T0 + 60,
            social=SocialMetrics(source_type="community"),
        )

        assert journey.social == social
        assert journey.to_dict()["social"]["like_count"] == 340

    def test_snapshot_interval_enforced(self, store):
        """Observations inside the interval update latest but add no snapshot."""
        store.upsert(MINT, "POPCAT", obs(10_000), now=T0)
        journey = store.upsert(MINT, "POPCAT", obs(12_000), now=T0 + 10)

        assert len(journey.history) == 1
        assert journey.latest.market_cap == 12_000
        assert journey.latest.updated_at == T0 + 10

        journey = store.upsert(MINT, "POPCAT", obs(13_000), now=T0 + 30)
        assert len(journey.history) == 2

    def test_snapshots_never_closer_than_interval(self, store):
        """Rapid updates never produce snapshots closer than the interval."""
        for i in range(40):
            store.upsert(MINT, "POPCAT", obs(10_000 + i), now=T0 + i * 7)

        history = store.get(MINT).history
        gaps = [b.timestamp - a.timestamp for a, b in zip(history, history[1:])]
        assert all(gap >= 30.0 for gap in gaps)

    def test_history_capped_fifo(self):
        """Beyond capacity the oldest snapshot is dropped."""
        store = JourneyStore(max_snapshots=5, min_snapshot_interval=30.0)

        for i in range(8):
            store.upsert(MINT, "POPCAT", obs(10_000 + i), now=T0 + i * 30)

        history = store.get(MINT).history
        assert len(history) == 5
        assert history[0].timestamp == T0 + 3 * 30
        assert history[-1].timestamp == T0 + 7 * 30

    def test_symbol_kept_from_creation(self, store):
        store.upsert(MINT, "POPCAT", obs(10_000), now=T0)
        journey = store.upsert(MINT, "OTHER", obs(11_000), now=T0 + 30)
        assert journey.symbol == "POPCAT"


class TestSignalsDerived:
    """Signals can only come from the journey's own fields."""

    def test_signals_not_assignable(self, store):
        journey = store.upsert(MINT, "POPCAT", obs(10_000), now=T0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            journey.signals = None

    def test_signals_not_constructor_argument(self, store):
        journey = store.upsert(MINT, "POPCAT", obs(10_000), now=T0)

        with pytest.raises(TypeError):
            Journey(
                address=journey.address,
                symbol=journey.symbol,
                migration_baseline=journey.migration_baseline,
                all_time_high=journey.all_time_high,
                latest=journey.latest,
                history=journey.history,
                signals=journey.signals,
            )

    def test_update_recomputes_signals(self, store):
        before = store.upsert(MINT, "POPCAT", obs(10_000), migrated_at=T0, now=T0)
        after = store.upsert(MINT, "POPCAT", obs(200_000), now=T0 + 30)

        assert before.signals.pump_multiple == 1.0
        assert after.signals.pump_multiple == 20.0
        assert after.signals == compute_signals(after)


class TestEviction:
    """Test garbage collection of old journeys."""

    def test_evicts_after_twice_max_age(self, store):
        store.upsert(MINT, "POPCAT", obs(10_000), migrated_at=T0, now=T0)

        assert store.evict_expired(T0 + 7200) == 0
        assert store.get(MINT) is not None

        assert store.evict_expired(T0 + 7201) == 1
        assert store.get(MINT) is None
        assert store.get_all() == []

    def test_keeps_young_journeys(self, store):
        store.upsert("OLD", "OLD", obs(10_000), migrated_at=T0 - 8000, now=T0)
        store.upsert("NEW", "NEW", obs(10_000), migrated_at=T0, now=T0)

        store.evict_expired(T0 + 100)

        assert [j.address for j in store.get_all()] == ["NEW"]


class TestReads:
    """Test read accessors."""

    def test_unknown_address_returns_none(self, store):
        assert store.get("missing") is None
        assert "missing" not in store

    def test_stats(self, store):
        stats = store.stats()
        assert stats.total_tracked == 0
        assert stats.last_poll_at is None
        assert stats.signal_counts == {
            "strong_buy": 0, "buy": 0, "watch": 0, "avoid": 0, "no_data": 0,
        }

        journey = store.upsert(MINT, "POPCAT", obs(10_000), now=T0)
        store.mark_polled(T0)

        stats = store.stats()
        assert stats.total_tracked == 1
        assert stats.last_poll_at == T0
        assert stats.signal_counts[journey.entry_signal.value] == 1
        assert sum(stats.signal_counts.values()) == 1

    def test_get_by_signal(self, store):
        journey = store.upsert(MINT, "POPCAT", obs(10_000), now=T0)
        other = [s for s in EntrySignal if s != journey.entry_signal]

        assert store.get_by_signal([journey.entry_signal]) == [journey]
        assert store.get_by_signal(other) == []

    def test_from_config(self):
        store = JourneyStore.from_config(Config(max_snapshots=10, max_token_age_seconds=600))
        assert store.max_snapshots == 10
        assert store.max_token_age == 600


class TestConcurrentReads:
    """Readers never see signals from a different history."""

    def test_reads_during_writes_are_consistent(self, store):
        stop = threading.Event()
        errors = []

        def reader():
            while not stop.is_set():
                for journey in store.get_all():
                    if journey.signals != compute_signals(journey):
                        errors.append(journey)

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()

        try:
            for i in range(300):
                store.upsert(MINT, "POPCAT", obs(10_000 + (i % 7) * 1_000), now=T0 + i * 30)
        finally:
            stop.set()
            for t in threads:
                t.join()

        assert errors == []
        assert len(store.get(MINT).history) == 60
