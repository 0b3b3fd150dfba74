"""
Unit tests for configuration, feed parsing, display helpers and the
process-wide tracking service.
"""

import json

import pytest
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from journeytrack.core.config import Config
from journeytrack.core.models import Candidate, EntrySignal, RiskLevel
from journeytrack.core.utils import (
    format_age,
    format_entry_signal,
    format_market_cap,
    format_risk_level,
    short_address,
)
from journeytrack.ingest.feed import load_candidates, parse_candidates
from journeytrack.tracking import service as service_module
from journeytrack.tracking.service import (
    TrackingService,
    get_tracking_service,
    shutdown_tracking_service,
)


class TestConfig:
    """Test JSON template + env loading."""

    def write_template(self, root, name="default", **sections):
        path = root / "config" / "tracking"
        path.mkdir(parents=True, exist_ok=True)
        (path / f"{name}.json").write_text(json.dumps(sections))

    def test_from_env_reads_template(self, tmp_path, monkeypatch):
        self.write_template(
            tmp_path,
            provider={"batch_size": 10, "chain": "solana"},
            history={"max_snapshots": 20, "max_token_age_seconds": 1800},
            scheduler={"min_cycle_interval_seconds": 15},
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("TRACKING_TEMPLATE", raising=False)
        monkeypatch.delenv("DEXSCREENER_CHAIN", raising=False)

        config = Config.from_env()

        assert config.batch_size == 10
        assert config.max_snapshots == 20
        assert config.max_token_age_seconds == 1800
        assert config.min_cycle_interval_seconds == 15
        assert config.min_snapshot_interval_seconds == 30.0

    def test_env_overrides(self, tmp_path, monkeypatch):
        self.write_template(tmp_path, name="fast", provider={"chain": "solana"})
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TRACKING_TEMPLATE", "fast")
        monkeypatch.setenv("DEXSCREENER_CHAIN", "base")
        monkeypatch.setenv("JOURNEYTRACK_LOG_LEVEL", "debug")

        config = Config.from_env()

        assert config.tracking_template == "fast"
        assert config.chain == "base"
        assert config.log_level == "DEBUG"

    def test_missing_template(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TRACKING_TEMPLATE", "nope")

        with pytest.raises(FileNotFoundError):
            Config.from_env()

    def test_summary(self):
        summary = Config().get_summary()
        assert "Max Snapshots: 60" in summary
        assert "Evict After: 120 min" in summary


class TestCandidate:
    """Test feed item parsing."""

    def test_from_dict_iso(self):
        candidate = Candidate.from_dict({
            "mint": "abc", "symbol": "ABC",
            "detected_at": "2024-01-01T00:00:00Z", "market_cap": 12_000,
        })

        assert candidate.address == "abc"
        assert candidate.detected_at == 1_704_067_200.0
        assert candidate.market_cap_hint == 12_000

    def test_from_dict_epoch_millis(self):
        candidate = Candidate.from_dict({"mint": "abc", "symbol": "ABC", "detected_at": 1_704_067_200_000})
        assert candidate.detected_at == 1_704_067_200.0
        assert candidate.market_cap_hint is None

    def test_missing_address_rejected(self):
        with pytest.raises(ValueError):
            Candidate(address=" ", symbol="X", detected_at=0.0)

    def test_missing_timestamp_rejected(self):
        with pytest.raises(ValueError):
            Candidate.from_dict({"mint": "abc", "symbol": "ABC"})

    def test_parse_candidates_skips_bad_items(self):
        candidates = parse_candidates([
            {"mint": "good", "symbol": "G", "detected_at": 1_700_000_000},
            {"mint": "", "symbol": "B", "detected_at": 1_700_000_000},
            "garbage",
        ])
        assert [c.address for c in candidates] == ["good"]

    def test_load_candidates_wrapped(self, tmp_path):
        feed = tmp_path / "feed.json"
        feed.write_text(json.dumps({"tokens": [
            {"mint": "a", "symbol": "A", "detected_at": "2024-01-01T00:00:00+00:00", "market_cap": None},
        ]}))

        candidates = load_candidates(feed)

        assert len(candidates) == 1
        assert candidates[0].market_cap_hint is None


class TestSocialMetrics:
    """Test social metrics extraction from feed items."""

    BASE = {"mint": "abc", "symbol": "ABC", "detected_at": 1_700_000_000}

    def test_tweet_fields(self):
        candidate = Candidate.from_dict({
            **self.BASE,
            "twitter_link_type": "tweet",
            "author_followers": 12_000,
            "author_verified": True,
            "tweet_author_username": "dev",
            "tweet_like_count": 340,
            "tweet_view_count": 9_000,
            "tweet_text": "gm",
            "community_member_count": 50,
        })
        social = candidate.social

        assert social.source_type == "tweet"
        assert social.author_followers == 12_000
        assert social.author_username == "dev"
        assert social.like_count == 340
        assert social.view_count == 9_000
        assert social.retweet_count is None
        assert social.community_member_count is None

    def test_community_fields(self):
        candidate = Candidate.from_dict({
            **self.BASE,
            "twitter_link_type": "community",
            "community_id": "c1",
            "community_name": "ABC holders",
            "community_member_count": 800,
            "community_creator_followers": 4_500,
            "community_creator_username": "founder",
            "tweet_like_count": 99,
        })
        social = candidate.social

        assert social.source_type == "community"
        assert social.author_followers == 4_500
        assert social.author_username == "founder"
        assert social.community_name == "ABC holders"
        assert social.community_member_count == 800
        assert social.like_count is None

    def test_community_without_community_data(self):
        candidate = Candidate.from_dict({**self.BASE, "twitter_link_type": "community", "author_followers": 10})
        assert candidate.social is None

    def test_profile_link_with_tweet_data_is_unknown(self):
        candidate = Candidate.from_dict({**self.BASE, "twitter_link_type": "profile", "tweet_like_count": 5})
        assert candidate.social.source_type == "unknown"
        assert candidate.social.like_count == 5

    def test_no_social_fields(self):
        assert Candidate.from_dict(self.BASE).social is None


class TestFormatting:
    """Test display helpers."""

    def test_entry_signal_labels(self):
        assert format_entry_signal(EntrySignal.STRONG_BUY)[0] == "STRONG BUY"
        assert format_entry_signal("no_data")[0] == "NO DATA"

    def test_risk_labels(self):
        assert format_risk_level(RiskLevel.MEDIUM)[0] == "MED RISK"
        assert format_risk_level(RiskLevel.EXTREME)[0] == "EXTREME"

    @pytest.mark.parametrize("seconds,expected", [
        (20, "just now"),
        (300, "5m"),
        (3600, "1h"),
        (5400, "1h 30m"),
        (90000, "1d 1h"),
    ])
    def test_format_age(self, seconds, expected):
        assert format_age(seconds) == expected

    def test_format_market_cap(self):
        assert format_market_cap(None) == "n/a"
        assert format_market_cap(950) == "$950"
        assert format_market_cap(12_500) == "$12.5K"
        assert format_market_cap(3_400_000) == "$3.40M"

    def test_short_address(self):
        assert short_address("7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr") == "7GCi...W2hr"
        assert short_address("short") == "short"


class TestTrackingService:
    """Test the process-wide service lifecycle."""

    def test_singleton_lifecycle(self, monkeypatch):
        monkeypatch.setattr(service_module, "_tracking_service", None)

        first = get_tracking_service(Config())
        second = get_tracking_service(Config(max_snapshots=5))

        assert first is second
        assert first.store.max_snapshots == 60

        shutdown_tracking_service()
        third = get_tracking_service(Config(max_snapshots=5))

        assert third is not first
        assert third.store.max_snapshots == 5
        shutdown_tracking_service()

    def test_components_share_one_store(self):
        service = TrackingService(Config())

        assert service.scheduler.store is service.store
        assert service.query.store is service.store
        service.close()
