"""
Data models for JourneyTrack.

Models: PriceSnapshot, PriceObservation, SocialMetrics, Candidate, Journey, RetracementSignals.

Everything here is an immutable value. The journey store replaces a
Journey wholesale on every update, so readers never see a half-written one.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntrySignal(str, Enum):
    """Bucketed entry recommendation."""
    STRONG_BUY = "strong_buy"  # proven pump + good drawdown + consolidating
    BUY = "buy"
    WATCH = "watch"
    AVOID = "avoid"
    NO_DATA = "no_data"  # nothing computed yet


class Trend(str, Enum):
    """Short-term direction from the most recent snapshots."""
    PUMPING = "pumping"
    DUMPING = "dumping"
    CONSOLIDATING = "consolidating"
    UNKNOWN = "unknown"


class RiskLevel(str, Enum):
    """Risk classification of a journey."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


@dataclass(frozen=True)
class PriceSnapshot:
    """One timestamped observation kept in a journey's history."""
    timestamp: float  # epoch seconds
    market_cap: float
    price: float
    liquidity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "market_cap": self.market_cap,
            "price": self.price,
            "liquidity": self.liquidity,
        }


@dataclass(frozen=True)
class PriceObservation:
    """Current market data for one token, as returned by the price source."""
    market_cap: float
    price: float
    liquidity: Optional[float] = None
    symbol: str = ""
    pair_address: str = ""
    dex_id: str = ""


@dataclass(frozen=True)
class MarketCapMark:
    """A market cap pinned to the instant it was seen (baseline or ATH)."""
    market_cap: float
    at: float


@dataclass(frozen=True)
class LatestState:
    """Most recent observation, updated on every cycle."""
    market_cap: float
    price: float
    liquidity: Optional[float]
    updated_at: float


def _parse_instant(value: Any) -> float:
    """Accept epoch seconds, epoch milliseconds or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.timestamp()

    if isinstance(value, (int, float)):
        # Feeds sometimes send JS-style milliseconds
        return value / 1000 if value > 1e11 else float(value)

    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()

    raise ValueError(f"Invalid timestamp: {value!r}")


@dataclass(frozen=True)
class SocialMetrics:
    """
    Social context attached to a token when it is first tracked.

    source_type is "tweet", "community" or "unknown" (profile/search links
    that still carry tweet fields). Fields a source does not provide are None.
    """
    source_type: str
    author_followers: Optional[int] = None
    author_verified: Optional[bool] = None
    author_username: Optional[str] = None
    author_name: Optional[str] = None
    # Tweet engagement
    like_count: Optional[int] = None
    retweet_count: Optional[int] = None
    reply_count: Optional[int] = None
    quote_count: Optional[int] = None
    bookmark_count: Optional[int] = None
    impression_count: Optional[int] = None
    view_count: Optional[int] = None
    tweet_text: Optional[str] = None
    tweet_created_at: Optional[str] = None
    # Community
    community_id: Optional[str] = None
    community_name: Optional[str] = None
    community_description: Optional[str] = None
    community_member_count: Optional[int] = None
    community_moderator_count: Optional[int] = None
    community_created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["SocialMetrics"]:
        """
        Extract social metrics from a feed item.

        Uses community fields when twitter_link_type is "community" and
        tweet fields otherwise. Returns None when the item carries neither.
        """
        link_type = data.get("twitter_link_type")

        if link_type == "community":
            if "community_member_count" not in data and "community_creator_followers" not in data:
                return None

            return cls(
                source_type="community",
                # Community creator stands in for the author
                author_followers=data.get("community_creator_followers"),
                author_verified=data.get("community_creator_verified"),
                author_username=data.get("community_creator_username"),
                author_name=data.get("community_creator_name"),
                community_id=data.get("community_id"),
                community_name=data.get("community_name"),
                community_description=data.get("community_description"),
                community_member_count=data.get("community_member_count"),
                community_moderator_count=data.get("community_moderator_count"),
                community_created_at=data.get("community_created_at"),
            )

        if "author_followers" not in data and "tweet_like_count" not in data:
            return None

        return cls(
            source_type="tweet" if link_type == "tweet" else "unknown",
            author_followers=data.get("author_followers"),
            author_verified=data.get("author_verified"),
            author_username=data.get("tweet_author_username"),
            author_name=data.get("tweet_author_name"),
            like_count=data.get("tweet_like_count"),
            retweet_count=data.get("tweet_retweet_count"),
            reply_count=data.get("tweet_reply_count"),
            quote_count=data.get("tweet_quote_count"),
            bookmark_count=data.get("tweet_bookmark_count"),
            impression_count=data.get("tweet_impression_count"),
            view_count=data.get("tweet_view_count"),
            tweet_text=data.get("tweet_text"),
            tweet_created_at=data.get("tweet_created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Candidate:
    """
    A token offered for tracking by the upstream feed.

    detected_at marks the migration; market_cap_hint is the feed's
    market cap at that moment, used as the journey baseline when present.
    """
    address: str
    symbol: str
    detected_at: float
    market_cap_hint: Optional[float] = None
    social: Optional[SocialMetrics] = None

    def __post_init__(self):
        if not self.address or not self.address.strip():
            raise ValueError("Candidate address is required")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        """Create from a feed item ({mint, symbol, detected_at, market_cap})."""
        address = data.get("mint") or data.get("address") or ""
        hint = data.get("market_cap")

        return cls(
            address=address,
            symbol=data.get("symbol") or "UNKNOWN",
            detected_at=_parse_instant(data.get("detected_at")),
            market_cap_hint=float(hint) if hint else None,
            social=SocialMetrics.from_dict(data),
        )


@dataclass(frozen=True)
class RetracementSignals:
    """Derived view of a journey. Always recomputed as a whole."""
    pump_multiple: float
    current_multiple: float
    drawdown_percent: float
    minutes_since_ath: float
    trend: Trend
    risk_level: RiskLevel
    entry_signal: EntrySignal
    score: int
    reasons: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pump_multiple": self.pump_multiple,
            "current_multiple": self.current_multiple,
            "drawdown_percent": self.drawdown_percent,
            "minutes_since_ath": self.minutes_since_ath,
            "trend": self.trend.value,
            "risk_level": self.risk_level.value,
            "entry_signal": self.entry_signal.value,
            "score": self.score,
            "reasons": list(self.reasons),
            "warnings": list(self.warnings),
        }


NO_DATA_SIGNALS = RetracementSignals(
    pump_multiple=1.0,
    current_multiple=1.0,
    drawdown_percent=0.0,
    minutes_since_ath=0.0,
    trend=Trend.UNKNOWN,
    risk_level=RiskLevel.MEDIUM,
    entry_signal=EntrySignal.NO_DATA,
    score=0,
)


@dataclass(frozen=True)
class Journey:
    """
    Price journey of one token since migration.

    signals is not a constructor argument: it is computed from the other
    fields when the journey is built, and the dataclass is frozen, so there
    is no way to set it independently.
    """
    address: str
    symbol: str
    migration_baseline: MarketCapMark
    all_time_high: MarketCapMark
    latest: LatestState
    history: Tuple[PriceSnapshot, ...] = ()
    social: Optional[SocialMetrics] = None
    signals: RetracementSignals = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        from journeytrack.signals.engine import compute_signals

        object.__setattr__(self, "signals", compute_signals(self))

    @property
    def entry_signal(self) -> EntrySignal:
        return self.signals.entry_signal

    def age_seconds(self, now: float) -> float:
        """Seconds since the migration baseline."""
        return now - self.migration_baseline.at

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation for external consumers."""
        return {
            "address": self.address,
            "symbol": self.symbol,
            "migration_market_cap": self.migration_baseline.market_cap,
            "migration_time": self.migration_baseline.at,
            "ath_market_cap": self.all_time_high.market_cap,
            "ath_time": self.all_time_high.at,
            "current_market_cap": self.latest.market_cap,
            "current_price": self.latest.price,
            "current_liquidity": self.latest.liquidity,
            "last_updated": self.latest.updated_at,
            "snapshots": [s.to_dict() for s in self.history],
            "signals": self.signals.to_dict(),
            "social": self.social.to_dict() if self.social else None,
        }

    def __repr__(self) -> str:
        return (
            f"<Journey {self.symbol} {self.address[:8]}: "
            f"{self.signals.entry_signal.value} score={self.signals.score}>"
        )
