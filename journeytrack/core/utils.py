"""
Display helpers for JourneyTrack.
"""

from typing import Optional, Tuple

from journeytrack.core.models import EntrySignal, RiskLevel

SIGNAL_LABELS = {
    EntrySignal.STRONG_BUY: ("STRONG BUY", "bold bright_green"),
    EntrySignal.BUY: ("BUY", "green"),
    EntrySignal.WATCH: ("WATCH", "yellow"),
    EntrySignal.AVOID: ("AVOID", "red"),
    EntrySignal.NO_DATA: ("NO DATA", "dim"),
}

RISK_LABELS = {
    RiskLevel.LOW: ("LOW RISK", "green"),
    RiskLevel.MEDIUM: ("MED RISK", "yellow"),
    RiskLevel.HIGH: ("HIGH RISK", "dark_orange"),
    RiskLevel.EXTREME: ("EXTREME", "bold red"),
}


def format_entry_signal(signal: EntrySignal) -> Tuple[str, str]:
    """Return (label, rich style) for an entry signal."""
    return SIGNAL_LABELS[EntrySignal(signal)]


def format_risk_level(level: RiskLevel) -> Tuple[str, str]:
    """Return (label, rich style) for a risk level."""
    return RISK_LABELS[RiskLevel(level)]


def format_age(seconds: float) -> str:
    """
    Convert seconds to a short human-readable age.

    Examples:
        20 -> "just now"
        300 -> "5m"
        5400 -> "1h 30m"
        90000 -> "1d 1h"
    """
    if seconds < 60:
        return "just now"

    total_minutes = int(seconds // 60)
    days, remaining = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(remaining, 60)

    if days > 0:
        return f"{days}d {hours}h" if hours else f"{days}d"
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    return f"{minutes}m"


def format_market_cap(value: Optional[float]) -> str:
    """
    Compact dollar formatting.

    Examples:
        None -> "n/a"
        950 -> "$950"
        12500 -> "$12.5K"
        3400000 -> "$3.40M"
    """
    if value is None:
        return "n/a"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:,.0f}"


def short_address(address: str) -> str:
    """Shorten a mint address for display (first 4 ... last 4)."""
    if len(address) <= 12:
        return address
    return f"{address[:4]}...{address[-4:]}"
