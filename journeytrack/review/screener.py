"""
Screener report over tracked journeys.

Shows where each token sits on its journey. Never places trades.
"""

import logging
import time
from typing import Iterable, Optional

from journeytrack.core.utils import (
    format_age,
    format_entry_signal,
    format_market_cap,
    format_risk_level,
    short_address,
)
from journeytrack.review.query import JourneyQuery, SignalLike

logger = logging.getLogger(__name__)


def format_screener_output(
    query: JourneyQuery,
    signals: Optional[Iterable[SignalLike]] = None,
    limit: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """
    Format screener output as plain text, best score first.
    """
    now = time.time() if now is None else now
    journeys = query.ranked(signals, limit=limit)
    stats = query.stats()

    # Header
    counts = stats.signal_counts
    lines = [
        f"JourneyTrack Screener - {stats.total_tracked} tracked",
        (
            f"strong_buy {counts['strong_buy']} | buy {counts['buy']} | "
            f"watch {counts['watch']} | avoid {counts['avoid']} | no_data {counts['no_data']}"
        ),
        "",
    ]

    if not journeys:
        lines.append("No journeys match criteria.")
        return "\n".join(lines)

    for journey in journeys:
        signals_ = journey.signals
        signal_label, _ = format_entry_signal(signals_.entry_signal)
        risk_label, _ = format_risk_level(signals_.risk_level)

        lines.append(
            f"{journey.symbol} ({short_address(journey.address)}) - "
            f"{signal_label} {signals_.score}/100, {risk_label}"
        )
        lines.append(
            f"- MCap: {format_market_cap(journey.latest.market_cap)} "
            f"(ATH {format_market_cap(journey.all_time_high.market_cap)}, "
            f"migrated at {format_market_cap(journey.migration_baseline.market_cap)})"
        )
        lines.append(
            f"- Pump: {signals_.pump_multiple:.1f}x | Now: {signals_.current_multiple:.1f}x | "
            f"Drawdown: {signals_.drawdown_percent:.0f}% | Trend: {signals_.trend.value}"
        )
        lines.append(f"- Age: {format_age(journey.age_seconds(now))} | Snapshots: {len(journey.history)}")

        for reason in signals_.reasons:
            lines.append(f"  + {reason}")
        for warning in signals_.warnings:
            lines.append(f"  ! {warning}")

        lines.append("")

    return "\n".join(lines)


def print_screener(
    query: JourneyQuery,
    signals: Optional[Iterable[SignalLike]] = None,
    limit: Optional[int] = None,
) -> None:
    """
    Print screener output to stdout.
    """
    output = format_screener_output(query, signals, limit)
    print(output)
