"""
Retracement signal engine.

Key principles:
- Only trust tokens that already proved they can run (pump multiple)
- Prefer a 40-70% pullback from ATH
- Wait for the dump to stop (consolidation)
- Fresh pullbacks beat stale ones

Everything here is a pure function of a Journey. The reference instant is
the journey's last update, never the wall clock.
"""

import math
from typing import List, Sequence, Tuple

from journeytrack.core.models import (
    NO_DATA_SIGNALS,
    EntrySignal,
    PriceSnapshot,
    RetracementSignals,
    RiskLevel,
    Trend,
)

# Trend window and thresholds (fractional change per snapshot)
TREND_MIN_SNAPSHOTS = 3
TREND_WINDOW = 5
TREND_MOVE_THRESHOLD = 0.05
TREND_CALM_VOLATILITY = 0.03

# Tokens older than this lose points
PREFERRED_MAX_AGE_MINUTES = 60

# Score bucket floors
STRONG_BUY_SCORE = 80
BUY_SCORE = 65
WATCH_SCORE = 45


def calculate_trend(snapshots: Sequence[PriceSnapshot]) -> Trend:
    """
    Determine trend from recent snapshots.

    Looks at the last 5 snapshots (or fewer). Needs at least 3.
    """
    if len(snapshots) < TREND_MIN_SNAPSHOTS:
        return Trend.UNKNOWN

    recent = snapshots[-TREND_WINDOW:]

    changes = []
    for previous, current in zip(recent, recent[1:]):
        if previous.market_cap <= 0:
            continue
        changes.append((current.market_cap - previous.market_cap) / previous.market_cap)

    if not changes:
        return Trend.UNKNOWN

    avg_change = sum(changes) / len(changes)
    variance = sum((c - avg_change) ** 2 for c in changes) / len(changes)
    volatility = math.sqrt(variance)

    if avg_change > TREND_MOVE_THRESHOLD:
        return Trend.PUMPING
    if avg_change < -TREND_MOVE_THRESHOLD:
        return Trend.DUMPING
    if volatility < TREND_CALM_VOLATILITY:
        return Trend.CONSOLIDATING
    return Trend.UNKNOWN


def calculate_risk_level(
    liquidity,
    drawdown_percent: float,
    trend: Trend,
    pump_multiple: float,
) -> RiskLevel:
    """
    Additive risk score.

    Thin or unknown liquidity, deep drawdowns, an ongoing dump and a weak
    pump history all add risk.
    """
    risk_score = 0

    if liquidity is None:
        risk_score += 2
    elif liquidity < 5000:
        risk_score += 3
    elif liquidity < 10000:
        risk_score += 2
    elif liquidity < 20000:
        risk_score += 1

    if drawdown_percent > 70:
        risk_score += 2
    elif drawdown_percent > 50:
        risk_score += 1

    if trend == Trend.DUMPING:
        risk_score += 2

    if pump_multiple < 5:
        risk_score += 2

    if risk_score <= 2:
        return RiskLevel.LOW
    if risk_score <= 4:
        return RiskLevel.MEDIUM
    if risk_score <= 6:
        return RiskLevel.HIGH
    return RiskLevel.EXTREME


def bucket_for_score(score: float) -> EntrySignal:
    """Map a 0-100 score to its entry signal bucket."""
    if score >= STRONG_BUY_SCORE:
        return EntrySignal.STRONG_BUY
    if score >= BUY_SCORE:
        return EntrySignal.BUY
    if score >= WATCH_SCORE:
        return EntrySignal.WATCH
    return EntrySignal.AVOID


def score_entry(
    age_minutes: float,
    pump_multiple: float,
    current_multiple: float,
    drawdown_percent: float,
    trend: Trend,
    minutes_since_ath: float,
) -> Tuple[int, List[str], List[str]]:
    """
    Score a pullback entry.

    Returns (score, reasons, warnings). Score starts neutral at 50 and is
    clamped to [0, 100] after all criteria are applied.
    """
    reasons: List[str] = []
    warnings: List[str] = []
    score = 50

    # Age: we want fresh tokens (< 1 hour old)
    if age_minutes > PREFERRED_MAX_AGE_MINUTES:
        warnings.append(f"Token is {int(age_minutes // 60)}h old (prefer < 1h)")
        score -= 20

    # Pump multiple: has it proven it can run?
    if pump_multiple >= 20:
        reasons.append(f"Strong pump proof: {pump_multiple:.1f}x from migration")
        score += 25
    elif pump_multiple >= 10:
        reasons.append(f"Good pump proof: {pump_multiple:.1f}x from migration")
        score += 15
    elif pump_multiple >= 5:
        reasons.append(f"Moderate pump: {pump_multiple:.1f}x from migration")
        score += 5
    else:
        warnings.append(f"Weak pump history: only {pump_multiple:.1f}x")
        score -= 15

    # Drawdown: is it at a discount? Sweet spot is 40-70% off ATH
    if 40 <= drawdown_percent <= 70:
        reasons.append(f"Ideal drawdown zone: {drawdown_percent:.0f}% from ATH")
        score += 25
    elif 30 <= drawdown_percent <= 80:
        reasons.append(f"Acceptable drawdown: {drawdown_percent:.0f}% from ATH")
        score += 10
    elif drawdown_percent < 30:
        warnings.append(f"Still near ATH: only {drawdown_percent:.0f}% down")
        score -= 10
    elif drawdown_percent > 80:
        warnings.append(f"Heavy drawdown: {drawdown_percent:.0f}% (might be dead)")
        score -= 20

    # Trend: stabilizing or still dumping?
    if trend == Trend.CONSOLIDATING:
        reasons.append("Price consolidating (good for entry)")
        score += 15
    elif trend == Trend.PUMPING:
        reasons.append("Already bouncing - may have missed bottom")
        score += 5
    elif trend == Trend.DUMPING:
        warnings.append("Still dumping - wait for stabilization")
        score -= 15

    # Freshness of the pullback
    if minutes_since_ath <= 30:
        reasons.append(f"Fresh pullback: {minutes_since_ath:.0f}min since ATH")
        score += 10
    elif minutes_since_ath <= 60:
        reasons.append(f"Recent ATH: {minutes_since_ath:.0f}min ago")
        score += 5

    # Upside left to reclaim ATH
    if current_multiple > 0:
        upside = pump_multiple / current_multiple
        if upside >= 2:
            reasons.append(f"{upside:.1f}x potential to ATH")
            score += 10

    return max(0, min(100, score)), reasons, warnings


def compute_signals(journey) -> RetracementSignals:
    """
    Derive the full signal set for a journey.

    A journey without history has nothing to score and reports no_data.
    """
    if not journey.history:
        return NO_DATA_SIGNALS

    baseline = journey.migration_baseline.market_cap
    ath = journey.all_time_high.market_cap
    current = journey.latest.market_cap
    now = journey.latest.updated_at

    pump_multiple = ath / baseline if baseline > 0 else 0.0
    current_multiple = current / baseline if baseline > 0 else 0.0

    drawdown_percent = ((ath - current) / ath) * 100 if ath > 0 else 0.0
    drawdown_percent = max(0.0, min(100.0, drawdown_percent))

    minutes_since_ath = max(0.0, (now - journey.all_time_high.at) / 60)
    age_minutes = journey.age_seconds(now) / 60

    trend = calculate_trend(journey.history)
    risk_level = calculate_risk_level(
        journey.latest.liquidity, drawdown_percent, trend, pump_multiple
    )

    score, reasons, warnings = score_entry(
        age_minutes=age_minutes,
        pump_multiple=pump_multiple,
        current_multiple=current_multiple,
        drawdown_percent=drawdown_percent,
        trend=trend,
        minutes_since_ath=minutes_since_ath,
    )

    return RetracementSignals(
        pump_multiple=pump_multiple,
        current_multiple=current_multiple,
        drawdown_percent=drawdown_percent,
        minutes_since_ath=minutes_since_ath,
        trend=trend,
        risk_level=risk_level,
        entry_signal=bucket_for_score(score),
        score=score,
        reasons=tuple(reasons),
        warnings=tuple(warnings),
    )
