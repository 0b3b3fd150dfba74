#!/usr/bin/env python3
"""
Token journey tracker.

Polls DexScreener for freshly migrated tokens listed in a feed file,
keeps their price journeys in memory and ranks retracement entries.
Never places trades.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
import time
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from journeytrack.core.config import Config
from journeytrack.core.utils import (
    format_age,
    format_entry_signal,
    format_market_cap,
    format_risk_level,
    short_address,
)
from journeytrack.ingest.feed import load_candidates
from journeytrack.review.query import JourneyQuery
from journeytrack.review.screener import print_screener
from journeytrack.tracking.service import get_tracking_service, shutdown_tracking_service

app = typer.Typer(help="Token journey tracking and retracement signals")
console = Console()

logger = logging.getLogger("track")


def setup(log_level: Optional[str] = None) -> Config:
    """Load .env, build config and configure logging."""
    load_dotenv()
    config = Config.from_env()

    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return config


def build_table(query: JourneyQuery, signals: Optional[List[str]], limit: int) -> Table:
    """Ranked journeys as a rich table."""
    stats = query.stats()
    now = time.time()

    table = Table(title=f"Token Journeys ({stats.total_tracked} tracked)")
    table.add_column("Token", style="cyan")
    table.add_column("Signal")
    table.add_column("Score", justify="right")
    table.add_column("Risk")
    table.add_column("MCap", justify="right")
    table.add_column("Pump", justify="right")
    table.add_column("Drawdown", justify="right")
    table.add_column("Trend")
    table.add_column("Age", justify="right")

    for journey in query.ranked(signals or None, limit=limit):
        s = journey.signals
        signal_label, signal_style = format_entry_signal(s.entry_signal)
        risk_label, risk_style = format_risk_level(s.risk_level)

        table.add_row(
            f"{journey.symbol} [dim]{short_address(journey.address)}[/dim]",
            f"[{signal_style}]{signal_label}[/{signal_style}]",
            str(s.score),
            f"[{risk_style}]{risk_label}[/{risk_style}]",
            format_market_cap(journey.latest.market_cap),
            f"{s.pump_multiple:.1f}x",
            f"{s.drawdown_percent:.0f}%",
            s.trend.value,
            format_age(journey.age_seconds(now)),
        )

    return table


@app.command()
def once(
    feed: Path = typer.Option(..., "--feed", "-f", help="JSON feed of migrated tokens"),
    signal: Optional[List[str]] = typer.Option(None, "--signal", "-s", help="Filter by entry signal (repeatable)"),
    limit: int = typer.Option(25, "--limit", "-n", help="Max rows to show"),
    plain: bool = typer.Option(False, "--plain", help="Plain-text screener instead of a table"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override log level"),
):
    """
    Run a single update cycle and show the ranked journeys.

    Example:
        python scripts/track.py once --feed data/feed.json --signal buy --signal strong_buy
    """
    config = setup(log_level)
    service = get_tracking_service(config)

    try:
        candidates = load_candidates(feed)
        result = service.run_cycle(candidates)
        console.print(
            f"[dim]{result.fresh}/{result.candidates} fresh, "
            f"{result.updated} updated, {result.evicted} evicted[/dim]"
        )

        if plain:
            print_screener(service.query, signal or None, limit)
        else:
            console.print(build_table(service.query, signal, limit))
    finally:
        shutdown_tracking_service()


@app.command()
def run(
    feed: Path = typer.Option(..., "--feed", "-f", help="JSON feed of migrated tokens (re-read every cycle)"),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Seconds between cycles"),
    cycles: int = typer.Option(0, "--cycles", "-c", help="Stop after N cycles (0 = forever)"),
    signal: Optional[List[str]] = typer.Option(None, "--signal", "-s", help="Filter by entry signal (repeatable)"),
    limit: int = typer.Option(25, "--limit", "-n", help="Max rows to show"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override log level"),
):
    """
    Poll continuously, re-reading the feed before every cycle.

    Example:
        python scripts/track.py run --feed data/feed.json --interval 30
    """
    config = setup(log_level)
    service = get_tracking_service(config)
    interval = interval if interval is not None else config.poll_interval_seconds
    completed = 0

    console.print(f"[bold green]Tracking[/bold green] {feed} every {interval:.0f}s (Ctrl+C to stop)")

    try:
        while cycles == 0 or completed < cycles:
            try:
                candidates = load_candidates(feed)
            except (OSError, ValueError) as e:
                logger.error(f"Could not read feed {feed}: {e}")
                candidates = []

            result = service.run_cycle(candidates)
            if result.ran:
                completed += 1
                console.print(build_table(service.query, signal, limit))

            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
    finally:
        stats = service.query.stats()
        console.print(f"[dim]{stats.total_tracked} journeys tracked at shutdown[/dim]")
        shutdown_tracking_service()


@app.command()
def config():
    """Show current tracking settings."""
    load_dotenv()
    typer.echo(Config.from_env().get_summary())


if __name__ == "__main__":
    app()
