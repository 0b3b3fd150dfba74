"""
Configuration management for JourneyTrack.

Loads settings from a JSON tracking template and environment variables.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass
class Config:
    """Application configuration."""

    # DexScreener
    dexscreener_base_url: str = "https://api.dexscreener.com"
    chain: str = "solana"
    batch_size: int = 30  # DexScreener accepts up to 30 comma-joined addresses
    batch_delay_seconds: float = 0.1
    request_timeout_seconds: float = 10.0

    # Journey history
    max_snapshots: int = 60
    min_snapshot_interval_seconds: float = 30.0

    # Tracking window (tokens older than this are not picked up;
    # tracked journeys are evicted at twice this age)
    max_token_age_seconds: float = 60 * 60

    # Scheduler
    min_cycle_interval_seconds: float = 30.0
    poll_interval_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    # Template name
    tracking_template: str = "default"

    @classmethod
    def _load_json(cls, json_path: Path) -> Dict[str, Any]:
        """Load JSON configuration file."""
        if not json_path.exists():
            raise FileNotFoundError(f"Config file not found: {json_path}")

        with open(json_path, 'r') as f:
            return json.load(f)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from the JSON template + environment variables."""
        template_name = os.getenv("TRACKING_TEMPLATE", "default")
        template_path = Path(f"config/tracking/{template_name}.json")
        template_data = cls._load_json(template_path)

        provider = template_data.get("provider", {})
        history = template_data.get("history", {})
        scheduler = template_data.get("scheduler", {})

        config = cls(
            dexscreener_base_url=os.getenv(
                "DEXSCREENER_BASE_URL",
                provider.get("base_url", "https://api.dexscreener.com"),
            ),
            chain=os.getenv("DEXSCREENER_CHAIN", provider.get("chain", "solana")),
            batch_size=provider.get("batch_size", 30),
            batch_delay_seconds=provider.get("batch_delay_seconds", 0.1),
            request_timeout_seconds=provider.get("request_timeout_seconds", 10.0),

            max_snapshots=history.get("max_snapshots", 60),
            min_snapshot_interval_seconds=history.get("min_snapshot_interval_seconds", 30.0),
            max_token_age_seconds=history.get("max_token_age_seconds", 3600.0),

            min_cycle_interval_seconds=scheduler.get("min_cycle_interval_seconds", 30.0),
            poll_interval_seconds=float(
                os.getenv("POLL_INTERVAL_SECONDS", scheduler.get("poll_interval_seconds", 30.0))
            ),

            log_level=os.getenv("JOURNEYTRACK_LOG_LEVEL", "INFO").upper(),
            tracking_template=template_name,
        )

        return config

    def get_summary(self) -> str:
        """Get a summary of current tracking settings."""
        return f"""Template: {self.tracking_template}

Price Source:
  Base URL: {self.dexscreener_base_url}
  Chain: {self.chain}
  Batch Size: {self.batch_size} tokens
  Batch Delay: {self.batch_delay_seconds * 1000:.0f}ms
  Request Timeout: {self.request_timeout_seconds:.0f}s

Journey History:
  Max Snapshots: {self.max_snapshots}
  Min Snapshot Interval: {self.min_snapshot_interval_seconds:.0f}s
  Max Token Age: {self.max_token_age_seconds / 60:.0f} min
  Evict After: {self.max_token_age_seconds * 2 / 60:.0f} min

Scheduler:
  Min Cycle Interval: {self.min_cycle_interval_seconds:.0f}s
  Poll Interval: {self.poll_interval_seconds:.0f}s
"""
