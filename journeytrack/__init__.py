"""
JourneyTrack - Token Journey Tracking & Retracement Signals

A self-hosted Python engine that follows freshly migrated tokens,
keeps a bounded price history per token, and scores pullbacks
from the all-time high as potential entries.

It reports what the chart did. It never places a trade.
"""

__version__ = "0.1.0"
