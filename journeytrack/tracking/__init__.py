"""
Journey tracking module for JourneyTrack.

Handles the shared journey cache and the throttled update cycle.
The process-wide service lives in journeytrack.tracking.service.
"""

from journeytrack.tracking.store import CacheStats, JourneyStore
from journeytrack.tracking.scheduler import CycleResult, UpdateScheduler

__all__ = ["CacheStats", "JourneyStore", "CycleResult", "UpdateScheduler"]
