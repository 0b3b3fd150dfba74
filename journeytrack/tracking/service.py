"""
Process-wide tracking service.

Owns the one journey store of the process together with the scheduler
and query API wired to it.

Lifecycle:
    service = get_tracking_service(config)   # created on first use
    service.run_cycle(candidates)            # from any thread
    service.query.ranked()                   # from any thread
    shutdown_tracking_service()              # at process stop
"""

import logging
import threading
from typing import Iterable, Optional

from journeytrack.core.config import Config
from journeytrack.core.models import Candidate
from journeytrack.ingest.price_source import DexScreenerClient
from journeytrack.review.query import JourneyQuery
from journeytrack.tracking.scheduler import CycleResult, PriceSource, UpdateScheduler
from journeytrack.tracking.store import JourneyStore

logger = logging.getLogger(__name__)


class TrackingService:
    """Store + scheduler + query, wired from one Config."""

    def __init__(self, config: Config, price_source: Optional[PriceSource] = None):
        self.config = config
        self.store = JourneyStore.from_config(config)
        self.price_source = price_source or DexScreenerClient.from_config(config)
        self.scheduler = UpdateScheduler.from_config(config, self.store, self.price_source)
        self.query = JourneyQuery(self.store)

    def run_cycle(self, candidates: Iterable[Candidate], now: Optional[float] = None) -> CycleResult:
        return self.scheduler.run_cycle(candidates, now=now)

    def close(self) -> None:
        """Release the price source's HTTP session, if it has one."""
        close = getattr(self.price_source, "close", None)
        if close is not None:
            close()


# Global instance
_tracking_service: Optional[TrackingService] = None
_service_lock = threading.Lock()


def get_tracking_service(config: Optional[Config] = None) -> TrackingService:
    """Get or create the global TrackingService instance."""
    global _tracking_service
    with _service_lock:
        if _tracking_service is None:
            _tracking_service = TrackingService(config or Config.from_env())
            logger.info(f"Tracking service started (template: {_tracking_service.config.tracking_template})")
        return _tracking_service


def shutdown_tracking_service() -> None:
    """Tear down the global instance. The cache is not persisted."""
    global _tracking_service
    with _service_lock:
        if _tracking_service is not None:
            _tracking_service.close()
            logger.info(f"Tracking service stopped ({len(_tracking_service.store)} journeys dropped)")
            _tracking_service = None
