"""
Batched price lookups against DexScreener.

DexScreener's /tokens/v1 endpoint takes up to 30 comma-joined addresses
per request and is rate limited (60 req/min). We chunk and pace requests.

A failed batch is logged and skipped. There are no retries here: the
next scheduled cycle asks again.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import requests

from journeytrack.core.config import Config
from journeytrack.core.models import PriceObservation

logger = logging.getLogger(__name__)


def chunked(items: List[str], size: int) -> List[List[str]]:
    """Split items into consecutive batches of at most size."""
    if size < 1:
        raise ValueError(f"Batch size must be positive: {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class DexScreenerClient:
    """
    Price source backed by the DexScreener public API (free, no auth).

    Returns market cap, USD price and USD liquidity per token address.
    """

    def __init__(
        self,
        base_url: str = "https://api.dexscreener.com",
        chain: str = "solana",
        batch_size: int = 30,
        batch_delay: float = 0.1,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain = chain
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> "DexScreenerClient":
        return cls(
            base_url=config.dexscreener_base_url,
            chain=config.chain,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay_seconds,
            timeout=config.request_timeout_seconds,
        )

    def fetch_prices(self, addresses: Iterable[str]) -> Dict[str, PriceObservation]:
        """
        Fetch current market data for a set of token addresses.

        Args:
            addresses: Token mint addresses

        Returns:
            Dict of address -> PriceObservation for every address the
            provider resolved. Missing addresses simply have no entry.
        """
        unique = list(dict.fromkeys(a for a in addresses if a))
        results: Dict[str, PriceObservation] = {}

        batches = chunked(unique, self.batch_size) if unique else []

        for index, batch in enumerate(batches):
            for address, observation in self._fetch_batch(batch).items():
                # First pair per token wins (DexScreener orders by liquidity)
                results.setdefault(address, observation)

            # Small delay between batches to respect rate limits
            if index < len(batches) - 1:
                time.sleep(self.batch_delay)

        logger.debug(f"Resolved {len(results)}/{len(unique)} tokens in {len(batches)} batch(es)")
        return results

    def _fetch_batch(self, batch: List[str]) -> Dict[str, PriceObservation]:
        """Fetch one batch. Returns an empty dict on any failure."""
        url = f"{self.base_url}/tokens/v1/{self.chain}/{','.join(batch)}"

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"DexScreener batch of {len(batch)} failed: {e}")
            return {}
        except ValueError as e:
            logger.error(f"DexScreener returned invalid JSON for batch of {len(batch)}: {e}")
            return {}

        # /tokens/v1 returns a bare list; older endpoints wrap it in "pairs"
        if isinstance(data, dict):
            data = data.get("pairs") or []
        if not isinstance(data, list):
            logger.error(f"Unexpected DexScreener payload type: {type(data).__name__}")
            return {}

        requested = set(batch)
        observations: Dict[str, PriceObservation] = {}

        for pair in data:
            if not isinstance(pair, dict):
                continue

            base_token = pair.get("baseToken") or {}
            address = base_token.get("address", "") if isinstance(base_token, dict) else ""
            if address not in requested or address in observations:
                continue

            try:
                observations[address] = self._parse_pair(pair)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed DexScreener pair for {address}: {e}")

        return observations

    def _parse_pair(self, pair: Dict[str, Any]) -> PriceObservation:
        """
        Parse a DexScreener pair into a PriceObservation.

        A market cap that is present but not numeric raises ValueError so
        the caller can skip the pair. Bad price or liquidity values are
        treated as missing.
        """
        market_cap = pair.get("marketCap")
        if market_cap is None:
            market_cap = pair.get("fdv")
        if market_cap is None:
            market_cap = 0

        try:
            price = float(pair.get("priceUsd") or 0)
        except (TypeError, ValueError):
            price = 0.0

        liquidity = pair.get("liquidity")
        liquidity_usd = liquidity.get("usd") if isinstance(liquidity, dict) else None
        try:
            liquidity_usd = float(liquidity_usd) if liquidity_usd is not None else None
        except (TypeError, ValueError):
            liquidity_usd = None

        base_token = pair.get("baseToken") or {}

        return PriceObservation(
            market_cap=float(market_cap),
            price=price,
            liquidity=liquidity_usd,
            symbol=base_token.get("symbol", ""),
            pair_address=pair.get("pairAddress", ""),
            dex_id=pair.get("dexId", ""),
        )

    def close(self) -> None:
        self.session.close()
