"""
Candidate feed loading.

Reads migrated-token batches ({mint, symbol, detected_at, market_cap})
from a JSON file written by the upstream detector.
"""

import json
import logging
from pathlib import Path
from typing import Any, List

from journeytrack.core.models import Candidate

logger = logging.getLogger(__name__)


def parse_candidates(items: List[Any]) -> List[Candidate]:
    """
    Turn raw feed items into candidates.

    Malformed items are logged and skipped so one bad row never
    blocks the rest of the batch.
    """
    candidates = []

    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object feed item: {item!r}")
            continue

        try:
            candidates.append(Candidate.from_dict(item))
        except ValueError as e:
            logger.warning(f"Skipping feed item {item.get('mint', '?')}: {e}")

    return candidates


def load_candidates(path: Path) -> List[Candidate]:
    """
    Load candidates from a JSON feed file.

    Accepts either a bare list or {"tokens": [...]}, the body shape the
    tracking endpoint used to receive.
    """
    with open(path, 'r') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("tokens", [])

    if not isinstance(data, list):
        raise ValueError(f"Feed must be a list of tokens: {path}")

    return parse_candidates(data)
