"""Exponential backoff with jitter between fetch attempts."""

from __future__ import annotations

import random
from typing import Optional

BASE_DELAY_MS = 1000.0
MAX_DELAY_MS = 10000.0
JITTER_MS = 1000.0


def delay_for(
    attempt_index: int,
    rng: Optional[random.Random] = None,
    *,
    base_ms: float = BASE_DELAY_MS,
    max_ms: float = MAX_DELAY_MS,
    jitter_ms: float = JITTER_MS,
) -> float:
    """Return the wait in milliseconds before retrying after *attempt_index* failed.

    ``min(base_ms * 2**attempt_index, max_ms) + uniform(0, jitter_ms)``.

    Raises:
        ValueError: If *attempt_index* is negative.
    """
    if attempt_index < 0:
        raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
    # Exponent clamped so huge indices cannot overflow the float conversion.
    delay = min(base_ms * (2 ** min(attempt_index, 64)), max_ms)
    return delay + (rng or random).uniform(0, jitter_ms)
