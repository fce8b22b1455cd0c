# ABOUTME: Scores trouble phonemes and words by error rate, exposure, persistence, and recency.
# ABOUTME: Produces a finite, non-negative priority used to rank coaching focus items.

from __future__ import annotations

import math
from typing import Optional

import numpy as np

DAY_MS = 24 * 60 * 60 * 1000
UNSEEN_DAYS_AGO = 999
PERSISTENCE_DAYS = 5
RECENCY_FLOOR = 0.3
RECENCY_SCALE_DAYS = 14


def _finite_or_zero(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def days_ago(last_seen_ms: Optional[float], now_ms: float) -> int:
    """Whole days between last_seen_ms and now_ms; 999 when never seen."""

    if not last_seen_ms:
        return UNSEEN_DAYS_AGO
    delta = (now_ms - last_seen_ms) / DAY_MS
    if not math.isfinite(delta):
        return UNSEEN_DAYS_AGO
    return max(0, math.floor(delta))


def recency_factor(days: float) -> float:
    """Decay from 1.0 today towards the 0.3 floor."""

    return float(RECENCY_FLOOR + (1.0 - RECENCY_FLOOR) * np.exp(-max(0.0, days) / RECENCY_SCALE_DAYS))


def priority(avg, count, days_seen, last_seen_ms: Optional[float], now_ms: float) -> float:
    """
    Rank a phoneme or word for practice.

    priority = error_rate * exposure * persistence * recency, where
    - error_rate = clamp((100 - avg) / 100, 0, 1)
    - exposure = ln(1 + count), so frequency saturates
    - persistence = min(1, days_seen / 5), so one-off slips rank low
    - recency = 0.3 + 0.7 * exp(-days_ago / 14)
    """

    a = _finite_or_zero(avg)
    c = _finite_or_zero(count)
    ds = _finite_or_zero(days_seen)

    error_rate = float(np.clip((100.0 - a) / 100.0, 0.0, 1.0))
    exposure = float(np.log1p(max(0.0, c)))
    persistence = min(1.0, max(0.0, ds) / PERSISTENCE_DAYS)
    recency = recency_factor(days_ago(last_seen_ms, now_ms))

    return error_rate * exposure * persistence * recency
