# ABOUTME: Builds fixed-length daily trend series for the overall score and each sub-metric.
# ABOUTME: Keeps empty days as gaps and derives 7/30-day averages, latest value, and best day.

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from src.common.schemas import MetricRollup, TrendPoint

from .accumulate import DayAggregate

SHORT_WINDOW_DAYS = 7


def window_day_keys(now_ms: float, window_days: int) -> List[str]:
    """Local day keys for the trailing window ending today, oldest first."""

    today = datetime.fromtimestamp(now_ms / 1000.0).date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(window_days - 1, -1, -1)]


def build_trend(by_day: Mapping[str, DayAggregate], day_keys: Sequence[str]) -> List[TrendPoint]:
    points = []
    for day in day_keys:
        agg = by_day.get(day)
        points.append(TrendPoint(day=day, avg=agg.sum / agg.count if agg and agg.count else None))
    return points


def _mean(points: Sequence[TrendPoint]) -> Optional[float]:
    values = [p.avg for p in points if p.avg is not None]
    return float(np.mean(values)) if values else None


def _best_point(points: Sequence[TrendPoint]) -> Optional[TrendPoint]:
    best: Optional[TrendPoint] = None
    for p in points:
        if p.avg is not None and (best is None or p.avg > best.avg):
            best = p
    return best


def build_metric(
    label: str,
    by_day: Mapping[str, DayAggregate],
    samples: Sequence[Tuple[float, float]],
    day_keys: Sequence[str],
) -> MetricRollup:
    trend = build_trend(by_day, day_keys)
    # Most recent raw sample, not the day bucket, so same-day changes show.
    last = max(samples, key=lambda s: s[0])[1] if samples else None
    return MetricRollup(
        label=label,
        trend=trend,
        avg7=_mean(trend[-SHORT_WINDOW_DAYS:]),
        avg30=_mean(trend),
        last=last,
        best_day=_best_point(trend),
    )


def build_metrics(
    metrics: Sequence[Tuple[str, str]],
    by_day_metric: Mapping[str, Mapping[str, DayAggregate]],
    series_metric: Mapping[str, Sequence[Tuple[float, float]]],
    day_keys: Sequence[str],
) -> Dict[str, MetricRollup]:
    return {
        key: build_metric(label, by_day_metric.get(key, {}), series_metric.get(key, ()), day_keys)
        for key, label in metrics
    }
