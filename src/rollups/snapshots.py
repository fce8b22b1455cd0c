# ABOUTME: Derives headline snapshot facts from day and passage aggregates.
# ABOUTME: Finds the best-scoring practice day and the most practiced passage.

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from src.common.attempts import local_midnight_ms

from .accumulate import DayAggregate, PassageAggregate


@dataclass(frozen=True)
class Snapshot:
    best_day_ts: Optional[float] = None
    best_day_score: Optional[float] = None
    top_passage_key: Optional[str] = None
    top_passage_count: int = 0


def build_snapshot(
    by_day: Mapping[str, DayAggregate], by_passage: Mapping[str, PassageAggregate]
) -> Snapshot:
    """Ties keep the first day or passage seen during the scan."""

    best_day: Optional[str] = None
    best_score: Optional[float] = None
    for day, agg in by_day.items():
        if not agg.count:
            continue
        avg = agg.sum / agg.count
        if best_score is None or avg > best_score:
            best_day, best_score = day, avg

    top_key: Optional[str] = None
    top_count = 0
    for agg in by_passage.values():
        if agg.count > top_count:
            top_count = agg.count
            top_key = agg.passage_key or None

    return Snapshot(
        best_day_ts=local_midnight_ms(best_day) if best_day else None,
        best_day_score=best_score,
        top_passage_key=top_key,
        top_passage_count=top_count,
    )
