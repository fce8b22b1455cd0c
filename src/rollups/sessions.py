# ABOUTME: Finalizes session aggregates into summaries ordered by most recent activity.
# ABOUTME: Computes per-session average scores from the accumulated sums.

from __future__ import annotations

from typing import Iterable, List

from src.common.schemas import SessionSummary

from .accumulate import SessionAggregate


def build_sessions(sessions: Iterable[SessionAggregate]) -> List[SessionSummary]:
    summaries = [
        SessionSummary(
            session_id=s.session_id,
            passage_key=s.passage_key,
            count=s.count,
            avg_score=s.sum_score / s.count if s.count else 0.0,
            ts_min=s.ts_min,
            ts_max=s.ts_max,
            has_ai=s.has_ai,
        )
        for s in sessions
    ]
    summaries.sort(key=lambda s: s.ts_max, reverse=True)
    return summaries
