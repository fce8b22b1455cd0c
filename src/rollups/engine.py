# ABOUTME: Orchestrates the rollup engine from raw attempt records to one result value.
# ABOUTME: Normalizes attempts, runs the accumulation pass, and merges every builder's output.

from __future__ import annotations

import logging
import time
from datetime import datetime
from numbers import Real
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import pandas as pd

from src.common.attempts import to_attempt_view
from src.common.schemas import RollupResult, Totals, TroubleLists

from .accumulate import accumulate
from .config import RollupOptions
from .metrics import build_metrics, build_trend, window_day_keys
from .sessions import build_sessions
from .snapshots import build_snapshot
from .trouble import build_phoneme_trouble, build_word_trouble

logger = logging.getLogger(__name__)

Clock = Union[None, float, int, datetime, Callable[[], Any]]


def _now_ms(now: Clock) -> float:
    if callable(now):
        now = now()
    if now is None:
        return time.time() * 1000.0
    if isinstance(now, datetime):
        return now.timestamp() * 1000.0
    if isinstance(now, Real) and not isinstance(now, bool):
        return float(now)
    raise TypeError(f"now must be epoch milliseconds, a datetime, or a callable returning one; got {type(now).__name__}.")


def resolve_options(options: Union[None, RollupOptions, Mapping[str, Any]]) -> RollupOptions:
    if options is None:
        return RollupOptions()
    if isinstance(options, RollupOptions):
        return options
    if isinstance(options, Mapping):
        return RollupOptions.from_mapping(options)
    raise TypeError(f"options must be RollupOptions or a mapping, got {type(options).__name__}.")


def compute_rollups(
    attempts: Optional[Iterable[Any]],
    options: Union[None, RollupOptions, Mapping[str, Any]] = None,
    now: Clock = None,
) -> RollupResult:
    """
    Roll a history of practice attempts up into coaching signals.

    Args:
        attempts: Attempt records of any supported shape (mappings or objects).
        options: RollupOptions or a mapping with windowDays/minWordCount/minPhonCount.
        now: Injected clock: epoch milliseconds, a datetime, or a callable returning either.
            Defaults to the wall clock. Fixing it makes repeated calls deterministic.

    Returns:
        RollupResult with totals, trouble lists, overall trend, metric trends, and sessions.
    """

    opts = resolve_options(options)
    now_ms = _now_ms(now)

    if attempts is None:
        attempts = []
    elif isinstance(attempts, pd.DataFrame):
        attempts = attempts.to_dict("records")

    views = [to_attempt_view(a, now_ms) for a in attempts]
    acc = accumulate(views, [key for key, _ in opts.metrics])

    day_keys = window_day_keys(now_ms, opts.window_days)
    snapshot = build_snapshot(acc.by_day, acc.by_passage)

    totals = Totals(
        attempts=acc.attempt_count,
        sessions=len(acc.sessions),
        last_ts=acc.last_ts or None,
        avg_score=acc.score_sum / acc.attempt_count if acc.attempt_count else 0.0,
        best_day_ts=snapshot.best_day_ts,
        best_day_score=snapshot.best_day_score,
        top_passage_key=snapshot.top_passage_key,
        top_passage_count=snapshot.top_passage_count,
    )
    trouble = TroubleLists(
        phonemes_all=build_phoneme_trouble(acc.phonemes.values(), opts.min_phon_count, now_ms),
        words_all=build_word_trouble(acc.words.values(), opts.min_word_count, now_ms),
    )

    result = RollupResult(
        totals=totals,
        trouble=trouble,
        trend=build_trend(acc.by_day, day_keys),
        metrics=build_metrics(opts.metrics, acc.by_day_metric, acc.series_metric, day_keys),
        sessions=build_sessions(acc.sessions.values()),
    )
    logger.debug(
        "Rollup built: %d attempts, %d trouble phonemes, %d trouble words",
        totals.attempts,
        len(trouble.phonemes_all),
        len(trouble.words_all),
    )
    return result
