# ABOUTME: Runs the single accumulation pass over attempt views for the rollup engine.
# ABOUTME: Builds day, session, passage, phoneme, word, and per-metric aggregates in one scan.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from src.common.attempts import safe_number
from src.common.schemas import AttemptView, CompactDetail, RichDetail

logger = logging.getLogger(__name__)

LOW_SCORE_THRESHOLD = 80.0
MAX_EXAMPLES = 4
NO_SESSION_PREFIX = "no-session:"


@dataclass
class DayAggregate:
    count: int = 0
    sum: float = 0.0


@dataclass
class PassageAggregate:
    passage_key: str
    count: int = 0
    sum_score: float = 0.0
    last_ts: float = 0.0


@dataclass
class SessionAggregate:
    session_id: str
    passage_key: str
    ts_min: float
    ts_max: float
    count: int = 0
    sum_score: float = 0.0
    has_ai: bool = False


@dataclass
class WordAggregate:
    word: str
    count: float = 0.0
    sum: float = 0.0
    days: Set[str] = field(default_factory=set)
    last_ts: float = 0.0

    @property
    def avg(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def add(self, score_sum: float, count: float, day: str, ts_ms: float) -> None:
        self.count += count
        self.sum += score_sum
        self.days.add(day)
        self.last_ts = max(self.last_ts, ts_ms)


@dataclass
class PhonemeAggregate:
    ipa: str
    count: float = 0.0
    sum: float = 0.0
    days: Set[str] = field(default_factory=set)
    last_ts: float = 0.0
    low_count: float = 0.0
    # dict keys keep insertion order for distinct example words
    examples: Dict[str, None] = field(default_factory=dict)

    @property
    def avg(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def add(self, score_sum: float, count: float, low: float, day: str, ts_ms: float) -> None:
        self.count += count
        self.sum += score_sum
        self.low_count += low
        self.days.add(day)
        self.last_ts = max(self.last_ts, ts_ms)

    def add_example(self, word: str) -> None:
        if word and len(self.examples) < MAX_EXAMPLES:
            self.examples.setdefault(word, None)


@dataclass
class Accumulators:
    """Every intermediate aggregate produced by one accumulation pass."""

    metric_keys: Sequence[str]
    phonemes: Dict[str, PhonemeAggregate] = field(default_factory=dict)
    words: Dict[str, WordAggregate] = field(default_factory=dict)
    by_day: Dict[str, DayAggregate] = field(default_factory=dict)
    sessions: Dict[str, SessionAggregate] = field(default_factory=dict)
    by_passage: Dict[str, PassageAggregate] = field(default_factory=dict)
    by_day_metric: Dict[str, Dict[str, DayAggregate]] = field(default_factory=dict)
    series_metric: Dict[str, List[Tuple[float, float]]] = field(default_factory=dict)
    attempt_count: int = 0
    last_ts: float = 0.0
    score_sum: float = 0.0

    def __post_init__(self) -> None:
        for key in self.metric_keys:
            self.by_day_metric.setdefault(key, {})
            self.series_metric.setdefault(key, [])

    def word_aggregate(self, word: str) -> WordAggregate:
        agg = self.words.get(word)
        if agg is None:
            agg = self.words[word] = WordAggregate(word=word)
        return agg

    def phoneme_aggregate(self, ipa: str) -> PhonemeAggregate:
        agg = self.phonemes.get(ipa)
        if agg is None:
            agg = self.phonemes[ipa] = PhonemeAggregate(ipa=ipa)
        return agg


def session_key(view: AttemptView) -> Optional[str]:
    """Explicit session id, or one synthesized per local day; None without a timestamp."""

    if view.session_id:
        return view.session_id
    if not view.has_timestamp:
        return None
    return f"{NO_SESSION_PREFIX}{view.day}"


def merge_rich_detail(acc: Accumulators, detail: RichDetail, day: str, ts_ms: float) -> None:
    for w in detail.words:
        if w.score is not None:
            acc.word_aggregate(w.word).add(w.score, 1, day, ts_ms)
        for p in w.phonemes:
            agg = acc.phoneme_aggregate(p.ipa)
            agg.add(p.score, 1, 1 if p.score < LOW_SCORE_THRESHOLD else 0, day, ts_ms)
            agg.add_example(w.word)


def merge_compact_detail(acc: Accumulators, detail: CompactDetail, day: str, ts_ms: float) -> None:
    for word, avg, count in detail.words:
        acc.word_aggregate(word).add(avg * count, count, day, ts_ms)

    if detail.phoneme_stats is not None:
        for ipa, stat in detail.phoneme_stats.items():
            acc.phoneme_aggregate(ipa).add(stat.avg * stat.occurrences, stat.occurrences, stat.low, day, ts_ms)
        return

    for ipa, score in detail.lows:
        acc.phoneme_aggregate(ipa).add(score, 1, 1 if score < LOW_SCORE_THRESHOLD else 0, day, ts_ms)


def _accumulate_one(acc: Accumulators, view: AttemptView) -> None:
    ts, day, score = view.ts_ms, view.day, view.score

    acc.attempt_count += 1
    acc.last_ts = max(acc.last_ts, ts)
    acc.score_sum += score

    day_agg = acc.by_day.setdefault(day, DayAggregate())
    day_agg.count += 1
    day_agg.sum += score

    sid = session_key(view)
    if sid is not None:
        session = acc.sessions.get(sid)
        if session is None:
            session = acc.sessions[sid] = SessionAggregate(
                session_id=sid, passage_key=view.passage_key, ts_min=ts, ts_max=ts
            )
        session.count += 1
        session.sum_score += score
        session.ts_min = min(session.ts_min, ts)
        session.ts_max = max(session.ts_max, ts)
        session.passage_key = session.passage_key or view.passage_key
        session.has_ai = session.has_ai or view.has_feedback

    passage = acc.by_passage.get(view.passage_key)
    if passage is None:
        passage = acc.by_passage[view.passage_key] = PassageAggregate(passage_key=view.passage_key)
    passage.count += 1
    passage.sum_score += score
    passage.last_ts = max(passage.last_ts, ts)

    for key in acc.metric_keys:
        value = safe_number(view.summary.get(key)) if view.summary is not None else None
        if value is None:
            continue
        metric_day = acc.by_day_metric[key].setdefault(day, DayAggregate())
        metric_day.count += 1
        metric_day.sum += value
        acc.series_metric[key].append((ts, value))

    if isinstance(view.detail, RichDetail):
        merge_rich_detail(acc, view.detail, day, ts)
    else:
        merge_compact_detail(acc, view.detail, day, ts)


def accumulate(views: Sequence[AttemptView], metric_keys: Sequence[str]) -> Accumulators:
    """Fold attempt views into fresh aggregate maps; the views are never modified."""

    acc = Accumulators(metric_keys=tuple(metric_keys))
    for view in views:
        _accumulate_one(acc, view)

    logger.debug(
        "Accumulated %d attempts: %d days, %d sessions, %d words, %d phonemes",
        acc.attempt_count,
        len(acc.by_day),
        len(acc.sessions),
        len(acc.words),
        len(acc.phonemes),
    )
    return acc
