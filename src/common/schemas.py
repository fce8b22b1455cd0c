# ABOUTME: Defines canonical data structures shared by the attempt adapters and the rollup engine.
# ABOUTME: Centralizes attempt view, detail variants, and rollup result schema definitions.

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class RichWordPhoneme:
    """One scored phoneme inside a fully detailed assessment word."""

    ipa: str
    score: float


@dataclass(frozen=True)
class RichWord:
    """One word from a full assessment result; score is None when unscored."""

    word: str
    score: Optional[float]
    phonemes: Tuple[RichWordPhoneme, ...] = ()


@dataclass(frozen=True)
class RichDetail:
    """Per-occurrence word and phoneme scores taken from a raw assessment result."""

    words: Tuple[RichWord, ...]


@dataclass(frozen=True)
class PhonemeStat:
    """Pre-aggregated phoneme statistics carried by a compacted summary."""

    occurrences: float
    avg: float
    low: float = 0.0


@dataclass(frozen=True)
class CompactDetail:
    """Pre-aggregated word tuples and phoneme observations from a compacted summary."""

    # (word, avg score, occurrence count)
    words: Tuple[Tuple[str, float, float], ...] = ()
    phoneme_stats: Optional[Mapping[str, PhonemeStat]] = None
    # (phoneme, score), each a single sub-threshold observation
    lows: Tuple[Tuple[str, float], ...] = ()


AttemptDetail = Union[RichDetail, CompactDetail]


@dataclass(frozen=True)
class AttemptView:
    """Normalized, read-only view over one heterogeneously shaped attempt record."""

    ts_ms: float
    has_timestamp: bool
    day: str
    passage_key: str
    session_id: str
    score: float
    summary: Optional[Mapping[str, Any]]
    raw_result: Optional[Mapping[str, Any]]
    has_feedback: bool
    detail: AttemptDetail


@dataclass(frozen=True)
class Totals:
    attempts: int
    sessions: int
    last_ts: Optional[float]
    avg_score: float
    best_day_ts: Optional[float] = None
    best_day_score: Optional[float] = None
    top_passage_key: Optional[str] = None
    top_passage_count: int = 0


@dataclass(frozen=True)
class PhonemeTrouble:
    ipa: str
    count: float
    avg: float
    days: int
    priority: float
    examples: List[str] = field(default_factory=list)
    low_count: float = 0.0


@dataclass(frozen=True)
class WordTrouble:
    word: str
    count: float
    avg: float
    days: int
    priority: float


@dataclass(frozen=True)
class TrendPoint:
    """Average score for one local day; avg is None when nothing was recorded."""

    day: str
    avg: Optional[float]


@dataclass(frozen=True)
class MetricRollup:
    label: str
    trend: List[TrendPoint]
    avg7: Optional[float]
    avg30: Optional[float]
    last: Optional[float]
    best_day: Optional[TrendPoint]


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    passage_key: str
    count: int
    avg_score: float
    ts_min: float
    ts_max: float
    has_ai: bool


@dataclass(frozen=True)
class TroubleLists:
    phonemes_all: List[PhonemeTrouble]
    words_all: List[WordTrouble]


@dataclass(frozen=True)
class RollupResult:
    """Complete output of one rollup computation."""

    totals: Totals
    trouble: TroubleLists
    trend: List[TrendPoint]
    metrics: Dict[str, MetricRollup]
    sessions: List[SessionSummary]

    def to_dict(self) -> Dict[str, Any]:
        """Render the result with the camelCase keys consumed by dashboards."""

        totals = self.totals
        return {
            "totals": {
                "attempts": totals.attempts,
                "sessions": totals.sessions,
                "lastTS": totals.last_ts,
                "avgScore": totals.avg_score,
                "bestDayTS": totals.best_day_ts,
                "bestDayScore": totals.best_day_score,
                "topPassageKey": totals.top_passage_key,
                "topPassageCount": totals.top_passage_count,
            },
            "trouble": {
                "phonemesAll": [
                    {
                        "ipa": p.ipa,
                        "count": p.count,
                        "avg": p.avg,
                        "days": p.days,
                        "priority": p.priority,
                        "examples": list(p.examples),
                        "lowCount": p.low_count,
                    }
                    for p in self.trouble.phonemes_all
                ],
                "wordsAll": [asdict(w) for w in self.trouble.words_all],
            },
            "trend": [asdict(p) for p in self.trend],
            "metrics": {
                key: {
                    "label": m.label,
                    "trend": [asdict(p) for p in m.trend],
                    "avg7": m.avg7,
                    "avg30": m.avg30,
                    "last": m.last,
                    "bestDay": asdict(m.best_day) if m.best_day is not None else None,
                }
                for key, m in self.metrics.items()
            },
            "sessions": [
                {
                    "sessionId": s.session_id,
                    "passageKey": s.passage_key,
                    "count": s.count,
                    "avgScore": s.avg_score,
                    "tsMin": s.ts_min,
                    "tsMax": s.ts_max,
                    "hasAI": s.has_ai,
                }
                for s in self.sessions
            ],
        }
