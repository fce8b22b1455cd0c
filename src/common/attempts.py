# ABOUTME: Adapts heterogeneously shaped practice-attempt records into canonical attempt views.
# ABOUTME: Probes alternate field names, resolves scores, and selects rich vs compact detail.

from __future__ import annotations

import json
import math
from datetime import datetime
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .phonemes import coalesce_rhotics, normalize_phoneme
from .schemas import (
    AttemptDetail,
    AttemptView,
    CompactDetail,
    PhonemeStat,
    RichDetail,
    RichWord,
    RichWordPhoneme,
)

TIMESTAMP_FIELDS = ("ts", "created_at", "createdAt", "time")
PASSAGE_FIELDS = ("passage_key", "passageKey", "passage")
SESSION_FIELDS = ("session_id", "sessionId")
SUMMARY_FIELDS = ("summary", "summary_json", "sum")
RAW_RESULT_FIELDS = ("azureResult", "azure_result", "azure", "result")


def safe_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is missing or malformed."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Real):
        number = float(value)
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def get_field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _probe(obj: Any, names: Iterable[str]) -> Any:
    for name in names:
        value = get_field(obj, name)
        # DataFrame records carry NaN for missing cells.
        if value and not (isinstance(value, float) and math.isnan(value)):
            return value
    return None


def as_list(value: Any) -> List[Any]:
    # Parquet round-trips hand nested lists back as numpy arrays.
    if isinstance(value, np.ndarray):
        return list(value)
    return list(value) if isinstance(value, (list, tuple)) else []


def _timestamp_ms(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        ms = value.timestamp() * 1000.0
    elif isinstance(value, Real):
        ms = float(value)
    elif isinstance(value, str):
        parsed = pd.to_datetime(value, errors="coerce")
        if pd.isna(parsed):
            return None
        ms = parsed.to_pydatetime().timestamp() * 1000.0
    else:
        return None
    if not math.isfinite(ms):
        return None
    try:
        datetime.fromtimestamp(ms / 1000.0)
    except (OverflowError, OSError, ValueError):
        return None
    return ms


def local_day_key(ts_ms: float) -> str:
    """Calendar day (YYYY-MM-DD) of an epoch-millisecond timestamp in the local timezone."""

    return datetime.fromtimestamp(ts_ms / 1000.0).strftime("%Y-%m-%d")


def local_midnight_ms(day: str) -> Optional[float]:
    """Epoch milliseconds of local midnight for a YYYY-MM-DD day key."""

    try:
        parsed = datetime.strptime(day, "%Y-%m-%d")
    except (TypeError, ValueError):
        return None
    return parsed.timestamp() * 1000.0


def extract_timestamp(attempt: Any, now_ms: float) -> float:
    ts = _timestamp_ms(_probe(attempt, TIMESTAMP_FIELDS))
    return now_ms if ts is None else ts


def extract_passage_key(attempt: Any) -> str:
    value = _probe(attempt, PASSAGE_FIELDS)
    return str(value) if value else ""


def extract_session_id(attempt: Any) -> str:
    value = _probe(attempt, SESSION_FIELDS)
    return str(value) if value else ""


def extract_summary(attempt: Any) -> Optional[Mapping[str, Any]]:
    value = _probe(attempt, SUMMARY_FIELDS)
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None
    return value if isinstance(value, Mapping) else None


def extract_raw_result(attempt: Any) -> Optional[Mapping[str, Any]]:
    value = _probe(attempt, RAW_RESULT_FIELDS)
    return value if isinstance(value, Mapping) else None


def top_nbest(raw_result: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    nbest = as_list(get_field(raw_result, "NBest"))
    if nbest and isinstance(nbest[0], Mapping):
        return nbest[0]
    return None


def resolve_score(attempt: Any) -> float:
    """
    Representative 0-100 score for an attempt.

    Prefers the summary's precomputed pronunciation score, then the top n-best
    pronunciation score of the raw result, else 0.
    """

    summary = extract_summary(attempt)
    score = safe_number(get_field(summary, "pron"))
    if score is not None:
        return score
    score = safe_number(get_field(top_nbest(extract_raw_result(attempt)), "PronScore"))
    return score if score is not None else 0.0


def has_saved_feedback(summary: Optional[Mapping[str, Any]]) -> bool:
    feedback = get_field(summary, "ai_feedback")
    return bool(as_list(get_field(feedback, "sections")))


def word_phonemes(word: Any) -> List[Tuple[str, float]]:
    """Scored, normalized phonemes of one assessment word with split rhotics merged."""

    phones = [
        (
            normalize_phoneme(get_field(p, "Phoneme") or get_field(p, "phoneme") or ""),
            safe_number(get_field(p, "AccuracyScore")),
        )
        for p in as_list(get_field(word, "Phonemes"))
    ]
    return [(ipa, score) for ipa, score in coalesce_rhotics(phones) if ipa and score is not None]


def _rich_detail(words: Sequence[Any]) -> RichDetail:
    parsed: List[RichWord] = []
    for w in words:
        word = str(get_field(w, "Word") or "").strip().lower()
        if not word:
            continue
        phonemes = tuple(RichWordPhoneme(ipa=ipa, score=score) for ipa, score in word_phonemes(w))
        parsed.append(RichWord(word=word, score=safe_number(get_field(w, "AccuracyScore")), phonemes=phonemes))
    return RichDetail(words=tuple(parsed))


def _compact_detail(summary: Optional[Mapping[str, Any]]) -> CompactDetail:
    words: List[Tuple[str, float, float]] = []
    for entry in as_list(get_field(summary, "words")):
        entry = as_list(entry)
        if not entry:
            continue
        word = str(entry[0] or "").strip().lower()
        avg = safe_number(entry[1]) if len(entry) > 1 else None
        if not word or avg is None:
            continue
        count = safe_number(entry[2]) if len(entry) > 2 else None
        words.append((word, avg, count if count is not None and count > 0 else 1.0))

    stats = get_field(get_field(summary, "stats"), "phonemes")
    if isinstance(stats, Mapping):
        phoneme_stats = {}
        for raw_ipa, value in stats.items():
            raw = str(raw_ipa or "").strip()
            ipa = normalize_phoneme(raw) or raw
            occurrences = safe_number(get_field(value, "occ"))
            avg = safe_number(get_field(value, "avg"))
            if not ipa or occurrences is None or occurrences <= 0 or avg is None:
                continue
            low = safe_number(get_field(value, "low"))
            stat = PhonemeStat(occurrences=occurrences, avg=avg, low=low if low is not None and low > 0 else 0.0)
            if ipa in phoneme_stats:
                # Two raw keys that normalize to the same symbol merge by weight.
                prior = phoneme_stats[ipa]
                total = prior.occurrences + stat.occurrences
                stat = PhonemeStat(
                    occurrences=total,
                    avg=(prior.avg * prior.occurrences + stat.avg * stat.occurrences) / total,
                    low=prior.low + stat.low,
                )
            phoneme_stats[ipa] = stat
        return CompactDetail(words=tuple(words), phoneme_stats=phoneme_stats)

    lows: List[Tuple[str, float]] = []
    for entry in as_list(get_field(summary, "lows")):
        entry = as_list(entry)
        if len(entry) < 2:
            continue
        raw = str(entry[0] or "").strip()
        score = safe_number(entry[1])
        if not raw or score is None:
            continue
        lows.append((normalize_phoneme(raw) or raw, score))
    return CompactDetail(words=tuple(words), lows=tuple(lows))


def extract_detail(
    summary: Optional[Mapping[str, Any]], raw_result: Optional[Mapping[str, Any]]
) -> AttemptDetail:
    """Select the rich detail when the raw result has per-word scores, else the compact one."""

    words = as_list(get_field(top_nbest(raw_result), "Words"))
    if words:
        return _rich_detail(words)
    return _compact_detail(summary)


def to_attempt_view(attempt: Any, now_ms: float) -> AttemptView:
    """Probe every known field of an attempt once and return its normalized view."""

    raw_ts = _timestamp_ms(_probe(attempt, TIMESTAMP_FIELDS))
    ts_ms = now_ms if raw_ts is None else raw_ts
    summary = extract_summary(attempt)
    raw_result = extract_raw_result(attempt)
    return AttemptView(
        ts_ms=ts_ms,
        has_timestamp=raw_ts is not None,
        day=local_day_key(ts_ms),
        passage_key=extract_passage_key(attempt),
        session_id=extract_session_id(attempt),
        score=resolve_score(attempt),
        summary=summary,
        raw_result=raw_result,
        has_feedback=has_saved_feedback(summary),
        detail=extract_detail(summary, raw_result),
    )
