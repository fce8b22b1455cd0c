# ABOUTME: Compacts full assessment results into the summary shape stored for historical attempts.
# ABOUTME: Produces headline scores, weighted word tuples, keyed phoneme stats, and low-score hits.

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .attempts import (
    RAW_RESULT_FIELDS,
    SUMMARY_FIELDS,
    as_list,
    extract_raw_result,
    extract_summary,
    get_field,
    safe_number,
    top_nbest,
    word_phonemes,
)

LOW_PHONEME_THRESHOLD = 85.0
LOW_PHONEME_LIMIT = 20
# Matches the rollup "low" counter, which is separate from the lows list cut-off.
PHONEME_LOW_COUNT_THRESHOLD = 80.0

HEADLINE_KEYS = ("pron", "acc", "flu", "comp")
DETAIL_KEYS = ("words", "lows", "stats")


def _headline(nbest: Optional[Mapping[str, Any]], raw: Mapping[str, Any], keys) -> Optional[float]:
    nested = get_field(nbest, "PronunciationAssessment") or get_field(raw, "PronunciationAssessment")
    for source, key in [(nbest, keys[0])] + [(nested, k) for k in keys]:
        value = safe_number(get_field(source, key))
        if value is not None:
            return value
    return None


def summarize_assessment(raw_result: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Build the compact summary for one raw assessment result.

    Word tuples are ``[word, avg, count]`` per lower-cased word so a later merge
    weighted by count reproduces the per-occurrence aggregate exactly.
    """

    raw = raw_result or {}
    nbest = top_nbest(raw)

    summary: Dict[str, Any] = {
        "pron": _headline(nbest, raw, ("PronScore", "PronunciationScore")),
        "acc": _headline(nbest, raw, ("AccuracyScore",)),
        "flu": _headline(nbest, raw, ("FluencyScore",)),
        "comp": _headline(nbest, raw, ("CompletenessScore",)),
        "words": [],
        "lows": [],
        "stats": {"phonemes": {}},
    }

    word_totals: Dict[str, List[float]] = {}
    phoneme_totals: Dict[str, Dict[str, float]] = {}
    lows: List[List[Any]] = []

    for w in as_list(get_field(nbest, "Words")):
        word = str(get_field(w, "Word") or "").strip().lower()
        if not word:
            continue
        w_score = safe_number(get_field(w, "AccuracyScore"))
        if w_score is not None:
            total = word_totals.setdefault(word, [0.0, 0.0])
            total[0] += w_score
            total[1] += 1

        for ipa, p_score in word_phonemes(w):
            stat = phoneme_totals.setdefault(ipa, {"occ": 0.0, "sum": 0.0, "low": 0.0})
            stat["occ"] += 1
            stat["sum"] += p_score
            if p_score < PHONEME_LOW_COUNT_THRESHOLD:
                stat["low"] += 1
            if p_score < LOW_PHONEME_THRESHOLD and len(lows) < LOW_PHONEME_LIMIT:
                lows.append([ipa, p_score])

    summary["words"] = [[word, s / n, n] for word, (s, n) in word_totals.items()]
    summary["lows"] = lows
    summary["stats"]["phonemes"] = {
        ipa: {"occ": s["occ"], "avg": s["sum"] / s["occ"], "low": s["low"]} for ipa, s in phoneme_totals.items()
    }
    return summary


def compact_attempt(attempt: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of an attempt with its raw result folded into a compact summary.

    Rolling up the compacted attempt gives the same scores, words and phonemes
    as the uncompacted one. Stored headline scores and any other stored keys (saved
    feedback, metadata) are kept. Stored word and phoneme data is replaced only
    when the raw result carries per-word scores. Attempts without a raw result
    come back as a plain copy.
    """

    compacted = {k: v for k, v in attempt.items() if k not in RAW_RESULT_FIELDS}
    raw = extract_raw_result(attempt)
    if raw is None:
        return compacted

    summary = dict(extract_summary(attempt) or {})
    fresh = summarize_assessment(raw)

    # Stored headline scores win; pron falls back only to what the score resolver reads.
    fresh["pron"] = safe_number(get_field(top_nbest(raw), "PronScore"))
    for key in HEADLINE_KEYS:
        if safe_number(summary.get(key)) is None and fresh[key] is not None:
            summary[key] = fresh[key]

    # Without per-word scores the stored word and phoneme data is the only detail left.
    if as_list(get_field(top_nbest(raw), "Words")):
        for key in DETAIL_KEYS:
            summary[key] = fresh[key]
    for name in SUMMARY_FIELDS:
        compacted.pop(name, None)
    compacted["summary"] = summary
    return compacted
