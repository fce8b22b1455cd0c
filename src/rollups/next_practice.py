# ABOUTME: Plans the next practice activity from a rollup's top trouble phoneme.
# ABOUTME: Picks the Harvard list and regular passage that exercise that phoneme most.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from src.common.phonemes import codes_for_ipa
from src.common.schemas import RollupResult

HARVARD_LIST_COUNT = 72
EXCLUDED_PASSAGES = {"write-own", "clear", "custom", ""}


@dataclass(frozen=True)
class NextPracticePlan:
    focus_ipa: str
    focus_code: str
    harvard_n: int
    harvard_score: float
    passage_key: str
    passage_score: float


def harvard_key(n: int) -> str:
    return f"harvard{n:02d}"


def _phoneme_count(passage_meta: Mapping[str, Any], key: str, code: str) -> float:
    meta = passage_meta.get(key)
    counts = meta.get("counts") if isinstance(meta, Mapping) else None
    if not isinstance(counts, Mapping):
        return 0.0
    try:
        return float(counts.get(code.upper()) or 0)
    except (TypeError, ValueError):
        return 0.0


def best_harvard_list(passage_meta: Mapping[str, Any], code: str) -> Tuple[int, float]:
    best_n, best_score = 0, -1.0
    for n in range(1, HARVARD_LIST_COUNT + 1):
        score = _phoneme_count(passage_meta, harvard_key(n), code)
        if score > best_score:
            best_n, best_score = n, score
    return best_n, max(0.0, best_score)


def best_passage(passage_meta: Mapping[str, Any], code: str) -> Tuple[str, float]:
    best_key, best_score = "", -1.0
    for key in passage_meta:
        key = str(key)
        if key.startswith("harvard") or key in EXCLUDED_PASSAGES:
            continue
        score = _phoneme_count(passage_meta, key, code)
        if score > best_score:
            best_key, best_score = key, score
    return best_key, max(0.0, best_score)


def build_next_practice_plan(
    rollup: RollupResult, passage_meta: Mapping[str, Any]
) -> Optional[NextPracticePlan]:
    """
    Build a practice plan around the highest-priority trouble phoneme.

    passage_meta maps passage keys to ``{"counts": {PHONEME_CODE: n}}``.
    Returns None when there is no trouble phoneme or it has no assessment code.
    """

    if not rollup.trouble.phonemes_all:
        return None
    ipa = rollup.trouble.phonemes_all[0].ipa
    codes = codes_for_ipa(ipa)
    if not codes:
        return None
    code = codes[0].upper()

    harvard_n, harvard_score = best_harvard_list(passage_meta, code)
    passage_key, passage_score = best_passage(passage_meta, code)
    return NextPracticePlan(
        focus_ipa=ipa,
        focus_code=code,
        harvard_n=harvard_n,
        harvard_score=harvard_score,
        passage_key=passage_key,
        passage_score=passage_score,
    )
