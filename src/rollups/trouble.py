# ABOUTME: Builds priority-ranked trouble lists of phonemes and words from accumulated aggregates.
# ABOUTME: Filters entries seen too rarely and orders by priority, then average, then count.

from __future__ import annotations

from typing import Iterable, List

from src.common.schemas import PhonemeTrouble, WordTrouble

from .accumulate import PhonemeAggregate, WordAggregate
from .priority import priority

EXAMPLES_SHOWN = 3


def _rank_key(entry):
    return (-entry.priority, entry.avg, -entry.count)


def build_phoneme_trouble(
    phonemes: Iterable[PhonemeAggregate], min_count: float, now_ms: float
) -> List[PhonemeTrouble]:
    entries = []
    for agg in phonemes:
        if agg.count < min_count:
            continue
        days = len(agg.days)
        entries.append(
            PhonemeTrouble(
                ipa=agg.ipa,
                count=agg.count,
                avg=agg.avg,
                days=days,
                priority=priority(agg.avg, agg.count, days, agg.last_ts, now_ms),
                examples=list(agg.examples)[:EXAMPLES_SHOWN],
                low_count=agg.low_count,
            )
        )
    return sorted(entries, key=_rank_key)


def build_word_trouble(words: Iterable[WordAggregate], min_count: float, now_ms: float) -> List[WordTrouble]:
    entries = []
    for agg in words:
        if agg.count < min_count:
            continue
        days = len(agg.days)
        entries.append(
            WordTrouble(
                word=agg.word,
                count=agg.count,
                avg=agg.avg,
                days=days,
                priority=priority(agg.avg, agg.count, days, agg.last_ts, now_ms),
            )
        )
    return sorted(entries, key=_rank_key)
