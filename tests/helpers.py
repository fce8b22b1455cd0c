# ABOUTME: Builders shared by rollup tests for timestamps and attempt records.
# ABOUTME: Pins the local timezone on import so day keys are stable across machines.

from __future__ import annotations

import os
import time
from datetime import datetime

# Day keys depend on the local timezone; UTC-5 without DST keeps them stable.
os.environ["TZ"] = "Etc/GMT+5"
time.tzset()


def local_ms(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> float:
    """Epoch milliseconds for a local wall-clock time."""
    return datetime(year, month, day, hour, minute).timestamp() * 1000.0


NOW_MS = local_ms(2024, 3, 15, 18, 0)


def rich_attempt(ts, words, pron=None, **extra):
    """Attempt carrying a full assessment result; words are (word, score, [(phoneme, score), ...])."""
    nbest = {
        "Words": [
            {
                "Word": word,
                "AccuracyScore": score,
                "Phonemes": [{"Phoneme": ph, "AccuracyScore": ps} for ph, ps in phonemes],
            }
            for word, score, phonemes in words
        ]
    }
    if pron is not None:
        nbest["PronScore"] = pron
    attempt = {"ts": ts, "azureResult": {"NBest": [nbest]}}
    attempt.update(extra)
    return attempt
