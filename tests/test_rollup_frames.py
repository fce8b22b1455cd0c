# ABOUTME: Tests tabulating rollup results and writing parquet/JSON artifacts.
# ABOUTME: Ensures empty rollups keep their columns so downstream readers see a stable schema.

import json

import pandas as pd

from src.rollups.engine import compute_rollups
from src.rollups.frames import PHONEME_COLUMNS, SESSION_COLUMNS, rollup_to_frames, export_rollup
from tests.helpers import NOW_MS, local_ms, rich_attempt


def _sample_rollup():
    attempts = [
        rich_attempt(local_ms(2024, 3, 13), [("think", 45, [("th", 30), ("ih", 90)])] * 3, pron=55, session_id="a"),
        {"ts": local_ms(2024, 3, 14), "summary": {"pron": 70, "acc": 72, "words": [["think", 60, 2]]}},
    ]
    return compute_rollups(attempts, {"windowDays": 7}, now=NOW_MS)


def test_rollup_to_frames_tables():
    frames = rollup_to_frames(_sample_rollup())

    assert set(frames) == {"trend", "metric_trends", "trouble_phonemes", "trouble_words", "sessions"}
    assert len(frames["trend"]) == 7
    assert len(frames["metric_trends"]) == 4 * 7

    acc_rows = frames["metric_trends"][frames["metric_trends"]["metric"] == "acc"]
    assert acc_rows["avg"].notna().sum() == 1

    phonemes = frames["trouble_phonemes"]
    assert list(phonemes.columns) == PHONEME_COLUMNS
    assert phonemes.iloc[0]["ipa"] == "θ"

    words = frames["trouble_words"]
    assert words.iloc[0]["word"] == "think"
    assert words.iloc[0]["count"] == 5

    sessions = frames["sessions"]
    assert list(sessions["session_id"]) == ["no-session:2024-03-14", "a"]
    assert sessions["started_at"].iloc[1] == pd.to_datetime(local_ms(2024, 3, 13), unit="ms", utc=True)


def test_empty_rollup_keeps_columns():
    frames = rollup_to_frames(compute_rollups([], now=NOW_MS))
    assert frames["trouble_phonemes"].empty
    assert list(frames["trouble_phonemes"].columns) == PHONEME_COLUMNS
    assert list(frames["sessions"].columns) == SESSION_COLUMNS
    assert len(frames["trend"]) == 30


def test_export_rollup_writes_parquet_and_json(tmp_path):
    result = _sample_rollup()
    written = export_rollup(result, tmp_path / "out")

    assert set(written) == {"trend", "metric_trends", "trouble_phonemes", "trouble_words", "sessions", "rollup"}
    for path in written.values():
        assert path.exists()

    words = pd.read_parquet(written["trouble_words"])
    assert words.iloc[0]["word"] == "think"

    payload = json.loads(written["rollup"].read_text(encoding="utf-8"))
    assert payload["totals"]["attempts"] == 2
    assert payload["trouble"]["phonemesAll"][0]["ipa"] == "θ"
