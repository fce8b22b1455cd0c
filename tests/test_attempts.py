# ABOUTME: Tests attempt field probing, safe numeric parsing, and score resolution.
# ABOUTME: Ensures alternate field names resolve and malformed values are treated as absent.

from datetime import datetime, timezone
from types import SimpleNamespace

import math

import numpy as np
import pytest

from src.common.attempts import (
    extract_detail,
    extract_passage_key,
    extract_raw_result,
    extract_session_id,
    extract_summary,
    extract_timestamp,
    local_day_key,
    local_midnight_ms,
    resolve_score,
    safe_number,
    to_attempt_view,
)
from src.common.schemas import CompactDetail, RichDetail

from tests.helpers import NOW_MS, local_ms, rich_attempt


@pytest.mark.parametrize(
    "value,expected",
    [
        (42, 42.0),
        (3.5, 3.5),
        ("77.5", 77.5),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
        ([1], None),
    ],
)
def test_safe_number(value, expected):
    assert safe_number(value) == expected


def test_timestamp_probes_fields_in_order():
    ts = local_ms(2024, 3, 10, 9)
    assert extract_timestamp({"ts": ts, "created_at": 1.0}, NOW_MS) == ts
    assert extract_timestamp({"created_at": ts}, NOW_MS) == ts
    assert extract_timestamp({"createdAt": ts}, NOW_MS) == ts
    assert extract_timestamp({"time": ts}, NOW_MS) == ts


def test_timestamp_defaults_to_now_when_missing_or_unparseable():
    assert extract_timestamp({}, NOW_MS) == NOW_MS
    assert extract_timestamp({"ts": "not a date"}, NOW_MS) == NOW_MS
    assert extract_timestamp({"ts": float("inf")}, NOW_MS) == NOW_MS


def test_timestamp_accepts_iso_strings_and_datetimes():
    expected = datetime(2024, 3, 10, 14, 0, tzinfo=timezone.utc).timestamp() * 1000.0
    assert extract_timestamp({"ts": "2024-03-10T14:00:00Z"}, NOW_MS) == pytest.approx(expected)
    aware = datetime(2024, 3, 10, 14, 0, tzinfo=timezone.utc)
    assert extract_timestamp({"created_at": aware}, NOW_MS) == pytest.approx(expected)


def test_passage_session_summary_and_raw_probing():
    attempt = {
        "passageKey": "rainbow",
        "sessionId": "s-1",
        "summary_json": '{"pron": 71}',
        "azure_result": {"NBest": []},
    }
    assert extract_passage_key(attempt) == "rainbow"
    assert extract_session_id(attempt) == "s-1"
    assert extract_summary(attempt) == {"pron": 71}
    assert extract_raw_result(attempt) == {"NBest": []}


def test_missing_fields_fall_back_to_safe_defaults():
    assert extract_passage_key({}) == ""
    assert extract_session_id({}) == ""
    assert extract_summary({"summary": "{broken"}) is None
    assert extract_summary({"summary": [1, 2]}) is None
    assert extract_raw_result({}) is None


def test_attribute_style_attempts_are_supported():
    attempt = SimpleNamespace(passage="grandfather", session_id="abc", sum={"pron": 64})
    assert extract_passage_key(attempt) == "grandfather"
    assert extract_session_id(attempt) == "abc"
    assert resolve_score(attempt) == 64.0


def test_nan_cells_from_dataframes_count_as_missing():
    attempt = {"session_id": float("nan"), "sessionId": "real", "passage_key": float("nan")}
    assert extract_session_id(attempt) == "real"
    assert extract_passage_key(attempt) == ""


def test_resolve_score_prefers_summary_then_raw_then_zero():
    raw = {"NBest": [{"PronScore": 66}]}
    assert resolve_score({"summary": {"pron": 91}, "azureResult": raw}) == 91.0
    assert resolve_score({"summary": {"pron": "n/a"}, "azureResult": raw}) == 66.0
    assert resolve_score({"summary": {}, "result": {"NBest": [{"PronScore": None}]}}) == 0.0
    assert resolve_score({}) == 0.0


def test_detail_is_rich_only_with_per_word_results():
    rich = rich_attempt(NOW_MS, [("Cat", 55, [("k", 90), ("ae", 70), ("t", 40)])])
    detail = extract_detail(extract_summary(rich), extract_raw_result(rich))
    assert isinstance(detail, RichDetail)
    assert detail.words[0].word == "cat"
    assert [p.ipa for p in detail.words[0].phonemes] == ["k", "æ", "t"]

    empty_words = {"azureResult": {"NBest": [{"Words": []}]}, "summary": {"words": [["cat", 50, 2]]}}
    detail = extract_detail(extract_summary(empty_words), extract_raw_result(empty_words))
    assert isinstance(detail, CompactDetail)
    assert detail.words == (("cat", 50.0, 2.0),)


def test_compact_detail_prefers_phoneme_stats_over_lows():
    summary = {
        "stats": {"phonemes": {"th": {"occ": 4, "avg": 60, "low": 3}, "bad": {"occ": 0, "avg": 10}}},
        "lows": [["th", 30]],
    }
    detail = extract_detail(summary, None)
    assert detail.lows == ()
    assert set(detail.phoneme_stats) == {"θ"}
    assert detail.phoneme_stats["θ"].occurrences == 4.0
    assert detail.phoneme_stats["θ"].low == 3.0


def test_compact_detail_skips_malformed_tuples():
    summary = {
        "words": [["Hello", 70, 3], ["", 50, 1], ["bad", "x", 1], "oops", ["ok", 80, -2], ["solo", 90]],
        "lows": [["r", 40], ["", 20], ["dh", None], "junk"],
    }
    detail = extract_detail(summary, None)
    assert detail.words == (("hello", 70.0, 3.0), ("ok", 80.0, 1.0), ("solo", 90.0, 1.0))
    assert detail.lows == (("ɹ", 40.0),)


def test_attempt_view_records_timestamp_presence_and_feedback():
    with_ts = to_attempt_view(
        {"ts": local_ms(2024, 3, 10, 9), "summary": {"ai_feedback": {"sections": [{"title": "x"}]}}}, NOW_MS
    )
    assert with_ts.has_timestamp
    assert with_ts.day == "2024-03-10"
    assert with_ts.has_feedback

    without_ts = to_attempt_view({"summary": {"ai_feedback": {"sections": []}}}, NOW_MS)
    assert not without_ts.has_timestamp
    assert without_ts.ts_ms == NOW_MS
    assert not without_ts.has_feedback


def test_local_day_key_and_midnight_use_local_timezone():
    late_evening = local_ms(2024, 3, 10, 23, 30)
    assert local_day_key(late_evening) == "2024-03-10"
    assert local_midnight_ms("2024-03-10") == local_ms(2024, 3, 10, 0)
    assert local_midnight_ms("garbage") is None
    assert math.isfinite(local_midnight_ms("2024-01-01"))


def test_rich_detail_merges_split_rhotic_vowels():
    attempt = rich_attempt(NOW_MS, [("Her", 60, [("hh", 95), ("er", 70), ("r", 55)]), ("red", 80, [("r", 85), ("eh", 90), ("d", 92)])])
    detail = extract_detail(extract_summary(attempt), extract_raw_result(attempt))
    assert [(p.ipa, p.score) for p in detail.words[0].phonemes] == [("h", 95.0), ("ɝ", 55.0)]
    assert [p.ipa for p in detail.words[1].phonemes] == ["ɹ", "ɛ", "d"]


def test_compact_detail_accepts_numpy_arrays_from_parquet_rows():
    summary = {
        "words": np.array([["cat", 40, 3], ["dog", "55", 1]], dtype=object),
        "lows": np.array([["th", 30.0]], dtype=object),
        "ai_feedback": {"sections": np.array([{"title": "Tip"}], dtype=object)},
    }
    detail = extract_detail(summary, None)
    assert detail.words == (("cat", 40.0, 3.0), ("dog", 55.0, 1.0))
    assert detail.lows == (("θ", 30.0),)

    view = to_attempt_view({"ts": NOW_MS, "summary": summary}, NOW_MS)
    assert view.has_feedback
