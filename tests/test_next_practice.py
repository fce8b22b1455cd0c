# ABOUTME: Tests next-practice planning from rollup trouble phonemes.
# ABOUTME: Ensures the best Harvard list and passage are chosen for the focus sound.

from src.rollups.engine import compute_rollups
from src.rollups.next_practice import build_next_practice_plan, harvard_key
from tests.helpers import NOW_MS, local_ms, rich_attempt


def _rollup_with_focus(phoneme: str):
    words = [("word", 40, [(phoneme, 30)])] * 3
    return compute_rollups([rich_attempt(local_ms(2024, 3, 14), words)], now=NOW_MS)


def test_plan_picks_best_lists_for_focus_phoneme():
    passage_meta = {
        harvard_key(3): {"counts": {"TH": 4}},
        harvard_key(12): {"counts": {"TH": 9}},
        harvard_key(40): {"counts": {"TH": 9}},
        "rainbow": {"counts": {"TH": 11, "S": 30}},
        "grandfather": {"counts": {"TH": 6}},
        "custom": {"counts": {"TH": 50}},
        "broken": "not a mapping",
    }
    plan = build_next_practice_plan(_rollup_with_focus("th"), passage_meta)

    assert plan.focus_ipa == "θ"
    assert plan.focus_code == "TH"
    assert plan.harvard_n == 12
    assert plan.harvard_score == 9
    assert plan.passage_key == "rainbow"
    assert plan.passage_score == 11


def test_plan_without_matching_counts_defaults_to_first_list():
    plan = build_next_practice_plan(_rollup_with_focus("r"), {})
    assert plan.focus_code == "R"
    assert plan.harvard_n == 1
    assert plan.harvard_score == 0
    assert plan.passage_key == ""


def test_no_plan_without_trouble_phonemes(now_ms):
    assert build_next_practice_plan(compute_rollups([], now=now_ms), {"rainbow": {}}) is None


def test_no_plan_for_symbols_without_assessment_code():
    assert build_next_practice_plan(_rollup_with_focus("ʘ"), {}) is None
