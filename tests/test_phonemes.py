# ABOUTME: Tests phoneme symbol normalization to canonical IPA.
# ABOUTME: Covers assessment codes, tie-bar affricates, and reverse code lookup.

import pytest

from src.common.phonemes import coalesce_rhotics, codes_for_ipa, normalize_phoneme


@pytest.mark.parametrize(
    "symbol,expected",
    [
        ("t", "t"),
        ("TH", "θ"),
        ("r", "ɹ"),
        ("iy", "i"),
        ("axr", "ɚ"),
        ("ʧ", "tʃ"),
        ("t\u0361ʃ", "tʃ"),
        ("d\u035cʒ", "dʒ"),
        ("ŋ", "ŋ"),
        (" ae ", "æ"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_phoneme(symbol, expected):
    assert normalize_phoneme(symbol) == expected


def test_codes_for_ipa_reverses_aliases():
    assert codes_for_ipa("θ") == ["th"]
    assert codes_for_ipa("h") == ["h", "hh"]
    assert codes_for_ipa("tʃ") == ["ch"]
    assert codes_for_ipa("") == []
    assert codes_for_ipa("not-a-phoneme") == []


@pytest.mark.parametrize(
    "phones,expected",
    [
        ([("ə", 80.0), ("ɹ", 60.0)], [("ɚ", 60.0)]),
        ([("ɝ", 50.0), ("ɹ", 90.0)], [("ɝ", 50.0)]),
        ([("ʌ", 70.0), ("ɹ", 75.0), ("t", 90.0)], [("ɝ", 70.0), ("t", 90.0)]),
        ([("ʊ", None), ("ɹ", 40.0)], [("ɝ", 40.0)]),
        ([("ɹ", 60.0), ("ə", 80.0)], [("ɹ", 60.0), ("ə", 80.0)]),
        ([("ə", 80.0)], [("ə", 80.0)]),
        ([], []),
    ],
)
def test_coalesce_rhotics(phones, expected):
    assert coalesce_rhotics(phones) == expected
