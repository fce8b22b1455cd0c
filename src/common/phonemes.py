# ABOUTME: Normalizes assessment phoneme codes and legacy symbols to canonical IPA.
# ABOUTME: Coalesces split rhotic vowels and maps IPA back to assessment phoneme codes.

from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional, Sequence, Tuple

# Assessment / legacy code -> canonical IPA.
PHONEME_ALIASES: Dict[str, str] = {
    # vowels
    "iy": "i",
    "ih": "ɪ",
    "eh": "ɛ",
    "ae": "æ",
    "aa": "ɑ",
    "ao": "ɔ",
    "ah": "ʌ",
    "ax": "ə",
    "axr": "ɚ",
    "er": "ɝ",
    "uw": "u",
    "uh": "ʊ",
    "ey": "eɪ",
    "ay": "aɪ",
    "aw": "aʊ",
    "ow": "oʊ",
    "oy": "ɔɪ",
    # consonants
    "p": "p",
    "b": "b",
    "t": "t",
    "d": "d",
    "k": "k",
    "g": "g",
    "f": "f",
    "v": "v",
    "th": "θ",
    "dh": "ð",
    "s": "s",
    "z": "z",
    "sh": "ʃ",
    "zh": "ʒ",
    "h": "h",
    "hh": "h",
    "m": "m",
    "n": "n",
    "ng": "ŋ",
    "l": "l",
    "r": "ɹ",
    "w": "w",
    "y": "j",
    "ch": "tʃ",
    "jh": "dʒ",
    "dx": "ɾ",
    "wh": "ʍ",
    "q": "ʔ",
    # legacy affricates seen in old data
    "t\u0361ʃ": "tʃ",
    "d\u0361ʒ": "dʒ",
    "ʧ": "tʃ",
    "ʤ": "dʒ",
}

_LEGACY_AFFRICATES = {"ʧ": "tʃ", "ʤ": "dʒ"}
_TIE_MARKS = re.compile("[\u0361\u035C\u200D\u034F]")
_ASCII_CODE = re.compile(r"^[A-Za-z]+$")


def normalize_phoneme(symbol) -> str:
    """
    Normalize any phoneme symbol to the canonical IPA form used in rollups.

    Returns an empty string for empty input so callers can skip it.
    """

    if symbol is None:
        return ""
    s = unicodedata.normalize("NFC", str(symbol).strip())
    if not s:
        return ""

    # Lowercase pure ASCII codes only; IPA stays untouched.
    if _ASCII_CODE.match(s):
        s = s.lower()

    s = _LEGACY_AFFRICATES.get(s, s)
    s = re.sub("t[\u0361\u035C]?ʃ", "tʃ", s, count=1)
    s = re.sub("d[\u0361\u035C]?ʒ", "dʒ", s, count=1)
    s = _TIE_MARKS.sub("", s)

    return PHONEME_ALIASES.get(s, s)


def codes_for_ipa(ipa: str) -> List[str]:
    """Return the ASCII assessment codes that normalize to the given IPA symbol."""

    target = normalize_phoneme(ipa)
    if not target:
        return []
    return [code for code, value in PHONEME_ALIASES.items() if value == target and _ASCII_CODE.match(code)]


# Vowel followed by /ɹ/ -> single r-colored vowel.
_RHOTIC_MERGES = {"ə": "ɚ", "ɝ": "ɝ", "ʌ": "ɝ", "ʊ": "ɝ"}


def coalesce_rhotics(phones: Sequence[Tuple[str, Optional[float]]]) -> List[Tuple[str, Optional[float]]]:
    """
    Merge a vowel + /ɹ/ pair from a normalized phone sequence into one r-colored vowel.

    Assessment results split "er" sounds in two (``ax r``, ``ah r``, ``er r``);
    the merged phone keeps the lower of the two scores.
    """

    out: List[Tuple[str, Optional[float]]] = []
    i = 0
    while i < len(phones):
        ipa, score = phones[i]
        if ipa in _RHOTIC_MERGES and i + 1 < len(phones) and phones[i + 1][0] == "ɹ":
            scores = [s for s in (score, phones[i + 1][1]) if s is not None]
            out.append((_RHOTIC_MERGES[ipa], min(scores) if scores else None))
            i += 2
            continue
        out.append((ipa, score))
        i += 1
    return out
