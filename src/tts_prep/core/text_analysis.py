"""Character script analysis: CJK, right-to-left and Latin-1 detection."""

from typing import Literal

from tts_prep.models.encoding import CharacterScriptAnalysis, RtlDetection

# Inclusive code point ranges
CJK_UNIFIED_IDEOGRAPHS = (0x4E00, 0x9FFF)
HIRAGANA_KATAKANA = (0x3040, 0x30FF)
HANGUL_SYLLABLES = (0xAC00, 0xD7AF)
CJK_RANGES = (CJK_UNIFIED_IDEOGRAPHS, HIRAGANA_KATAKANA, HANGUL_SYLLABLES)

ARABIC_RANGE = (0x0600, 0x06FF)
HEBREW_RANGE = (0x0590, 0x05FF)

LATIN1_MAX = 0xFF
RTL_THRESHOLD = 0.1

# Share of unindented lines above which text counts as left-aligned,
# and below which it counts as centered.
LEFT_ALIGNMENT_RATIO = 0.8
CENTER_ALIGNMENT_RATIO = 0.2


def _in_range(code: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= code <= bounds[1]


def is_cjk(code: int) -> bool:
    return any(_in_range(code, r) for r in CJK_RANGES)


def is_rtl(code: int) -> bool:
    return _in_range(code, ARABIC_RANGE) or _in_range(code, HEBREW_RANGE)


def detect_character_script(text: str) -> CharacterScriptAnalysis:
    """Count CJK, RTL and Latin-1 characters and return their ratios."""
    total = len(text)
    cjk = rtl = latin = 0

    for char in text:
        code = ord(char)
        if is_cjk(code):
            cjk += 1
        elif is_rtl(code):
            rtl += 1
        elif code < LATIN1_MAX:
            latin += 1

    scripts = []
    if latin:
        scripts.append("Latin")
    if cjk:
        scripts.append("CJK")
    if rtl:
        scripts.append("RTL")

    return CharacterScriptAnalysis(
        has_cjk=cjk > 0,
        has_rtl=rtl > 0,
        has_latin=latin > 0,
        cjk_ratio=cjk / total if total else 0.0,
        rtl_ratio=rtl / total if total else 0.0,
        latin_ratio=latin / total if total else 0.0,
        detected_scripts=scripts,
    )


def detect_rtl_text(text: str) -> RtlDetection:
    """Detect Arabic and Hebrew content."""
    arabic = sum(1 for c in text if _in_range(ord(c), ARABIC_RANGE))
    hebrew = sum(1 for c in text if _in_range(ord(c), HEBREW_RANGE))
    ratio = (arabic + hebrew) / len(text) if text else 0.0

    scripts = []
    if arabic:
        scripts.append("Arabic")
    if hebrew:
        scripts.append("Hebrew")

    return RtlDetection(
        is_rtl=ratio >= RTL_THRESHOLD,
        rtl_ratio=ratio,
        has_arabic=arabic > 0,
        has_hebrew=hebrew > 0,
        detected_scripts=scripts,
    )


def detect_text_alignment(text: str) -> Literal["left", "center", "mixed"]:
    """Guess alignment from how many non-blank lines start at the margin."""
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return "left"

    flush = sum(1 for line in lines if not line.startswith((" ", "\t")))
    ratio = flush / len(lines)

    if ratio > LEFT_ALIGNMENT_RATIO:
        return "left"
    if ratio < CENTER_ALIGNMENT_RATIO:
        return "center"
    return "mixed"
