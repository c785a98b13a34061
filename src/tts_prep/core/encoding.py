"""Encoding detection over decoded text with cascade heuristics."""

import logging

from tts_prep.core.text_analysis import (
    CJK_UNIFIED_IDEOGRAPHS,
    HANGUL_SYLLABLES,
    HIRAGANA_KATAKANA,
    detect_character_script,
)

log = logging.getLogger(__name__)


# =============================================================================
# Labels and Families
# =============================================================================

DEFAULT_ENCODING = "utf-8"

UTF_ENCODINGS = ["utf-8", "utf-8-bom", "utf-16le", "utf-16be", "utf-32le", "utf-32be"]
LEGACY_ENCODINGS = ["windows-1252", "iso-8859-1", "iso-8859-2", "iso-8859-15"]
CJK_ENCODINGS = ["gb2312", "shift_jis", "euc-kr", "big5"]

SUPPORTED_ENCODINGS = [*UTF_ENCODINGS, *LEGACY_ENCODINGS, "ascii", *CJK_ENCODINGS]

# BOMs as they appear once decoded: U+FEFF reads as the UTF-8 BOM (the
# UTF-16BE BOM decodes to the same character), U+FFFE as UTF-16LE.
UTF8_BOM = 0xFEFF
UTF16LE_BOM = 0xFFFE
BOM_CODES = (UTF8_BOM, UTF16LE_BOM)

ASCII_MAX = 0x80
BMP_MAX = 0xFFFF
HIGH_SURROGATES = (0xD800, 0xDBFF)
LOW_SURROGATES = (0xDC00, 0xDFFF)
HIGH_16_BIT_MASK = 0xFFFF0000

# Priority cascade thresholds. Heuristic, not calibrated against a corpus.
NULL_RATIO_THRESHOLD_FOR_UTF32 = 0.3
EVEN_POSITION_NULL_RATIO_FOR_UTF16 = 0.5
UTF32_SAMPLE_SIZE = 10
MIN_CJK_RATIO = 0.1
ASCII_NON_ASCII_RATIO = 0.05
LATIN1_NON_ASCII_RATIO = 0.1
UTF8_NON_ASCII_RATIO = 0.3

HIGH_CONFIDENCE = 0.8
MEDIUM_HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.5
BOM_CONFIDENCE_BOOST = 0.2

# Characters Windows-1252 maps into 0x80-0x9F, where ISO-8859-1 has controls
WINDOWS_1252_CHARS = frozenset(
    "€‚ƒ„…†‡ˆ‰Š‹Œ"
    "Ž‘’“”•–—˜™š›"
    "œžŸ"
)
POLISH_CHARS = frozenset("ĄĆĘŁŃÓŚŹŻąćęłńóśźż")
EURO_SIGN = "€"


def get_encoding_family(encoding: str) -> str:
    """Classify a label as ascii, cjk, legacy or utf."""
    if encoding == "ascii":
        return "ascii"
    if encoding in CJK_ENCODINGS:
        return "cjk"
    if encoding in LEGACY_ENCODINGS:
        return "legacy"
    return "utf"


def has_bom(text: str) -> bool:
    """Check whether text starts with a byte order mark character."""
    return bool(text) and ord(text[0]) in BOM_CODES


def non_ascii_ratio(text: str) -> float:
    if not text:
        return 0.0
    return sum(1 for c in text if ord(c) >= ASCII_MAX) / len(text)


# =============================================================================
# Stage 1: BOM Sniffing
# =============================================================================


def _detect_bom(text: str) -> str | None:
    first = ord(text[0])
    if first == UTF8_BOM:
        return "utf-8-bom"
    if first == UTF16LE_BOM:
        return "utf-16le"
    return None


# =============================================================================
# Stage 2: Multi-byte Patterns
# =============================================================================


def _detect_utf32(text: str) -> str | None:
    nulls = text.count("\x00")
    if nulls / len(text) <= NULL_RATIO_THRESHOLD_FOR_UTF32:
        return None

    sample = text[:UTF32_SAMPLE_SIZE]
    if any(ord(c) & HIGH_16_BIT_MASK for c in sample):
        return "utf-32le"
    return "utf-32be"


def _detect_utf16(text: str) -> str | None:
    # Characters beyond the BMP need a surrogate pair in UTF-16, as do
    # stray high+low units that leaked through decoding; both mark UTF-16LE.
    if any(ord(c) > BMP_MAX for c in text):
        return "utf-16le"
    for current, following in zip(text, text[1:]):
        if (
            HIGH_SURROGATES[0] <= ord(current) <= HIGH_SURROGATES[1]
            and LOW_SURROGATES[0] <= ord(following) <= LOW_SURROGATES[1]
        ):
            return "utf-16le"

    even_positions = text[::2]
    even_nulls = even_positions.count("\x00")
    if even_nulls / len(even_positions) > EVEN_POSITION_NULL_RATIO_FOR_UTF16:
        return "utf-16be"
    return None


def _detect_multi_byte(text: str) -> str | None:
    return _detect_utf32(text) or _detect_utf16(text)


# =============================================================================
# Stage 3: Script-aware CJK
# =============================================================================


def _detect_cjk_encoding(text: str) -> str | None:
    codes = [ord(c) for c in text]

    def contains(bounds: tuple[int, int]) -> bool:
        return any(bounds[0] <= code <= bounds[1] for code in codes)

    if contains(HIRAGANA_KATAKANA):
        return "shift_jis"
    if contains(HANGUL_SYLLABLES):
        return "euc-kr"
    if contains(CJK_UNIFIED_IDEOGRAPHS):
        return "big5"
    return None


# =============================================================================
# Stage 4: Legacy Single-byte
# =============================================================================


def _detect_legacy_encoding(text: str) -> str | None:
    if non_ascii_ratio(text) < ASCII_NON_ASCII_RATIO:
        return "ascii"

    chars = set(text)
    if chars & WINDOWS_1252_CHARS:
        return "windows-1252"
    if any(0xA0 <= ord(c) <= 0xFF for c in chars):
        return "iso-8859-1"
    if chars & POLISH_CHARS:
        return "iso-8859-2"
    if EURO_SIGN in chars:
        return "iso-8859-15"
    return None


# =============================================================================
# Stage 5: Fallback
# =============================================================================


def _fallback_by_ratio(text: str) -> str:
    ratio = non_ascii_ratio(text)
    if ratio > UTF8_NON_ASCII_RATIO:
        return "utf-8"
    if ratio > LATIN1_NON_ASCII_RATIO:
        return "iso-8859-1"
    return "ascii"


def detect_encoding(text: str) -> str:
    """Infer the most likely source encoding of decoded text.

    Stages run in strict priority order and the first match wins:
    BOM, multi-byte patterns, CJK scripts, legacy single-byte markers,
    then a fallback on the share of non-ASCII characters.

    Args:
        text: Decoded text sample

    Returns:
        Encoding label, one of SUPPORTED_ENCODINGS
    """
    if not text:
        return DEFAULT_ENCODING

    bom = _detect_bom(text)
    if bom:
        return bom

    if len(text) >= 2:
        multi_byte = _detect_multi_byte(text)
        if multi_byte:
            return multi_byte

    if detect_character_script(text).cjk_ratio >= MIN_CJK_RATIO:
        cjk = _detect_cjk_encoding(text)
        if cjk:
            return cjk

    return _detect_legacy_encoding(text) or _fallback_by_ratio(text)


def calculate_encoding_confidence(text: str) -> float:
    """Score how much the detected encoding can be trusted, in [0, 1]."""
    if not text:
        return 0.0

    encoding = detect_encoding(text)
    scripts = detect_character_script(text)

    if (
        (encoding == "ascii" and scripts.cjk_ratio == 0 and scripts.rtl_ratio == 0)
        or (scripts.has_cjk and encoding in CJK_ENCODINGS)
        or (scripts.has_rtl and encoding in UTF_ENCODINGS)
    ):
        score = HIGH_CONFIDENCE
    elif encoding in LEGACY_ENCODINGS or encoding.startswith("utf-"):
        score = MEDIUM_HIGH_CONFIDENCE
    else:
        score = MEDIUM_CONFIDENCE

    if has_bom(text):
        score = min(1.0, score + BOM_CONFIDENCE_BOOST)

    log.debug(f"Detected {encoding} with confidence {score:.2f}")
    return score
