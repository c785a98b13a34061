"""Encoding validation, diagnostics and full text analysis."""

import logging

from tts_prep.core.encoding import (
    ASCII_MAX,
    CJK_ENCODINGS,
    EURO_SIGN,
    HIGH_CONFIDENCE,
    LEGACY_ENCODINGS,
    MEDIUM_HIGH_CONFIDENCE,
    SUPPORTED_ENCODINGS,
    UTF_ENCODINGS,
    calculate_encoding_confidence,
    detect_encoding,
    get_encoding_family,
    has_bom,
    non_ascii_ratio,
)
from tts_prep.core.text_analysis import detect_character_script, detect_rtl_text
from tts_prep.models.encoding import (
    ConversionValidation,
    DiagnosticReport,
    EncodingAnalysis,
    EncodingDetails,
    EncodingValidation,
)

log = logging.getLogger(__name__)

REPLACEMENT_CHAR = "�"
CONVERSION_ISSUE_PENALTY = 0.2
MIN_CONVERSION_CONFIDENCE = 0.5

MULTI_BYTE_ENCODINGS = {"utf-16le", "utf-16be", "utf-32le", "utf-32be"}


def validate_encoding_detection(
    text: str, encoding: str, confidence: float
) -> EncodingValidation:
    """Quick sanity check of a detection result."""
    issues: list[str] = []
    recommendations: list[str] = []

    if confidence < MEDIUM_HIGH_CONFIDENCE:
        issues.append("Low confidence encoding detection")
        recommendations.append("Consider specifying the source encoding manually")

    if encoding == "ascii" and non_ascii_ratio(text) > 0:
        issues.append("ASCII encoding detected but non-ASCII characters present")
        recommendations.append("Consider using UTF-8 or a Latin encoding")

    return EncodingValidation(
        is_valid=not issues,
        issues=issues,
        recommendations=recommendations,
    )


def validate_advanced_encoding_detection(
    text: str, encoding: str, confidence: float
) -> EncodingValidation:
    """Cross-check a detected encoding against scripts, BOM and Euro sign.

    Every rule is applied independently. Warnings never affect validity.

    Args:
        text: Decoded text sample
        encoding: Detected encoding label
        confidence: Detection confidence in [0, 1]

    Returns:
        EncodingValidation with is_valid set when no issue was found
    """
    issues: list[str] = []
    warnings: list[str] = []
    recommendations: list[str] = []
    scripts = detect_character_script(text)

    if confidence < HIGH_CONFIDENCE:
        issues.append("Low confidence encoding detection")

    if scripts.has_cjk and encoding != "utf-8" and encoding not in CJK_ENCODINGS:
        issues.append(
            "CJK characters detected but encoding may not support them properly"
        )
        recommendations.append(
            "Consider using UTF-8, GB2312, Shift_JIS, EUC-KR, or Big5 for CJK text"
        )

    if scripts.has_rtl and not encoding.startswith("utf-"):
        issues.append(
            "RTL text detected but legacy encoding may not handle it correctly"
        )
        recommendations.append("Use UTF-8 or UTF-16 for proper RTL text rendering")

    if EURO_SIGN in text and encoding not in ("windows-1252", "iso-8859-15"):
        warnings.append(
            "Euro symbol (€) detected - consider Windows-1252 or ISO-8859-15 encoding"
        )

    bom_present = has_bom(text)
    if bom_present and encoding not in UTF_ENCODINGS:
        warnings.append("BOM detected but encoding does not match expected UTF format")
    if not bom_present and "-bom" in encoding:
        warnings.append("BOM encoding detected but no BOM present in text")

    return EncodingValidation(
        is_valid=not issues,
        issues=issues,
        warnings=warnings,
        recommendations=recommendations,
    )


def validate_encoding_conversion(
    original: str, converted: str, from_encoding: str, to_encoding: str
) -> ConversionValidation:
    """Check a conversion for lost or replaced characters."""
    issues: list[str] = []

    if len(converted) != len(original) and not (
        has_bom(original) and len(converted) == len(original) - 1
    ):
        issues.append(
            f"Text length changed from {len(original)} to {len(converted)} "
            f"converting {from_encoding} to {to_encoding}"
        )

    if REPLACEMENT_CHAR in converted and REPLACEMENT_CHAR not in original:
        issues.append("Replacement characters found - some characters were lost")

    if not issues:
        confidence = 1.0
    else:
        confidence = max(
            MIN_CONVERSION_CONFIDENCE, 1.0 - CONVERSION_ISSUE_PENALTY * len(issues)
        )

    return ConversionValidation(
        is_valid=not issues, issues=issues, confidence=confidence
    )


def _encoding_details(encoding: str) -> EncodingDetails:
    if encoding.endswith("le"):
        endianness = "le"
    elif encoding.endswith("be"):
        endianness = "be"
    else:
        endianness = None

    return EncodingDetails(
        is_multi_byte=encoding in MULTI_BYTE_ENCODINGS,
        is_legacy_encoding=encoding in LEGACY_ENCODINGS,
        supports_bom=encoding.startswith("utf-"),
        endianness=endianness,
        encoding_family=get_encoding_family(encoding),
    )


def analyze_text_encoding(text: str) -> EncodingAnalysis:
    """Run every detector over a text sample."""
    encoding = detect_encoding(text)

    return EncodingAnalysis(
        encoding=encoding,
        confidence=calculate_encoding_confidence(text),
        has_bom=has_bom(text),
        is_ascii=all(ord(c) < ASCII_MAX for c in text),
        non_ascii_ratio=non_ascii_ratio(text),
        script_analysis=detect_character_script(text),
        rtl_detection=detect_rtl_text(text),
        encoding_details=_encoding_details(encoding),
    )


def get_encoding_diagnostics(text: str) -> DiagnosticReport:
    """Detection, validation and script analysis as a single report."""
    encoding = detect_encoding(text)
    confidence = calculate_encoding_confidence(text)
    scripts = detect_character_script(text)
    rtl = detect_rtl_text(text)
    validation = validate_advanced_encoding_detection(text, encoding, confidence)

    recommendations: list[str] = []
    if scripts.has_cjk:
        recommendations.append(
            "Consider using UTF-8 or encoding-specific CJK encoding "
            "(GB2312, Shift_JIS, EUC-KR, Big5)"
        )
    if scripts.has_rtl:
        recommendations.append(
            "RTL text detected - ensure proper text direction handling in rendering"
        )
    if validation.warnings:
        recommendations.extend(validation.recommendations)
    if confidence < MEDIUM_HIGH_CONFIDENCE:
        recommendations.append(
            "Low confidence detection - consider manual encoding specification"
        )

    if not validation.is_valid:
        log.info(f"Encoding check flagged {len(validation.issues)} issue(s) for {encoding}")

    return DiagnosticReport(
        encoding=encoding,
        confidence=confidence,
        script_analysis=scripts,
        rtl_detection=rtl,
        validation=validation,
        recommendations=recommendations,
        supported_encodings=list(SUPPORTED_ENCODINGS),
    )
