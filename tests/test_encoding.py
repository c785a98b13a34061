from __future__ import annotations

import codecs

import pytest

from tts_prep.core import encoding_conversion
from tts_prep.core.encoding import calculate_encoding_confidence, detect_encoding, has_bom
from tts_prep.core.encoding_conversion import (
    convert_text_encoding,
    convert_text_encoding_with_fallback,
    decode_bytes,
    normalize_codec_name,
)
from tts_prep.core.encoding_validation import (
    analyze_text_encoding,
    get_encoding_diagnostics,
    validate_advanced_encoding_detection,
    validate_encoding_conversion,
    validate_encoding_detection,
)


def test_empty_text_defaults_to_utf8_with_zero_confidence() -> None:
    assert detect_encoding("") == "utf-8"
    assert calculate_encoding_confidence("") == 0


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("\ufeffHello", "utf-8-bom"),
        ("\ufffeHello", "utf-16le"),
        ("a\ud83d\ude00b", "utf-16le"),
        ("Hello \U0001F600 world", "utf-16le"),
        ("\x00A\x00B\x00C", "utf-32be"),
        ("日本語のテキストです", "shift_jis"),
        ("한국어 텍스트", "euc-kr"),
        ("中文文本内容", "big5"),
        ("Plain English text only.", "ascii"),
        ("Price: 5€ “quoted”", "windows-1252"),
        ("Gęś i łąka nad rzeką", "iso-8859-2"),
        ("café crème brûlée", "iso-8859-1"),
    ],
)
def test_detect_encoding_cascade(text: str, expected: str) -> None:
    assert detect_encoding(text) == expected


def test_detection_is_idempotent() -> None:
    text = "Grüße aus Köln, schön hier."
    assert detect_encoding(text) == detect_encoding(text)
    assert calculate_encoding_confidence(text) == calculate_encoding_confidence(text)


def test_confidence_tiers() -> None:
    assert calculate_encoding_confidence("Hello world") == pytest.approx(0.8)
    assert calculate_encoding_confidence("日本語のテキストです") == pytest.approx(0.8)
    assert calculate_encoding_confidence("مرحبا بالعالم") == pytest.approx(0.8)
    # UTF label plus the BOM boost
    assert calculate_encoding_confidence("\ufeffHello") == pytest.approx(0.9)


def test_has_bom_only_checks_first_character() -> None:
    assert has_bom("\ufeffabc")
    assert not has_bom("abc\ufeff")
    assert not has_bom("")


def test_same_encoding_conversion_is_unchanged_success() -> None:
    result = convert_text_encoding_with_fallback("héllo", "utf-8", "utf-8")
    assert result.success
    assert result.converted_text == "héllo"
    assert not result.used_fallback
    assert result.errors == []


def test_conversion_strips_bom_from_utf8_source() -> None:
    assert convert_text_encoding("\ufeffHi", "utf-8-bom", "utf-16") == "Hi"


def test_conversion_uses_fallback_after_unknown_label() -> None:
    result = convert_text_encoding_with_fallback(
        "plain", "no-such-codec", "utf-8", fallback_encodings=["latin-1"]
    )
    assert result.success
    assert result.used_fallback
    assert result.actual_from_encoding == "latin-1"
    assert result.confidence == pytest.approx(0.5)
    assert len(result.errors) == 1


def test_failed_conversion_returns_original_text() -> None:
    result = convert_text_encoding_with_fallback("日本", "utf-8", "ascii")
    assert not result.success
    assert result.converted_text == "日本"
    assert result.confidence == 0.0
    assert result.errors


def test_auto_detection_overrides_given_source() -> None:
    result = convert_text_encoding_with_fallback(
        "Hello", "no-such-codec", "utf-8", attempt_auto_detection=True
    )
    assert result.success
    assert result.actual_from_encoding == "ascii"


def test_normalize_codec_name_rejects_unknown_labels() -> None:
    assert normalize_codec_name("UTF-8-BOM") == "utf-8-sig"
    with pytest.raises(LookupError):
        normalize_codec_name("definitely-not-a-codec")


def test_decode_bytes_honours_byte_order_marks() -> None:
    decoded = decode_bytes(codecs.BOM_UTF8 + "hi".encode("utf-8"))
    assert decoded.text == "hi"
    assert decoded.encoding == "utf-8-sig"
    assert decoded.confidence == 1.0

    decoded = decode_bytes("hi".encode("utf-16"))
    assert decoded.text == "hi"
    assert decoded.encoding == "utf-16"


def test_decode_bytes_falls_back_to_lossy_utf8(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        encoding_conversion.chardet, "detect", lambda data: {"encoding": None, "confidence": 0.0}
    )
    decoded = decode_bytes(b"ok \xff\xfa", fallback_encodings=["ascii"])
    assert decoded.lossy
    assert decoded.confidence == 0.0
    assert decoded.text.startswith("ok ")
    assert "�" in decoded.text


def test_validate_detection_flags_ascii_mismatch() -> None:
    result = validate_encoding_detection("café", "ascii", 0.9)
    assert not result.is_valid
    assert "non-ASCII" in result.issues[0]


def test_advanced_validation_rules_apply_independently() -> None:
    cjk = validate_advanced_encoding_detection("日本語", "iso-8859-1", 0.9)
    assert not cjk.is_valid
    assert any("CJK" in issue for issue in cjk.issues)

    euro = validate_advanced_encoding_detection("5€", "utf-8", 0.9)
    assert euro.is_valid
    assert any("Euro" in warning for warning in euro.warnings)

    bom = validate_advanced_encoding_detection("text", "utf-8-bom", 0.9)
    assert any("no BOM present" in warning for warning in bom.warnings)


def test_conversion_validation_penalizes_each_issue() -> None:
    assert validate_encoding_conversion("abc", "abc", "utf-8", "utf-8").confidence == 1.0

    shortened = validate_encoding_conversion("abc", "ab", "utf-8", "ascii")
    assert not shortened.is_valid
    assert shortened.confidence == pytest.approx(0.8)

    lossy = validate_encoding_conversion("abc", "a�", "utf-8", "ascii")
    assert len(lossy.issues) == 2
    assert lossy.confidence == pytest.approx(0.6)

    # Dropping a leading BOM is not a length change
    assert validate_encoding_conversion("\ufeffab", "ab", "utf-8-bom", "utf-8").is_valid


def test_analysis_reports_details() -> None:
    plain = analyze_text_encoding("Hello")
    assert plain.is_ascii
    assert plain.encoding_details.encoding_family == "ascii"

    bom = analyze_text_encoding("\ufeffHi")
    assert bom.has_bom
    assert bom.encoding_details.supports_bom
    assert not bom.is_ascii


def test_diagnostics_for_rtl_text() -> None:
    report = get_encoding_diagnostics("مرحبا بالعالم")
    assert report.encoding == "utf-8"
    assert report.rtl_detection.is_rtl
    assert report.validation.is_valid
    assert any("RTL" in rec for rec in report.recommendations)
    assert "utf-8" in report.supported_encodings
