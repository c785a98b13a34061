from __future__ import annotations

import pytest

from tts_prep.core.text_analysis import (
    detect_character_script,
    detect_rtl_text,
    detect_text_alignment,
)


def test_cafe_is_all_latin() -> None:
    analysis = detect_character_script("café")
    assert analysis.has_latin
    assert not analysis.has_cjk
    assert not analysis.has_rtl
    assert analysis.latin_ratio == pytest.approx(1.0)
    assert analysis.detected_scripts == ["Latin"]


def test_mixed_scripts_are_listed_in_order() -> None:
    analysis = detect_character_script("abc 日本 שלום")
    assert analysis.detected_scripts == ["Latin", "CJK", "RTL"]
    assert analysis.cjk_ratio == pytest.approx(2 / 11)


def test_empty_text_has_zero_ratios() -> None:
    analysis = detect_character_script("")
    assert analysis.latin_ratio == 0.0
    assert analysis.detected_scripts == []
    assert not detect_rtl_text("").is_rtl


def test_rtl_detection_names_scripts() -> None:
    detection = detect_rtl_text("שלום world")
    assert detection.is_rtl
    assert detection.has_hebrew
    assert not detection.has_arabic
    assert detection.detected_scripts == ["Hebrew"]

    assert not detect_rtl_text("English with one א in a long sentence here").is_rtl


def test_text_alignment() -> None:
    assert detect_text_alignment("one\ntwo\nthree") == "left"
    assert detect_text_alignment("   one\n   two\n   three") == "center"
    assert detect_text_alignment("one\n   two") == "mixed"
    assert detect_text_alignment("") == "left"
