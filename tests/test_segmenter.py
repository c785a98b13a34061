from __future__ import annotations

import pytest

from tts_prep.core.segmenter import (
    calculate_reading_time,
    count_words,
    estimate_duration,
    extract_paragraph_matches,
    has_inline_formatting,
    split_into_paragraphs,
    split_into_sentences,
    strip_html_and_clean,
)


def test_mixed_terminators_split_into_three_sentences() -> None:
    spans = split_into_sentences("Question? Exclamation! Period.")
    assert [s.text for s in spans] == ["Question?", "Exclamation!", "Period."]
    assert [(s.start_index, s.end_index) for s in spans] == [(0, 9), (10, 22), (23, 30)]


def test_decimal_point_does_not_end_sentence() -> None:
    spans = split_into_sentences("The price is $12.99 today. Buy now.")
    assert [s.text for s in spans] == ["The price is $12.99 today.", "Buy now."]


def test_abbreviations_and_initials_do_not_end_sentence() -> None:
    text = "Dr. Smith met J. R. Tolkien in the U.S.A. yesterday. They talked."
    spans = split_into_sentences(text)
    assert len(spans) == 2
    assert spans[1].text == "They talked."


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Nobody was there but I. Then we left.", ["Nobody was there but I.", "Then we left."]),
        ("The answer is C. next we move on.", ["The answer is C.", "next we move on."]),
        ("He signed it J.", ["He signed it J."]),
    ],
)
def test_single_letter_before_period_can_end_sentence(text: str, expected: list[str]) -> None:
    assert [s.text for s in split_into_sentences(text)] == expected


def test_terminator_runs_and_closing_quotes_stay_together() -> None:
    spans = split_into_sentences('"Really?!" she asked... Then left.')
    assert spans[0].text == '"Really?!"'
    assert spans[1].text == "she asked..."
    assert spans[2].text == "Then left."


def test_sentence_offsets_include_start_index() -> None:
    spans = split_into_sentences("One. Two.", start_index=100)
    assert spans[0].start_index == 100
    assert spans[1].start_index == 105
    assert spans[1].end_index == 109


def test_text_without_terminator_is_one_sentence() -> None:
    spans = split_into_sentences("  no punctuation here  ")
    assert len(spans) == 1
    assert spans[0].text == "no punctuation here"
    assert spans[0].start_index == 2


def test_blank_text_has_no_sentences() -> None:
    assert split_into_sentences("") == []
    assert split_into_sentences("   \n ") == []


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("Hello world", 2),
        ("It costs 42 dollars", 4),
        ("a well-known fact", 3),
        ("state-of-the-art design", 5),
        ("see https://example.com/docs/page?id=3 now", 5),
        ("great 🙂 job !!!", 2),
    ],
)
def test_count_words(text: str, expected: int) -> None:
    assert count_words(text) == expected


def test_duration_and_reading_time() -> None:
    assert estimate_duration(150, 150) == pytest.approx(60.0)
    assert estimate_duration(0, 150) == 0.0
    assert estimate_duration(10, 0) == 0.0
    assert calculate_reading_time(0) == 0
    assert calculate_reading_time(200) == 1
    assert calculate_reading_time(201) == 2


def test_strip_html_and_clean() -> None:
    html = "<p>Fish &amp; <b>chips</b></p><script>alert(1)</script><!-- note --><style>p{}</style>"
    assert strip_html_and_clean(html) == "Fish & chips"
    assert strip_html_and_clean("") == ""


def test_inline_formatting_detection() -> None:
    assert has_inline_formatting("<em>word</em>")
    assert has_inline_formatting("some **bold** text")
    assert not has_inline_formatting("snake_case_name stays plain")


def test_paragraph_matches_from_html_and_plain_text() -> None:
    assert extract_paragraph_matches("<p>One</p>\n<p>Two <b>bold</b></p><p> </p>") == [
        "One",
        "Two bold",
    ]
    assert extract_paragraph_matches("First\nline\n\n\nSecond") == ["First line", "Second"]
    assert extract_paragraph_matches("") == []


def test_split_into_paragraphs_tracks_offsets() -> None:
    spans = split_into_paragraphs("First.\n\n  Second para.\n\n\n", start_index=10)
    assert [p.text for p in spans] == ["First.", "Second para."]
    assert (spans[0].start_index, spans[0].end_index) == (10, 16)
    assert (spans[1].start_index, spans[1].end_index) == (20, 32)
