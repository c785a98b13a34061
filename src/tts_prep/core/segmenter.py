"""Sentence and paragraph segmentation with punctuation-aware boundaries."""

import html
import math
import re
from dataclasses import dataclass

# Sentence-final punctuation; runs such as "?!" or "..." stay together
TERMINATORS = frozenset(".!?")
# Closing marks that belong to the sentence they follow
CLOSERS = frozenset("\"')]}”’»")

# Titles and Latin shorthands whose trailing period never ends a sentence
ABBREVIATIONS = frozenset(
    {
        "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "mt", "vs",
        "gen", "col", "lt", "sgt", "capt", "rev", "hon", "fig", "approx",
        "e.g", "i.e", "cf", "al",
    }
)
# "U.S.A" or "p.m"
LETTER_PERIOD_SEQUENCE = re.compile(r"^(?:[A-Za-z]\.)+[A-Za-z]$")
# "J" in "J. Smith"; the pronoun "I" always ends a sentence
SINGLE_INITIAL = re.compile(r"^[A-HJ-Z]$")

READING_WORDS_PER_MINUTE = 200
MAX_URL_WORD_COUNT = 3
MAX_HYPHENATED_PARTS = 3

URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)
URL_PARTS_PATTERN = re.compile(r"[#&/=?]")
CLEAN_TOKEN_PATTERN = re.compile(r"[^\w-]")

SCRIPT_STYLE_PATTERN = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
TAG_PATTERN = re.compile(r"<[^<>]+>")
PARAGRAPH_TAG_PATTERN = re.compile(r"<p\b[^<>]*>(.*?)</p\s*>", re.IGNORECASE | re.DOTALL)
INLINE_FORMATTING_PATTERN = re.compile(
    r"<(b|i|em|strong|u|span|a|sup|sub|small|mark|code)\b|\*\*|__|(?<!\w)[*_]\w",
    re.IGNORECASE,
)
BLANK_LINE_PATTERN = re.compile(r"\n\s*\n")


@dataclass
class SentenceSpan:
    """A sentence with offsets into the text it was cut from."""

    text: str
    start_index: int
    end_index: int  # exclusive


@dataclass
class ParagraphSpan:
    """A paragraph block with offsets into its chapter text."""

    text: str
    start_index: int
    end_index: int  # exclusive


# =============================================================================
# Cleanup
# =============================================================================


def strip_html_and_clean(content: str) -> str:
    """Drop scripts, styles, comments and tags; decode entities; collapse whitespace."""
    if not content:
        return ""

    text = SCRIPT_STYLE_PATTERN.sub(" ", content)
    text = COMMENT_PATTERN.sub(" ", text)
    text = TAG_PATTERN.sub(" ", text)
    text = html.unescape(text)
    return " ".join(text.split())


def has_inline_formatting(raw: str) -> bool:
    """True if raw text carries inline HTML or Markdown emphasis."""
    return bool(INLINE_FORMATTING_PATTERN.search(raw))


# =============================================================================
# Word Counting
# =============================================================================


def _is_pure_symbol(token: str) -> bool:
    # Emoji, pictographs and punctuation-only tokens are not spoken as words
    return not any(c.isalnum() for c in token)


def _count_url_words(token: str) -> int:
    without_protocol = re.sub(r"^https?://", "", token, flags=re.IGNORECASE)
    parts = [p for p in URL_PARTS_PATTERN.split(without_protocol) if p]
    return min(len(parts), MAX_URL_WORD_COUNT)


def _count_token_words(token: str) -> int:
    clean = CLEAN_TOKEN_PATTERN.sub("", token)
    if not clean.strip("-"):
        return 0

    parts = [p for p in clean.split("-") if p]
    if len(parts) <= MAX_HYPHENATED_PARTS:
        return 1
    return len(parts)


def count_words(text: str) -> int:
    """Count spoken words in text.

    URLs count as at most three words, emoji and punctuation-only tokens
    count as none, and hyphenated compounds of up to three parts count
    as one.
    """
    if not text:
        return 0

    count = 0
    for token in text.split():
        if _is_pure_symbol(token):
            continue
        if URL_PATTERN.match(token):
            count += _count_url_words(token)
        else:
            count += _count_token_words(token)
    return count


def estimate_duration(word_count: int, words_per_minute: int) -> float:
    """Speaking time in seconds."""
    if word_count <= 0 or words_per_minute <= 0:
        return 0.0
    return word_count * 60.0 / words_per_minute


def calculate_reading_time(word_count: int) -> int:
    """Reading time in whole minutes, rounded up."""
    return math.ceil(word_count / READING_WORDS_PER_MINUTE)


# =============================================================================
# Sentences
# =============================================================================


def _is_decimal_point(text: str, index: int) -> bool:
    return (
        0 < index < len(text) - 1
        and text[index - 1].isdigit()
        and text[index + 1].isdigit()
    )


def _is_abbreviation(text: str, period_index: int) -> bool:
    """Check whether the word ending at period_index is an abbreviation."""
    start = period_index
    while start > 0 and not text[start - 1].isspace():
        start -= 1

    word = text[start:period_index].lstrip("\"'([{“‘«")
    if not word:
        return False
    if SINGLE_INITIAL.match(word):
        return _next_word_is_capitalized(text, period_index + 1)
    return word.lower() in ABBREVIATIONS or bool(LETTER_PERIOD_SEQUENCE.match(word))


def _next_word_is_capitalized(text: str, index: int) -> bool:
    rest = text[index:]
    if not rest[:1].isspace():
        return False
    following = rest.lstrip()
    return bool(following) and following[0].isupper()


def _make_span(text: str, start: int, end: int, offset: int) -> SentenceSpan | None:
    chunk = text[start:end]
    stripped = chunk.strip()
    if not stripped:
        return None

    leading = len(chunk) - len(chunk.lstrip())
    begin = start + leading
    return SentenceSpan(
        text=stripped,
        start_index=offset + begin,
        end_index=offset + begin + len(stripped),
    )


def split_into_sentences(text: str, start_index: int = 0) -> list[SentenceSpan]:
    """Split paragraph text into sentences.

    A run of ``.``, ``!`` or ``?`` (plus any closing quotes or brackets)
    ends a sentence when whitespace or the end of text follows it. Periods
    inside decimals and after abbreviations do not end a sentence.

    Args:
        text: Paragraph text
        start_index: Offset added to every span's indices

    Returns:
        Sentences in order. Text without terminal punctuation yields one
        sentence; blank text yields none.
    """
    spans: list[SentenceSpan] = []
    length = len(text)
    sentence_start = 0
    i = 0

    while i < length:
        if text[i] not in TERMINATORS:
            i += 1
            continue

        end = i
        while end < length and text[end] in TERMINATORS:
            end += 1
        run = text[i:end]
        while end < length and text[end] in CLOSERS:
            end += 1

        if end < length and not text[end].isspace():
            i = end
            continue
        if run == "." and (_is_decimal_point(text, i) or _is_abbreviation(text, i)):
            i = end
            continue

        span = _make_span(text, sentence_start, end, start_index)
        if span:
            spans.append(span)
        sentence_start = end
        i = end

    tail = _make_span(text, sentence_start, length, start_index)
    if tail:
        spans.append(tail)

    return spans


# =============================================================================
# Paragraphs
# =============================================================================


def extract_paragraph_matches(content: str) -> list[str]:
    """Pull paragraph texts out of HTML ``<p>`` blocks or blank-line separated text."""
    if not content:
        return []

    if PARAGRAPH_TAG_PATTERN.search(content):
        paragraphs = (
            strip_html_and_clean(m.group(1))
            for m in PARAGRAPH_TAG_PATTERN.finditer(content)
        )
    else:
        paragraphs = (
            " ".join(block.split()) for block in BLANK_LINE_PATTERN.split(content)
        )

    return [p for p in paragraphs if p]


def split_into_paragraphs(content: str, start_index: int = 0) -> list[ParagraphSpan]:
    """Split plain text into blank-line separated paragraphs with offsets."""
    spans: list[ParagraphSpan] = []
    position = 0

    for match in BLANK_LINE_PATTERN.finditer(content):
        _append_paragraph(spans, content, position, match.start(), start_index)
        position = match.end()
    _append_paragraph(spans, content, position, len(content), start_index)

    return spans


def _append_paragraph(
    spans: list[ParagraphSpan], content: str, start: int, end: int, offset: int
) -> None:
    block = content[start:end]
    stripped = block.strip()
    if not stripped:
        return
    leading = len(block) - len(block.lstrip())
    begin = start + leading
    spans.append(
        ParagraphSpan(
            text=stripped,
            start_index=offset + begin,
            end_index=offset + begin + len(stripped),
        )
    )
