"""Render parsed chapters as speakable text, Markdown or HTML."""

import html

from bs4 import BeautifulSoup
from markdownify import markdownify as md

from tts_prep.models.document import Chapter, Paragraph, ParagraphType
from tts_prep.models.output import OutputFormat

MARKDOWN_PREFIXES = {
    ParagraphType.QUOTE: "> ",
    ParagraphType.LIST_ITEM: "- ",
}
HTML_TAGS = {
    ParagraphType.TEXT: "p",
    ParagraphType.QUOTE: "blockquote",
    ParagraphType.LIST_ITEM: "li",
    ParagraphType.CODE: "pre",
}


class ContentProcessor:
    """Render chapters into output formats."""

    def process(self, chapter: Chapter, output_format: OutputFormat = "text") -> str:
        """Render a chapter in the given format."""
        if output_format == "html":
            return self._to_html(chapter)
        elif output_format == "markdown":
            return self._to_markdown(chapter)
        else:  # text
            return self._to_plain_text(chapter)

    @staticmethod
    def spoken_sentences(chapter: Chapter) -> list[str]:
        """Sentences that go to the speech engine, in reading order."""
        return [
            sentence.text
            for paragraph in chapter.paragraphs
            if paragraph.include_in_audio
            for sentence in paragraph.sentences
        ]

    def _to_plain_text(self, chapter: Chapter) -> str:
        """Speakable text: one paragraph per block, audio-excluded paragraphs dropped."""
        paragraphs = []
        for paragraph in chapter.paragraphs:
            if not paragraph.include_in_audio:
                continue
            text = " ".join(s.text for s in paragraph.sentences)
            if text:
                paragraphs.append(text)
        return "\n\n".join(paragraphs)

    def _to_markdown(self, chapter: Chapter) -> str:
        blocks = [self._paragraph_to_markdown(p) for p in chapter.paragraphs]
        first = chapter.paragraphs[0] if chapter.paragraphs else None
        if first is None or first.type != ParagraphType.HEADING:
            blocks.insert(0, f"# {chapter.title}")
        return "\n\n".join(b for b in blocks if b).strip()

    def _paragraph_to_markdown(self, paragraph: Paragraph) -> str:
        raw = paragraph.raw_text
        if raw.lstrip().startswith("<"):
            return self._html_to_markdown(raw)

        text = " ".join(s.text for s in paragraph.sentences)
        if paragraph.type == ParagraphType.HEADING:
            return f"## {text}"
        if paragraph.type == ParagraphType.CODE:
            return raw if raw.startswith(("```", "~~~")) else f"```\n{raw}\n```"
        if paragraph.type == ParagraphType.IMAGE:
            return raw
        return f"{MARKDOWN_PREFIXES.get(paragraph.type, '')}{text}"

    @staticmethod
    def _html_to_markdown(fragment: str) -> str:
        """Convert an HTML fragment to clean Markdown."""
        soup = BeautifulSoup(fragment, "lxml")
        body = soup.body or soup
        markdown = md(
            str(body),
            heading_style="ATX",
            bullets="-",
            strip=["a"],  # Remove link formatting but keep text
        )
        # Collapse runs of blank lines
        lines = [line.rstrip() for line in markdown.split("\n")]
        cleaned = []
        prev_blank = False
        for line in lines:
            is_blank = not line.strip()
            if is_blank and prev_blank:
                continue
            cleaned.append(line)
            prev_blank = is_blank

        return "\n".join(cleaned).strip()

    def _to_html(self, chapter: Chapter) -> str:
        parts = [f"<h1>{html.escape(chapter.title)}</h1>"]
        for paragraph in chapter.paragraphs:
            raw = paragraph.raw_text
            if raw.lstrip().startswith("<"):
                parts.append(raw)
                continue
            text = html.escape(" ".join(s.text for s in paragraph.sentences))
            if paragraph.type == ParagraphType.HEADING:
                parts.append(f"<h2>{text}</h2>")
            elif paragraph.type != ParagraphType.IMAGE:
                tag = HTML_TAGS.get(paragraph.type, "p")
                parts.append(f"<{tag}>{text}</{tag}>")
        return "\n".join(parts)

    def get_stats(self, content: str) -> dict[str, int]:
        """Calculate content statistics."""
        words = content.split()
        paragraphs = [p for p in content.split("\n\n") if p.strip()]
        return {
            "word_count": len(words),
            "character_count": len(content),
            "paragraph_count": len(paragraphs),
        }
