from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable

import pytest

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

CHAPTER_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
  <head><title>{title}</title></head>
  <body>
{body}
  </body>
</html>
"""

NAV_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
  <head><title>Contents</title></head>
  <body>
    <nav epub:type="toc" id="toc">
      <ol>
{items}
      </ol>
    </nav>
  </body>
</html>
"""

DEFAULT_CHAPTERS = [
    (
        "Chapter One",
        "<h1>Chapter One</h1>\n"
        "<p>This is the first chapter. It has two sentences.</p>\n"
        "<p>A second paragraph follows.</p>",
    ),
    (
        "Chapter Two",
        "<h1>Chapter Two</h1>\n"
        "<p>The second chapter is short.</p>\n"
        '<p><img src="figure.png" alt="Figure"/></p>\n'
        "<blockquote>A quoted line.</blockquote>",
    ),
]


def write_epub(
    target: Path,
    chapters: list[tuple[str, str]] | None = None,
    *,
    title: str | None = "Sample Book",
    author: str | None = "Sample Author",
    language: str = "en",
    with_nav: bool = True,
) -> Path:
    """Write a minimal EPUB 3 package with one XHTML file per chapter."""
    chapters = DEFAULT_CHAPTERS if chapters is None else chapters
    metadata = [
        '<dc:identifier id="BookId">urn:uuid:12345678</dc:identifier>',
        f"<dc:language>{language}</dc:language>",
        "<dc:date>2021-03-04</dc:date>",
    ]
    if title:
        metadata.append(f"<dc:title>{title}</dc:title>")
    if author:
        metadata.append(f"<dc:creator>{author}</dc:creator>")

    manifest = []
    spine = []
    if with_nav:
        manifest.append(
            '<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>'
        )
    for index, _ in enumerate(chapters, start=1):
        manifest.append(
            f'<item id="ch{index}" href="ch{index}.xhtml" media-type="application/xhtml+xml"/>'
        )
        spine.append(f'<itemref idref="ch{index}"/>')

    opf = f"""<?xml version="1.0" encoding="UTF-8"?>
<package version="3.0" unique-identifier="BookId" xmlns="http://www.idpf.org/2007/opf">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    {chr(10).join(metadata)}
  </metadata>
  <manifest>
    {chr(10).join(manifest)}
  </manifest>
  <spine>
    {chr(10).join(spine)}
  </spine>
</package>
"""

    with zipfile.ZipFile(target, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip")
        zf.writestr("META-INF/container.xml", CONTAINER_XML)
        zf.writestr("OEBPS/content.opf", opf)
        if with_nav:
            items = "\n".join(
                f'        <li><a href="ch{index}.xhtml">{chapter_title}</a></li>'
                for index, (chapter_title, _) in enumerate(chapters, start=1)
            )
            zf.writestr("OEBPS/nav.xhtml", NAV_TEMPLATE.format(items=items))
        for index, (chapter_title, body) in enumerate(chapters, start=1):
            zf.writestr(
                f"OEBPS/ch{index}.xhtml",
                CHAPTER_TEMPLATE.format(title=chapter_title, body=body),
            )
    return target


@pytest.fixture
def make_epub(tmp_path: Path) -> Callable[..., Path]:
    def factory(name: str = "sample.epub", *args, **kwargs) -> Path:
        return write_epub(tmp_path / name, *args, **kwargs)

    return factory


SAMPLE_MARKDOWN = """---
title: Field Notes
author: Ada Writer
language: en
series: Journals
---

# Field Notes

Intro text before the first chapter.

## Morning

The sun rose at 6.30 today. Birds sang loudly!

- pack the bag
- check the map

> Keep walking.

```python
print("not spoken")
```

## Evening

![campfire](fire.png)

We made **camp** near the [river](https://example.com/river).
"""


@pytest.fixture
def sample_markdown(tmp_path: Path) -> Path:
    path = tmp_path / "notes.md"
    path.write_text(SAMPLE_MARKDOWN, encoding="utf-8")
    return path
