"""EPUB container backed by ebooklib, exposing the shape the validator reads."""

import logging
import warnings
from pathlib import Path
from typing import Iterator

import ebooklib
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from ebooklib import epub

from tts_prep.errors import DocumentParseError, EPUBStructureError
from tts_prep.models.validation import ManifestItem, MetadataEntry, SpineItem

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

DC_FIELDS = (
    "title",
    "creator",
    "identifier",
    "language",
    "date",
    "publisher",
    "description",
    "subject",
    "rights",
)


class EbooklibContainer:
    """Read-only view over an EPUB file."""

    def __init__(self, epub_path: Path):
        self.path = epub_path
        try:
            self.file_size = epub_path.stat().st_size
            self.book = epub.read_epub(str(epub_path))
        except FileNotFoundError as e:
            raise DocumentParseError(
                f"EPUB file not found: {epub_path}", code="INVALID_INPUT"
            ) from e
        except Exception as e:
            raise EPUBStructureError(
                f"Could not open EPUB {epub_path.name}: {e}",
                details={"path": str(epub_path)},
            ) from e

    def get_metadata(self) -> list[MetadataEntry]:
        """Dublin Core entries plus a synthesized 'format' entry for the version."""
        entries = []
        for name in DC_FIELDS:
            for value, _attrs in self.book.get_metadata("DC", name):
                if value:
                    entries.append(MetadataEntry(type=name, value=str(value).strip()))

        version = getattr(self.book, "version", None)
        if version:
            entries.append(MetadataEntry(type="format", value=f"EPUB {version}"))
        return entries

    def get_spine_items(self) -> list[SpineItem]:
        items = []
        for entry in self.book.spine:
            idref = entry[0] if isinstance(entry, tuple) else entry
            linear = not (isinstance(entry, tuple) and entry[1] == "no")
            manifest_item = self.book.get_item_with_id(idref)
            items.append(
                SpineItem(
                    id=idref or "",
                    href=manifest_item.get_name() if manifest_item else "",
                    media_type=manifest_item.media_type if manifest_item else None,
                    linear=linear,
                )
            )
        return items

    def get_manifest(self) -> dict[str, ManifestItem]:
        manifest = {}
        for item in self.book.get_items():
            properties = list(getattr(item, "properties", None) or [])
            if isinstance(item, epub.EpubNav) and "nav" not in properties:
                properties.append("nav")
            manifest[item.get_id()] = ManifestItem(
                id=item.get_id() or "",
                href=item.get_name() or "",
                media_type=item.media_type or "",
                properties=properties,
            )
        return manifest

    def read_xhtml_item_contents(self, item_id: str, mode: str = "text") -> str:
        """Return an item's contents as plain text or as raw markup.

        Raises:
            DocumentParseError: If the item does not exist
        """
        item = self.book.get_item_with_id(item_id)
        if item is None:
            raise DocumentParseError(f"Manifest has no item with id '{item_id}'")

        content = item.get_content()
        if mode == "text":
            soup = BeautifulSoup(content, "lxml")
            return soup.get_text(separator=" ", strip=True)
        return content.decode("utf-8", errors="replace")

    def iter_documents(self) -> Iterator[tuple[str, str, bytes]]:
        """Yield (id, file name, content) for content documents in reading order."""
        seen = set()
        for spine_item in self.get_spine_items():
            item = self.book.get_item_with_id(spine_item.id)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            if isinstance(item, epub.EpubNav):
                continue
            seen.add(item.get_id())
            yield item.get_id(), item.get_name(), item.get_content()

        # Books without a usable spine still get their documents read
        if not seen:
            for item in self.book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
                if isinstance(item, epub.EpubNav):
                    continue
                yield item.get_id(), item.get_name(), item.get_content()

    def toc_titles(self) -> dict[str, str]:
        """Map file names to TOC titles."""
        title_map: dict[str, str] = {}
        self._collect_toc_titles(self.book.toc, title_map)
        return title_map

    def _collect_toc_titles(self, toc_items: list, title_map: dict[str, str]) -> None:
        for item in toc_items:
            if isinstance(item, tuple):
                section, children = item
                self._add_toc_title(section, title_map)
                self._collect_toc_titles(children, title_map)
            else:
                self._add_toc_title(item, title_map)

    @staticmethod
    def _add_toc_title(entry, title_map: dict[str, str]) -> None:
        href = getattr(entry, "href", None)
        title = getattr(entry, "title", None)
        if href and title:
            file_ref = href.split("#")[0]
            title_map.setdefault(file_ref, title)

    def close(self) -> None:
        log.debug(f"Closed EPUB container for {self.path.name}")
