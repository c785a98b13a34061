from __future__ import annotations

import os
from pathlib import Path

import pytest

from tts_prep.cache.manager import CacheManager, options_key
from tts_prep.core.markdown_parser import MarkdownParser
from tts_prep.models.document import DocumentStructure, ParseOptions


@pytest.fixture
def parsed(sample_markdown: Path) -> DocumentStructure:
    result = MarkdownParser().parse(sample_markdown)
    assert result.success
    return result.data


def test_options_key_is_stable_and_option_sensitive() -> None:
    assert options_key(ParseOptions()) == options_key(ParseOptions())
    assert options_key(ParseOptions()) != options_key(ParseOptions(mode="full"))
    assert len(options_key(ParseOptions())) == 16


def test_save_then_load_is_a_hit(tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure) -> None:
    manager = CacheManager(tmp_path)
    options = ParseOptions()

    manager.save(sample_markdown, parsed, options)
    loaded = manager.load(sample_markdown, options)

    assert loaded is not None
    assert loaded.metadata.title == parsed.metadata.title
    assert loaded.total_word_count == parsed.total_word_count
    assert loaded.stats.performance.cache_hits == 1
    assert manager.hits == 1
    assert manager.misses == 0


def test_load_without_entry_is_a_miss(tmp_path: Path, sample_markdown: Path) -> None:
    manager = CacheManager(tmp_path)

    assert manager.load(sample_markdown, ParseOptions()) is None
    assert manager.misses == 1


def test_different_options_invalidate(tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure) -> None:
    manager = CacheManager(tmp_path)
    manager.save(sample_markdown, parsed, ParseOptions())

    assert not manager.is_cache_valid(sample_markdown, ParseOptions(extract_media=True))


def test_changed_content_invalidates(tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure) -> None:
    manager = CacheManager(tmp_path)
    options = ParseOptions()
    manager.save(sample_markdown, parsed, options)

    sample_markdown.write_text("# Rewritten\n\nCompletely new text.\n", encoding="utf-8")

    assert not manager.is_cache_valid(sample_markdown, options)


def test_touched_file_with_same_content_stays_valid(
    tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure
) -> None:
    manager = CacheManager(tmp_path)
    options = ParseOptions()
    manager.save(sample_markdown, parsed, options)

    stat = sample_markdown.stat()
    os.utime(sample_markdown, (stat.st_atime + 100, stat.st_mtime + 100))

    assert manager.is_cache_valid(sample_markdown, options)
    # The refreshed mtime takes the fast path next time
    assert CacheManager(tmp_path).is_cache_valid(sample_markdown, options)


def test_custom_cache_directory(tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure) -> None:
    manager = CacheManager(tmp_path, "custom_cache")
    manager.save(sample_markdown, parsed, ParseOptions())

    assert (tmp_path / "custom_cache" / "index.json").exists()


def test_list_and_clear(tmp_path: Path, sample_markdown: Path, parsed: DocumentStructure) -> None:
    manager = CacheManager(tmp_path)
    manager.save(sample_markdown, parsed, ParseOptions())

    entries = manager.list_cached()
    assert [path for path, _ in entries] == [str(sample_markdown.resolve())]
    assert entries[0][1] == manager.get_file_hash(sample_markdown)

    assert manager.clear_cache() == 1
    assert not manager.cache_root.exists()
    assert manager.list_cached() == []
    assert manager.clear_cache() == 0


def test_unreadable_index_starts_fresh(tmp_path: Path, sample_markdown: Path) -> None:
    manager = CacheManager(tmp_path)
    manager.cache_root.mkdir()
    manager.index_path.write_text("{not json", encoding="utf-8")

    assert manager.list_cached() == []
    assert manager.load(sample_markdown, ParseOptions()) is None
