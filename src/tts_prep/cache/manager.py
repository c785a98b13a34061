"""Cache management with hash/mtime invalidation."""

import hashlib
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

from tts_prep.cache.models import CachedDocument, CacheIndex, CacheMetadata
from tts_prep.models.document import DocumentStructure, ParseOptions

log = logging.getLogger(__name__)


def options_key(options: ParseOptions) -> str:
    """Short stable digest of the options that shape parser output."""
    payload = options.model_dump_json()
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


class CacheManager:
    """Manages caching of parsed documents (EPUB, PDF, Markdown)."""

    CACHE_DIR = ".tts_prep_cache"
    INDEX_FILE = "index.json"
    CACHE_VERSION = "2.0"

    def __init__(self, project_dir: Path, cache_dir: str | None = None):
        self.cache_root = project_dir / (cache_dir or self.CACHE_DIR)
        self.index_path = self.cache_root / self.INDEX_FILE
        self._index: CacheIndex | None = None
        self.hits = 0
        self.misses = 0

    def _ensure_cache_dir(self) -> None:
        self.cache_root.mkdir(parents=True, exist_ok=True)

    def _load_index(self) -> CacheIndex:
        """Load or create cache index."""
        if self._index is not None:
            return self._index

        if self.index_path.exists():
            try:
                data = json.loads(self.index_path.read_text())
                self._index = CacheIndex.model_validate(data)
            except (OSError, ValueError) as e:
                log.warning(f"Cache index unreadable, starting fresh: {e}")
                self._index = CacheIndex()
        else:
            self._index = CacheIndex()

        return self._index

    def _save_index(self) -> None:
        self._ensure_cache_dir()
        index = self._load_index()
        self.index_path.write_text(index.model_dump_json(indent=2))

    def _cache_file(self, file_hash: str) -> Path:
        return self.cache_root / "documents" / file_hash / "structure.json"

    def get_file_hash(self, file_path: Path) -> str:
        """Compute SHA-256 hash of a file."""
        sha256 = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    def _read_entry(self, file_path: Path) -> tuple[CachedDocument, Path] | None:
        if not self.cache_root.exists():
            return None

        index = self._load_index()
        file_hash = index.entries.get(str(file_path.resolve()))
        if file_hash is None:
            return None

        cache_file = self._cache_file(file_hash)
        if not cache_file.exists():
            return None

        try:
            return CachedDocument.model_validate_json(cache_file.read_text()), cache_file
        except (OSError, ValueError) as e:
            log.warning(f"Discarding unreadable cache entry {cache_file}: {e}")
            return None

    def is_cache_valid(self, file_path: Path, options: ParseOptions) -> bool:
        """Check if cached data exists and is still valid for these options."""
        entry = self._read_entry(file_path)
        if entry is None:
            return False
        cached, cache_file = entry

        meta = cached.cache_metadata
        if meta.cache_version != self.CACHE_VERSION or meta.options_key != options_key(options):
            return False

        stat = file_path.stat()

        # Fast path: check mtime and size first
        if meta.file_mtime == stat.st_mtime and meta.file_size == stat.st_size:
            return True

        # Slow path: mtime changed, verify with hash
        if meta.file_hash == self.get_file_hash(file_path):
            meta.file_mtime = stat.st_mtime
            cache_file.write_text(cached.model_dump_json(indent=2))
            return True

        return False

    def load(self, file_path: Path, options: ParseOptions) -> DocumentStructure | None:
        """Return the cached document if valid, counting the hit or miss."""
        if self.is_cache_valid(file_path, options):
            entry = self._read_entry(file_path)
            if entry is not None:
                self.hits += 1
                log.info(f"Cache hit for {file_path.name}")
                return self.with_cache_stats(entry[0].document)

        self.misses += 1
        log.debug(f"Cache miss for {file_path.name}")
        return None

    def save(self, file_path: Path, document: DocumentStructure, options: ParseOptions) -> None:
        """Save a parsed document to cache."""
        stat = file_path.stat()
        file_hash = self.get_file_hash(file_path)

        cached = CachedDocument(
            cache_metadata=CacheMetadata(
                file_path=str(file_path.resolve()),
                file_hash=file_hash,
                file_size=stat.st_size,
                file_mtime=stat.st_mtime,
                options_key=options_key(options),
                cached_at=datetime.now(),
                cache_version=self.CACHE_VERSION,
            ),
            document=document,
        )

        cache_file = self._cache_file(file_hash)
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        cache_file.write_text(cached.model_dump_json(indent=2))

        index = self._load_index()
        index.entries[str(file_path.resolve())] = file_hash
        self._save_index()
        log.debug(f"Cached {file_path.name} as {file_hash[:12]}")

    def with_cache_stats(self, document: DocumentStructure) -> DocumentStructure:
        """Copy of the document with this manager's hit/miss counters."""
        performance = document.stats.performance.model_copy(
            update={"cache_hits": self.hits, "cache_misses": self.misses}
        )
        stats = document.stats.model_copy(update={"performance": performance})
        return document.model_copy(update={"stats": stats})

    def clear_cache(self) -> int:
        """Clear all cached data. Returns number of entries cleared."""
        if not self.cache_root.exists():
            return 0

        documents_dir = self.cache_root / "documents"
        count = len(list(documents_dir.iterdir())) if documents_dir.exists() else 0

        shutil.rmtree(self.cache_root)
        self._index = None
        return count

    def list_cached(self) -> list[tuple[str, str]]:
        """List all cached documents. Returns list of (path, hash)."""
        index = self._load_index()
        return list(index.entries.items())
