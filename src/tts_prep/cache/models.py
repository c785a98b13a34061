"""Cache data models."""

from datetime import datetime

from pydantic import BaseModel, Field

from tts_prep.models.document import DocumentStructure


class CacheMetadata(BaseModel):
    """Metadata for cache invalidation."""

    file_path: str  # Path to source file (EPUB, PDF, Markdown)
    file_hash: str
    file_size: int
    file_mtime: float
    options_key: str  # Parse options the document was produced with
    cached_at: datetime = Field(default_factory=datetime.now)
    cache_version: str = "2.0"


class CachedDocument(BaseModel):
    """A parsed document together with what it was parsed from."""

    cache_metadata: CacheMetadata
    document: DocumentStructure


class CacheIndex(BaseModel):
    """Index mapping file paths to cache entries."""

    entries: dict[str, str] = Field(default_factory=dict)  # path -> hash
