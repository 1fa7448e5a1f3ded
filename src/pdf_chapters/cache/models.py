"""Cache data models."""

from datetime import datetime

from pydantic import BaseModel, Field

from pdf_chapters.models.extraction import DetectionResult


class CacheMetadata(BaseModel):
    """File identity and detection settings a cached result was built with."""

    file_path: str
    file_hash: str
    file_size: int
    file_mtime: float
    cached_at: datetime = Field(default_factory=datetime.now)
    cache_version: str = "1.0"
    max_scan_pages: int


class CachedDetection(BaseModel):
    """Cached chapter detection for one PDF."""

    cache_metadata: CacheMetadata
    detection: DetectionResult


class CacheIndex(BaseModel):
    """Resolved PDF paths mapped to the content hash of their cache entry."""

    entries: dict[str, str] = Field(default_factory=dict)  # path -> hash
