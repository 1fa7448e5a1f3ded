"""Data models for output format."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChapterMetadata(BaseModel):
    """Metadata accompanying extracted chapter text."""

    chapter_id: str
    chapter_number: int
    title: str
    source_path: str
    extracted_at: datetime = Field(default_factory=datetime.now)
    page_start: int
    page_end: int
    pages_used: list[int] = Field(default_factory=list)
    word_count: int
    character_count: int
    ocr_used: bool = False
    outcome: str = "empty"


class ChapterOutput(BaseModel):
    """Extracted chapter text with its metadata, one JSON file per range."""

    metadata: ChapterMetadata
    content: str


class ExtractionManifest(BaseModel):
    """Manifest describing one extraction run."""

    source_path: str
    total_pages: int
    output_directory: str
    created_at: datetime = Field(default_factory=datetime.now)
    detection_source: str | None = None
    chapters: list[ChapterMetadata]
    warnings: list[str] = Field(default_factory=list)
