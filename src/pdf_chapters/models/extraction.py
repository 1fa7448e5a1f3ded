"""Data models for chapter detection and text extraction."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pdf_chapters.models.chapter import ChapterRange


class DetectionSource(str, Enum):
    """Where detected chapter boundaries came from."""

    OUTLINE = "outline"
    TOC_PAGES = "toc_pages"


class ExtractionOutcome(str, Enum):
    """Final state of an extraction call."""

    PRIMARY_TEXT = "primary_text"
    OCR_TEXT = "ocr_text"
    EMPTY = "empty"


class DetectionResult(BaseModel):
    """Result of automatic chapter range detection."""

    chapters: list[ChapterRange] = Field(default_factory=list)
    total_pages: int = 0
    source: DetectionSource | None = None
    error: str = ""
    warnings: list[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Text extracted from a page list or a single chapter range."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    pages_used: list[int] = Field(default_factory=list)
    ocr_used: bool = False
    outcome: ExtractionOutcome = ExtractionOutcome.EMPTY


class ChapterExtraction(ChapterRange):
    """A chapter range together with the text extracted for it."""

    text: str = ""
    pages_used: list[int] = Field(default_factory=list)
    ocr_used: bool = False
    outcome: ExtractionOutcome = ExtractionOutcome.EMPTY


class RangeExtractionResult(BaseModel):
    """Per-range extraction output for one document."""

    total_pages: int
    chapters: list[ChapterExtraction] = Field(default_factory=list)
