"""Data models."""

from pdf_chapters.models.chapter import (
    ChapterRange,
    ChapterRangeSelection,
    PageSelectionResult,
    RangeSelectionResult,
    TocEntry,
)
from pdf_chapters.models.extraction import (
    ChapterExtraction,
    DetectionResult,
    DetectionSource,
    ExtractionOutcome,
    ExtractionResult,
    RangeExtractionResult,
)
from pdf_chapters.models.output import (
    ChapterMetadata,
    ChapterOutput,
    ExtractionManifest,
)

__all__ = [
    # Chapter models
    "TocEntry",
    "ChapterRange",
    "ChapterRangeSelection",
    "RangeSelectionResult",
    "PageSelectionResult",
    # Extraction models
    "DetectionSource",
    "ExtractionOutcome",
    "DetectionResult",
    "ExtractionResult",
    "ChapterExtraction",
    "RangeExtractionResult",
    # Output models
    "ChapterMetadata",
    "ChapterOutput",
    "ExtractionManifest",
]
