"""Chapter range detection with an outline-first cascade."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from pdf_chapters.core.classifier import (
    DEFAULT_PATTERNS,
    TitlePatterns,
    infer_chapter_number,
)
from pdf_chapters.core.document import PdfDocument, open_document
from pdf_chapters.core.errors import DocumentLoadError
from pdf_chapters.core.outline import detect_by_outline
from pdf_chapters.core.toc_scanner import DEFAULT_MAX_SCAN_PAGES, detect_by_toc_pages
from pdf_chapters.models.chapter import ChapterRange
from pdf_chapters.models.extraction import DetectionResult, DetectionSource

log = logging.getLogger(__name__)

NO_CHAPTERS_MESSAGE = (
    "Could not detect chapter ranges from the PDF outline or its table of "
    "contents pages. Enter ranges manually (example: 1:1-12, 2:13-24)."
)


# =============================================================================
# Cascade Layer Configuration
# =============================================================================


@dataclass
class DetectionLayer:
    """Configuration for a detection layer."""

    name: str
    source: DetectionSource
    fn: Callable[[PdfDocument, int, TitlePatterns], list[ChapterRange]]
    description: str


def _outline_layer(
    document: PdfDocument, max_scan_pages: int, patterns: TitlePatterns
) -> list[ChapterRange]:
    return detect_by_outline(document, patterns)


# Detection layers in priority order
DETECTION_LAYERS: list[DetectionLayer] = [
    DetectionLayer(
        name="outline",
        source=DetectionSource.OUTLINE,
        fn=_outline_layer,
        description="PDF bookmarks/outline",
    ),
    DetectionLayer(
        name="toc_pages",
        source=DetectionSource.TOC_PAGES,
        fn=detect_by_toc_pages,
        description="Table of contents pages",
    ),
]


def _numbering_warnings(
    chapters: list[ChapterRange], patterns: TitlePatterns
) -> list[str]:
    """Warn when titles carry chapter numbers that differ from page order."""
    for chapter in chapters:
        inferred = infer_chapter_number(chapter.chapter_title, chapter.chapter_number, patterns)
        if inferred != chapter.chapter_number:
            return [
                "Chapters are numbered by page order; titles suggest different "
                f'numbering (e.g. "{chapter.chapter_title}" is chapter '
                f"{chapter.chapter_number})."
            ]
    return []


def detect_chapter_ranges_in_document(
    document: PdfDocument,
    max_scan_pages: int = DEFAULT_MAX_SCAN_PAGES,
    patterns: TitlePatterns = DEFAULT_PATTERNS,
) -> DetectionResult:
    """
    Run the detection cascade on an open document.

    Returns the first layer result with at least two chapters. Structural
    absence is reported through `error`, never raised.
    """
    total_pages = document.total_pages
    if total_pages <= 0:
        return DetectionResult(total_pages=0, error="PDF has no pages.")

    warnings: list[str] = []
    for layer in DETECTION_LAYERS:
        log.info(f"Trying detection layer: {layer.name} ({layer.description})")

        try:
            chapters = layer.fn(document, max_scan_pages, patterns)
        except Exception as e:
            log.warning(f"Layer {layer.name} failed with error: {e}")
            warnings.append(f"{layer.description} could not be read: {e}")
            continue

        if len(chapters) < 2:
            log.info(f"  Layer {layer.name}: No results")
            continue

        log.info(f"  Layer {layer.name}: SUCCESS - {len(chapters)} chapters")
        return DetectionResult(
            chapters=chapters,
            total_pages=total_pages,
            source=layer.source,
            warnings=warnings + _numbering_warnings(chapters, patterns),
        )

    log.warning("All detection layers failed.")
    return DetectionResult(
        total_pages=total_pages, error=NO_CHAPTERS_MESSAGE, warnings=warnings
    )


def detect_chapter_ranges(
    source: bytes | str | Path,
    max_scan_pages: int = DEFAULT_MAX_SCAN_PAGES,
    patterns: TitlePatterns = DEFAULT_PATTERNS,
) -> DetectionResult:
    """Open a PDF and detect its chapter ranges.

    Unreadable files are reported through `error` as well, so callers can
    always fall back to manual range entry.
    """
    try:
        document = open_document(source)
    except DocumentLoadError as e:
        log.warning(f"Could not open PDF for chapter detection: {e}")
        return DetectionResult(error=str(e))

    with document:
        return detect_chapter_ranges_in_document(document, max_scan_pages, patterns)
