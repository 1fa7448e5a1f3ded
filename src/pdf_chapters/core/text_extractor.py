"""Text extraction scoped to page lists or chapter ranges, with OCR fallback."""

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from pdf_chapters.core.document import ReadAttempt, TextFragment, open_document
from pdf_chapters.core.errors import OcrError
from pdf_chapters.core.ocr import (
    DEFAULT_OCR_LANG,
    DEFAULT_OCR_SCALE,
    TesseractRecognizer,
    TextRecognizer,
)
from pdf_chapters.core.text import collapse_whitespace
from pdf_chapters.models.chapter import ChapterRange
from pdf_chapters.models.extraction import (
    ChapterExtraction,
    ExtractionOutcome,
    ExtractionResult,
    RangeExtractionResult,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 12000
DEFAULT_MAX_LENGTH_PER_RANGE = 14000
DEFAULT_PAGE_LIMIT = 30

ProgressCallback = Callable[[str], None]
RecognizerFactory = Callable[[], TextRecognizer]

# Tried in order until one yields text. Later attempts loosen word grouping,
# follow content-stream order, then fall back to pypdf's own text readers.
READ_ATTEMPTS: tuple[ReadAttempt, ...] = (
    ReadAttempt(name="words"),
    ReadAttempt(name="words_loose", x_tolerance=1.5, y_tolerance=5, keep_blank_chars=True),
    ReadAttempt(name="text_flow", use_text_flow=True, keep_blank_chars=True),
    ReadAttempt(name="content_stream", engine="pypdf"),
    ReadAttempt(name="content_stream_layout", engine="pypdf", layout=True),
)


class ExtractablePage(Protocol):
    def get_text_fragments(self, attempt: ReadAttempt) -> list[TextFragment]: ...

    def render_to_raster(self, scale: float): ...

    def close(self) -> None: ...


class ExtractableDocument(Protocol):
    total_pages: int

    def get_page(self, number: int) -> ExtractablePage: ...


def read_page_text(
    page: ExtractablePage, attempts: Iterable[ReadAttempt] = READ_ATTEMPTS
) -> str:
    """Return the first non-empty text produced by the read attempts, or ""."""
    for attempt in attempts:
        try:
            fragments = page.get_text_fragments(attempt)
        except Exception as e:
            log.debug(f"Read attempt {attempt.name} failed: {e}")
            continue

        text = collapse_whitespace(" ".join(fragment.text for fragment in fragments))
        if text:
            return text

    return ""


def normalize_page_numbers(page_numbers: Iterable[int], total_pages: int) -> list[int]:
    """Deduplicate, drop pages outside [1, total_pages], and sort."""
    pages: set[int] = set()
    for value in page_numbers:
        try:
            page = int(value)
        except (TypeError, ValueError):
            continue
        if 1 <= page <= total_pages:
            pages.add(page)
    return sorted(pages)


def _accumulate(
    pages: Iterable[int], max_length: int, read: Callable[[int], str]
) -> tuple[str, list[int]]:
    """Collect page texts in order until `max_length` characters are reached."""
    if max_length <= 0:
        return "", []

    parts: list[str] = []
    pages_used: list[int] = []
    length = 0

    for page in pages:
        text = read(page)
        if not text:
            continue
        length += len(text) + (1 if parts else 0)
        parts.append(text)
        pages_used.append(page)
        if length >= max_length:
            break

    joined = collapse_whitespace("\n".join(parts))
    return joined[:max_length].rstrip(), pages_used


def _outcome(text: str, ocr: bool) -> ExtractionOutcome:
    if not text:
        return ExtractionOutcome.EMPTY
    return ExtractionOutcome.OCR_TEXT if ocr else ExtractionOutcome.PRIMARY_TEXT


class _OcrRun:
    """One OCR fallback pass: shared recognizer, page cache and progress."""

    def __init__(
        self,
        extractor: "ScopedTextExtractor",
        recognizer: TextRecognizer,
        lang: str,
        scale: float,
        total: int,
        on_progress: ProgressCallback | None,
    ):
        self.extractor = extractor
        self.recognizer = recognizer
        self.lang = lang
        self.scale = scale
        self.total = total
        self.on_progress = on_progress
        self.cache: dict[int, str] = {}
        self.done = 0

    def page_text(self, number: int) -> str:
        if number in self.cache:
            return self.cache[number]

        self.done += 1
        if self.on_progress:
            self.on_progress(f"Running OCR on page {number} ({self.done}/{self.total})...")

        page = self.extractor.document.get_page(number)
        image = None
        try:
            image = page.render_to_raster(self.scale)
            raw = self.recognizer.recognize(image, self.lang)
        except OcrError as e:
            if e.page is None:
                raise OcrError(e.message, page=number) from e
            raise
        finally:
            if image is not None:
                image.close()
            page.close()

        text = collapse_whitespace(raw)
        self.cache[number] = text
        return text


class ScopedTextExtractor:
    """Extract text from selected pages or chapter ranges of one open document.

    The document stays owned by the caller. OCR runs only as a fallback, with
    a recognizer created for the fallback pass and closed afterwards.
    """

    def __init__(
        self,
        document: ExtractableDocument,
        recognizer_factory: RecognizerFactory = TesseractRecognizer,
        attempts: tuple[ReadAttempt, ...] = READ_ATTEMPTS,
    ):
        self.document = document
        self.recognizer_factory = recognizer_factory
        self.attempts = attempts

    @property
    def total_pages(self) -> int:
        return self.document.total_pages

    def _primary_text(self, number: int, cache: dict[int, str]) -> str:
        if number not in cache:
            page = self.document.get_page(number)
            try:
                cache[number] = read_page_text(page, self.attempts)
            finally:
                page.close()
            if not cache[number]:
                log.debug(f"No extractable text on page {number}")
        return cache[number]

    @contextmanager
    def _ocr_run(
        self,
        lang: str,
        scale: float,
        total: int,
        on_progress: ProgressCallback | None,
    ) -> Iterator[_OcrRun]:
        recognizer = self.recognizer_factory()
        try:
            yield _OcrRun(self, recognizer, lang, scale, total, on_progress)
        finally:
            recognizer.close()

    def extract_pages(
        self,
        page_numbers: Iterable[int],
        max_length: int = DEFAULT_MAX_LENGTH,
        use_ocr: bool = False,
        ocr_lang: str = DEFAULT_OCR_LANG,
        ocr_scale: float = DEFAULT_OCR_SCALE,
        on_ocr_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Extract text from an explicit page list under one character budget."""
        pages = normalize_page_numbers(page_numbers, self.total_pages)
        if not pages or max_length <= 0:
            return ExtractionResult()

        cache: dict[int, str] = {}
        text, pages_used = _accumulate(
            pages, max_length, lambda n: self._primary_text(n, cache)
        )
        if text or not use_ocr:
            return ExtractionResult(
                text=text, pages_used=pages_used, outcome=_outcome(text, ocr=False)
            )

        log.info(f"No text in {len(pages)} page(s), falling back to OCR")
        with self._ocr_run(ocr_lang, ocr_scale, len(pages), on_ocr_progress) as run:
            text, pages_used = _accumulate(pages, max_length, run.page_text)

        return ExtractionResult(
            text=text,
            pages_used=pages_used,
            ocr_used=True,
            outcome=_outcome(text, ocr=True),
        )

    def extract_leading_pages(
        self,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        max_length: int = DEFAULT_MAX_LENGTH,
        use_ocr: bool = False,
        ocr_lang: str = DEFAULT_OCR_LANG,
        ocr_scale: float = DEFAULT_OCR_SCALE,
        on_ocr_progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Extract text from the first `page_limit` pages."""
        return self.extract_pages(
            range(1, min(page_limit, self.total_pages) + 1),
            max_length=max_length,
            use_ocr=use_ocr,
            ocr_lang=ocr_lang,
            ocr_scale=ocr_scale,
            on_ocr_progress=on_ocr_progress,
        )

    def extract_ranges(
        self,
        ranges: Iterable[ChapterRange],
        max_length_per_range: int = DEFAULT_MAX_LENGTH_PER_RANGE,
        use_ocr: bool = False,
        ocr_lang: str = DEFAULT_OCR_LANG,
        ocr_scale: float = DEFAULT_OCR_SCALE,
        on_ocr_progress: ProgressCallback | None = None,
    ) -> RangeExtractionResult:
        """
        Extract text for each chapter range with its own character budget.

        Ranges left without text are retried with OCR when enabled; ranges
        that already have text are not touched.
        """
        total_pages = self.total_pages
        cache: dict[int, str] = {}
        chapters: list[ChapterExtraction] = []
        range_pages: list[list[int]] = []

        for chapter in ranges:
            pages = normalize_page_numbers(chapter.pages(), total_pages)
            text, pages_used = _accumulate(
                pages, max_length_per_range, lambda n: self._primary_text(n, cache)
            )
            range_pages.append(pages)
            chapters.append(
                ChapterExtraction(
                    **chapter.model_dump(include=set(ChapterRange.model_fields)),
                    text=text,
                    pages_used=pages_used,
                    outcome=_outcome(text, ocr=False),
                )
            )

        pending = [i for i, c in enumerate(chapters) if not c.text and range_pages[i]]
        if not use_ocr or not pending or max_length_per_range <= 0:
            return RangeExtractionResult(total_pages=total_pages, chapters=chapters)

        ocr_total = len({page for i in pending for page in range_pages[i]})
        log.info(f"{len(pending)} range(s) without text, falling back to OCR")
        with self._ocr_run(ocr_lang, ocr_scale, ocr_total, on_ocr_progress) as run:
            for i in pending:
                text, pages_used = _accumulate(
                    range_pages[i], max_length_per_range, run.page_text
                )
                chapters[i] = chapters[i].model_copy(
                    update={
                        "text": text,
                        "pages_used": pages_used,
                        "ocr_used": True,
                        "outcome": _outcome(text, ocr=True),
                    }
                )

        return RangeExtractionResult(total_pages=total_pages, chapters=chapters)


# =============================================================================
# Entry Points
# =============================================================================


def extract_text_for_pages(
    source: bytes | str | Path,
    page_numbers: Iterable[int],
    max_length: int = DEFAULT_MAX_LENGTH,
    use_ocr: bool = False,
    ocr_lang: str = DEFAULT_OCR_LANG,
    ocr_scale: float = DEFAULT_OCR_SCALE,
    on_ocr_progress: ProgressCallback | None = None,
    recognizer_factory: RecognizerFactory = TesseractRecognizer,
) -> ExtractionResult:
    """Open a PDF and extract text from the given pages."""
    with open_document(source) as document:
        return ScopedTextExtractor(document, recognizer_factory).extract_pages(
            page_numbers,
            max_length=max_length,
            use_ocr=use_ocr,
            ocr_lang=ocr_lang,
            ocr_scale=ocr_scale,
            on_ocr_progress=on_ocr_progress,
        )


def extract_text_for_ranges(
    source: bytes | str | Path,
    ranges: Iterable[ChapterRange],
    max_length_per_range: int = DEFAULT_MAX_LENGTH_PER_RANGE,
    use_ocr: bool = False,
    ocr_lang: str = DEFAULT_OCR_LANG,
    ocr_scale: float = DEFAULT_OCR_SCALE,
    on_ocr_progress: ProgressCallback | None = None,
    recognizer_factory: RecognizerFactory = TesseractRecognizer,
) -> RangeExtractionResult:
    """Open a PDF and extract text for each chapter range."""
    with open_document(source) as document:
        return ScopedTextExtractor(document, recognizer_factory).extract_ranges(
            ranges,
            max_length_per_range=max_length_per_range,
            use_ocr=use_ocr,
            ocr_lang=ocr_lang,
            ocr_scale=ocr_scale,
            on_ocr_progress=on_ocr_progress,
        )


def extract_document_text(
    source: bytes | str | Path,
    page_limit: int = DEFAULT_PAGE_LIMIT,
    max_length: int = DEFAULT_MAX_LENGTH,
    use_ocr: bool = False,
    ocr_lang: str = DEFAULT_OCR_LANG,
    ocr_scale: float = DEFAULT_OCR_SCALE,
    on_ocr_progress: ProgressCallback | None = None,
    recognizer_factory: RecognizerFactory = TesseractRecognizer,
) -> ExtractionResult:
    """Open a PDF and extract text from its leading pages."""
    with open_document(source) as document:
        return ScopedTextExtractor(document, recognizer_factory).extract_leading_pages(
            page_limit=page_limit,
            max_length=max_length,
            use_ocr=use_ocr,
            ocr_lang=ocr_lang,
            ocr_scale=ocr_scale,
            on_ocr_progress=on_ocr_progress,
        )
