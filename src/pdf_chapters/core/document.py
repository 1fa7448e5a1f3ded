"""PDF document and page handles backed by pypdf and pdfplumber.

pypdf supplies the outline, destination resolution and content-stream text;
pdfplumber supplies positioned words and page rasterising. Both libraries
read from the same in-memory bytes.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

# Suppress warnings about malformed PDF object references from PDF libraries
logging.getLogger("pdfminer").setLevel(logging.ERROR)
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pdfplumber
import pypdf
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from pdf_chapters.core.errors import DocumentLoadError

if TYPE_CHECKING:
    from PIL import Image

log = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72


@dataclass(frozen=True)
class TextFragment:
    """One inline text item on a page."""

    text: str
    has_line_break_after: bool = False
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ReadAttempt:
    """One content-reading configuration for page text extraction."""

    name: str
    engine: Literal["pdfplumber", "pypdf"] = "pdfplumber"
    x_tolerance: float = 3
    y_tolerance: float = 3
    keep_blank_chars: bool = False
    use_text_flow: bool = False
    layout: bool = False


class PdfPage:
    """A single page of an open document (1-indexed)."""

    def __init__(self, document: "PdfDocument", number: int):
        self.document = document
        self.number = number
        self._plumber_page: Any = None

    def _get_plumber_page(self) -> Any:
        if self._plumber_page is None:
            self._plumber_page = self.document._plumber_pdf().pages[self.number - 1]
        return self._plumber_page

    def get_text_fragments(self, attempt: ReadAttempt) -> list[TextFragment]:
        """Return text fragments in reading order for the given attempt."""
        if attempt.engine == "pypdf":
            return self._pypdf_fragments(attempt)
        return self._plumber_fragments(attempt)

    def _plumber_fragments(self, attempt: ReadAttempt) -> list[TextFragment]:
        words = self._get_plumber_page().extract_words(
            x_tolerance=attempt.x_tolerance,
            y_tolerance=attempt.y_tolerance,
            keep_blank_chars=attempt.keep_blank_chars,
            use_text_flow=attempt.use_text_flow,
        )

        fragments = []
        for i, word in enumerate(words):
            # New line when the next word sits on a different baseline
            if i + 1 < len(words):
                line_break = abs(words[i + 1]["top"] - word["top"]) > attempt.y_tolerance
            else:
                line_break = True
            fragments.append(
                TextFragment(
                    text=word.get("text", ""),
                    has_line_break_after=line_break,
                    x=float(word.get("x0", 0.0)),
                    y=float(word.get("top", 0.0)),
                )
            )
        return fragments

    def _pypdf_fragments(self, attempt: ReadAttempt) -> list[TextFragment]:
        page = self.document._reader.pages[self.number - 1]
        mode = "layout" if attempt.layout else "plain"
        text = page.extract_text(extraction_mode=mode) or ""
        return [
            TextFragment(text=line, has_line_break_after=True)
            for line in text.splitlines()
        ]

    def render_to_raster(self, scale: float) -> "Image.Image":
        """Render the page to a PIL image at `scale` times 72 DPI."""
        page_image = self._get_plumber_page().to_image(
            resolution=int(PDF_POINTS_PER_INCH * scale)
        )
        return page_image.original

    def close(self) -> None:
        """Release cached page objects."""
        if self._plumber_page is not None:
            self._plumber_page.close()
            self._plumber_page = None


class PdfDocument:
    """An open PDF. Close it (or use it as a context manager) when done."""

    def __init__(self, data: bytes):
        self._data = data
        self._plumber: Any = None

        try:
            self._reader = pypdf.PdfReader(io.BytesIO(data))
            self._total_pages = len(self._reader.pages)
        except FileNotDecryptedError:
            raise DocumentLoadError("PDF is encrypted. Please decrypt first.")
        except EmptyFileError:
            raise DocumentLoadError("PDF file is empty.")
        except PdfReadError as e:
            raise DocumentLoadError(f"PDF appears corrupted: {e}")

    @property
    def total_pages(self) -> int:
        return self._total_pages

    def _plumber_pdf(self) -> Any:
        if self._plumber is None:
            self._plumber = pdfplumber.open(io.BytesIO(self._data))
        return self._plumber

    def get_page(self, number: int) -> PdfPage:
        """Get a page handle by 1-based page number."""
        if not 1 <= number <= self._total_pages:
            raise IndexError(f"Page {number} out of range 1-{self._total_pages}")
        return PdfPage(self, number)

    def get_outline(self) -> list:
        """Return the nested outline (bookmarks), or an empty list."""
        try:
            return list(self._reader.outline or [])
        except PdfReadError as e:
            log.debug(f"Unreadable outline: {e}")
            return []

    def resolve_destination(self, destination: Any) -> int | None:
        """Resolve an outline destination to a 1-based page number."""
        if destination is None:
            return None

        if isinstance(destination, str):
            destination = self._reader.named_destinations.get(destination)
            if destination is None:
                return None

        try:
            page_index = self._reader.get_destination_page_number(destination)
        except Exception as e:
            # Skip malformed destinations
            log.debug(f"Could not resolve destination {destination!r}: {e}")
            return None

        if page_index is None or page_index < 0:
            return None
        return page_index + 1

    def close(self) -> None:
        if self._plumber is not None:
            self._plumber.close()
            self._plumber = None

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_document(source: bytes | bytearray | str | Path) -> PdfDocument:
    """Open a PDF from raw bytes or a file path."""
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        data = path.read_bytes()

    return PdfDocument(data)
