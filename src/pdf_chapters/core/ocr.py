"""OCR capability used when a page has no extractable text."""

import logging
import threading
from typing import TYPE_CHECKING, Protocol

import pytesseract

from pdf_chapters.core.errors import OcrError

if TYPE_CHECKING:
    from PIL import Image

log = logging.getLogger(__name__)

DEFAULT_OCR_LANG = "kor+eng"
DEFAULT_OCR_SCALE = 2.0

_runtime_lock = threading.Lock()
_runtime_version: str | None = None
_runtime_error: OcrError | None = None


class TextRecognizer(Protocol):
    """Recognizes text in a rendered page image."""

    def recognize(self, image: "Image.Image", lang: str) -> str: ...

    def close(self) -> None: ...


def ensure_tesseract() -> str:
    """Check once per process that the Tesseract binary is usable.

    Every caller gets the outcome of the first check; a missing binary keeps
    failing with the same OcrError until the process restarts.
    """
    global _runtime_version, _runtime_error

    with _runtime_lock:
        if _runtime_version is None and _runtime_error is None:
            try:
                _runtime_version = str(pytesseract.get_tesseract_version())
                log.info(f"Using Tesseract {_runtime_version}")
            except pytesseract.TesseractNotFoundError as e:
                _runtime_error = OcrError(f"Tesseract is not installed: {e}")
            except OSError as e:
                _runtime_error = OcrError(f"Tesseract could not be started: {e}")

        if _runtime_error is not None:
            raise _runtime_error
        return _runtime_version or ""


class TesseractRecognizer:
    """TextRecognizer backed by pytesseract."""

    def __init__(self, config: str = "--psm 3"):
        ensure_tesseract()
        self.config = config
        self._closed = False

    def recognize(self, image: "Image.Image", lang: str) -> str:
        if self._closed:
            raise OcrError("Recognizer is closed")
        try:
            return pytesseract.image_to_string(image, lang=lang, config=self.config)
        except pytesseract.TesseractError as e:
            raise OcrError(e.message or str(e)) from e

    def close(self) -> None:
        self._closed = True
