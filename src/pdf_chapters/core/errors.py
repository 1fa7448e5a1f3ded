"""Exceptions raised by PDF chapter analysis."""


class PdfChaptersError(Exception):
    """Base error for this package."""


class DocumentLoadError(PdfChaptersError, ValueError):
    """The PDF could not be opened or read."""


class OcrError(PdfChaptersError):
    """Error from the OCR engine."""

    def __init__(self, message: str, page: int | None = None):
        self.message = message
        self.page = page
        if page is not None:
            super().__init__(f"OCR failed on page {page}: {message}")
        else:
            super().__init__(message)
