"""
Error types for the reflow pipeline.

Page-level errors degrade a single page; document-level errors fail the job.
"""

from typing import Optional


class ReflowError(Exception):
    """Base class for all pipeline errors."""


class DocumentOpenError(ReflowError):
    """The byte stream could not be opened as a document."""


class PageExtractionError(ReflowError):
    """Positioned text for a single page could not be extracted."""

    def __init__(self, page_number: int, message: str):
        super().__init__(f"Page {page_number}: {message}")
        self.page_number = page_number


class RecognitionError(ReflowError):
    """Rasterization or OCR failed for a single page."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


class PersistenceError(ReflowError):
    """The block sequence could not be written."""


class JobAlreadyRunningError(ReflowError):
    """An extraction job is already active for the document."""

    def __init__(self, document_id: str):
        super().__init__(f"Extraction already running for document {document_id}")
        self.document_id = document_id
