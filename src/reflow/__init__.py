"""
Document reconstruction engine: positioned text runs -> reflowable blocks.
"""

from .tokens import TextRun, PositionedToken, ingest_runs, mean_font_size
from .layout import ExtractionMode, ModeProfile, Line, cluster_lines, join_tokens, needs_space
from .paragraphs import ParagraphAssembler, ParagraphDraft, AssemblerState, assemble_page
from .blocks import Block, BlockKind, BlockEmitter, UNEXTRACTED_PAGE_MARKER, escape_html
from .ocr_text import TextRecognizer, TesseractRecognizer, OCRResult, create_recognizer
from .io import PageSource, PdfPageSource, open_pdf, save_json, load_json
from .assembler import DocumentAssembler, ExtractionResult, PageReport
from .store import DocumentStore, StoredDoc
from .jobs import (
    ExtractionScheduler, ExtractionJob, ExtractionEvent, NotificationHub,
    Completed, Failed, JobOutcome,
)
from .export import DocumentExporter, to_markdown, to_plain_text, table_of_contents
from .errors import (
    ReflowError, DocumentOpenError, PageExtractionError, RecognitionError,
    PersistenceError, JobAlreadyRunningError,
)

__all__ = [
    # Tokens and lines
    "TextRun", "PositionedToken", "ingest_runs", "mean_font_size",
    "ExtractionMode", "ModeProfile", "Line", "cluster_lines", "join_tokens", "needs_space",
    # Paragraphs and blocks
    "ParagraphAssembler", "ParagraphDraft", "AssemblerState", "assemble_page",
    "Block", "BlockKind", "BlockEmitter", "UNEXTRACTED_PAGE_MARKER", "escape_html",
    # OCR and I/O
    "TextRecognizer", "TesseractRecognizer", "OCRResult", "create_recognizer",
    "PageSource", "PdfPageSource", "open_pdf", "save_json", "load_json",
    # Documents and jobs
    "DocumentAssembler", "ExtractionResult", "PageReport",
    "DocumentStore", "StoredDoc",
    "ExtractionScheduler", "ExtractionJob", "ExtractionEvent", "NotificationHub",
    "Completed", "Failed", "JobOutcome",
    # Export
    "DocumentExporter", "to_markdown", "to_plain_text", "table_of_contents",
    # Errors
    "ReflowError", "DocumentOpenError", "PageExtractionError", "RecognitionError",
    "PersistenceError", "JobAlreadyRunningError",
]
