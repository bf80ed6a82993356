"""
Document assembler module for the reflow pipeline.

Provides:
- Per-page extraction (runs -> tokens -> lines -> paragraphs)
- OCR / sentinel fallback for pages that cannot be extracted
- Document-level block sequence in page order
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .blocks import Block, BlockEmitter
from .errors import RecognitionError
from .io import PageSource, open_pdf
from .layout import ExtractionMode
from .ocr_text import TextRecognizer
from .paragraphs import assemble_page
from .tokens import ingest_runs

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class PageReport:
    """How one page was turned into blocks."""
    page_number: int
    method: str  # "text", "ocr" or "sentinel"
    block_count: int
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.method != "text"


@dataclass
class ExtractionResult:
    """Complete block sequence of one document."""
    blocks: List[Block]
    page_count: int
    pages: List[PageReport] = field(default_factory=list)

    @property
    def degraded_pages(self) -> List[int]:
        return [p.page_number for p in self.pages if p.degraded]


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Extracts the block sequence of one document.

    Pages are processed strictly in order. Slow steps (opening the
    document, reading a page, rasterizing, recognizing) run in worker
    threads so the event loop stays free for other jobs.

    Args:
        mode: Extraction mode ("fast" or "accurate")
        enable_ocr: Use OCR for pages whose text cannot be extracted
        recognizer: OCR backend; created on first use when omitted
        recognizer_factory: Callable creating the OCR backend lazily
        render_scale: Rasterization scale for OCR
        source_opener: Callable turning document bytes into a PageSource
    """

    def __init__(
        self,
        mode=ExtractionMode.FAST,
        enable_ocr: bool = False,
        recognizer: Optional[TextRecognizer] = None,
        recognizer_factory: Optional[Callable[[], TextRecognizer]] = None,
        render_scale: float = 2.0,
        source_opener: Callable[[bytes], PageSource] = open_pdf
    ):
        self.mode = ExtractionMode.parse(mode)
        self.enable_ocr = enable_ocr
        self.render_scale = render_scale
        self.source_opener = source_opener

        self._recognizer = recognizer
        self._recognizer_factory = recognizer_factory

    @property
    def recognizer(self) -> TextRecognizer:
        if self._recognizer is None:
            if self._recognizer_factory is None:
                from .ocr_text import create_recognizer
                self._recognizer_factory = create_recognizer
            try:
                self._recognizer = self._recognizer_factory()
            except ImportError as e:
                raise RecognitionError(f"OCR backend unavailable: {e}") from e
        return self._recognizer

    async def extract(self, data: bytes) -> ExtractionResult:
        """
        Extract all pages of a document.

        Raises:
            DocumentOpenError: If the bytes cannot be opened as a document
        """
        source = await asyncio.to_thread(self.source_opener, data)
        try:
            page_count = source.page_count
            logger.info(f"Extracting {page_count} page(s) in {self.mode.value} mode")

            emitter = BlockEmitter()
            reports = []
            for index in range(page_count):
                reports.append(await self.process_page(source, index, emitter))
        finally:
            source.close()

        result = ExtractionResult(
            blocks=emitter.blocks,
            page_count=emitter.page_count,
            pages=reports
        )
        if result.degraded_pages:
            logger.warning(f"Pages without extracted text: {result.degraded_pages}")
        return result

    async def process_page(
        self,
        source: PageSource,
        index: int,
        emitter: BlockEmitter
    ) -> PageReport:
        """Emit the blocks of one page, falling back when extraction fails."""
        page_number = index + 1
        try:
            runs = await asyncio.to_thread(source.text_runs, index)
            paragraphs = assemble_page(ingest_runs(runs), self.mode)
        except Exception as e:
            logger.warning(f"Page {page_number}: text extraction failed: {e}")
            return await self._fallback(source, index, emitter, str(e))

        blocks = emitter.emit_paragraphs(paragraphs)
        logger.debug(f"Page {page_number}: {len(blocks)} blocks")
        return PageReport(page_number, "text", len(blocks))

    async def _fallback(
        self,
        source: PageSource,
        index: int,
        emitter: BlockEmitter,
        error: str
    ) -> PageReport:
        page_number = index + 1
        if not self.enable_ocr:
            emitter.emit_sentinel()
            return PageReport(page_number, "sentinel", 1, error)

        try:
            recognizer = self.recognizer
            image = await asyncio.to_thread(source.render, index, self.render_scale)
            result = await asyncio.to_thread(recognizer.recognize, image)
        except Exception as e:
            logger.warning(f"Page {page_number}: OCR failed: {e}")
            emitter.emit_sentinel()
            return PageReport(page_number, "sentinel", 1, f"{error}; OCR: {e}")

        if result.is_empty:
            logger.warning(f"Page {page_number}: OCR returned no text")
            emitter.emit_sentinel()
            return PageReport(page_number, "sentinel", 1, f"{error}; OCR: no text")

        emitter.emit_text(result.text)
        logger.info(f"Page {page_number}: recovered text with {result.engine_used or 'OCR'}")
        return PageReport(page_number, "ocr", 1, error)
