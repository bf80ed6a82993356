"""
Extraction jobs, scheduling and completion notifications.

Provides:
- ExtractionJob and its outcome (Completed / Failed)
- NotificationHub: publish/subscribe completion events
- ExtractionScheduler: at most one active job per document id,
  atomic persistence before completion is announced
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from .assembler import DocumentAssembler
from .errors import DocumentOpenError, JobAlreadyRunningError
from .io import PageSource, open_pdf
from .layout import ExtractionMode
from .ocr_text import TextRecognizer
from .store import STATUS_FAILED, STATUS_PROCESSING, DocumentStore

logger = logging.getLogger(__name__)


# ============================================================================
# Jobs and Outcomes
# ============================================================================

@dataclass(frozen=True)
class ExtractionJob:
    """One requested extraction of one document."""
    document_id: str
    mode: ExtractionMode = ExtractionMode.FAST
    enable_ocr: bool = False


@dataclass(frozen=True)
class Completed:
    page_count: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    message: str

    @property
    def ok(self) -> bool:
        return False


JobOutcome = Union[Completed, Failed]


# ============================================================================
# Notifications
# ============================================================================

EVENT_DONE = "done"
EVENT_ERROR = "error"


@dataclass(frozen=True)
class ExtractionEvent:
    """Broadcast when a job finishes."""
    type: str
    document_id: str
    message: Optional[str] = None

    def to_dict(self):
        result = {"type": self.type, "document_id": self.document_id}
        if self.message is not None:
            result["message"] = self.message
        return result


Listener = Callable[[ExtractionEvent], None]


class NotificationHub:
    """
    Publish/subscribe channel for extraction events.

    Listeners are independent of whoever started the job; every listener
    subscribed at publish time receives the event.
    """

    def __init__(self):
        self._listeners: List[Tuple[Optional[str], Listener]] = []

    def subscribe(self, listener: Listener, document_id: Optional[str] = None) -> Callable[[], None]:
        """
        Register a listener, optionally for one document only.

        Returns:
            A callable that removes the listener
        """
        entry = (document_id, listener)
        self._listeners.append(entry)

        def unsubscribe():
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def publish(self, event: ExtractionEvent) -> None:
        for document_id, listener in list(self._listeners):
            if document_id is not None and document_id != event.document_id:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception(f"Extraction listener failed for {event.document_id}")

    def wait_for(self, document_id: str) -> "asyncio.Future[ExtractionEvent]":
        """Future resolved by the next event for ``document_id``."""
        future = asyncio.get_running_loop().create_future()

        def listener(event):
            if not future.done():
                future.set_result(event)

        unsubscribe = self.subscribe(listener, document_id)
        future.add_done_callback(lambda _: unsubscribe())
        return future


# ============================================================================
# Scheduler
# ============================================================================

class ExtractionScheduler:
    """
    Runs extraction jobs against a DocumentStore.

    A second request for a document whose job is still active is rejected
    with JobAlreadyRunningError. Jobs for different documents run
    concurrently on the same event loop.

    Args:
        store: Document store holding the source bytes and block sequences
        hub: Notification hub (a private one is created when omitted)
        source_opener: Callable turning document bytes into a PageSource
        recognizer_factory: Callable creating the OCR backend
        render_scale: Rasterization scale for OCR
    """

    def __init__(
        self,
        store: DocumentStore,
        hub: Optional[NotificationHub] = None,
        source_opener: Callable[[bytes], PageSource] = open_pdf,
        recognizer_factory: Optional[Callable[[], TextRecognizer]] = None,
        render_scale: float = 2.0
    ):
        self.store = store
        self.hub = hub or NotificationHub()
        self.source_opener = source_opener
        self.recognizer_factory = recognizer_factory
        self.render_scale = render_scale

        self._active: Dict[str, asyncio.Task] = {}
        self._cancel_requested: Set[str] = set()

    def is_active(self, document_id: str) -> bool:
        return document_id in self._active

    def submit(self, document_id: str, mode="fast", enable_ocr: bool = False) -> asyncio.Task:
        """
        Start a job without waiting for it.

        Raises:
            JobAlreadyRunningError: If a job for the document is active
        """
        if document_id in self._active:
            raise JobAlreadyRunningError(document_id)

        job = ExtractionJob(document_id, ExtractionMode.parse(mode), enable_ocr)
        self._cancel_requested.discard(document_id)
        task = asyncio.get_running_loop().create_task(self._run(job))
        self._active[document_id] = task
        task.add_done_callback(lambda t: self._release(document_id, t))
        return task

    async def run_extraction(self, document_id: str, mode="fast", enable_ocr: bool = False) -> JobOutcome:
        """
        Extract a document and persist its block sequence.

        Returns:
            Completed(page_count) or Failed(message)

        Raises:
            JobAlreadyRunningError: If a job for the document is active
        """
        task = self.submit(document_id, mode, enable_ocr)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and document_id in self._cancel_requested:
                self._cancel_requested.discard(document_id)
                return Failed("Extraction cancelled")
            raise

    def cancel(self, document_id: str) -> bool:
        """Cancel the active job of a document; nothing is persisted."""
        task = self._active.get(document_id)
        if task is None or task.done():
            return False
        self._cancel_requested.add(document_id)
        return task.cancel()

    def _release(self, document_id: str, task: asyncio.Task) -> None:
        if self._active.get(document_id) is task:
            del self._active[document_id]

    def _make_assembler(self, job: ExtractionJob) -> DocumentAssembler:
        return DocumentAssembler(
            mode=job.mode,
            enable_ocr=job.enable_ocr,
            recognizer_factory=self.recognizer_factory,
            render_scale=self.render_scale,
            source_opener=self.source_opener
        )

    async def _run(self, job: ExtractionJob) -> JobOutcome:
        doc_id = job.document_id
        logger.info(f"Extraction started for {doc_id} (mode={job.mode.value}, ocr={job.enable_ocr})")

        try:
            data = await asyncio.to_thread(self.store.get_file_bytes, doc_id)
            if data is None:
                raise DocumentOpenError(f"File missing for document {doc_id}")
            self.store.set_status(doc_id, STATUS_PROCESSING, error=None)

            result = await self._make_assembler(job).extract(data)

            # No await from here on: a cancel cannot land between the
            # write and the announcement.
            self.store.commit_blocks(doc_id, result.blocks, result.page_count)
        except asyncio.CancelledError:
            self._fail(doc_id, "Extraction cancelled")
            raise
        except Exception as e:
            return self._fail(doc_id, str(e) or e.__class__.__name__)

        logger.info(f"Extraction done for {doc_id}: {result.page_count} pages, {len(result.blocks)} blocks")
        self.hub.publish(ExtractionEvent(EVENT_DONE, doc_id))
        return Completed(result.page_count)

    def _fail(self, doc_id: str, message: str) -> Failed:
        logger.error(f"Extraction failed for {doc_id}: {message}")
        if self.store.get_doc(doc_id) is not None:
            try:
                self.store.set_status(doc_id, STATUS_FAILED, error=message)
            except OSError as e:
                logger.error(f"Could not record failure for {doc_id}: {e}")
        self.hub.publish(ExtractionEvent(EVENT_ERROR, doc_id, message))
        return Failed(message)
