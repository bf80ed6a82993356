"""
Directory-backed document store.

Layout under the store root:
- files/<id>.pdf      original document bytes
- docs/<id>.json      document record (name, size, status, page count)
- content/<id>.json   extracted block sequence

Block sequences are replaced whole and atomically; readers see either the
previous sequence or the complete new one.
"""

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .blocks import Block
from .errors import PersistenceError
from .io import ensure_dir, load_json, save_json

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_DONE = "done"
STATUS_FAILED = "failed"


@dataclass
class StoredDoc:
    """Library record of one imported document."""
    id: str
    name: str
    size: int = 0
    added_at: float = 0.0
    last_opened: Optional[float] = None
    pages: Optional[int] = None
    extraction_status: str = STATUS_PENDING
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredDoc":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class DocumentStore:
    """
    Persistent store for documents and their block sequences.

    Args:
        root: Store directory (created when missing)
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.files_dir = ensure_dir(self.root / "files")
        self.docs_dir = ensure_dir(self.root / "docs")
        self.content_dir = ensure_dir(self.root / "content")

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def import_pdf(self, source: Union[str, Path, bytes], name: Optional[str] = None) -> str:
        """Copy a PDF into the store and return its new document id."""
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
            name = name or "document.pdf"
        else:
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            data = path.read_bytes()
            name = name or path.name

        doc_id = str(uuid.uuid4())
        (self.files_dir / f"{doc_id}.pdf").write_bytes(data)
        self.set_doc(StoredDoc(id=doc_id, name=name, size=len(data), added_at=time.time()))

        logger.info(f"Imported {name} as {doc_id} ({len(data)} bytes)")
        return doc_id

    def get_file_bytes(self, doc_id: str) -> Optional[bytes]:
        path = self.files_dir / f"{doc_id}.pdf"
        if not path.exists():
            return None
        return path.read_bytes()

    def get_doc(self, doc_id: str) -> Optional[StoredDoc]:
        path = self.docs_dir / f"{doc_id}.json"
        if not path.exists():
            return None
        return StoredDoc.from_dict(load_json(path))

    def set_doc(self, doc: StoredDoc) -> None:
        save_json(asdict(doc), self.docs_dir / f"{doc.id}.json")

    def list_docs(self) -> List[StoredDoc]:
        """All documents, most recently opened first."""
        docs = [StoredDoc.from_dict(load_json(p)) for p in sorted(self.docs_dir.glob("*.json"))]
        return sorted(docs, key=lambda d: d.last_opened or 0, reverse=True)

    def update_doc(self, doc_id: str, **changes) -> StoredDoc:
        """Merge ``changes`` into a document record."""
        doc = self.get_doc(doc_id) or StoredDoc(id=doc_id, name="Unknown", added_at=time.time())
        for key, value in changes.items():
            if key not in StoredDoc.__dataclass_fields__:
                raise KeyError(f"Unknown document field: {key}")
            setattr(doc, key, value)
        self.set_doc(doc)
        return doc

    def set_status(self, doc_id: str, status: str, **changes) -> StoredDoc:
        return self.update_doc(doc_id, extraction_status=status, **changes)

    def mark_opened(self, doc_id: str) -> StoredDoc:
        """Record that the document was just opened for reading."""
        return self.update_doc(doc_id, last_opened=time.time())

    def delete_doc(self, doc_id: str) -> None:
        for path in (
            self.docs_dir / f"{doc_id}.json",
            self.files_dir / f"{doc_id}.pdf",
            self.content_dir / f"{doc_id}.json",
        ):
            path.unlink(missing_ok=True)
        logger.info(f"Deleted document {doc_id}")

    # ------------------------------------------------------------------
    # Block sequences
    # ------------------------------------------------------------------

    def put_blocks(self, doc_id: str, blocks: Sequence[Block]) -> None:
        """Replace the block sequence of a document in one atomic write."""
        payload = {"id": doc_id, "blocks": [b.to_dict() for b in blocks]}
        try:
            save_json(payload, self.content_dir / f"{doc_id}.json")
        except OSError as e:
            raise PersistenceError(f"Failed to write blocks for {doc_id}: {e}") from e

    def commit_blocks(self, doc_id: str, blocks: Sequence[Block], pages: int) -> StoredDoc:
        """
        Replace the block sequence and mark the document done.

        If the document record cannot be written, the previous sequence is
        put back (or the new one removed) so a failed commit leaves the
        store unchanged.

        Raises:
            PersistenceError: If either write fails
        """
        path = self.content_dir / f"{doc_id}.json"
        previous = load_json(path) if path.exists() else None

        self.put_blocks(doc_id, blocks)
        try:
            return self.set_status(doc_id, STATUS_DONE, pages=pages)
        except OSError as e:
            try:
                if previous is None:
                    path.unlink(missing_ok=True)
                else:
                    save_json(previous, path)
            except OSError as restore_error:
                logger.error(f"Could not roll back blocks for {doc_id}: {restore_error}")
            raise PersistenceError(f"Failed to record completion for {doc_id}: {e}") from e

    def get_blocks(self, doc_id: str) -> Optional[List[Block]]:
        """Block sequence of a document, or None when never extracted."""
        path = self.content_dir / f"{doc_id}.json"
        if not path.exists():
            return None
        return [Block.from_dict(b) for b in load_json(path)["blocks"]]
