"""
Tests for the document store.
"""

import pytest
import shutil
import sys
from pathlib import Path
from types import SimpleNamespace

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestDocuments:
    """Test document records and source bytes."""

    def test_import_from_path(self, store, tmp_path):
        """Test importing a PDF file."""
        pdf_path = tmp_path / "paper.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 body")

        doc_id = store.import_pdf(pdf_path)
        doc = store.get_doc(doc_id)

        assert doc.name == "paper.pdf"
        assert doc.size == len(b"%PDF-1.4 body")
        assert doc.extraction_status == "pending"
        assert store.get_file_bytes(doc_id) == b"%PDF-1.4 body"

    def test_import_from_bytes(self, store):
        """Test importing raw bytes."""
        doc_id = store.import_pdf(b"%PDF", name="upload.pdf")

        assert store.get_doc(doc_id).name == "upload.pdf"

    def test_import_missing_file(self, store, tmp_path):
        """Test importing a missing file."""
        with pytest.raises(FileNotFoundError):
            store.import_pdf(tmp_path / "absent.pdf")

    def test_unknown_document(self, store):
        """Test an unknown document id."""
        assert store.get_doc("nope") is None
        assert store.get_file_bytes("nope") is None

    def test_list_by_last_opened(self, store):
        """Test document listing order."""
        older = store.import_pdf(b"%PDF", name="older.pdf")
        newer = store.import_pdf(b"%PDF", name="newer.pdf")
        never = store.import_pdf(b"%PDF", name="never.pdf")
        store.update_doc(older, last_opened=100.0)
        store.update_doc(newer, last_opened=200.0)

        assert [d.id for d in store.list_docs()] == [newer, older, never]

    def test_mark_opened_moves_to_front(self, store, monkeypatch):
        """Test that opening a document makes it the most recent in the list."""
        import reflow.store

        first = store.import_pdf(b"%PDF", name="first.pdf")
        second = store.import_pdf(b"%PDF", name="second.pdf")

        clock = iter([100.0, 200.0])
        monkeypatch.setattr(reflow.store, "time", SimpleNamespace(time=lambda: next(clock)))
        store.mark_opened(second)
        store.mark_opened(first)

        assert [d.id for d in store.list_docs()] == [first, second]
        assert store.get_doc(first).last_opened == 200.0

    def test_update_unknown_field(self, store):
        """Test updating an unknown field."""
        doc_id = store.import_pdf(b"%PDF")

        with pytest.raises(KeyError):
            store.update_doc(doc_id, colour="blue")

    def test_set_status(self, store):
        """Test status updates."""
        doc_id = store.import_pdf(b"%PDF")

        store.set_status(doc_id, "failed", error="boom")

        doc = store.get_doc(doc_id)
        assert (doc.extraction_status, doc.error) == ("failed", "boom")

    def test_delete(self, store):
        """Test deleting a document with its file and blocks."""
        from reflow.blocks import Block

        doc_id = store.import_pdf(b"%PDF")
        store.put_blocks(doc_id, [Block.paragraph("text")])

        store.delete_doc(doc_id)

        assert store.get_doc(doc_id) is None
        assert store.get_file_bytes(doc_id) is None
        assert store.get_blocks(doc_id) is None


class TestBlockSequences:
    """Test block persistence."""

    def test_never_extracted(self, store):
        """Test reading blocks of a document never extracted."""
        doc_id = store.import_pdf(b"%PDF")

        assert store.get_blocks(doc_id) is None

    def test_round_trip(self, store):
        """Test storing and reading blocks."""
        from reflow.blocks import Block

        blocks = [Block.heading("Intro", 2), Block.paragraph("Fish &amp; chips")]
        store.put_blocks("doc", blocks)

        assert store.get_blocks("doc") == blocks

    def test_replace_whole_sequence(self, store):
        """Test replacing a block sequence."""
        from reflow.blocks import Block

        store.put_blocks("doc", [Block.paragraph("a"), Block.paragraph("b")])
        store.put_blocks("doc", [Block.paragraph("c")])

        assert store.get_blocks("doc") == [Block.paragraph("c")]
        assert [p.name for p in store.content_dir.iterdir()] == ["doc.json"]

    def test_commit_marks_done(self, store):
        """Test that a commit stores the blocks and the page count together."""
        from reflow.blocks import Block

        doc_id = store.import_pdf(b"%PDF")

        store.commit_blocks(doc_id, [Block.paragraph("done")], pages=4)

        doc = store.get_doc(doc_id)
        assert (doc.extraction_status, doc.pages) == ("done", 4)
        assert store.get_blocks(doc_id) == [Block.paragraph("done")]

    def test_commit_rolls_back_on_record_failure(self, store, monkeypatch):
        """Test that a failed record write leaves the earlier sequence in place."""
        from reflow.blocks import Block
        from reflow.errors import PersistenceError

        doc_id = store.import_pdf(b"%PDF")
        store.put_blocks(doc_id, [Block.paragraph("old")])

        def broken_set_status(doc_id, status, **changes):
            raise OSError("read-only file system")

        monkeypatch.setattr(store, "set_status", broken_set_status)

        with pytest.raises(PersistenceError, match="read-only"):
            store.commit_blocks(doc_id, [Block.paragraph("new")], pages=1)

        assert store.get_blocks(doc_id) == [Block.paragraph("old")]

    def test_write_failure(self, store):
        """Test a failed block write."""
        from reflow.blocks import Block
        from reflow.errors import PersistenceError

        shutil.rmtree(store.content_dir)
        store.content_dir.write_text("not a directory")

        with pytest.raises(PersistenceError):
            store.put_blocks("doc", [Block.paragraph("lost")])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
