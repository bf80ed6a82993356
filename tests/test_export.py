"""
Tests for export and table of contents.
"""

import json
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def blocks():
    from reflow.blocks import Block

    return [
        Block.heading("Results &amp; Discussion", 2),
        Block.paragraph("Values were &lt; 5 in every run."),
        Block.heading("Appendix", 1),
        Block.paragraph("Raw data."),
    ]


class TestConversions:
    """Test plain text and Markdown rendering."""

    def test_plain_text(self, blocks):
        """Test plain text rendering."""
        from reflow.export import to_plain_text

        assert to_plain_text(blocks) == (
            "Results & Discussion\n\n"
            "Values were < 5 in every run.\n\n"
            "Appendix\n\n"
            "Raw data."
        )

    def test_markdown(self, blocks):
        """Test Markdown rendering."""
        from reflow.export import to_markdown

        lines = to_markdown(blocks).split("\n\n")

        assert lines == [
            "## Results & Discussion",
            "Values were < 5 in every run.",
            "# Appendix",
            "Raw data.",
        ]

    def test_empty_document(self):
        """Test rendering a document without blocks."""
        from reflow.export import to_markdown, to_plain_text

        assert to_plain_text([]) == ""
        assert to_markdown([]) == ""


class TestTableOfContents:
    """Test heading references."""

    def test_entries_reference_block_index(self, blocks):
        """Test table of contents entries."""
        from reflow.export import TocEntry, table_of_contents

        assert table_of_contents(blocks) == [
            TocEntry(index=0, level=2, title="Results & Discussion"),
            TocEntry(index=2, level=1, title="Appendix"),
        ]

    def test_long_title_truncated(self):
        """Test title truncation."""
        from reflow.blocks import Block
        from reflow.export import table_of_contents

        toc = table_of_contents([Block.heading("x" * 200)])

        assert len(toc[0].title) == 80

    def test_no_headings(self):
        """Test a document without headings."""
        from reflow.blocks import Block
        from reflow.export import table_of_contents

        assert table_of_contents([Block.paragraph("body")]) == []


class TestDocumentExporter:
    """Test file export."""

    def test_export_all(self, blocks, tmp_path):
        """Test exporting every format."""
        from reflow.export import DocumentExporter

        exporter = DocumentExporter(tmp_path / "out", "paper")
        results = exporter.export(blocks, ["all"])

        assert set(results) == {"json", "markdown", "text"}
        assert results["markdown"].name == "paper.md"
        assert results["text"].read_text(encoding="utf-8").startswith("Results & Discussion")

        data = json.loads(results["json"].read_text(encoding="utf-8"))
        assert data["blocks"][0] == {"kind": "heading", "text": "Results &amp; Discussion", "level": 2}
        assert data["toc"][1] == {"index": 2, "level": 1, "title": "Appendix"}

    def test_unknown_format(self, blocks, tmp_path):
        """Test an unknown export format."""
        from reflow.export import DocumentExporter

        with pytest.raises(ValueError):
            DocumentExporter(tmp_path).export(blocks, ["docx"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
