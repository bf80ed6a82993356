"""
Export module for reconstructed documents.

Provides:
- Plain text export
- Markdown export
- JSON export of the block sequence
- Table of contents from heading blocks
"""

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Union

from .blocks import Block
from .io import save_json

logger = logging.getLogger(__name__)

TOC_TITLE_LENGTH = 80


# ============================================================================
# Conversions
# ============================================================================

def block_plain_text(block: Block) -> str:
    """Block text with HTML escapes undone."""
    return html.unescape(block.text)


def to_plain_text(blocks: Sequence[Block]) -> str:
    return "\n\n".join(block_plain_text(b) for b in blocks)


def to_markdown(blocks: Sequence[Block]) -> str:
    """Headings become ``#`` lines of their level; paragraphs stay verbatim."""
    parts = []
    for block in blocks:
        text = block_plain_text(block)
        if block.is_heading:
            level = min(6, max(1, block.level or 2))
            parts.append(f"{'#' * level} {text}")
        else:
            parts.append(text)
    return "\n\n".join(parts)


@dataclass(frozen=True)
class TocEntry:
    """Heading reference by block index."""
    index: int
    level: int
    title: str


def table_of_contents(blocks: Sequence[Block]) -> List[TocEntry]:
    return [
        TocEntry(index=i, level=b.level or 2, title=block_plain_text(b)[:TOC_TITLE_LENGTH])
        for i, b in enumerate(blocks)
        if b.is_heading
    ]


# ============================================================================
# Document Exporter
# ============================================================================

class DocumentExporter:
    """
    Export a block sequence to multiple formats.

    Args:
        output_dir: Directory for generated files
        base_name: File name stem for generated files
    """

    FORMATS = ("json", "markdown", "text")

    def __init__(self, output_dir: Union[str, Path], base_name: str = "document"):
        self.output_dir = Path(output_dir)
        self.base_name = base_name

    def export(self, blocks: Sequence[Block], formats: Sequence[str]) -> Dict[str, Path]:
        """
        Export to the requested formats.

        Returns:
            Mapping of format name to generated file path
        """
        if "all" in formats:
            formats = self.FORMATS

        self.output_dir.mkdir(parents=True, exist_ok=True)
        results = {}

        for fmt in formats:
            if fmt == "json":
                path = self.output_dir / f"{self.base_name}.json"
                save_json({
                    "blocks": [b.to_dict() for b in blocks],
                    "toc": table_of_contents(blocks),
                }, path)
            elif fmt == "markdown":
                path = self.output_dir / f"{self.base_name}.md"
                path.write_text(to_markdown(blocks), encoding="utf-8")
            elif fmt == "text":
                path = self.output_dir / f"{self.base_name}.txt"
                path.write_text(to_plain_text(blocks), encoding="utf-8")
            else:
                raise ValueError(f"Unknown export format: {fmt}")

            logger.info(f"Exported {fmt} to: {path}")
            results[fmt] = path

        return results
