"""
Block model and emitter.

A document's blocks form one append-only sequence, indexed 0..N-1 in
page-then-reading order. Block text is HTML-escaped plain text.
"""

import html
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .paragraphs import ParagraphDraft, normalize_whitespace

UNEXTRACTED_PAGE_MARKER = "[Unextracted page; open PDF view]"


class BlockKind(Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"


@dataclass(frozen=True)
class Block:
    """One unit of the reflowable document."""
    kind: BlockKind
    text: str
    level: Optional[int] = None  # 1..3, headings only

    def __post_init__(self):
        if self.kind is BlockKind.HEADING and self.level not in (1, 2, 3):
            raise ValueError(f"Heading level must be 1, 2 or 3, got {self.level!r}")
        if self.kind is BlockKind.PARAGRAPH and self.level is not None:
            raise ValueError("Paragraph blocks carry no level")

    @property
    def is_heading(self) -> bool:
        return self.kind is BlockKind.HEADING

    @classmethod
    def paragraph(cls, text: str) -> "Block":
        return cls(BlockKind.PARAGRAPH, text)

    @classmethod
    def heading(cls, text: str, level: int = 2) -> "Block":
        return cls(BlockKind.HEADING, text, level)

    def to_dict(self) -> Dict[str, Any]:
        result = {"kind": self.kind.value, "text": self.text}
        if self.level is not None:
            result["level"] = self.level
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Block":
        return cls(BlockKind(data["kind"]), data["text"], data.get("level"))


def escape_html(text: str) -> str:
    """Escape ``&``, ``<`` and ``>``; quotes are left alone."""
    return html.escape(text, quote=False)


def block_from_paragraph(paragraph: ParagraphDraft) -> Block:
    text = escape_html(paragraph.text)
    if paragraph.heading_level is not None:
        return Block.heading(text, paragraph.heading_level)
    return Block.paragraph(text)


def sentinel_block() -> Block:
    """Placeholder for a page that could not be extracted."""
    return Block.paragraph(escape_html(UNEXTRACTED_PAGE_MARKER))


class BlockEmitter:
    """Accumulates page output, in page order, into one block sequence."""

    def __init__(self):
        self._blocks: List[Block] = []
        self._pages = 0

    @property
    def blocks(self) -> List[Block]:
        return list(self._blocks)

    @property
    def page_count(self) -> int:
        return self._pages

    def emit_paragraphs(self, paragraphs: Iterable[ParagraphDraft]) -> List[Block]:
        page_blocks = [block_from_paragraph(p) for p in paragraphs]
        self._blocks.extend(page_blocks)
        self._pages += 1
        return page_blocks

    def emit_text(self, text: str) -> List[Block]:
        """Emit raw page text (OCR output) as a single paragraph."""
        # Line breaks from the recognizer are collapsed like any extracted paragraph
        block = Block.paragraph(escape_html(normalize_whitespace(text)))
        self._blocks.append(block)
        self._pages += 1
        return [block]

    def emit_sentinel(self) -> List[Block]:
        block = sentinel_block()
        self._blocks.append(block)
        self._pages += 1
        return [block]
