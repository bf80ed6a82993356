"""
Paragraph assembly for document reconstruction.

Merges the lines of one page into paragraphs:
- continuation fragments of the same rendered line are joined in place
- genuine new lines either start a paragraph or soft-wrap into the current one
- hyphenated words broken across a soft wrap are repaired
- paragraphs set in a large font are tagged as headings

The assembler is a two-state machine (EMPTY / ACCUMULATING) that owns at
most one open ParagraphDraft.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .layout import ExtractionMode, Line, ModeProfile, append_text, cluster_lines
from .tokens import PositionedToken, mean_font_size

logger = logging.getLogger(__name__)

HEADING_LEVEL = 2

# Sentence-terminal mark, optionally followed by one closing quote/bracket
_TERMINAL = re.compile(r"[.!?\u2026][\"'\u201d)\]]?\s*$")
# Hyphen preceded by a letter
_SOFT_HYPHEN_BREAK = re.compile(r"[^\W\d_]-$")
_WHITESPACE_RUN = re.compile(r"\s+")


class AssemblerState(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"


@dataclass
class ParagraphDraft:
    """In-progress paragraph; mutated as lines are merged in."""
    text: str
    font_size: float
    y: float
    heading_level: Optional[int] = None

    @classmethod
    def from_line(cls, line: Line) -> "ParagraphDraft":
        return cls(text=line.text, font_size=line.font_size, y=line.y)

    @property
    def is_heading(self) -> bool:
        return self.heading_level is not None

    def ends_sentence(self) -> bool:
        return bool(_TERMINAL.search(self.text))


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


class ParagraphAssembler:
    """
    Turns a page's lines into finalized paragraph drafts.

    Args:
        mode: Extraction mode (fast merges more, accurate breaks at every line)
        page_mean_font_size: Mean token font size of the current page, used
            as the heading reference
    """

    def __init__(self, mode=ExtractionMode.FAST, page_mean_font_size: float = 12.0):
        self.mode = ExtractionMode.parse(mode)
        self.profile = ModeProfile.for_mode(self.mode)
        self.page_mean_font_size = page_mean_font_size
        self._draft: Optional[ParagraphDraft] = None
        self._paragraphs: List[ParagraphDraft] = []

    @property
    def state(self) -> AssemblerState:
        return AssemblerState.EMPTY if self._draft is None else AssemblerState.ACCUMULATING

    @property
    def paragraphs(self) -> List[ParagraphDraft]:
        return list(self._paragraphs)

    def feed(self, line: Line) -> None:
        """Consume the next line in reading order."""
        if self._draft is None:
            self._draft = ParagraphDraft.from_line(line)
            return

        draft = self._draft
        text = line.text
        dy = abs(line.y - draft.y)

        if dy < self.profile.same_line_threshold:
            # Same rendered line split across several text operators
            draft.text = append_text(draft.text, text)
            draft.y = (draft.y + line.y) / 2
            draft.font_size = (draft.font_size + line.font_size) / 2
            return

        if self._is_boundary(draft, line):
            self._finalize()
            self._draft = ParagraphDraft.from_line(line)
            return

        # Soft wrap
        if _SOFT_HYPHEN_BREAK.search(draft.text):
            draft.text = draft.text[:-1] + text
        else:
            draft.text = f"{draft.text} {text}"
        draft.y = line.y
        draft.font_size = (draft.font_size + line.font_size) / 2

    def finish(self) -> List[ParagraphDraft]:
        """Finalize any open draft and return all paragraphs of the page."""
        if self._draft is not None:
            self._finalize()
        return self.paragraphs

    def _is_boundary(self, draft: ParagraphDraft, line: Line) -> bool:
        if draft.ends_sentence():
            return True
        if line.font_size > draft.font_size * self.profile.font_jump_ratio:
            return True
        return self.profile.break_on_every_line

    def _finalize(self) -> None:
        draft = self._draft
        self._draft = None

        if draft.font_size >= self.page_mean_font_size * self.profile.heading_ratio:
            draft.heading_level = HEADING_LEVEL
        draft.text = normalize_whitespace(draft.text)

        # Empty drafts take no block index
        if not draft.text:
            return
        self._paragraphs.append(draft)


def assemble_lines(
    lines: Sequence[Line],
    mode=ExtractionMode.FAST,
    page_mean_font_size: float = 12.0,
) -> List[ParagraphDraft]:
    """Run the assembler over already clustered lines."""
    assembler = ParagraphAssembler(mode=mode, page_mean_font_size=page_mean_font_size)
    for line in lines:
        assembler.feed(line)
    return assembler.finish()


def assemble_page(tokens: Sequence[PositionedToken], mode=ExtractionMode.FAST) -> List[ParagraphDraft]:
    """
    Cluster one page's tokens into lines and assemble paragraphs.

    The heading reference is the mean font size of this page only, so
    heading sensitivity varies from page to page.
    """
    lines = cluster_lines(tokens, mode)
    paragraphs = assemble_lines(lines, mode, mean_font_size(tokens))
    logger.debug(
        f"Assembled {len(lines)} lines into {len(paragraphs)} paragraphs "
        f"({sum(p.is_heading for p in paragraphs)} headings)"
    )
    return paragraphs
