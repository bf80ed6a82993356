"""
Line layout module for document reconstruction.

Provides:
- Extraction mode presets (fast / accurate thresholds)
- Line clustering by baseline proximity
- Reading order within a page (top-to-bottom, left-to-right)
- Punctuation-aware token joining
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

from .tokens import PositionedToken

logger = logging.getLogger(__name__)


# ============================================================================
# Modes
# ============================================================================

class ExtractionMode(Enum):
    """Threshold-and-policy presets."""
    FAST = "fast"
    ACCURATE = "accurate"

    @classmethod
    def parse(cls, value) -> "ExtractionMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown extraction mode: {value!r} (expected 'fast' or 'accurate')")


@dataclass(frozen=True)
class ModeProfile:
    """Numeric thresholds used by clustering and paragraph assembly."""
    line_tolerance: float       # max |dy| to the first token of a line
    same_line_threshold: float  # |dy| below which two lines are one rendered line
    break_on_every_line: bool   # paragraph boundary at every genuine new line
    font_jump_ratio: float = 1.12
    heading_ratio: float = 1.3

    @classmethod
    def for_mode(cls, mode) -> "ModeProfile":
        return MODE_PROFILES[ExtractionMode.parse(mode)]


MODE_PROFILES = {
    ExtractionMode.FAST: ModeProfile(
        line_tolerance=2.5,
        same_line_threshold=3.0,
        break_on_every_line=False,
    ),
    ExtractionMode.ACCURATE: ModeProfile(
        line_tolerance=1.5,
        same_line_threshold=2.0,
        break_on_every_line=True,
    ),
}


# ============================================================================
# Lines
# ============================================================================

@dataclass
class Line:
    """Tokens judged to share one visual baseline, sorted by x."""
    tokens: List[PositionedToken] = field(default_factory=list)

    @property
    def lead(self) -> PositionedToken:
        return self.tokens[0]

    @property
    def y(self) -> float:
        return self.lead.y

    @property
    def font_size(self) -> float:
        return self.lead.font_size

    @property
    def text(self) -> str:
        return join_tokens(self.tokens)


def cluster_lines(tokens: Sequence[PositionedToken], mode=ExtractionMode.FAST) -> List[Line]:
    """
    Group tokens into visual lines.

    Tokens are visited top-to-bottom then left-to-right. A new line starts
    whenever a token's y differs from the first token of the current line
    by more than the mode's tolerance.

    Args:
        tokens: Positioned tokens of one page (any order)
        mode: Extraction mode or its name

    Returns:
        Lines in reading order, each sorted by ascending x
    """
    profile = ModeProfile.for_mode(mode)
    ordered = sorted(tokens, key=lambda t: (-t.y, t.x))

    lines: List[Line] = []
    for token in ordered:
        if not lines or abs(lines[-1].tokens[0].y - token.y) > profile.line_tolerance:
            lines.append(Line([token]))
        else:
            lines[-1].tokens.append(token)

    for line in lines:
        line.tokens.sort(key=lambda t: t.x)

    logger.debug(f"Clustered {len(ordered)} tokens into {len(lines)} lines")
    return lines


# ============================================================================
# Joining
# ============================================================================

_TRAILING_SPACE = re.compile(r"\s$")  # \s covers NBSP
_LEADING_CLOSER = re.compile(r"^[,.;:!?)]")
_TRAILING_DASH = re.compile(r"[\-\u2013\u2014]$")


def needs_space(prev: str, next_text: str) -> bool:
    """Whether a space belongs between ``prev`` and ``next_text``."""
    if not prev:
        return False
    if _TRAILING_SPACE.search(prev):
        return False
    # No orphan space before closing punctuation
    if _LEADING_CLOSER.match(next_text):
        return False
    if _TRAILING_DASH.search(prev):
        return False
    return True


def append_text(prev: str, next_text: str) -> str:
    """Append ``next_text`` to ``prev`` using the joining rule."""
    if needs_space(prev, next_text):
        return f"{prev} {next_text}"
    return prev + next_text


def join_tokens(tokens: Sequence[PositionedToken]) -> str:
    """Concatenate one line's tokens; whitespace runs are left as-is."""
    text = ""
    for token in tokens:
        text = append_text(text, token.text)
    return text
