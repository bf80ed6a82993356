"""
Token ingestion for document reconstruction.

Converts the raw text runs of one page into positioned tokens:
text, baseline origin, effective font size and rendered width.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

# (a, b, c, d, e, f) as in a PDF text matrix
Transform = Tuple[float, float, float, float, float, float]

DEFAULT_FONT_SIZE = 12.0


@dataclass(frozen=True)
class TextRun:
    """A glyph run as delivered by the PDF decoder."""
    text: str
    transform: Transform
    width: float = 0.0  # declared advance width, unscaled


@dataclass(frozen=True)
class PositionedToken:
    """One run's text placed in page space (origin bottom-left)."""
    text: str
    x: float
    y: float
    font_size: float
    width: float

    @classmethod
    def from_run(cls, run: TextRun) -> "PositionedToken":
        a, b, c, d, e, f = run.transform
        scale_x = math.hypot(a, b)
        scale_y = math.hypot(c, d)
        return cls(
            text=run.text,
            x=float(e),
            y=float(f),
            font_size=scale_y,
            width=(run.width or 0.0) * scale_x,
        )


def ingest_runs(runs: Iterable[TextRun]) -> List[PositionedToken]:
    """
    Normalize a page's text runs into positioned tokens.

    Empty strings are kept; later stages drop them when they produce
    no text.
    """
    return [PositionedToken.from_run(run) for run in runs]


def mean_font_size(tokens: Sequence[PositionedToken]) -> float:
    """Arithmetic mean of token font sizes (12.0 for an empty page)."""
    if not tokens:
        return DEFAULT_FONT_SIZE
    return float(np.mean([t.font_size for t in tokens]))
