"""
Shared fixtures: in-memory page sources and OCR stubs.
"""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reflow.io import PageSource  # noqa: E402
from reflow.ocr_text import OCRResult, TextRecognizer  # noqa: E402
from reflow.tokens import PositionedToken, TextRun  # noqa: E402


def make_run(text, x, y, size=12.0, width=None):
    """Text run with an unrotated transform of the given font size."""
    if width is None:
        width = 0.5 * len(text)
    return TextRun(text=text, transform=(size, 0.0, 0.0, size, x, y), width=width)


def make_token(text, x, y, size=12.0, width=0.0):
    return PositionedToken(text=text, x=x, y=y, font_size=size, width=width)


class FakePageSource(PageSource):
    """
    Page source over prepared pages.

    Each page is a list of TextRun, or an exception instance raised when
    the page's runs are requested. ``render_error`` is raised by render().
    """

    def __init__(self, pages, block_on=None, entered=None, render_error=None):
        self.pages = list(pages)
        self.render_error = render_error
        self.rendered = []
        self.closed = False
        self._block_on = block_on
        self._entered = entered

    @property
    def page_count(self):
        return len(self.pages)

    def text_runs(self, page_index):
        if self._entered is not None:
            self._entered.set()
        if self._block_on is not None:
            self._block_on.wait(timeout=5)
        page = self.pages[page_index]
        if isinstance(page, Exception):
            raise page
        return list(page)

    def render(self, page_index, scale=2.0):
        self.rendered.append((page_index, scale))
        if self.render_error is not None:
            raise self.render_error
        return np.full((20, 20, 3), 255, dtype=np.uint8)

    def close(self):
        self.closed = True


class StubRecognizer(TextRecognizer):
    """Returns fixed text, or raises ``error``."""

    name = "stub"

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = 0

    def recognize(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return OCRResult(text=self.text, engine_used=self.name)


@pytest.fixture
def run():
    return make_run


@pytest.fixture
def token():
    return make_token


@pytest.fixture
def fake_source():
    return FakePageSource


@pytest.fixture
def stub_recognizer():
    return StubRecognizer


@pytest.fixture
def blocker():
    """(release, entered) events for holding a job inside page extraction."""
    release = threading.Event()
    entered = threading.Event()
    yield release, entered
    release.set()


@pytest.fixture
def store(tmp_path):
    from reflow.store import DocumentStore
    return DocumentStore(tmp_path / "store")
