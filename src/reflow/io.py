"""
I/O utilities for the reflow pipeline.

Handles:
- Opening PDF bytes as a page source (positioned text runs per page)
- Page rasterization for the OCR fallback
- JSON serialization with atomic replace
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, List, Union

import numpy as np

from .errors import DocumentOpenError, PageExtractionError, RecognitionError
from .tokens import TextRun

logger = logging.getLogger(__name__)


# ============================================================================
# Page Sources
# ============================================================================

class PageSource:
    """
    Page access for one opened document.

    Implementations return the positioned text runs of a page, raising
    PageExtractionError when a page cannot be decoded, and rasterize pages
    for the OCR fallback.
    """

    @property
    def page_count(self) -> int:
        raise NotImplementedError

    def text_runs(self, page_index: int) -> List[TextRun]:
        raise NotImplementedError

    def render(self, page_index: int, scale: float = 2.0) -> np.ndarray:
        raise NotImplementedError

    def close(self) -> None:
        pass


class PdfPageSource(PageSource):
    """
    PDF page source.

    Text runs come from PyMuPDF spans; rasterization uses pdf2image
    (poppler backend).
    """

    def __init__(self, data: bytes):
        try:
            import fitz
        except ImportError:
            raise ImportError(
                "PyMuPDF is required. Install with: pip install pymupdf"
            )

        self._data = data
        try:
            self._doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentOpenError(f"Failed to open PDF: {e}") from e

        if self._doc.needs_pass:
            self._doc.close()
            raise DocumentOpenError("PDF is encrypted and needs a password")

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def text_runs(self, page_index: int) -> List[TextRun]:
        """
        Collect text runs of one page as (text, transform, advance width).

        PyMuPDF reports spans in a top-left coordinate system; the
        transform is rebuilt in PDF space (origin bottom-left) from the
        span origin, line direction and font size.
        """
        page_number = page_index + 1
        try:
            page = self._doc[page_index]
            height = page.rect.height
            content = page.get_text("dict")
        except Exception as e:
            raise PageExtractionError(page_number, str(e)) from e

        runs = []
        for block in content.get("blocks", []):
            if block.get("type", 0) != 0:
                continue  # image block
            for line in block.get("lines", []):
                cos, sin = line.get("dir", (1.0, 0.0))
                for span in line.get("spans", []):
                    size = float(span.get("size", 0.0))
                    ox, oy = span["origin"]
                    x0, _, x1, _ = span["bbox"]
                    transform = (
                        size * cos, -size * sin,
                        size * sin, size * cos,
                        float(ox), float(height - oy),
                    )
                    advance = (x1 - x0) / size if size else 0.0
                    runs.append(TextRun(text=span.get("text", ""), transform=transform, width=advance))

        logger.debug(f"Page {page_number}: {len(runs)} text runs")
        return runs

    def render(self, page_index: int, scale: float = 2.0) -> np.ndarray:
        """Rasterize one page at ``scale`` (1.0 = 72 DPI) to a BGR array."""
        try:
            from pdf2image import convert_from_bytes
        except ImportError:
            raise ImportError(
                "pdf2image is required. Install with: pip install pdf2image\n"
                "Also ensure poppler is installed on your system."
            )

        page_number = page_index + 1
        try:
            pil_images = convert_from_bytes(
                self._data,
                dpi=int(round(72 * scale)),
                first_page=page_number,
                last_page=page_number,
                fmt='png',
            )
        except Exception as e:
            raise RecognitionError(f"Failed to rasterize page: {e}", page_number) from e

        if not pil_images:
            raise RecognitionError("Rasterizer returned no image", page_number)

        img_array = np.array(pil_images[0].convert("RGB"))
        # RGB -> BGR for OpenCV compatibility
        return img_array[:, :, ::-1].copy()

    def close(self) -> None:
        self._doc.close()


def open_pdf(data: bytes) -> PdfPageSource:
    """Open PDF bytes; raises DocumentOpenError when unreadable."""
    if not data:
        raise DocumentOpenError("Document is empty")
    return PdfPageSource(data)


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars, enums and dataclasses."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    The file is written next to its target and renamed into place, so
    readers see either the previous content or the complete new one.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", dir=output_path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """
    Load data from a JSON file.

    Args:
        json_path: Path to the JSON file

    Returns:
        Parsed JSON data
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
