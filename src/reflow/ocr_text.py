"""
Text OCR module for the page fallback.

Provides:
- A recognizer interface (page image -> text)
- Tesseract recognizer with light image preprocessing
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from .errors import RecognitionError

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class OCRResult:
    """Recognized text of one page image."""
    text: str
    engine_used: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "engine": self.engine_used,
            "metadata": self.metadata
        }


# ============================================================================
# Recognizer Interface
# ============================================================================

class TextRecognizer:
    """Black-box text recognition: page image -> OCRResult."""

    name = "base"

    def recognize(self, image: np.ndarray) -> OCRResult:
        raise NotImplementedError


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractRecognizer(TextRecognizer):
    """OCR using Tesseract, configured for a single language."""

    name = "tesseract"

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 3",
        preprocess: bool = True
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.config = config
        self.preprocess = preprocess

    def _preprocess_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Grayscale and binarize a rendered page."""
        import cv2

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image.copy()

        # Rendered pages are clean; Otsu is enough
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    def _to_pil(self, image: np.ndarray):
        """Convert a grayscale or BGR array to a PIL image."""
        import cv2
        from PIL import Image

        if len(image.shape) == 2:
            return Image.fromarray(image)
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

    def recognize(self, image: np.ndarray) -> OCRResult:
        """Recognize text using Tesseract."""
        processed = self._preprocess_for_ocr(image) if self.preprocess else image

        try:
            text = self.pytesseract.image_to_string(
                self._to_pil(processed),
                lang=self.language,
                config=self.config
            )
        except Exception as e:
            raise RecognitionError(f"Tesseract failed: {e}") from e

        return OCRResult(
            text=text,
            engine_used=self.name,
            metadata={"language": self.language}
        )


def create_recognizer(
    engine: str = "tesseract",
    language: str = "eng",
    config: str = "--oem 3 --psm 3",
    preprocess: bool = True
) -> TextRecognizer:
    """Create an OCR engine instance."""
    if engine == "tesseract":
        return TesseractRecognizer(language=language, config=config, preprocess=preprocess)
    raise ValueError(f"Unknown OCR engine: {engine}")
