"""
Configuration and constants for the reflow pipeline.

This module provides:
- Global logging setup
- Extraction, OCR and storage settings
- Environment variable overrides
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("reflow")


# ============================================================================
# Directory Paths
# ============================================================================

SRC_DIR = Path(__file__).parent
DEFAULT_STORE_DIR = Path(".reflow")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class ExtractionConfig:
    """Extraction job defaults."""
    mode: str = "fast"  # fast or accurate
    enable_ocr: bool = False


@dataclass
class OCRConfig:
    """OCR fallback configuration."""
    engine: str = "tesseract"
    # Recognition runs with a single fixed language
    language: str = "eng"
    tesseract_config: str = "--oem 3 --psm 3"
    # Page rasterization scale (1.0 = 72 DPI)
    render_scale: float = 2.0
    preprocess: bool = True


@dataclass
class StorageConfig:
    """Document store configuration."""
    store_dir: Path = DEFAULT_STORE_DIR


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    mode = os.environ.get("REFLOW_MODE", "").lower()
    if mode in ("fast", "accurate"):
        config.extraction.mode = mode
    elif mode:
        logger.warning(f"Ignoring unknown REFLOW_MODE: {mode}")

    if os.environ.get("REFLOW_ENABLE_OCR", "").lower() == "true":
        config.extraction.enable_ocr = True

    if os.environ.get("REFLOW_OCR_LANG"):
        config.ocr.language = os.environ["REFLOW_OCR_LANG"]

    if os.environ.get("REFLOW_STORE_DIR"):
        config.storage.store_dir = Path(os.environ["REFLOW_STORE_DIR"])

    if os.environ.get("REFLOW_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config


# ============================================================================
# Utility Functions
# ============================================================================

def check_tesseract_available() -> bool:
    """Check if the Tesseract binary can be reached through pytesseract."""
    try:
        import pytesseract
        pytesseract.get_tesseract_version()
        return True
    except Exception:
        return False
