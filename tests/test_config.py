"""
Tests for configuration and environment overrides.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("REFLOW_MODE", "REFLOW_ENABLE_OCR", "REFLOW_OCR_LANG", "REFLOW_STORE_DIR", "REFLOW_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:
    """Test default values and overrides."""

    def test_defaults(self, clean_env):
        """Test default configuration values."""
        from config import get_config

        config = get_config()

        assert config.extraction.mode == "fast"
        assert config.extraction.enable_ocr is False
        assert config.ocr.language == "eng"
        assert config.ocr.render_scale == 2.0
        assert config.storage.store_dir == Path(".reflow")
        assert config.debug_mode is False

    def test_environment_overrides(self, clean_env, tmp_path):
        """Test environment variable overrides."""
        from config import get_config

        clean_env.setenv("REFLOW_MODE", "Accurate")
        clean_env.setenv("REFLOW_ENABLE_OCR", "true")
        clean_env.setenv("REFLOW_OCR_LANG", "deu")
        clean_env.setenv("REFLOW_STORE_DIR", str(tmp_path))
        clean_env.setenv("REFLOW_DEBUG", "TRUE")

        config = get_config()

        assert config.extraction.mode == "accurate"
        assert config.extraction.enable_ocr is True
        assert config.ocr.language == "deu"
        assert config.storage.store_dir == tmp_path
        assert config.debug_mode is True

    def test_unknown_mode_ignored(self, clean_env):
        """Test that an unknown mode is ignored."""
        from config import get_config

        clean_env.setenv("REFLOW_MODE", "thorough")

        assert get_config().extraction.mode == "fast"

    def test_fresh_instance_per_call(self, clean_env):
        """Test that each call returns a new configuration."""
        from config import get_config

        first = get_config()
        first.ocr.language = "fra"

        assert get_config().ocr.language == "eng"

    def test_tesseract_availability_check(self):
        """Test the Tesseract availability check."""
        from config import check_tesseract_available

        assert check_tesseract_available() in (True, False)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
