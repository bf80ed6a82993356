"""
Reflow Document Reconstruction
==============================

Converts the positioned text runs of PDF pages into an ordered sequence of
paragraph and heading blocks for reflowable reading.

Main components:
- Token ingestion (run transform -> positioned token)
- Line clustering and punctuation-aware joining
- Paragraph assembly (boundaries, de-hyphenation, headings)
- OCR fallback for pages without usable text
- Block emission, atomic persistence and job scheduling
"""

__version__ = "1.0.0"
__author__ = "Reflow Team"
