#!/usr/bin/env python
"""
Command-line interface for the Reflow document reconstruction engine.

Usage:
    python src/cli.py --input <pdf> --output <output_dir> [options]

Examples:
    # Extract a PDF into Markdown and JSON blocks
    python src/cli.py --input document.pdf --output ./output

    # Paragraph-per-line extraction with OCR for unreadable pages
    python src/cli.py --input document.pdf --output ./output --mode accurate --enable-ocr
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import asyncio
import logging
import time

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("reflow")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Reflow - Convert PDF text into reflowable paragraphs and headings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Extract a PDF and export all formats:
    python -m src.cli --input document.pdf --output ./output --format all

  One paragraph per visual line, OCR for pages without text:
    python -m src.cli --input document.pdf --output ./output --mode accurate --enable-ocr
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["json", "markdown"],
        choices=["json", "markdown", "text", "all"],
        help="Output format(s) (default: json markdown)"
    )

    parser.add_argument(
        "--mode",
        choices=["fast", "accurate"],
        default=None,
        help="Extraction mode (default: fast, or REFLOW_MODE)"
    )

    parser.add_argument(
        "--enable-ocr",
        action="store_true",
        help="OCR pages whose text cannot be extracted"
    )

    parser.add_argument(
        "--ocr-lang",
        default=None,
        help="Tesseract language for the OCR fallback (default: eng)"
    )

    parser.add_argument(
        "--store-dir",
        default=None,
        help="Document store directory (default: .reflow)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def run_pipeline(args) -> int:
    """Import the PDF, run one extraction job and export the blocks."""
    from config import check_tesseract_available, get_config
    from reflow.export import DocumentExporter, table_of_contents
    from reflow.jobs import ExtractionScheduler
    from reflow.ocr_text import create_recognizer
    from reflow.store import DocumentStore

    config = get_config()
    if config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)
    mode = args.mode or config.extraction.mode
    enable_ocr = args.enable_ocr or config.extraction.enable_ocr
    language = args.ocr_lang or config.ocr.language
    store_dir = Path(args.store_dir) if args.store_dir else config.storage.store_dir

    start_time = time.time()

    input_path = Path(args.input)
    if input_path.suffix.lower() != ".pdf":
        logger.error(f"Unsupported input type: {input_path}")
        return 1

    if enable_ocr and not check_tesseract_available():
        logger.warning("Tesseract not found; pages without text will get a placeholder block")

    store = DocumentStore(store_dir)
    doc_id = store.import_pdf(input_path)

    scheduler = ExtractionScheduler(
        store,
        recognizer_factory=lambda: create_recognizer(
            engine=config.ocr.engine,
            language=language,
            config=config.ocr.tesseract_config,
            preprocess=config.ocr.preprocess
        ),
        render_scale=config.ocr.render_scale
    )

    logger.info(f"Extracting {input_path} ({mode} mode, OCR {'on' if enable_ocr else 'off'})")
    outcome = asyncio.run(scheduler.run_extraction(doc_id, mode=mode, enable_ocr=enable_ocr))

    if not outcome.ok:
        logger.error(f"Extraction failed: {outcome.message}")
        return 1

    store.mark_opened(doc_id)
    blocks = store.get_blocks(doc_id) or []

    exporter = DocumentExporter(Path(args.output), input_path.stem)
    export_results = exporter.export(blocks, args.format)
    for fmt, path in export_results.items():
        logger.info(f"Exported {fmt}: {path}")

    # Print summary
    elapsed = time.time() - start_time
    headings = table_of_contents(blocks)

    if not args.quiet:
        print("\n" + "="*60)
        print("EXTRACTION COMPLETE")
        print("="*60)
        print(f"Source: {input_path}")
        print(f"Document id: {doc_id}")
        print(f"Output: {args.output}")
        print(f"Pages: {outcome.page_count}")
        print(f"Blocks: {len(blocks)} ({len(headings)} headings)")
        print(f"Processing time: {elapsed:.2f}s")
        print("="*60)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
