#!/usr/bin/env python3
"""
squeeze_pdf.py - Adaptive-quality PDF compression CLI.

Rasterizes every page and re-encodes it as JPEG at a quality sized so the
output lands near a byte threshold. Files already under the threshold are
copied through unchanged.

Usage:
    python squeeze_pdf.py input.pdf -t 2M -o output.pdf
    python squeeze_pdf.py input.pdf -q 60
    python squeeze_pdf.py *.pdf -t 500K --output-dir ./compressed/
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from pdf_squeeze.exceptions import PDFSqueezeError
from pdf_squeeze.options import CompressionOptions, DEFAULT_DPI
from pdf_squeeze.pipeline import CompressionPipeline

SIZE_SUFFIXES = {"K": 1024, "M": 1024 ** 2, "G": 1024 ** 3}


def parse_size(value: str) -> int:
    """Parse a byte count with optional K/M/G suffix ("500K", "2M")."""
    text = value.strip().upper().rstrip("B")
    multiplier = 1
    if text and text[-1] in SIZE_SUFFIXES:
        multiplier = SIZE_SUFFIXES[text[-1]]
        text = text[:-1]
    try:
        size = int(float(text) * multiplier)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size: {value}")
    if size < 0:
        raise argparse.ArgumentTypeError(f"Size must not be negative: {value}")
    return size


def parse_quality(value: str) -> int:
    """JPEG quality 0-100."""
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid quality: {value}")
    if not 0 <= quality <= 100:
        raise argparse.ArgumentTypeError("Quality must be between 0 and 100")
    return quality


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Rasterize and recompress PDFs to fit a size threshold.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python squeeze_pdf.py scan.pdf -t 2M -o compressed.pdf
  python squeeze_pdf.py scan.pdf -q 60
  python squeeze_pdf.py *.pdf -t 500K --output-dir ./out/

Without --quality, every page is rendered once to measure it and a single
JPEG quality (35-100) is picked so the output approaches --threshold.
The output PDF is fully rasterized (no text, vectors or fonts).
"""
    )

    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input PDF file(s)"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file (single input only)"
    )
    output.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory (for multiple files)"
    )

    parser.add_argument(
        "-t", "--threshold",
        type=parse_size,
        default=0,
        help="Target size in bytes, K/M/G suffix allowed; smaller files are left as-is (default: 0)"
    )

    parser.add_argument(
        "-q", "--quality",
        type=parse_quality,
        default=None,
        help="JPEG quality 0-100, skips estimation (default: estimate)"
    )

    parser.add_argument(
        "-d", "--dpi",
        type=int,
        default=DEFAULT_DPI,
        help=f"Render DPI 50-300 (default: {DEFAULT_DPI})"
    )

    parser.add_argument(
        "--cache-renders",
        action="store_true",
        help="Keep probing renders in memory instead of rendering each page twice"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def print_progress(current: int, total: int):
    """Print progress bar."""
    width = 40
    filled = int(width * current / total)
    bar = "=" * filled + "-" * (width - filled)
    pct = current / total * 100
    print(f"\r[{bar}] {current}/{total} ({pct:.0f}%)", end="", file=sys.stderr)
    if current == total:
        print(file=sys.stderr)


def squeeze_file(pipeline, input_path: Path, output_path: Path, args):
    """Compress one file and write it. Returns the result, or None on failure."""
    try:
        result = pipeline.compress(
            input_path,
            threshold_size=args.threshold,
            quality=args.quality,
            progress_callback=print_progress
        )
    except PDFSqueezeError as e:
        print(f"Error: {input_path.name}: {e}", file=sys.stderr)
        return None

    try:
        result.save(output_path)
    except OSError as e:
        print(f"Error: {input_path.name}: cannot write {output_path}: {e}", file=sys.stderr)
        return None

    return result


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        options = CompressionOptions(dpi=args.dpi, cache_renders=args.cache_renders)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Validate inputs
    valid_inputs = []
    for p in args.input:
        if not p.exists():
            print(f"Error: File not found: {p}", file=sys.stderr)
            continue
        if p.suffix.lower() != ".pdf":
            print(f"Warning: Skipping non-PDF: {p}", file=sys.stderr)
            continue
        valid_inputs.append(p)

    if not valid_inputs:
        print("Error: No valid PDF files", file=sys.stderr)
        sys.exit(1)

    # Determine output
    if len(valid_inputs) > 1:
        if args.output:
            print("Error: Use --output-dir for multiple files", file=sys.stderr)
            sys.exit(1)
        if not args.output_dir:
            args.output_dir = Path(".")

    pipeline = CompressionPipeline(options=options)

    # Process single file
    if len(valid_inputs) == 1:
        input_path = valid_inputs[0]
        if args.output:
            output_path = args.output
        elif args.output_dir:
            args.output_dir.mkdir(parents=True, exist_ok=True)
            output_path = args.output_dir / f"{input_path.stem}_squeezed.pdf"
        else:
            output_path = input_path.with_name(f"{input_path.stem}_squeezed.pdf")

        result = squeeze_file(pipeline, input_path, output_path, args)
        if result is None:
            sys.exit(1)

        print(f"\n{result.summary()}")
        sys.exit(0)

    # Batch processing
    args.output_dir.mkdir(parents=True, exist_ok=True)

    total_in = 0
    total_out = 0
    successes = 0

    for i, input_path in enumerate(valid_inputs):
        output_path = args.output_dir / f"{input_path.stem}_squeezed.pdf"
        print(f"\n[{i+1}/{len(valid_inputs)}] {input_path.name}")

        result = squeeze_file(pipeline, input_path, output_path, args)
        if result is None:
            continue

        total_in += result.original_size
        total_out += result.compressed_size
        successes += 1

    print(f"\n{'='*50}")
    print(f"Batch complete: {successes}/{len(valid_inputs)} files")
    print(f"Total: {total_in:,} -> {total_out:,} bytes")
    if total_in > 0:
        print(f"Reduction: {(1 - total_out/total_in)*100:.1f}%")

    sys.exit(0 if successes == len(valid_inputs) else 1)


if __name__ == "__main__":
    main()
