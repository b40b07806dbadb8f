"""
pipeline.py - Adaptive-quality PDF compression pipeline.

Pipeline:
1. Skip entirely if the file is already within the size threshold
2. Pick a JPEG quality (caller override, or probe page sizes and estimate)
3. Rasterize and re-encode every page, in page order
4. Reassemble the JPEGs into a new PDF

Pages are processed sequentially on a single document handle.
"""

import logging
import time
from pathlib import Path
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .compression import CompressedPage, PillowCodec, compress_page
from .exceptions import (
    CompressionFailure,
    EstimationError,
    InvalidInputError,
    PDFSqueezeError,
)
from .options import DEFAULT_DPI, CompressionOptions
from .interfaces import Assembler, Codec, Renderer
from .pdf_writer import PDFWriter
from .quality import estimate_quality
from .rasterize import PyMuPDFRenderer

logger = logging.getLogger(__name__)


@dataclass
class PageStats:
    """Statistics for a processed page."""
    page_num: int
    raster_size: int = 0
    compressed_size: int = 0
    process_time: float = 0.0
    skipped: bool = False


@dataclass
class CompressionResult:
    """Result of compressing a PDF."""
    input_path: Path
    data: bytes
    original_size: int
    compressed_size: int

    quality: Optional[int] = None
    bypassed: bool = False

    page_count: int = 0
    pages_ok: int = 0
    pages_skipped: int = 0
    total_time: float = 0.0

    page_stats: List[PageStats] = field(default_factory=list)

    @property
    def reduction_pct(self) -> float:
        if self.original_size == 0:
            return 0
        return (1 - self.compressed_size / self.original_size) * 100

    def save(self, output_path: Path) -> Path:
        """Write the result bytes to output_path."""
        output_path = Path(output_path)
        output_path.write_bytes(self.data)
        logger.info(f"Saved {self.compressed_size:,} bytes to {output_path}")
        return output_path

    def summary(self) -> str:
        if self.bypassed:
            return (
                f"Input:  {self.input_path.name} ({self.original_size:,} bytes)\n"
                f"Already within threshold, left unchanged"
            )
        return (
            f"Input:  {self.input_path.name} ({self.original_size:,} bytes)\n"
            f"Output: {self.compressed_size:,} bytes\n"
            f"Reduction: {self.reduction_pct:.1f}%\n"
            f"Quality: {self.quality}\n"
            f"Pages: {self.pages_ok}/{self.page_count}\n"
            f"Time: {self.total_time:.1f}s"
        )


class CompressionPipeline:
    """
    Compresses PDFs by rasterizing pages and re-encoding them as JPEG.

    Renderer, codec and assembler are pluggable (see interfaces.py). When no
    assembler is given a fresh PDFWriter is created for every run.
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        codec: Optional[Codec] = None,
        assembler_factory: Optional[Callable[[], Assembler]] = None,
        options: Optional[CompressionOptions] = None
    ):
        self.options = options or CompressionOptions()
        self.renderer = renderer or PyMuPDFRenderer(dpi=self.options.dpi)
        self.codec = codec or PillowCodec()
        self.assembler_factory = assembler_factory or (
            lambda: PDFWriter(dpi=self.options.dpi)
        )

    def compress(
        self,
        input_path: Path,
        threshold_size: int = 0,
        quality: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> CompressionResult:
        """
        Compress a PDF.

        Args:
            input_path: Input PDF
            threshold_size: Size budget in bytes; files at or under it are
                returned unchanged, otherwise quality is sized to fit it
            quality: JPEG quality override (skips estimation entirely)
            progress_callback: Optional callback(current, total)

        Returns:
            CompressionResult with the output bytes and statistics

        Raises:
            InvalidInputError: Input is missing or not a PDF
            EstimationError: Quality could not be estimated
            CompressionFailure: Rendering or re-encoding failed
        """
        input_path = Path(input_path)
        start_time = time.time()

        if input_path.suffix.lower() != ".pdf":
            raise InvalidInputError(
                f"Invalid PDF file: {input_path.name} (path must end with .pdf)"
            )
        if not input_path.is_file():
            raise InvalidInputError(f"File not found: {input_path}")

        try:
            original = input_path.read_bytes()
        except OSError as e:
            raise InvalidInputError(f"Cannot read {input_path.name}: {e}") from e

        doc = self.renderer.open(input_path)

        try:
            if len(original) <= threshold_size:
                logger.info(
                    f"{input_path.name}: {len(original):,} bytes <= threshold "
                    f"{threshold_size:,}, leaving unchanged"
                )
                return CompressionResult(
                    input_path=input_path,
                    data=original,
                    original_size=len(original),
                    compressed_size=len(original),
                    bypassed=True,
                    total_time=time.time() - start_time
                )

            page_count = self.renderer.page_count(doc)

            logger.info(
                f"Processing {input_path.name}: {page_count} pages, "
                f"{len(original):,} bytes, threshold {threshold_size:,}"
            )

            cache: Dict[int, bytes] = {}
            if quality is None:
                quality = self._estimate_quality(doc, page_count, threshold_size, cache)
            else:
                logger.info(f"Using quality override {quality}")

            pages, page_stats = self._compress_pages(
                doc, page_count, quality, cache, progress_callback
            )
        finally:
            self.renderer.close(doc)

        if not pages:
            logger.error(f"No pages of {input_path.name} could be rasterized")
            raise CompressionFailure(
                f"No pages of {input_path.name} could be rasterized"
            )

        try:
            data = self.assembler_factory().build(pages)
        except PDFSqueezeError:
            raise
        except Exception as e:
            logger.error(f"Failed to assemble PDF: {e}")
            raise CompressionFailure(f"Failed to assemble PDF: {e}", cause=e) from e

        result = CompressionResult(
            input_path=input_path,
            data=data,
            original_size=len(original),
            compressed_size=len(data),
            quality=quality,
            page_count=page_count,
            pages_ok=len(pages),
            pages_skipped=page_count - len(pages),
            total_time=time.time() - start_time,
            page_stats=page_stats
        )

        logger.info(f"\n{result.summary()}")

        return result

    def _render(self, doc, page_index: int, cache: Dict[int, bytes]) -> Optional[bytes]:
        if page_index in cache:
            return cache.pop(page_index)
        return self.renderer.render_page(doc, page_index)

    def _estimate_quality(
        self,
        doc,
        page_count: int,
        threshold_size: int,
        cache: Dict[int, bytes]
    ) -> int:
        """Probing pass: render every page once, record sizes, estimate."""
        page_sizes = []

        try:
            for page_index in range(page_count):
                raster = self.renderer.render_page(doc, page_index)
                if raster is None:
                    logger.warning(f"Page {page_index + 1} produced no raster while probing")
                    continue
                page_sizes.append(len(raster))
                if self.options.cache_renders:
                    cache[page_index] = raster
        except Exception as e:
            logger.error(f"Failed to probe page sizes: {e}")
            raise CompressionFailure(f"Failed to probe page sizes: {e}", cause=e) from e

        logger.debug(f"Probed page sizes: {page_sizes}")

        try:
            return estimate_quality(page_sizes, threshold_size, page_count)
        except EstimationError as e:
            logger.error(f"Quality estimation failed: {e}")
            raise

    def _compress_pages(
        self,
        doc,
        page_count: int,
        quality: int,
        cache: Dict[int, bytes],
        progress_callback: Optional[Callable[[int, int], None]] = None
    ):
        """Render and re-encode each page in order, skipping empty renders."""
        pages: List[CompressedPage] = []
        page_stats: List[PageStats] = []

        for page_index in range(page_count):
            stats = PageStats(page_num=page_index)
            start = time.time()

            try:
                raster = self._render(doc, page_index, cache)
                if raster is None:
                    logger.warning(f"Page {page_index + 1} produced no raster, skipping")
                    stats.skipped = True
                else:
                    compressed = compress_page(raster, quality, page_index, self.codec)
                    pages.append(compressed)
                    stats.raster_size = len(raster)
                    stats.compressed_size = compressed.total_size
            except Exception as e:
                logger.error(f"Page {page_index + 1} failed: {e}")
                raise CompressionFailure(
                    f"Failed to compress page {page_index + 1}: {e}", cause=e
                ) from e

            stats.process_time = time.time() - start
            page_stats.append(stats)

            if progress_callback:
                progress_callback(page_index + 1, page_count)

        return pages, page_stats


def compress_pdf(
    input_path: Path,
    threshold_size: int = 0,
    quality: Optional[int] = None,
    dpi: Optional[int] = None,
    cache_renders: bool = False,
    progress_callback: Optional[Callable[[int, int], None]] = None
) -> CompressionResult:
    """
    Compress a PDF with the default PyMuPDF / Pillow / pikepdf stack.

    See CompressionPipeline.compress for arguments and errors.
    """
    options = CompressionOptions(
        dpi=DEFAULT_DPI if dpi is None else dpi,
        cache_renders=cache_renders
    )

    pipeline = CompressionPipeline(options=options)
    return pipeline.compress(
        input_path,
        threshold_size=threshold_size,
        quality=quality,
        progress_callback=progress_callback
    )
