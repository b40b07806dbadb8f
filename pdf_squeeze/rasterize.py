"""
rasterize.py - PDF page rendering using PyMuPDF.

Fast in-memory rendering. Pages come out as maximum-quality JPEG bytes so their
size can be measured before re-encoding.
"""

import logging
from pathlib import Path
from typing import Optional

try:
    import fitz  # pip install pymupdf
except ImportError:
    import pymupdf as fitz  # apt install python3-pymupdf

from .exceptions import InvalidInputError
from .options import DEFAULT_DPI, MIN_DPI, MAX_DPI

logger = logging.getLogger(__name__)


class PyMuPDFRenderer:
    """Renderer backed by PyMuPDF."""

    def __init__(self, dpi: int = DEFAULT_DPI):
        self.dpi = max(MIN_DPI, min(dpi, MAX_DPI))
        # Calculate zoom factor (72 DPI is PDF default)
        zoom = self.dpi / 72.0
        self.matrix = fitz.Matrix(zoom, zoom)

    def open(self, path: Path) -> "fitz.Document":
        """Open a PDF, raising InvalidInputError if it is not one."""
        path = Path(path)
        try:
            doc = fitz.open(path)
        except (RuntimeError, ValueError, OSError) as e:
            raise InvalidInputError(f"Cannot open {path.name}: {e}") from e

        if not doc.is_pdf:
            doc.close()
            raise InvalidInputError(f"Not a PDF document: {path.name}")
        if doc.needs_pass:
            doc.close()
            raise InvalidInputError(f"Encrypted PDF: {path.name}")
        if len(doc) == 0:
            doc.close()
            raise InvalidInputError(f"PDF has no pages: {path.name}")

        logger.debug(f"Opened {path.name}: {len(doc)} pages")
        return doc

    def page_count(self, doc: "fitz.Document") -> int:
        return len(doc)

    def render_page(self, doc: "fitz.Document", page_index: int) -> Optional[bytes]:
        """
        Rasterize a single page to JPEG bytes at quality 100.

        Args:
            doc: Document returned by open()
            page_index: 0-indexed page number

        Returns:
            JPEG bytes, or None if the page rendered to nothing
        """
        page = doc[page_index]

        # Render to pixmap (in-memory), no alpha: JPEG can't keep it anyway
        pixmap = page.get_pixmap(matrix=self.matrix, alpha=False)

        if pixmap.width == 0 or pixmap.height == 0:
            logger.debug(f"Page {page_index + 1} rendered empty")
            return None

        data = pixmap.tobytes("jpg", jpg_quality=100)

        logger.debug(
            f"Rasterized page {page_index + 1}: {pixmap.width}x{pixmap.height} "
            f"@ {self.dpi} DPI, {len(data):,} bytes"
        )

        return data

    def close(self, doc: "fitz.Document") -> None:
        doc.close()
