"""
pdf_writer.py - PDF assembly from compressed pages.

Each page is exactly one JPEG (DCTDecode) image scaled to fill the page.
Page size in points is derived from the image's pixel size and the DPI it
was rendered at, so the output keeps the source page geometry.
"""

import io
import logging
from typing import List, Sequence

import pikepdf
from pikepdf import Pdf, Stream, Dictionary, Name

from .compression import CompressedPage
from .options import DEFAULT_DPI

logger = logging.getLogger(__name__)


class PDFWriter:
    """
    Assembles JPEG pages into a minimal PDF.

    No text layers, no masks, no layering.
    """

    def __init__(self, dpi: int = DEFAULT_DPI):
        self.dpi = dpi
        self.pdf = Pdf.new()
        self.pages: List[CompressedPage] = []

    def page_size_pts(self, compressed: CompressedPage):
        """Page (width, height) in PDF points for a page rendered at self.dpi."""
        scale = 72.0 / self.dpi
        return compressed.width * scale, compressed.height * scale

    def add_page(self, compressed: CompressedPage):
        """Add a page to the PDF."""
        width_pts, height_pts = self.page_size_pts(compressed)

        self.pdf.add_blank_page(page_size=(width_pts, height_pts))
        page = self.pdf.pages[-1]

        colorspace = Name.DeviceRGB if compressed.is_color else Name.DeviceGray

        image_dict = Dictionary({
            '/Type': Name.XObject,
            '/Subtype': Name.Image,
            '/Width': compressed.width,
            '/Height': compressed.height,
            '/ColorSpace': colorspace,
            '/BitsPerComponent': 8,
            '/Filter': Name.DCTDecode,
        })
        img_stream = Stream(self.pdf, compressed.image_data, image_dict)

        xobjects = Dictionary({})
        xobjects['/Im0'] = self.pdf.make_indirect(img_stream)

        page.Resources = Dictionary({'/XObject': xobjects})

        # Draw the image scaled to the page
        content = f"""
q
{width_pts:.4f} 0 0 {height_pts:.4f} 0 0 cm
/Im0 Do
Q
"""
        page.Contents = self.pdf.make_indirect(
            Stream(self.pdf, content.strip().encode("ascii"))
        )

        self.pages.append(compressed)

        logger.debug(
            f"Added page {compressed.page_num + 1}: "
            f"{compressed.total_size:,} bytes ({'color' if compressed.is_color else 'gray'})"
        )

    def to_bytes(self) -> bytes:
        """Serialize the PDF."""
        buffer = io.BytesIO()
        self.pdf.save(
            buffer,
            compress_streams=True,
            object_stream_mode=pikepdf.ObjectStreamMode.generate
        )
        data = buffer.getvalue()

        logger.info(
            f"Assembled {len(self.pages)} pages, {len(data):,} bytes "
            f"({self.get_total_size():,} bytes of images)"
        )
        return data

    def get_total_size(self) -> int:
        """Get total content size (before PDF overhead)."""
        return sum(p.total_size for p in self.pages)

    def build(self, pages: Sequence[CompressedPage]) -> bytes:
        """
        Assemble pages into a PDF, ordered by page_num.

        A writer builds one document; use a fresh writer per run.
        """
        for compressed in sorted(pages, key=lambda p: p.page_num):
            self.add_page(compressed)
        return self.to_bytes()
