"""
compression.py - Page raster re-encoding.

Decodes a rendered page raster and re-encodes it as a single JPEG at the
run's quality level. No resizing, no segmentation.
"""

import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .exceptions import DecodeError

if TYPE_CHECKING:
    from .interfaces import Codec

logger = logging.getLogger(__name__)

# Modes JPEG can store as-is; everything else goes to RGB
JPEG_MODES = ("L", "RGB")


@dataclass
class CompressedPage:
    """Compressed page data ready for PDF embedding."""
    page_num: int
    image_data: bytes
    width: int
    height: int
    is_color: bool
    quality: int

    @property
    def total_size(self) -> int:
        return len(self.image_data)


class PillowCodec:
    """JPEG codec backed by Pillow."""

    def __init__(self, optimize: bool = True):
        self.optimize = optimize

    def decode(self, data: bytes) -> Image.Image:
        """Decode raster bytes (PNG, JPEG, ...) into a loaded PIL image."""
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Unable to decode image: {e}") from e

        if img.mode not in JPEG_MODES:
            # JPEG has no alpha or palette
            img = img.convert("RGB")

        return img

    def encode(self, image: Image.Image, quality: int) -> bytes:
        """Encode as baseline JPEG."""
        buffer = io.BytesIO()
        image.save(
            buffer,
            format="JPEG",
            quality=quality,
            optimize=self.optimize
        )
        return buffer.getvalue()

    def is_color(self, image: Image.Image) -> bool:
        return image.mode != "L"

    def size(self, image: Image.Image) -> Tuple[int, int]:
        return image.size


def compress_page(
    raw: bytes,
    quality: int,
    page_num: int = 0,
    codec: Optional["Codec"] = None
) -> CompressedPage:
    """
    Re-encode one rendered page at the given quality.

    Args:
        raw: Rendered page raster bytes
        quality: JPEG quality (0-100, lower = smaller file)
        page_num: 0-indexed page number, carried through for ordering
        codec: Codec to use (PillowCodec by default)

    Returns:
        CompressedPage with JPEG data

    Raises:
        DecodeError: If raw is not a recognizable image
    """
    if codec is None:
        codec = PillowCodec()

    image = codec.decode(raw)
    width, height = codec.size(image)
    is_color = codec.is_color(image)

    jpeg_data = codec.encode(image, quality)

    logger.info(
        f"Page {page_num + 1}: {len(raw):,} -> {len(jpeg_data):,} bytes | "
        f"{width}x{height} | color={is_color} | q={quality}"
    )

    return CompressedPage(
        page_num=page_num,
        image_data=jpeg_data,
        width=width,
        height=height,
        is_color=is_color,
        quality=quality
    )
