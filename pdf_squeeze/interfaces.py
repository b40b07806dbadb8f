"""
interfaces.py - Capability protocols the pipeline depends on.

The pipeline only talks to these; concrete implementations live in
rasterize.py (Renderer), compression.py (Codec) and pdf_writer.py
(Assembler). Tests swap in fakes with deterministic sizes.
"""

from pathlib import Path
from typing import Any, Optional, Protocol, Sequence, Tuple

from .compression import CompressedPage


class Renderer(Protocol):
    """
    Opens documents and rasterizes their pages.

    Handles are not thread-safe; one flow per handle.
    """

    def open(self, path: Path) -> Any:
        """
        Open a document.

        Raises:
            InvalidInputError: If the document cannot be opened
        """
        ...

    def page_count(self, doc: Any) -> int:
        """Number of pages in an opened document."""
        ...

    def render_page(self, doc: Any, page_index: int) -> Optional[bytes]:
        """
        Rasterize one page (0-indexed).

        Returns:
            Encoded raster bytes, or None if the page produced no output
        """
        ...

    def close(self, doc: Any) -> None:
        """Release an opened document."""
        ...


class Codec(Protocol):
    """Decodes page rasters and re-encodes them at a lossy quality."""

    def decode(self, data: bytes) -> Any:
        """
        Decode raster bytes into an image.

        Raises:
            DecodeError: If the bytes are not a recognizable image
        """
        ...

    def encode(self, image: Any, quality: int) -> bytes:
        """Encode an image at quality 0-100."""
        ...

    def is_color(self, image: Any) -> bool:
        """True if the decoded image carries color channels."""
        ...

    def size(self, image: Any) -> Tuple[int, int]:
        """(width, height) in pixels."""
        ...


class Assembler(Protocol):
    """Builds the output document from compressed pages."""

    def build(self, pages: Sequence[CompressedPage]) -> bytes:
        """
        Assemble pages into a document, ordered by page_num.

        Returns:
            Output document bytes
        """
        ...
