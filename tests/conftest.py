from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdf_squeeze.exceptions import DecodeError, InvalidInputError  # noqa: E402

try:
    import fitz
except ImportError:
    import pymupdf as fitz


class FakeDocument:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.closed = False


class FakeRenderer:
    """Renders page i as ``rasters[i]`` and records every call."""

    def __init__(self, rasters: Sequence[Optional[bytes]], fail_on: Optional[int] = None) -> None:
        self.rasters = list(rasters)
        self.fail_on = fail_on
        self.render_calls: List[int] = []
        self.opened: List[FakeDocument] = []

    @classmethod
    def with_sizes(cls, sizes: Sequence[Optional[int]], **kwargs) -> "FakeRenderer":
        return cls([None if size is None else b"r" * size for size in sizes], **kwargs)

    def open(self, path: Path) -> FakeDocument:
        doc = FakeDocument(path)
        self.opened.append(doc)
        return doc

    def page_count(self, doc: FakeDocument) -> int:
        return len(self.rasters)

    def render_page(self, doc: FakeDocument, page_index: int) -> Optional[bytes]:
        assert not doc.closed
        self.render_calls.append(page_index)
        if self.fail_on == page_index:
            raise RuntimeError(f"render crashed on page {page_index}")
        return self.rasters[page_index]

    def close(self, doc: FakeDocument) -> None:
        doc.closed = True


class RejectingRenderer(FakeRenderer):
    def open(self, path: Path) -> FakeDocument:
        raise InvalidInputError(f"cannot open {path}")


class FakeCodec:
    """Treats raster bytes as the image; rasters starting with b"BAD" fail to decode."""

    def __init__(self) -> None:
        self.qualities: List[int] = []

    def decode(self, data: bytes) -> bytes:
        if data.startswith(b"BAD"):
            raise DecodeError("Unable to decode image")
        return data

    def encode(self, image: bytes, quality: int) -> bytes:
        self.qualities.append(quality)
        return image[: max(1, len(image) * quality // 100)]

    def is_color(self, image: bytes) -> bool:
        return True

    def size(self, image: bytes):
        return 10, 10


class FakeAssembler:
    def __init__(self) -> None:
        self.builds: List[list] = []

    def build(self, pages) -> bytes:
        self.builds.append(list(pages))
        return b"%PDF-assembled" + b"".join(p.image_data for p in pages)


@pytest.fixture()
def fake_codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture()
def fake_assembler() -> FakeAssembler:
    return FakeAssembler()


@pytest.fixture()
def fake_pdf(tmp_path: Path) -> Path:
    """A .pdf file of 200,000 bytes; fakes never look inside it."""
    path = tmp_path / "fake.pdf"
    path.write_bytes(b"%PDF-1.4\n" + b"0" * (200_000 - 9))
    return path


@pytest.fixture()
def real_pdf(tmp_path: Path) -> Path:
    """Three 300x400pt pages with text and a filled rectangle."""
    path = tmp_path / "real.pdf"
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page(width=300, height=400)
        page.insert_text((50, 72), f"Page {i + 1}", fontsize=24)
        page.draw_rect(fitz.Rect(50, 100, 250, 300), color=(1, 0, 0), fill=(0, 0, 1))
    doc.save(str(path))
    doc.close()
    return path


def make_image_bytes(mode: str = "RGB", size=(32, 32), fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    if mode == "L":
        color = color[0]
    elif mode == "RGBA":
        color = tuple(color) + (128,)
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()
