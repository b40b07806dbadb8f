from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from pdf_squeeze.compression import CompressedPage, PillowCodec, compress_page
from pdf_squeeze.exceptions import DecodeError

from conftest import FakeCodec, make_image_bytes


def noisy_png(size=(64, 64)) -> bytes:
    rng = random.Random(0)
    raw = bytes(rng.getrandbits(8) for _ in range(size[0] * size[1] * 3))
    image = Image.frombytes("RGB", size, raw)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_codec_decodes_png() -> None:
    codec = PillowCodec()
    image = codec.decode(make_image_bytes("RGB", size=(40, 20)))
    assert codec.size(image) == (40, 20)
    assert codec.is_color(image)


def test_codec_keeps_grayscale() -> None:
    codec = PillowCodec()
    image = codec.decode(make_image_bytes("L"))
    assert image.mode == "L"
    assert not codec.is_color(image)


def test_codec_drops_alpha() -> None:
    codec = PillowCodec()
    image = codec.decode(make_image_bytes("RGBA"))
    assert image.mode == "RGB"


def test_codec_rejects_garbage() -> None:
    with pytest.raises(DecodeError):
        PillowCodec().decode(b"definitely not an image")


def test_codec_rejects_truncated_png() -> None:
    data = noisy_png()
    with pytest.raises(DecodeError):
        PillowCodec().decode(data[: len(data) // 2])


def test_codec_encodes_jpeg() -> None:
    codec = PillowCodec()
    data = codec.encode(codec.decode(make_image_bytes()), 50)
    assert data[:2] == b"\xff\xd8"


def test_lower_quality_gives_smaller_output() -> None:
    codec = PillowCodec()
    image = codec.decode(noisy_png())
    assert len(codec.encode(image, 10)) < len(codec.encode(image, 90))


def test_compress_page_with_default_codec() -> None:
    page = compress_page(make_image_bytes("L", size=(30, 50)), 60, page_num=4)

    assert isinstance(page, CompressedPage)
    assert page.page_num == 4
    assert (page.width, page.height) == (30, 50)
    assert page.is_color is False
    assert page.quality == 60
    assert page.total_size == len(page.image_data)
    assert Image.open(io.BytesIO(page.image_data)).format == "JPEG"


def test_compress_page_passes_quality_to_codec() -> None:
    codec = FakeCodec()
    page = compress_page(b"r" * 1_000, 40, page_num=1, codec=codec)

    assert codec.qualities == [40]
    assert page.total_size == 400


def test_compress_page_propagates_decode_error() -> None:
    with pytest.raises(DecodeError):
        compress_page(b"BAD raster", 50, codec=FakeCodec())
