"""
PDF Squeeze - adaptive-quality rasterizing PDF compressor.

Rasterizes every page, re-encodes each page as JPEG at one quality level
sized to a byte budget, and reassembles the pages into a new PDF.
"""

from .exceptions import (
    PDFSqueezeError,
    InvalidInputError,
    DecodeError,
    EstimationError,
    CompressionFailure,
)
from .options import CompressionOptions
from .quality import adjust_outliers_iqr, estimate_quality
from .compression import CompressedPage, PillowCodec, compress_page
from .pipeline import CompressionPipeline, CompressionResult, compress_pdf

__version__ = "1.0.0"
__author__ = "PDF Squeeze"
