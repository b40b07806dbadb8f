"""
exceptions.py - Error types raised by the compression pipeline.

Callers get either a CompressionResult or exactly one of these.
"""


class PDFSqueezeError(Exception):
    """Base class for all pdf_squeeze errors."""


class InvalidInputError(PDFSqueezeError):
    """Input is not a recognized or openable PDF document."""


class DecodeError(PDFSqueezeError):
    """A rendered page raster could not be decoded as an image."""


class EstimationError(PDFSqueezeError):
    """Quality estimation cannot proceed (no page sizes, bad page count)."""


class CompressionFailure(PDFSqueezeError):
    """
    Failure during the probing pass or the per-page compression loop.

    The underlying exception is kept on ``cause`` (and chained as
    ``__cause__`` when raised with ``raise ... from``).
    """

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
