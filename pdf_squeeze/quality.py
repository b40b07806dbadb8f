"""
quality.py - Adaptive JPEG quality selection.

Picks one quality level for the whole document from the rendered page
sizes and a total size budget:

1. Clamp outlier page sizes with an IQR rule (one huge page must not drag
   every other page down to an illegible quality)
2. Compare the average clamped page size to the per-page budget
3. Scale to 0-100 and clamp to [MIN_QUALITY, MAX_QUALITY]
"""

import logging
import math
from typing import List, Sequence

from .exceptions import EstimationError

logger = logging.getLogger(__name__)

# Anything below this makes text illegible
MIN_QUALITY = 35
MAX_QUALITY = 100

# Standard Tukey fence multiplier
IQR_MULTIPLIER = 1.5


def round_half_up(value: float) -> int:
    """Round to nearest int, halves away from zero (not banker's rounding)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def adjust_outliers_iqr(values: Sequence[int]) -> List[int]:
    """
    Clamp extreme values to IQR fences (winsorization, not removal).

    Quartiles are read straight from the sorted copy at floor(n * 0.25) and
    floor(n * 0.75), no interpolation. Output keeps the input's length and
    order; the input is not modified.
    """
    if not values:
        return list(values)

    ordered = sorted(values)
    n = len(ordered)

    q1 = ordered[math.floor(n * 0.25)]
    q3 = ordered[math.floor(n * 0.75)]
    iqr = q3 - q1

    lower_bound = q1 - round_half_up(IQR_MULTIPLIER * iqr)
    upper_bound = q3 + round_half_up(IQR_MULTIPLIER * iqr)

    logger.debug(
        f"IQR fences: q1={q1:,} q3={q3:,} iqr={iqr:,} "
        f"bounds=[{lower_bound:,}, {upper_bound:,}]"
    )

    adjusted = []
    for size in values:
        if size < lower_bound:
            adjusted.append(lower_bound)
        elif size > upper_bound:
            adjusted.append(upper_bound)
        else:
            adjusted.append(size)

    return adjusted


def estimate_quality(
    page_sizes: Sequence[int],
    threshold_size: int,
    page_count: int
) -> int:
    """
    Estimate a JPEG quality that brings the document near threshold_size.

    Args:
        page_sizes: Rendered raster size of each page, in bytes
        threshold_size: Total size budget for the output, in bytes
        page_count: Number of pages in the document

    Returns:
        Quality in [MIN_QUALITY, MAX_QUALITY]

    Raises:
        EstimationError: No page sizes, page_count <= 0, or all sizes zero
    """
    if page_count <= 0:
        raise EstimationError(f"Invalid page count: {page_count}")
    if not page_sizes:
        raise EstimationError("No page sizes collected, cannot estimate quality")

    allowed_size_per_image = threshold_size / page_count

    adjusted = adjust_outliers_iqr(page_sizes)

    # Truncating division, not rounding
    average_page_size = sum(adjusted) // len(adjusted)
    if average_page_size <= 0:
        raise EstimationError(
            f"Average adjusted page size is {average_page_size}, cannot estimate quality"
        )

    compression_ratio = allowed_size_per_image / average_page_size
    quality = round_half_up(compression_ratio * 100)
    quality = max(MIN_QUALITY, min(quality, MAX_QUALITY))

    logger.debug(
        f"Allowed per page: {allowed_size_per_image:,.0f} bytes | "
        f"avg adjusted page: {average_page_size:,} bytes | "
        f"ratio: {compression_ratio:.3f}"
    )
    logger.info(f"Estimated quality {quality} for {page_count} pages")

    return quality
