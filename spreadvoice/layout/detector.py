"""Gutter detection on rasterized two-up pages."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

from spreadvoice.page import PageBitmap

from ._constants import DARK_THRESHOLD, LEFT_MARGIN_RATIO, MIN_COVERAGE


@dataclass(frozen=True)
class GutterParameters:
    """Tuning knobs for ``detect_gutter``.

    The defaults were chosen empirically on the scanned corpus.
    """

    dark_threshold: int = DARK_THRESHOLD
    left_margin_ratio: float = LEFT_MARGIN_RATIO
    min_coverage: float = MIN_COVERAGE

    def __post_init__(self) -> None:
        if not 0 <= self.dark_threshold <= 256:
            raise ValueError("dark_threshold must be within [0, 256]")
        if not 0.0 <= self.left_margin_ratio < 1.0:
            raise ValueError("left_margin_ratio must be within [0.0, 1.0)")
        if not 0.0 <= self.min_coverage < 1.0:
            raise ValueError("min_coverage must be within [0.0, 1.0)")


def _as_gray_array(image: PageBitmap | Image.Image | np.ndarray) -> np.ndarray:
    if isinstance(image, PageBitmap):
        return image.to_array()
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("L"), dtype=np.uint8)
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2-D grayscale array, got shape {arr.shape}")
    return arr


def dark_column_counts(
    image: PageBitmap | Image.Image | np.ndarray,
    dark_threshold: int = DARK_THRESHOLD,
) -> np.ndarray:
    """Number of dark pixels in every column, over the full height."""
    arr = _as_gray_array(image)
    return np.count_nonzero(arr < dark_threshold, axis=0)


def detect_gutter(
    image: PageBitmap | Image.Image | np.ndarray,
    params: GutterParameters | None = None,
) -> int | None:
    """Locate the printed vertical rule between two side-by-side pages.

    Columns left of ``width * left_margin_ratio`` are skipped. The column with
    the most dark pixels wins (the leftmost one on ties) and is returned only
    if it is dark across more than ``min_coverage`` of the height. ``None``
    means no rule was found; callers decide how to fall back.
    """
    params = params or GutterParameters()
    arr = _as_gray_array(image)
    height, width = arr.shape
    start = int(width * params.left_margin_ratio)
    if height == 0 or start >= width:
        return None

    counts = dark_column_counts(arr[:, start:], params.dark_threshold)
    best = int(np.argmax(counts))
    if counts[best] > height * params.min_coverage:
        return start + best
    return None


__all__ = ["GutterParameters", "dark_column_counts", "detect_gutter"]
