"""Strategies that turn one page bitmap into its ordered logical regions."""

from __future__ import annotations

from enum import Enum

from spreadvoice.page import PageBitmap
from spreadvoice.utils.log_utils import logger

from ._models import DEFAULT_REFERENCE_LAYOUT, ReferenceLayout, ScaledRegion
from .detector import GutterParameters, detect_gutter
from .regions import scale_regions, split_layout_at_column


class SplitMode(str, Enum):
    REFERENCE = "reference"
    GUTTER = "gutter"


class PageSplitter:
    """Plans the sub-regions of every page for one run.

    ``REFERENCE`` scales the configured reference layout onto each page.
    ``GUTTER`` splits at the detected gutter column and falls back to the
    midpoint when none is found.
    """

    def __init__(
        self,
        mode: SplitMode = SplitMode.REFERENCE,
        *,
        layout: ReferenceLayout | None = None,
        gutter: GutterParameters | None = None,
    ) -> None:
        self.mode = mode
        self.layout = layout or DEFAULT_REFERENCE_LAYOUT
        self.gutter = gutter or GutterParameters()

    @property
    def region_count(self) -> int:
        """Number of logical pages per physical page (``k``)."""
        if self.mode == SplitMode.GUTTER:
            return 2
        return self.layout.region_count

    def split_column(self, bitmap: PageBitmap) -> int:
        column = detect_gutter(bitmap, self.gutter)
        if column is None:
            column = bitmap.width // 2
            logger.info(
                f"Page {bitmap.page_index}: no gutter detected, splitting at midpoint {column}."
            )
        else:
            logger.info(f"Page {bitmap.page_index}: gutter detected at column {column}.")
        return column

    def plan(self, bitmap: PageBitmap) -> list[ScaledRegion]:
        if self.mode == SplitMode.GUTTER:
            column = self.split_column(bitmap)
            layout = split_layout_at_column(bitmap.width, bitmap.height, column)
        else:
            layout = self.layout
        regions = scale_regions(layout, bitmap.width, bitmap.height)
        logger.debug(f"Page {bitmap.page_index} regions: {regions}")
        return regions


__all__ = ["PageSplitter", "SplitMode"]
