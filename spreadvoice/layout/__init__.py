"""Page layout inference: gutter detection and region scaling."""

from ._models import DEFAULT_REFERENCE_LAYOUT, LayoutRegion, ReferenceLayout, ScaledRegion
from .detector import GutterParameters, detect_gutter
from .regions import load_reference_layout, scale_regions, split_layout_at_column
from .splitter import PageSplitter, SplitMode


__all__ = [
    "DEFAULT_REFERENCE_LAYOUT",
    "GutterParameters",
    "LayoutRegion",
    "PageSplitter",
    "ReferenceLayout",
    "ScaledRegion",
    "SplitMode",
    "detect_gutter",
    "load_reference_layout",
    "scale_regions",
    "split_layout_at_column",
]
