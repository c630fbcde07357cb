"""Mapping reference layouts onto images of arbitrary resolution."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from spreadvoice.errors import ConfigurationError, LayoutOutOfBounds

from ._constants import LEFT_REGION, RIGHT_REGION
from ._models import LayoutRegion, ReferenceLayout, ScaledRegion


def _scale(value: int, target: int, reference: int) -> int:
    return value * target // reference


def scale_regions(
    layout: ReferenceLayout, target_width: int, target_height: int
) -> list[ScaledRegion]:
    """Scale every layout region to a ``target_width`` x ``target_height`` image.

    Each axis scales independently, so regions stretch with the target's
    aspect ratio. Order follows ``layout.regions``. Results are never clipped:
    a region falling outside the target, or collapsing to zero size, raises
    ``LayoutOutOfBounds``.
    """
    if target_width <= 0 or target_height <= 0:
        raise LayoutOutOfBounds(
            layout.regions[0].name, target_width, target_height, reason="has no pixels to map"
        )

    scaled: list[ScaledRegion] = []
    for region in layout.regions:
        candidate = ScaledRegion(
            name=region.name,
            x=_scale(region.offset_x, target_width, layout.reference_width),
            y=_scale(region.offset_y, target_height, layout.reference_height),
            width=_scale(region.width, target_width, layout.reference_width),
            height=_scale(region.height, target_height, layout.reference_height),
        )
        if candidate.width <= 0 or candidate.height <= 0:
            raise LayoutOutOfBounds(
                region.name,
                target_width,
                target_height,
                region=candidate,
                reason="scales to an empty rectangle",
            )
        if not candidate.fits(target_width, target_height):
            raise LayoutOutOfBounds(region.name, target_width, target_height, region=candidate)
        scaled.append(candidate)
    return scaled


def split_layout_at_column(width: int, height: int, column: int) -> ReferenceLayout:
    """Two-region layout splitting a ``width`` x ``height`` page at ``column``.

    The left page covers ``[0, column)`` and the right page ``[column, width)``,
    both over the full height, measured at the image's own resolution.
    """
    if not 0 < column < width:
        raise LayoutOutOfBounds(
            RIGHT_REGION,
            width,
            height,
            reason=f"cannot be split at column {column}",
        )
    return ReferenceLayout(
        reference_width=width,
        reference_height=height,
        regions=(
            LayoutRegion(name=LEFT_REGION, offset_x=0, offset_y=0, width=column, height=height),
            LayoutRegion(
                name=RIGHT_REGION,
                offset_x=column,
                offset_y=0,
                width=width - column,
                height=height,
            ),
        ),
    )


def load_reference_layout(path: Path) -> ReferenceLayout:
    """Read a reference layout from a JSON file.

    Expected shape::

        {"reference_width": 3099, "reference_height": 2379,
         "regions": [{"name": "left", "offset_x": 374, "offset_y": 193,
                      "width": 1166, "height": 1809}, ...]}
    """
    try:
        payload = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read layout file {path}: {exc}") from exc
    try:
        return ReferenceLayout.model_validate_json(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid layout file {path}: {exc}") from exc


__all__ = ["load_reference_layout", "scale_regions", "split_layout_at_column"]
