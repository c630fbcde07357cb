"""Layout records: reference rectangles and their scaled counterparts."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ._constants import (
    LEFT_REGION,
    REFERENCE_HEIGHT,
    REFERENCE_LEFT_OFFSET,
    REFERENCE_REGION_HEIGHT,
    REFERENCE_REGION_WIDTH,
    REFERENCE_RIGHT_OFFSET,
    REFERENCE_WIDTH,
    RIGHT_REGION,
)


class LayoutRegion(BaseModel):
    """One logical sub-page measured on the reference exemplar."""

    name: str = Field(min_length=1)
    offset_x: int = Field(ge=0)
    offset_y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ReferenceLayout(BaseModel):
    """Region rectangles recorded against one known-resolution page.

    Region order is significant: it fixes the sub-page number ``r`` used in
    logical unit numbering.
    """

    reference_width: int = Field(gt=0)
    reference_height: int = Field(gt=0)
    regions: tuple[LayoutRegion, ...]

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_regions(self) -> ReferenceLayout:
        if not self.regions:
            raise ValueError("A reference layout needs at least one region.")
        names = [region.name for region in self.regions]
        if len(set(names)) != len(names):
            raise ValueError(f"Region names must be unique, got {names}")
        return self

    @property
    def region_count(self) -> int:
        return len(self.regions)


@dataclass(frozen=True, slots=True)
class ScaledRegion:
    """A region in pixels of one specific target image."""

    name: str
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def fits(self, target_width: int, target_height: int) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.right <= target_width
            and self.bottom <= target_height
        )


DEFAULT_REFERENCE_LAYOUT = ReferenceLayout(
    reference_width=REFERENCE_WIDTH,
    reference_height=REFERENCE_HEIGHT,
    regions=(
        LayoutRegion(
            name=LEFT_REGION,
            offset_x=REFERENCE_LEFT_OFFSET[0],
            offset_y=REFERENCE_LEFT_OFFSET[1],
            width=REFERENCE_REGION_WIDTH,
            height=REFERENCE_REGION_HEIGHT,
        ),
        LayoutRegion(
            name=RIGHT_REGION,
            offset_x=REFERENCE_RIGHT_OFFSET[0],
            offset_y=REFERENCE_RIGHT_OFFSET[1],
            width=REFERENCE_REGION_WIDTH,
            height=REFERENCE_REGION_HEIGHT,
        ),
    ),
)


__all__ = [
    "DEFAULT_REFERENCE_LAYOUT",
    "LayoutRegion",
    "ReferenceLayout",
    "ScaledRegion",
]
