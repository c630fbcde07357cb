"""Immutable page rasters and the raw pixel layout OCR engines read."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image


# Bytes per pixel for every pixel layout the OCR buffer path understands.
BYTES_PER_PIXEL: dict[str, int] = {
    "L": 1,
    "LA": 2,
    "RGB": 3,
    "RGBA": 4,
}


@dataclass(frozen=True, slots=True)
class PageBitmap:
    """An immutable raster of one physical PDF page.

    ``page_index`` is the 0-based position of the page in the rasterized
    sequence, not the PDF page number. Derived crops are new bitmaps; the
    wrapped image is never mutated, so its raw bytes are computed once and
    shared by every region read from the page.
    """

    page_index: int
    image: Image.Image
    _pixels: bytes | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.page_index < 0:
            raise ValueError("page_index must be non-negative")
        if self.image.mode not in BYTES_PER_PIXEL:
            raise ValueError(
                f"Unsupported pixel format {self.image.mode!r}; "
                f"expected one of {sorted(BYTES_PER_PIXEL)}"
            )

    @classmethod
    def from_image(cls, page_index: int, image: Image.Image) -> PageBitmap:
        """Wrap ``image``, converting unsupported modes (e.g. ``1``, ``P``) to grayscale."""
        if image.mode not in BYTES_PER_PIXEL:
            image = image.convert("L")
        return cls(page_index=page_index, image=image)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def mode(self) -> str:
        return self.image.mode

    @property
    def bytes_per_pixel(self) -> int:
        return BYTES_PER_PIXEL[self.image.mode]

    def pixel(self, x: int, y: int) -> int:
        """Grayscale intensity at ``(x, y)``."""
        if self.image.mode == "L":
            return int(self.image.getpixel((x, y)))  # type: ignore[arg-type]
        return int(self.to_array()[y, x])

    def to_array(self) -> np.ndarray:
        """Grayscale pixels as a ``(height, width)`` uint8 array."""
        gray = self.image if self.image.mode == "L" else self.image.convert("L")
        return np.asarray(gray, dtype=np.uint8)

    def to_bytes(self) -> bytes:
        """Raw interleaved pixel bytes, row-major with no row padding."""
        if self._pixels is None:
            object.__setattr__(self, "_pixels", self.image.tobytes())
        return self._pixels  # type: ignore[return-value]

    def crop(self, x: int, y: int, width: int, height: int) -> PageBitmap:
        return PageBitmap(
            page_index=self.page_index,
            image=self.image.crop((x, y, x + width, y + height)),
        )


__all__ = ["BYTES_PER_PIXEL", "PageBitmap"]
