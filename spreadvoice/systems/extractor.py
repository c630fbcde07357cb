"""Reading the text of one logical page out of a page bitmap."""

from __future__ import annotations

from spreadvoice.errors import LayoutOutOfBounds, OcrFailure
from spreadvoice.layout import ScaledRegion
from spreadvoice.page import PageBitmap

from .base_ocr import OcrEngine


def post_process_text(text: str) -> str:
    """Rejoin hyphenated line breaks, then flatten the rest into spaces."""
    return text.replace("-\n", "").replace("\n", " ")


def region_byte_offset(region: ScaledRegion, *, bytes_per_pixel: int, bytes_per_line: int) -> int:
    return region.y * bytes_per_line + region.x * bytes_per_pixel


def extract_region(
    bitmap: PageBitmap,
    region: ScaledRegion,
    engine: OcrEngine,
    *,
    language: str = "eng",
) -> str:
    """OCR ``region`` of ``bitmap`` and normalize the text for narration.

    The engine receives a view into the bitmap's pixel buffer starting at the
    region's first pixel, with explicit strides, so the region is never
    copied out. Either normalized text comes back or ``OcrFailure`` is raised.
    """
    if not region.fits(bitmap.width, bitmap.height) or region.width <= 0 or region.height <= 0:
        raise LayoutOutOfBounds(region.name, bitmap.width, bitmap.height, region=region)

    bytes_per_pixel = bitmap.bytes_per_pixel
    bytes_per_line = bitmap.width * bytes_per_pixel
    offset = region_byte_offset(
        region, bytes_per_pixel=bytes_per_pixel, bytes_per_line=bytes_per_line
    )
    data = memoryview(bitmap.to_bytes())
    last_byte = offset + (region.height - 1) * bytes_per_line + region.width * bytes_per_pixel
    if last_byte > len(data):
        raise LayoutOutOfBounds(region.name, bitmap.width, bitmap.height, region=region)

    try:
        raw = engine.recognize(
            data[offset:],
            width=region.width,
            height=region.height,
            bytes_per_pixel=bytes_per_pixel,
            bytes_per_line=bytes_per_line,
            language=language,
        )
    except Exception as exc:
        raise OcrFailure(region, exc) from exc
    if not isinstance(raw, str):
        raise OcrFailure(region, TypeError(f"OCR engine returned {type(raw).__name__}"))
    return post_process_text(raw)


__all__ = ["extract_region", "post_process_text", "region_byte_offset"]
