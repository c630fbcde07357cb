"""PDF rasterization into grayscale page bitmaps."""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

from spreadvoice.errors import ConfigurationError
from spreadvoice.page import PageBitmap
from spreadvoice.utils.image.transform import check_rotation, rotate_clockwise
from spreadvoice.utils.log_utils import logger


DEFAULT_RASTER_DPI = 200


def _render_page(page: fitz.Page, dpi: int) -> Image.Image:
    zoom = max(dpi, 1) / 72.0
    pix = page.get_pixmap(  # type: ignore[attr-defined]
        matrix=fitz.Matrix(zoom, zoom), colorspace=fitz.csGRAY, alpha=False
    )
    return Image.frombytes("L", (pix.width, pix.height), pix.samples)


def rasterize_pdf(
    pdf_path: Path,
    *,
    start_page: int = 0,
    end_page: int | None = None,
    dpi: int = DEFAULT_RASTER_DPI,
    rotation: int = 90,
) -> list[PageBitmap]:
    """Render PDF pages ``start_page..end_page`` (0-based, inclusive) to bitmaps.

    Bitmaps are grayscale and rotated ``rotation`` degrees clockwise. Their
    ``page_index`` counts from 0 at ``start_page``.
    """
    if dpi <= 0:
        raise ConfigurationError("dpi must be a positive integer")
    if not pdf_path.is_file():
        raise ConfigurationError(f"Input PDF not found: {pdf_path}")
    check_rotation(rotation)

    try:
        doc = fitz.open(pdf_path.as_posix())
    except Exception as exc:
        raise ConfigurationError(f"Cannot open PDF {pdf_path}: {exc}") from exc

    try:
        last = doc.page_count - 1 if end_page is None else end_page
        if start_page < 0 or start_page > last or last >= doc.page_count:
            raise ConfigurationError(
                f"Page range {start_page}..{last} is outside 0..{doc.page_count - 1} "
                f"for {pdf_path}"
            )

        bitmaps: list[PageBitmap] = []
        for offset, page_number in enumerate(range(start_page, last + 1)):
            image = rotate_clockwise(_render_page(doc[page_number], dpi), rotation)
            logger.debug(
                f"Rasterized page {page_number} of {pdf_path.name} at {dpi} DPI "
                f"({image.width}x{image.height})."
            )
            bitmaps.append(PageBitmap(page_index=offset, image=image))
    finally:
        doc.close()

    logger.info(f"Rasterized {len(bitmaps)} page(s) from {pdf_path}.")
    return bitmaps


__all__ = ["DEFAULT_RASTER_DPI", "rasterize_pdf"]
