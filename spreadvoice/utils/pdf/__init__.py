"""PDF processing utilities.

``rasterize_pdf`` renders a page range of a PDF into grayscale
``PageBitmap`` values, rotated by a configurable multiple of 90 degrees
(the scanned corpus stores every sheet on its side).
"""

from .rasterize import rasterize_pdf


__all__ = ["rasterize_pdf"]
