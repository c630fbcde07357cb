from .bitmap import BYTES_PER_PIXEL, PageBitmap


__all__ = ["BYTES_PER_PIXEL", "PageBitmap"]
