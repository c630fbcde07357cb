"""Tesseract OCR over strided pixel buffers via pytesseract."""

from __future__ import annotations

import numpy as np
from PIL import Image
import pytesseract

from spreadvoice.utils.log_utils import logger

from .base_ocr import OcrEngine


def frame_region(
    buffer: memoryview,
    *,
    width: int,
    height: int,
    bytes_per_pixel: int,
    bytes_per_line: int,
) -> np.ndarray:
    """View a strided sub-rectangle of ``buffer`` as a ``(height, width[, channels])`` array.

    No pixels are copied. A region that would read past the end of the buffer
    raises ``ValueError``.
    """
    needed = (height - 1) * bytes_per_line + width * bytes_per_pixel
    if width <= 0 or height <= 0 or len(buffer) < needed:
        raise ValueError(
            f"A {width}x{height} region with {bytes_per_line}-byte rows needs {needed} bytes, "
            f"buffer holds {len(buffer)}"
        )
    shape: tuple[int, ...]
    strides: tuple[int, ...]
    if bytes_per_pixel == 1:
        shape = (height, width)
        strides = (bytes_per_line, 1)
    else:
        shape = (height, width, bytes_per_pixel)
        strides = (bytes_per_line, bytes_per_pixel, 1)
    return np.ndarray(shape=shape, dtype=np.uint8, buffer=buffer, strides=strides)


class TesseractOcrEngine(OcrEngine):
    """Runs the ``tesseract`` binary through pytesseract."""

    def __init__(
        self,
        *,
        psm: int | None = None,
        tesseract_cmd: str | None = None,
        extra_config: str = "",
        **kwargs: object,
    ) -> None:
        super().__init__(psm=psm, tesseract_cmd=tesseract_cmd, **kwargs)
        self.psm = psm
        self.extra_config = extra_config
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def get_system_name(self) -> str:
        return "tesseract"

    def _config_string(self) -> str:
        parts: list[str] = []
        if self.psm is not None:
            parts.append(f"--psm {self.psm}")
        if self.extra_config:
            parts.append(self.extra_config)
        return " ".join(parts)

    def recognize(
        self,
        buffer: memoryview,
        *,
        width: int,
        height: int,
        bytes_per_pixel: int,
        bytes_per_line: int,
        language: str,
    ) -> str:
        pixels = frame_region(
            buffer,
            width=width,
            height=height,
            bytes_per_pixel=bytes_per_pixel,
            bytes_per_line=bytes_per_line,
        )
        image = Image.fromarray(pixels)
        logger.debug(f"Running tesseract on a {width}x{height} region (lang={language}).")
        return pytesseract.image_to_string(image, lang=language, config=self._config_string())


__all__ = ["TesseractOcrEngine", "frame_region"]
