"""Loading pre-rendered page images from a directory."""

from __future__ import annotations

from pathlib import Path
import re

from PIL import Image

from spreadvoice.errors import ConfigurationError
from spreadvoice.page import PageBitmap
from spreadvoice.utils.log_utils import logger

from .transform import rotate_clockwise


SUPPORTED_IMAGE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".tif",
    ".tiff",
    ".bmp",
}

_NUMBER_RE = re.compile(r"\d+")


def extract_number(name: str) -> int | None:
    """First run of digits in ``name``, e.g. ``scan-012.png`` -> 12."""
    match = _NUMBER_RE.search(name)
    return int(match.group(0)) if match else None


def _sort_key(path: Path) -> tuple[int, int, str]:
    number = extract_number(path.name)
    if number is None:
        return (1, 0, path.name)
    return (0, number, path.name)


def collect_image_paths(image_dir: Path) -> list[Path]:
    """Supported images in ``image_dir`` ordered by the number in their name.

    Names without digits sort last, alphabetically.
    """
    if not image_dir.is_dir():
        raise ConfigurationError(f"Image directory does not exist: {image_dir}")
    paths = [
        path
        for path in image_dir.iterdir()
        if path.is_file() and path.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS
    ]
    return sorted(paths, key=_sort_key)


def load_page_images(image_dir: Path, *, rotation: int = 0) -> list[PageBitmap]:
    """Load every page image in ``image_dir`` as a grayscale bitmap."""
    paths = collect_image_paths(image_dir)
    if not paths:
        raise ConfigurationError(f"No supported images found in {image_dir}")

    bitmaps: list[PageBitmap] = []
    for page_index, path in enumerate(paths):
        try:
            with Image.open(path) as img:
                gray = img.convert("L")
        except OSError as exc:
            raise ConfigurationError(f"Cannot open image {path}: {exc}") from exc
        bitmaps.append(PageBitmap(page_index=page_index, image=rotate_clockwise(gray, rotation)))
        logger.debug(f"Loaded page {page_index} from {path.name}.")
    return bitmaps


__all__ = [
    "SUPPORTED_IMAGE_EXTENSIONS",
    "collect_image_paths",
    "extract_number",
    "load_page_images",
]
