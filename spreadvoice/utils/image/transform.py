from __future__ import annotations

from PIL import Image

from spreadvoice.errors import ConfigurationError


# Clockwise rotations as PIL transposes (PIL angles run counter-clockwise).
_ROTATIONS: dict[int, Image.Transpose | None] = {
    0: None,
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def check_rotation(degrees: int) -> int:
    """Normalize ``degrees`` to 0/90/180/270 or raise ``ConfigurationError``."""
    normalized = degrees % 360
    if normalized not in _ROTATIONS:
        raise ConfigurationError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
    return normalized


def rotate_clockwise(image: Image.Image, degrees: int) -> Image.Image:
    """Rotate by a multiple of 90 degrees clockwise, without resampling."""
    transpose = _ROTATIONS[check_rotation(degrees)]
    return image if transpose is None else image.transpose(transpose)


def split_image_at_column(image: Image.Image, column: int) -> tuple[Image.Image, Image.Image]:
    """Left ``[0, column)`` and right ``[column, width)`` halves over the full height."""
    if not 0 < column < image.width:
        raise ValueError(f"column must be within (0, {image.width}), got {column}")
    left = image.crop((0, 0, column, image.height))
    right = image.crop((column, 0, image.width, image.height))
    return left, right


__all__ = ["check_rotation", "rotate_clockwise", "split_image_at_column"]
