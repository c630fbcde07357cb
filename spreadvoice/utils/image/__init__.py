from .io import SUPPORTED_IMAGE_EXTENSIONS, extract_number, load_page_images
from .transform import rotate_clockwise, split_image_at_column


__all__ = [
    "SUPPORTED_IMAGE_EXTENSIONS",
    "extract_number",
    "load_page_images",
    "rotate_clockwise",
    "split_image_at_column",
]
