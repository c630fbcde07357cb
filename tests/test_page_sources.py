from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF
import numpy as np
from PIL import Image
import pytest

from spreadvoice.errors import ConfigurationError
from spreadvoice.page import PageBitmap
from spreadvoice.utils.image import (
    extract_number,
    load_page_images,
    rotate_clockwise,
    split_image_at_column,
)
from spreadvoice.utils.pdf import rasterize_pdf


def _make_pdf(path: Path, pages: int, *, width: float = 300, height: float = 200) -> Path:
    doc = fitz.open()
    for number in range(pages):
        page = doc.new_page(width=width, height=height)
        # A black block in the top-left corner marks the page orientation.
        page.draw_rect(fitz.Rect(0, 0, 30, 20), color=(0, 0, 0), fill=(0, 0, 0))
        page.insert_text((100, 100), f"page {number}")
    doc.save(path.as_posix())
    doc.close()
    return path


def test_rasterize_renders_grayscale_rotated_pages(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "book.pdf", pages=3)

    bitmaps = rasterize_pdf(pdf, dpi=72)

    assert [bitmap.page_index for bitmap in bitmaps] == [0, 1, 2]
    first = bitmaps[0]
    assert first.mode == "L"
    # Rotated 90 degrees clockwise: width and height swap.
    assert (first.width, first.height) == (200, 300)
    # The top-left marker ends up in the top-right corner.
    assert first.pixel(first.width - 5, 5) < 30
    assert first.pixel(5, 5) > 200


def test_rasterize_respects_page_range_and_rotation(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "book.pdf", pages=4)

    bitmaps = rasterize_pdf(pdf, start_page=1, end_page=2, dpi=72, rotation=0)

    assert [bitmap.page_index for bitmap in bitmaps] == [0, 1]
    assert (bitmaps[0].width, bitmaps[0].height) == (300, 200)
    assert bitmaps[0].pixel(5, 5) < 30


@pytest.mark.parametrize(
    ("start", "end"),
    [(-1, None), (3, 1), (0, 4), (5, None)],
)
def test_rasterize_rejects_bad_ranges(tmp_path: Path, start: int, end: int | None) -> None:
    pdf = _make_pdf(tmp_path / "book.pdf", pages=2)
    with pytest.raises(ConfigurationError):
        rasterize_pdf(pdf, start_page=start, end_page=end, dpi=72)


def test_rasterize_rejects_missing_and_broken_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        rasterize_pdf(tmp_path / "missing.pdf")

    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"definitely not a pdf")
    with pytest.raises(ConfigurationError):
        rasterize_pdf(broken)


def test_rasterize_rejects_odd_rotation(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "book.pdf", pages=1)
    with pytest.raises(ConfigurationError):
        rasterize_pdf(pdf, rotation=45)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("scan-012.png", 12), ("7.jpg", 7), ("page10_v2.png", 10), ("cover.png", None)],
)
def test_extract_number(name: str, expected: int | None) -> None:
    assert extract_number(name) == expected


def test_image_directory_is_ordered_by_number(tmp_path: Path) -> None:
    for name, shade in [("p10.png", 10), ("p2.png", 2), ("cover.png", 99), ("p1.png", 1)]:
        Image.new("L", (8, 4), color=shade).save(tmp_path / name)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    bitmaps = load_page_images(tmp_path)

    assert [bitmap.page_index for bitmap in bitmaps] == [0, 1, 2, 3]
    assert [bitmap.pixel(0, 0) for bitmap in bitmaps] == [1, 2, 10, 99]


def test_image_directory_applies_rotation(tmp_path: Path) -> None:
    Image.new("RGB", (8, 4), color=(255, 255, 255)).save(tmp_path / "1.png")

    bitmaps = load_page_images(tmp_path, rotation=90)

    assert bitmaps[0].mode == "L"
    assert (bitmaps[0].width, bitmaps[0].height) == (4, 8)


def test_empty_image_directory_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_page_images(tmp_path)
    with pytest.raises(ConfigurationError):
        load_page_images(tmp_path / "missing")


def test_rotate_clockwise_moves_top_left_to_top_right() -> None:
    arr = np.full((2, 3), 255, dtype=np.uint8)
    arr[0, 0] = 0
    rotated = np.asarray(rotate_clockwise(Image.fromarray(arr), 90))

    assert rotated.shape == (3, 2)
    assert rotated[0, 1] == 0


def test_split_image_at_column() -> None:
    image = Image.new("L", (10, 4))
    left, right = split_image_at_column(image, 6)
    assert left.size == (6, 4)
    assert right.size == (4, 4)

    with pytest.raises(ValueError):
        split_image_at_column(image, 10)


def test_page_bitmap_converts_unsupported_modes() -> None:
    bitmap = PageBitmap.from_image(3, Image.new("1", (4, 2), color=1))

    assert bitmap.mode == "L"
    assert bitmap.page_index == 3
    assert bitmap.pixel(0, 0) == 255
    with pytest.raises(ValueError):
        PageBitmap(page_index=0, image=Image.new("1", (4, 2)))


def test_page_bitmap_layout_and_crop() -> None:
    arr = np.arange(24, dtype=np.uint8).reshape(4, 6)
    bitmap = PageBitmap(page_index=0, image=Image.fromarray(arr).convert("RGB"))

    assert bitmap.bytes_per_pixel == 3
    assert len(bitmap.to_bytes()) == 4 * 6 * 3
    assert bitmap.pixel(5, 3) == 23
    crop = bitmap.crop(2, 1, 3, 2)
    assert (crop.width, crop.height) == (3, 2)
    np.testing.assert_array_equal(crop.to_array(), arr[1:3, 2:5])


def test_page_bitmap_bytes_are_computed_once() -> None:
    bitmap = PageBitmap(page_index=0, image=Image.new("L", (4, 2), color=7))

    first = bitmap.to_bytes()

    assert first == bytes([7]) * 8
    assert bitmap.to_bytes() is first
    assert bitmap == PageBitmap(page_index=0, image=bitmap.image)
