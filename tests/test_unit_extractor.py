from __future__ import annotations

import numpy as np
from PIL import Image
import pytest

from spreadvoice.errors import LayoutOutOfBounds, OcrFailure
from spreadvoice.layout import ScaledRegion
from spreadvoice.page import PageBitmap
from spreadvoice.systems import OcrEngine, extract_region, post_process_text
from spreadvoice.systems.extractor import region_byte_offset
from spreadvoice.systems.tesseract_ocr import frame_region


class CapturingEngine(OcrEngine):
    """Rebuilds the region from the strided buffer and returns a fixed text."""

    def __init__(self, text: str = "text") -> None:
        super().__init__()
        self.text = text
        self.captured: np.ndarray | None = None
        self.calls: list[dict[str, object]] = []

    def get_system_name(self) -> str:
        return "capturing"

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
        self.calls.append(
            {
                "width": width,
                "height": height,
                "bytes_per_pixel": bytes_per_pixel,
                "bytes_per_line": bytes_per_line,
                "language": language,
            }
        )
        self.captured = frame_region(
            buffer,
            width=width,
            height=height,
            bytes_per_pixel=bytes_per_pixel,
            bytes_per_line=bytes_per_line,
        ).copy()
        return self.text


class FailingEngine(CapturingEngine):
    def recognize(self, buffer: memoryview, **kwargs: object) -> str:  # type: ignore[override]
        raise RuntimeError("tesseract crashed")


def _gradient_bitmap(width: int = 64, height: int = 48, mode: str = "L") -> PageBitmap:
    xs = np.arange(width, dtype=np.uint16)[None, :]
    ys = np.arange(height, dtype=np.uint16)[:, None]
    arr = ((xs * 3 + ys * 7) % 256).astype(np.uint8)
    image = Image.fromarray(arr).convert(mode)
    return PageBitmap(page_index=0, image=image)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("exam-\nple", "example"),
        ("line one\nline two", "line one line two"),
        ("a-\nb\nc", "ab c"),
        ("no breaks", "no breaks"),
        ("", ""),
        ("trailing\n", "trailing "),
        ("well - known\n", "well - known "),
    ],
)
def test_post_process_text(raw: str, expected: str) -> None:
    assert post_process_text(raw) == expected


def test_byte_offset_uses_row_then_column() -> None:
    region = ScaledRegion(name="r", x=5, y=3, width=10, height=10)
    assert region_byte_offset(region, bytes_per_pixel=1, bytes_per_line=100) == 305
    assert region_byte_offset(region, bytes_per_pixel=3, bytes_per_line=300) == 915


@pytest.mark.parametrize("mode", ["L", "RGB", "RGBA"])
def test_engine_sees_exactly_the_region(mode: str) -> None:
    bitmap = _gradient_bitmap(mode=mode)
    region = ScaledRegion(name="right", x=40, y=20, width=24, height=28)
    engine = CapturingEngine()

    assert extract_region(bitmap, region, engine, language="deu") == "text"

    expected = np.asarray(bitmap.image)[20:48, 40:64]
    assert engine.captured is not None
    np.testing.assert_array_equal(engine.captured, expected)
    call = engine.calls[0]
    assert call["width"] == 24
    assert call["height"] == 28
    assert call["bytes_per_pixel"] == bitmap.bytes_per_pixel
    assert call["bytes_per_line"] == 64 * bitmap.bytes_per_pixel
    assert call["language"] == "deu"


def test_text_is_normalised() -> None:
    engine = CapturingEngine(text="hyphen-\nated\nwords")
    region = ScaledRegion(name="left", x=0, y=0, width=10, height=10)
    assert extract_region(_gradient_bitmap(), region, engine) == "hyphenated words"


def test_engine_errors_become_ocr_failures() -> None:
    region = ScaledRegion(name="left", x=0, y=0, width=10, height=10)

    with pytest.raises(OcrFailure) as excinfo:
        extract_region(_gradient_bitmap(), region, FailingEngine())

    assert excinfo.value.region == region
    assert isinstance(excinfo.value.cause, RuntimeError)


def test_region_outside_bitmap_is_rejected() -> None:
    region = ScaledRegion(name="right", x=60, y=0, width=10, height=10)
    engine = CapturingEngine()

    with pytest.raises(LayoutOutOfBounds):
        extract_region(_gradient_bitmap(), region, engine)
    assert engine.calls == []


def test_frame_region_rejects_reads_past_the_buffer() -> None:
    data = memoryview(bytes(100))
    with pytest.raises(ValueError, match="needs 100 bytes"):
        frame_region(data[50:], width=10, height=10, bytes_per_pixel=1, bytes_per_line=10)
