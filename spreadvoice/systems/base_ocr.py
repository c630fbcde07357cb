"""Base OCR class and interfaces for all OCR systems."""

from abc import ABC, abstractmethod


class OcrEngine(ABC):
    """Base class for OCR systems reading a region straight out of a pixel buffer."""

    def __init__(self, **kwargs: object) -> None:
        """Initialize the OCR system with configuration parameters."""
        self.config: dict[str, object] = kwargs

    @abstractmethod
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
        """Return the raw text of a ``width`` x ``height`` sub-rectangle.

        ``buffer`` starts at the region's top-left pixel; consecutive rows are
        ``bytes_per_line`` bytes apart and pixels ``bytes_per_pixel`` apart.
        """
        pass

    @abstractmethod
    def get_system_name(self) -> str:
        """Return the name of the OCR system."""
        pass
