"""Exception taxonomy for the narration pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from spreadvoice.layout._models import ScaledRegion
    from spreadvoice.utils.concurrency import UnitFailure


class NarrationError(RuntimeError):
    """Base class for every error raised by spreadvoice."""

    pass


class ConfigurationError(NarrationError):
    """Raised before any work starts when inputs or model files are unusable.

    This covers missing voice directories, malformed layout files, invalid
    page ranges and bad command-line values.
    """

    pass


class SampleRateMismatch(ConfigurationError):
    """Raised when audio units to be combined do not share one sample rate."""

    def __init__(self, rates: Sequence[int]) -> None:
        self.rates = sorted(set(rates))
        super().__init__(f"Cannot combine audio with mismatched sample rates: {self.rates}")


class LayoutOutOfBounds(NarrationError):
    """A scaled region does not fit inside its target image."""

    def __init__(
        self,
        region_name: str,
        target_width: int,
        target_height: int,
        *,
        region: ScaledRegion | None = None,
        reason: str = "exceeds target bounds",
    ) -> None:
        self.region_name = region_name
        self.target_width = target_width
        self.target_height = target_height
        self.region = region
        message = f"Region '{region_name}' {reason} for a {target_width}x{target_height} image"
        if region is not None:
            message += (
                f" (x={region.x}, y={region.y}, width={region.width}, height={region.height})"
            )
        super().__init__(message)


class OcrFailure(NarrationError):
    """OCR of a single region failed; wraps the collaborator error."""

    def __init__(self, region: ScaledRegion, cause: BaseException) -> None:
        self.region = region
        self.cause = cause
        super().__init__(f"OCR failed for region '{region.name}': {cause!r}")


class TtsFailure(NarrationError):
    """Speech synthesis of a single text unit failed."""

    def __init__(self, index: int, cause: BaseException) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"TTS failed for unit {index}: {cause!r}")


class PartialFailure(NarrationError):
    """At least one unit failed while at least one succeeded.

    Successful outputs have already been emitted when this is raised; the
    failures name every failed logical index and its cause.
    """

    def __init__(self, failures: Sequence[UnitFailure], report: Any | None = None) -> None:
        self.failures = list(failures)
        self.report = report
        super().__init__(
            f"{len(self.failures)} unit(s) failed: {self.failed_indices}"
        )

    @property
    def failed_indices(self) -> list[int]:
        return [failure.index for failure in self.failures]


class TotalFailure(NarrationError):
    """Every unit failed; nothing was written."""

    def __init__(self, failures: Sequence[UnitFailure], message: str | None = None) -> None:
        self.failures = list(failures)
        super().__init__(message or f"All {len(self.failures)} unit(s) failed.")


__all__ = [
    "ConfigurationError",
    "LayoutOutOfBounds",
    "NarrationError",
    "OcrFailure",
    "PartialFailure",
    "SampleRateMismatch",
    "TotalFailure",
    "TtsFailure",
]
