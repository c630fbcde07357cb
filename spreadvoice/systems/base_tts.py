"""Base speech synthesis interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class AudioClip:
    """Mono float samples at a fixed sample rate."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        samples = np.asarray(self.samples, dtype=np.float32).reshape(-1)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate


class SpeechSynthesizer(ABC):
    """A loaded voice that can be shared by every worker of a run."""

    @abstractmethod
    def synthesize(self, text: str, *, speaker_id: int, speed: float) -> AudioClip:
        """Render ``text`` as speech."""
        pass

    @abstractmethod
    def get_system_name(self) -> str:
        pass


__all__ = ["AudioClip", "SpeechSynthesizer"]
