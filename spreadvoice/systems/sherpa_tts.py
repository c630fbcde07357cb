"""VITS/Piper voices served by sherpa-onnx."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import threading
from typing import Any

from spreadvoice.errors import ConfigurationError
from spreadvoice.utils.log_utils import logger

from .base_tts import AudioClip, SpeechSynthesizer


DEFAULT_VOICE = "vits-piper-en_US-libritts_r-medium"
_PIPER_PREFIX = "vits-piper-"


@dataclass(frozen=True)
class VoiceFiles:
    """Model files making up one downloaded sherpa-onnx VITS voice."""

    model: Path
    tokens: Path
    data_dir: Path | None = None
    lexicon: Path | None = None


def resolve_voice_files(voice_dir: Path) -> VoiceFiles:
    """Locate the model, tokens and espeak data inside ``voice_dir``.

    A directory holding several ``.onnx`` files must contain one named after
    the voice (``vits-piper-<name>`` -> ``<name>.onnx``).
    """
    if not voice_dir.is_dir():
        raise ConfigurationError(f"No TTS model directory at {voice_dir}")

    models = sorted(voice_dir.glob("*.onnx"))
    if not models:
        raise ConfigurationError(f"Couldn't find a .onnx TTS model in {voice_dir}")
    if len(models) == 1:
        model = models[0]
    else:
        stem = voice_dir.name.removeprefix(_PIPER_PREFIX)
        named = voice_dir / f"{stem}.onnx"
        if not named.is_file():
            raise ConfigurationError(
                f"Several models in {voice_dir} and none named {named.name}: "
                f"{[path.name for path in models]}"
            )
        model = named

    tokens = voice_dir / "tokens.txt"
    if not tokens.is_file():
        raise ConfigurationError(f"Missing tokens.txt in {voice_dir}")

    data_dir = voice_dir / "espeak-ng-data"
    lexicon = voice_dir / "lexicon.txt"
    return VoiceFiles(
        model=model,
        tokens=tokens,
        data_dir=data_dir if data_dir.is_dir() else None,
        lexicon=lexicon if lexicon.is_file() else None,
    )


class SherpaOnnxSynthesizer(SpeechSynthesizer):
    """One loaded sherpa-onnx model shared across worker threads.

    onnxruntime sessions accept concurrent ``run`` calls, so by default the
    model is used re-entrantly. ``serialize_calls`` puts a lock around
    generation for builds where that does not hold.
    """

    def __init__(self, tts: Any, *, name: str, serialize_calls: bool = False) -> None:
        self._tts = tts
        self._name = name
        self._lock = threading.Lock() if serialize_calls else None

    @classmethod
    def from_voice_dir(
        cls,
        voice_dir: Path,
        *,
        num_threads: int = 1,
        provider: str = "cpu",
        length_scale: float = 1.0,
        serialize_calls: bool = False,
    ) -> SherpaOnnxSynthesizer:
        files = resolve_voice_files(voice_dir)

        import sherpa_onnx

        config = sherpa_onnx.OfflineTtsConfig(
            model=sherpa_onnx.OfflineTtsModelConfig(
                vits=sherpa_onnx.OfflineTtsVitsModelConfig(
                    model=str(files.model),
                    lexicon=str(files.lexicon) if files.lexicon else "",
                    data_dir=str(files.data_dir) if files.data_dir else "",
                    tokens=str(files.tokens),
                    length_scale=length_scale,
                ),
                provider=provider,
                num_threads=num_threads,
            ),
        )
        if not config.validate():
            raise ConfigurationError(f"sherpa-onnx rejected the voice files in {voice_dir}")

        logger.info(f"Loading TTS voice '{voice_dir.name}' from {files.model}")
        tts = sherpa_onnx.OfflineTts(config)
        return cls(tts, name=voice_dir.name, serialize_calls=serialize_calls)

    def get_system_name(self) -> str:
        return f"sherpa-onnx:{self._name}"

    def synthesize(self, text: str, *, speaker_id: int, speed: float) -> AudioClip:
        if speed <= 0:
            raise ValueError("speed must be positive")
        if self._lock is None:
            audio = self._tts.generate(text, sid=speaker_id, speed=speed)
        else:
            with self._lock:
                audio = self._tts.generate(text, sid=speaker_id, speed=speed)
        return AudioClip(samples=audio.samples, sample_rate=int(audio.sample_rate))


__all__ = [
    "DEFAULT_VOICE",
    "SherpaOnnxSynthesizer",
    "VoiceFiles",
    "resolve_voice_files",
]
