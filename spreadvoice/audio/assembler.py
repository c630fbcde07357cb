"""Turning ordered per-unit results into the files a run leaves behind.

Artifacts are staged in a temporary sibling of the output directory and only
moved into place once every file has been written, so an interrupted run
never leaves a half-populated output directory behind. File names depend
only on the output name and logical indices; reruns overwrite them, and a
separate-mode rerun removes per-unit files whose units did not succeed this
time.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
import os
from pathlib import Path
import re
import shutil
import tempfile

import numpy as np
import soundfile as sf

from spreadvoice.errors import ConfigurationError, SampleRateMismatch
from spreadvoice.systems.base_tts import AudioClip
from spreadvoice.utils.concurrency import PipelineResult
from spreadvoice.utils.log_utils import logger


AUDIO_SUFFIX = ".wav"
TEXT_SUFFIX = ".txt"


class OutputMode(str, Enum):
    COMBINED = "combined"
    SEPARATE = "separate"


@dataclass(frozen=True)
class AudioArtifact:
    filename: str
    clip: AudioClip
    indices: tuple[int, ...]

    def write(self, path: Path) -> None:
        sf.write(
            str(path),
            self.clip.samples,
            self.clip.sample_rate,
            format="WAV",
            subtype="PCM_16",
        )


@dataclass(frozen=True)
class TextArtifact:
    filename: str
    text: str
    indices: tuple[int, ...]

    def write(self, path: Path) -> None:
        path.write_text(self.text, encoding="utf-8")


Artifact = AudioArtifact | TextArtifact


def _check_name(name: str) -> str:
    if not name or name in {".", ".."} or "/" in name or os.sep in name:
        raise ConfigurationError(f"Output name must be a plain file name, got {name!r}")
    return name


def unit_filename(name: str, index: int, suffix: str) -> str:
    """File name of one logical unit in separate mode, e.g. ``book_page_0003.wav``."""
    return f"{_check_name(name)}_page_{index:04d}{suffix}"


def combined_filename(name: str, suffix: str) -> str:
    return f"{_check_name(name)}{suffix}"


def unit_file_pattern(name: str, suffix: str) -> re.Pattern[str]:
    """Matches every name ``unit_filename(name, ..., suffix)`` can produce."""
    return re.compile(rf"{re.escape(_check_name(name))}_page_\d{{4,}}{re.escape(suffix)}")


def assemble_audio(
    result: PipelineResult[AudioClip],
    mode: OutputMode,
    *,
    name: str,
) -> list[AudioArtifact]:
    """Lay out successful audio units as artifacts, in logical index order.

    Combined mode concatenates every clip into one artifact; every clip must
    share one sample rate, otherwise ``SampleRateMismatch`` is raised.
    """
    if not result.units:
        return []

    if mode == OutputMode.SEPARATE:
        return [
            AudioArtifact(
                filename=unit_filename(name, unit.index, AUDIO_SUFFIX),
                clip=unit.payload,
                indices=(unit.index,),
            )
            for unit in result.units
        ]

    clips = result.payloads()
    rates = {clip.sample_rate for clip in clips}
    if len(rates) > 1:
        raise SampleRateMismatch([clip.sample_rate for clip in clips])
    combined = AudioClip(
        samples=np.concatenate([clip.samples for clip in clips]),
        sample_rate=clips[0].sample_rate,
    )
    logger.debug(
        f"Combined {len(clips)} clip(s) into {combined.duration_seconds:.1f}s of audio."
    )
    return [
        AudioArtifact(
            filename=combined_filename(name, AUDIO_SUFFIX),
            clip=combined,
            indices=tuple(result.indices),
        )
    ]


def assemble_text(
    result: PipelineResult[str],
    mode: OutputMode,
    *,
    name: str,
) -> list[TextArtifact]:
    """Text counterpart of ``assemble_audio``; combined units are separated by a blank line."""
    if not result.units:
        return []

    if mode == OutputMode.SEPARATE:
        return [
            TextArtifact(
                filename=unit_filename(name, unit.index, TEXT_SUFFIX),
                text=unit.payload,
                indices=(unit.index,),
            )
            for unit in result.units
        ]

    return [
        TextArtifact(
            filename=combined_filename(name, TEXT_SUFFIX),
            text="\n\n".join(result.payloads()),
            indices=tuple(result.indices),
        )
    ]


def write_artifacts(
    artifacts: Sequence[Artifact],
    output_dir: Path,
    *,
    prune: re.Pattern[str] | None = None,
) -> list[Path]:
    """Write ``artifacts`` into ``output_dir`` and return the final paths.

    When ``output_dir`` does not exist yet, the fully written staging
    directory is renamed into place. Otherwise each staged file replaces its
    namesake, leaving unrelated files alone. Files in ``output_dir`` whose
    names fully match ``prune`` and that are not among ``artifacts`` are
    deleted once the new files are in place.
    """
    if not artifacts:
        return []
    filenames = [artifact.filename for artifact in artifacts]
    if len(set(filenames)) != len(filenames):
        raise ValueError(f"Duplicate artifact file names: {filenames}")

    output_dir = output_dir.expanduser().resolve()
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent))
    try:
        for artifact in artifacts:
            artifact.write(staging / artifact.filename)

        if output_dir.exists():
            for filename in filenames:
                os.replace(staging / filename, output_dir / filename)
            if prune is not None:
                _prune_stale(output_dir, prune, keep=set(filenames))
        else:
            staging.chmod(0o755)
            os.replace(staging, output_dir)
    finally:
        if staging.exists():
            shutil.rmtree(staging)

    paths = [output_dir / filename for filename in filenames]
    for path in paths:
        logger.info(f"Wrote {path}")
    return paths


def _prune_stale(output_dir: Path, pattern: re.Pattern[str], *, keep: set[str]) -> None:
    for path in sorted(output_dir.iterdir()):
        if path.name in keep or not path.is_file() or not pattern.fullmatch(path.name):
            continue
        path.unlink()
        logger.info(f"Removed stale {path}")


__all__ = [
    "Artifact",
    "AudioArtifact",
    "OutputMode",
    "TextArtifact",
    "assemble_audio",
    "assemble_text",
    "combined_filename",
    "unit_file_pattern",
    "unit_filename",
    "write_artifacts",
]
