"""Centralised environment configuration for spreadvoice.

This module ensures `.env` loading happens in one place and exposes a
typed snapshot of model locations, OCR options, layout heuristics and
worker counts. Downstream modules call `get_settings()` instead of touching
`os.environ` directly; command-line flags override the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_TTS_DIR = "tts"
DEFAULT_OUTPUT_DIR = "out"
DEFAULT_OCR_LANGUAGE = "eng"
DEFAULT_DPI = 200
DEFAULT_ROTATION = 90
DEFAULT_DARK_THRESHOLD = 30
DEFAULT_MIN_COVERAGE = 0.5
DEFAULT_LEFT_MARGIN_RATIO = 0.2


def _coerce_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _coerce_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _coerce_bool(value: str | None) -> bool | None:
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


def _coerce_path(value: str | None) -> Path | None:
    if value is None or value.strip() == "":
        return None
    return Path(value).expanduser()


@dataclass(frozen=True)
class OcrSettings:
    language: str
    tesseract_cmd: str | None
    psm: int | None


@dataclass(frozen=True)
class TtsSettings:
    voices_dir: Path
    num_threads: int
    provider: str
    serialize_calls: bool


@dataclass(frozen=True)
class LayoutSettings:
    layout_file: Path | None
    dark_threshold: int
    min_coverage: float
    left_margin_ratio: float


@dataclass(frozen=True)
class RasterSettings:
    dpi: int
    rotation: int


@dataclass(frozen=True)
class SpreadvoiceSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    output_dir: Path
    max_workers: int | None
    ocr: OcrSettings
    tts: TtsSettings
    layout: LayoutSettings
    raster: RasterSettings


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> SpreadvoiceSettings:
    # Existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    ocr = OcrSettings(
        language=os.getenv("SPREADVOICE_OCR_LANGUAGE") or DEFAULT_OCR_LANGUAGE,
        tesseract_cmd=os.getenv("SPREADVOICE_TESSERACT_CMD") or None,
        psm=_coerce_int(os.getenv("SPREADVOICE_TESSERACT_PSM")),
    )

    tts = TtsSettings(
        voices_dir=_coerce_path(os.getenv("SPREADVOICE_TTS_DIR")) or Path(DEFAULT_TTS_DIR),
        num_threads=_coerce_int(os.getenv("SPREADVOICE_TTS_THREADS")) or 1,
        provider=os.getenv("SPREADVOICE_TTS_PROVIDER") or "cpu",
        serialize_calls=bool(_coerce_bool(os.getenv("SPREADVOICE_TTS_SERIALIZE"))),
    )

    dark_threshold = _coerce_int(os.getenv("SPREADVOICE_DARK_THRESHOLD"))
    min_coverage = _coerce_float(os.getenv("SPREADVOICE_MIN_COVERAGE"))
    left_margin_ratio = _coerce_float(os.getenv("SPREADVOICE_LEFT_MARGIN_RATIO"))
    layout = LayoutSettings(
        layout_file=_coerce_path(os.getenv("SPREADVOICE_LAYOUT_FILE")),
        dark_threshold=DEFAULT_DARK_THRESHOLD if dark_threshold is None else dark_threshold,
        min_coverage=DEFAULT_MIN_COVERAGE if min_coverage is None else min_coverage,
        left_margin_ratio=(
            DEFAULT_LEFT_MARGIN_RATIO if left_margin_ratio is None else left_margin_ratio
        ),
    )

    rotation = _coerce_int(os.getenv("SPREADVOICE_ROTATION"))
    raster = RasterSettings(
        dpi=_coerce_int(os.getenv("SPREADVOICE_DPI")) or DEFAULT_DPI,
        rotation=DEFAULT_ROTATION if rotation is None else rotation,
    )

    return SpreadvoiceSettings(
        env_file=env_path,
        output_dir=_coerce_path(os.getenv("SPREADVOICE_OUTPUT_DIR")) or Path(DEFAULT_OUTPUT_DIR),
        max_workers=_coerce_int(os.getenv("SPREADVOICE_MAX_WORKERS")),
        ocr=ocr,
        tts=tts,
        layout=layout,
        raster=raster,
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> SpreadvoiceSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the repo
            root `.env` file is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
