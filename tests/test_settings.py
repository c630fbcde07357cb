"""Tests for the centralised configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from spreadvoice.config.settings import get_settings


_KEYS = (
    "SPREADVOICE_TTS_DIR",
    "SPREADVOICE_OUTPUT_DIR",
    "SPREADVOICE_OCR_LANGUAGE",
    "SPREADVOICE_TESSERACT_CMD",
    "SPREADVOICE_TESSERACT_PSM",
    "SPREADVOICE_TTS_THREADS",
    "SPREADVOICE_TTS_PROVIDER",
    "SPREADVOICE_TTS_SERIALIZE",
    "SPREADVOICE_MAX_WORKERS",
    "SPREADVOICE_LAYOUT_FILE",
    "SPREADVOICE_DPI",
    "SPREADVOICE_ROTATION",
    "SPREADVOICE_DARK_THRESHOLD",
    "SPREADVOICE_MIN_COVERAGE",
    "SPREADVOICE_LEFT_MARGIN_RATIO",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start from an empty environment and undo whatever `.env` loading adds."""
    for key in _KEYS:
        # setenv first so monkeypatch restores the original state on teardown.
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def _write_env(path: Path, content: str) -> None:
    lines = [line.strip() for line in content.strip().splitlines()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_defaults_without_env_file(tmp_path: Path) -> None:
    settings = get_settings(env_file=tmp_path / "missing.env", reload=True)

    assert settings.output_dir == Path("out")
    assert settings.max_workers is None
    assert settings.ocr.language == "eng"
    assert settings.ocr.tesseract_cmd is None
    assert settings.ocr.psm is None
    assert settings.tts.voices_dir == Path("tts")
    assert settings.tts.num_threads == 1
    assert settings.tts.provider == "cpu"
    assert settings.tts.serialize_calls is False
    assert settings.layout.layout_file is None
    assert settings.layout.dark_threshold == 30
    assert settings.layout.min_coverage == 0.5
    assert settings.layout.left_margin_ratio == 0.2
    assert settings.raster.dpi == 200
    assert settings.raster.rotation == 90


def test_env_file_values_are_loaded(tmp_path: Path) -> None:
    """Ensure values from a dedicated env file are parsed into the snapshot."""
    env_file = tmp_path / "test.env"
    _write_env(
        env_file,
        f"""
        SPREADVOICE_TTS_DIR={tmp_path / "voices"}
        SPREADVOICE_OUTPUT_DIR={tmp_path / "audio"}
        SPREADVOICE_OCR_LANGUAGE=deu
        SPREADVOICE_TESSERACT_PSM=6
        SPREADVOICE_MAX_WORKERS=3
        SPREADVOICE_ROTATION=0
        SPREADVOICE_DARK_THRESHOLD=50
        SPREADVOICE_MIN_COVERAGE=0.75
        """,
    )
    settings = get_settings(env_file=env_file, reload=True)

    assert settings.env_file == env_file.resolve()
    assert settings.tts.voices_dir == tmp_path / "voices"
    assert settings.output_dir == tmp_path / "audio"
    assert settings.ocr.language == "deu"
    assert settings.ocr.psm == 6
    assert settings.max_workers == 3
    assert settings.raster.rotation == 0
    assert settings.layout.dark_threshold == 50
    assert settings.layout.min_coverage == 0.75


def test_environment_variables_override_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Existing environment variables should take precedence over .env contents."""
    env_file = tmp_path / "override.env"
    _write_env(
        env_file,
        """
        SPREADVOICE_OCR_LANGUAGE=fra
        SPREADVOICE_DPI=150
        """,
    )
    monkeypatch.setenv("SPREADVOICE_OCR_LANGUAGE", "ita")
    monkeypatch.setenv("SPREADVOICE_DPI", "300")

    settings = get_settings(env_file=env_file, reload=True)

    assert settings.ocr.language == "ita"
    assert settings.raster.dpi == 300


def test_malformed_numbers_fall_back_to_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SPREADVOICE_DPI", "lots")
    monkeypatch.setenv("SPREADVOICE_MIN_COVERAGE", "half")
    monkeypatch.setenv("SPREADVOICE_MAX_WORKERS", "")

    settings = get_settings(env_file=tmp_path / "missing.env", reload=True)

    assert settings.raster.dpi == 200
    assert settings.layout.min_coverage == 0.5
    assert settings.max_workers is None


def test_reload_picks_up_changes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Calling get_settings with reload=True should refresh cached values."""
    env_file = tmp_path / "reload.env"
    _write_env(env_file, "SPREADVOICE_TTS_PROVIDER=cuda")
    settings = get_settings(env_file=env_file, reload=True)
    assert settings.tts.provider == "cuda"

    monkeypatch.setenv("SPREADVOICE_TTS_PROVIDER", "coreml")
    assert get_settings(env_file=env_file).tts.provider == "cuda"
    updated = get_settings(env_file=env_file, reload=True)
    assert updated.tts.provider == "coreml"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("yes", True), ("True", True), ("off", False), ("0", False), ("maybe", False)],
)
def test_tts_serialize_flag(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("SPREADVOICE_TTS_SERIALIZE", raw)

    settings = get_settings(env_file=tmp_path / "missing.env", reload=True)

    assert settings.tts.serialize_calls is expected
