"""End-to-end narration: pages -> regions -> text -> speech -> files.

Every stage runs through ``ParallelExecutor`` and every result carries the
logical index ``k * p + r`` (``k`` regions per page, page ``p``, region
``r``), fixed before any work is scheduled. Failures are collected per unit;
a page whose layout cannot be planned fails all ``k`` of its units.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from spreadvoice.audio.assembler import (
    AUDIO_SUFFIX,
    TEXT_SUFFIX,
    OutputMode,
    assemble_audio,
    assemble_text,
    unit_file_pattern,
    write_artifacts,
)
from spreadvoice.config.settings import (
    DEFAULT_DPI,
    DEFAULT_OCR_LANGUAGE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_ROTATION,
    DEFAULT_TTS_DIR,
    SpreadvoiceSettings,
)
from spreadvoice.errors import ConfigurationError, TtsFailure
from spreadvoice.layout import (
    DEFAULT_REFERENCE_LAYOUT,
    GutterParameters,
    PageSplitter,
    ScaledRegion,
    SplitMode,
    load_reference_layout,
)
from spreadvoice.page import PageBitmap
from spreadvoice.systems.base_ocr import OcrEngine
from spreadvoice.systems.base_tts import AudioClip, SpeechSynthesizer
from spreadvoice.systems.extractor import extract_region
from spreadvoice.systems.sherpa_tts import DEFAULT_VOICE, SherpaOnnxSynthesizer
from spreadvoice.systems.tesseract_ocr import TesseractOcrEngine
from spreadvoice.utils.concurrency import (
    LogicalUnit,
    ParallelExecutor,
    PipelineResult,
    TqdmProgressReporter,
    UnitFailure,
)
from spreadvoice.utils.image.io import load_page_images
from spreadvoice.utils.image.transform import check_rotation
from spreadvoice.utils.log_utils import logger
from spreadvoice.utils.pdf import rasterize_pdf


DEFAULT_OUTPUT_NAME = "narration"
DEFAULT_SPEAKER_ID = 1
DEFAULT_SPEED = 1.0


@dataclass(slots=True)
class NarrationConfig:
    input_file: Path | None = None
    image_dir: Path | None = None
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    output_name: str = DEFAULT_OUTPUT_NAME
    start_page: int = 0
    end_page: int | None = None
    voice: str = DEFAULT_VOICE
    voices_dir: Path = Path(DEFAULT_TTS_DIR)
    speed: float = DEFAULT_SPEED
    speaker_id: int = DEFAULT_SPEAKER_ID
    output_mode: OutputMode = OutputMode.COMBINED
    split_mode: SplitMode = SplitMode.REFERENCE
    layout_file: Path | None = None
    gutter: GutterParameters = field(default_factory=GutterParameters)
    dpi: int = DEFAULT_DPI
    rotation: int = DEFAULT_ROTATION
    language: str = DEFAULT_OCR_LANGUAGE
    max_workers: int | None = None
    text_only: bool = False
    tts_threads: int = 1
    tts_provider: str = "cpu"
    tts_serialize: bool = False
    tesseract_cmd: str | None = None
    tesseract_psm: int | None = None
    show_progress: bool = True

    @classmethod
    def from_settings(cls, settings: SpreadvoiceSettings, **overrides: Any) -> NarrationConfig:
        """Build a config from a settings snapshot; ``None`` overrides keep the setting."""
        try:
            gutter = GutterParameters(
                dark_threshold=settings.layout.dark_threshold,
                left_margin_ratio=settings.layout.left_margin_ratio,
                min_coverage=settings.layout.min_coverage,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid gutter settings: {exc}") from exc

        config = cls(
            output_dir=settings.output_dir,
            voices_dir=settings.tts.voices_dir,
            layout_file=settings.layout.layout_file,
            gutter=gutter,
            dpi=settings.raster.dpi,
            rotation=settings.raster.rotation,
            language=settings.ocr.language,
            max_workers=settings.max_workers,
            tts_threads=settings.tts.num_threads,
            tts_provider=settings.tts.provider,
            tts_serialize=settings.tts.serialize_calls,
            tesseract_cmd=settings.ocr.tesseract_cmd,
            tesseract_psm=settings.ocr.psm,
        )
        return replace(config, **{key: value for key, value in overrides.items() if value is not None})

    @property
    def voice_dir(self) -> Path:
        return self.voices_dir / self.voice

    def validate(self) -> None:
        if (self.input_file is None) == (self.image_dir is None):
            raise ConfigurationError("Provide exactly one of an input PDF or an image directory.")
        if self.start_page < 0:
            raise ConfigurationError(f"start_page must be >= 0, got {self.start_page}")
        if self.end_page is not None and self.end_page < self.start_page:
            raise ConfigurationError(
                f"end_page ({self.end_page}) must not precede start_page ({self.start_page})"
            )
        if self.speed <= 0:
            raise ConfigurationError(f"speed must be positive, got {self.speed}")
        if self.speaker_id < 0:
            raise ConfigurationError(f"speaker_id must be >= 0, got {self.speaker_id}")
        if self.dpi <= 0:
            raise ConfigurationError(f"dpi must be positive, got {self.dpi}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.tts_threads < 1:
            raise ConfigurationError(f"tts_threads must be >= 1, got {self.tts_threads}")
        if not self.output_name or "/" in self.output_name:
            raise ConfigurationError(f"Invalid output name {self.output_name!r}")
        check_rotation(self.rotation)


@dataclass(frozen=True, slots=True)
class RegionTask:
    """One region of one page, tagged with its logical index."""

    index: int
    bitmap: PageBitmap
    region: ScaledRegion


@dataclass(slots=True)
class NarrationReport:
    text: PipelineResult[str]
    audio: PipelineResult[AudioClip] | None
    failures: list[UnitFailure]
    artifacts: list[Path]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def expected_total(self) -> int | None:
        return self.text.expected_total

    @property
    def failed_indices(self) -> list[int]:
        return [failure.index for failure in self.failures]


PageLoader = Callable[[NarrationConfig], list[PageBitmap]]
SynthesizerFactory = Callable[[NarrationConfig], SpeechSynthesizer]


def load_pages(config: NarrationConfig) -> list[PageBitmap]:
    """Rasterize the configured PDF, or load the configured image directory."""
    if config.input_file is not None:
        return rasterize_pdf(
            config.input_file,
            start_page=config.start_page,
            end_page=config.end_page,
            dpi=config.dpi,
            rotation=config.rotation,
        )

    assert config.image_dir is not None
    bitmaps = load_page_images(config.image_dir, rotation=config.rotation)
    last = len(bitmaps) - 1 if config.end_page is None else config.end_page
    if config.start_page > last or last >= len(bitmaps):
        raise ConfigurationError(
            f"Page range {config.start_page}..{last} is outside 0..{len(bitmaps) - 1} "
            f"for {config.image_dir}"
        )
    selected = bitmaps[config.start_page : last + 1]
    return [PageBitmap(page_index=offset, image=bitmap.image) for offset, bitmap in enumerate(selected)]


def load_synthesizer(config: NarrationConfig) -> SpeechSynthesizer:
    return SherpaOnnxSynthesizer.from_voice_dir(
        config.voice_dir,
        num_threads=config.tts_threads,
        provider=config.tts_provider,
        serialize_calls=config.tts_serialize,
    )


class NarrationPipeline:
    """Runs one narration job described by a ``NarrationConfig``.

    ``run`` either returns a ``NarrationReport`` (every unit succeeded),
    raises ``PartialFailure`` after writing the successful units, or raises
    ``TotalFailure`` without writing anything. Configuration problems raise
    ``ConfigurationError`` before any page is processed.
    """

    def __init__(
        self,
        config: NarrationConfig,
        *,
        ocr_engine: OcrEngine | None = None,
        synthesizer_factory: SynthesizerFactory | None = None,
        page_loader: PageLoader | None = None,
    ) -> None:
        self.config = config
        self._ocr_engine = ocr_engine
        self._synthesizer_factory = synthesizer_factory or load_synthesizer
        self._page_loader = page_loader or load_pages

    def build_splitter(self) -> PageSplitter:
        layout = (
            load_reference_layout(self.config.layout_file)
            if self.config.layout_file is not None
            else DEFAULT_REFERENCE_LAYOUT
        )
        return PageSplitter(self.config.split_mode, layout=layout, gutter=self.config.gutter)

    def _executor(self, desc: str) -> ParallelExecutor:
        reporter = TqdmProgressReporter(desc) if self.config.show_progress else None
        return ParallelExecutor(
            max_concurrency=self.config.max_workers, progress_reporter=reporter
        )

    def _engine(self) -> OcrEngine:
        if self._ocr_engine is None:
            self._ocr_engine = TesseractOcrEngine(
                psm=self.config.tesseract_psm, tesseract_cmd=self.config.tesseract_cmd
            )
        return self._ocr_engine

    def run(self) -> NarrationReport:
        config = self.config
        config.validate()
        splitter = self.build_splitter()
        # Load the voice before touching any page so a bad model fails fast.
        synthesizer = None if config.text_only else self._synthesizer_factory(config)
        engine = self._engine()

        pages = self._page_loader(config)
        if not pages:
            raise ConfigurationError("No pages to narrate.")
        k = splitter.region_count
        expected_total = k * len(pages)
        logger.info(
            f"Narrating {len(pages)} page(s) as {expected_total} logical unit(s) "
            f"({config.split_mode.value} split, {k} per page)."
        )

        text = self.recognize_pages(pages, splitter, engine, expected_total=expected_total)
        if config.text_only:
            final: PipelineResult[Any] = text
            audio = None
        else:
            assert synthesizer is not None
            audio = self.synthesize_units(text, synthesizer)
            final = audio

        if not final.units:
            final.raise_for_failures()

        if config.text_only:
            artifacts = assemble_text(text, config.output_mode, name=config.output_name)
            suffix = TEXT_SUFFIX
        else:
            assert audio is not None
            artifacts = assemble_audio(audio, config.output_mode, name=config.output_name)
            suffix = AUDIO_SUFFIX
        prune = (
            unit_file_pattern(config.output_name, suffix)
            if config.output_mode == OutputMode.SEPARATE
            else None
        )
        paths = write_artifacts(artifacts, config.output_dir, prune=prune)

        report = NarrationReport(
            text=text, audio=audio, failures=list(final.failures), artifacts=paths
        )
        final.raise_for_failures(report)
        logger.info(f"Narrated {len(final.units)} unit(s) into {len(paths)} file(s).")
        return report

    def recognize_pages(
        self,
        pages: list[PageBitmap],
        splitter: PageSplitter,
        engine: OcrEngine,
        *,
        expected_total: int,
    ) -> PipelineResult[str]:
        """Plan every page, then OCR every region; page failures fan out to their units."""
        k = splitter.region_count
        plans = self._executor("Layout").map_indexed(
            splitter.plan,
            pages,
            index_fn=lambda bitmap: bitmap.page_index,
            expected_total=len(pages),
        )

        bitmaps = {bitmap.page_index: bitmap for bitmap in pages}
        tasks: list[RegionTask] = []
        failures: list[UnitFailure] = []
        for unit in plans.units:
            if len(unit.payload) != k:
                error = ConfigurationError(
                    f"Page {unit.index} planned {len(unit.payload)} region(s), expected {k}"
                )
                failures.extend(UnitFailure(index=k * unit.index + r, error=error) for r in range(k))
                continue
            tasks.extend(
                RegionTask(index=k * unit.index + r, bitmap=bitmaps[unit.index], region=region)
                for r, region in enumerate(unit.payload)
            )
        for failure in plans.failures:
            failures.extend(
                UnitFailure(index=k * failure.index + r, error=failure.error) for r in range(k)
            )

        language = self.config.language
        texts = self._executor("OCR").map_indexed(
            lambda task: extract_region(task.bitmap, task.region, engine, language=language),
            tasks,
            index_fn=lambda task: task.index,
        )
        return PipelineResult(
            units=texts.units,
            failures=[*failures, *texts.failures],
            expected_total=expected_total,
        )

    def synthesize_units(
        self,
        text: PipelineResult[str],
        synthesizer: SpeechSynthesizer,
    ) -> PipelineResult[AudioClip]:
        """Speak every successful text unit; text failures carry over unchanged."""
        config = self.config

        def speak(unit: LogicalUnit[str]) -> AudioClip:
            try:
                return synthesizer.synthesize(
                    unit.payload, speaker_id=config.speaker_id, speed=config.speed
                )
            except Exception as exc:
                raise TtsFailure(unit.index, exc) from exc

        clips = self._executor("TTS").map_indexed(
            speak, text.units, index_fn=lambda unit: unit.index
        )
        return PipelineResult(
            units=clips.units,
            failures=[*text.failures, *clips.failures],
            expected_total=text.expected_total,
        )


__all__ = [
    "NarrationConfig",
    "NarrationPipeline",
    "NarrationReport",
    "RegionTask",
    "load_pages",
    "load_synthesizer",
]
