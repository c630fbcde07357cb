"""Command-line entry points: ``narrate`` a scanned book, or ``split`` one spread image.

Exit codes are 0 when every logical page was narrated, 1 when some pages
failed but the rest were written, and 2 for configuration errors or runs
that produced nothing.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from PIL import Image
import typer  # type: ignore[import]

from spreadvoice.audio.assembler import OutputMode
from spreadvoice.config.settings import get_settings
from spreadvoice.errors import ConfigurationError, PartialFailure, TotalFailure
from spreadvoice.layout import GutterParameters, PageSplitter, SplitMode
from spreadvoice.page import PageBitmap
from spreadvoice.pipeline.runner import (
    DEFAULT_OUTPUT_NAME,
    DEFAULT_SPEAKER_ID,
    DEFAULT_SPEED,
    NarrationConfig,
    NarrationPipeline,
)
from spreadvoice.systems.sherpa_tts import DEFAULT_VOICE
from spreadvoice.utils.image.transform import split_image_at_column
from spreadvoice.utils.log_utils import logger, set_console_level


EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FAILURE = 2


app = typer.Typer(
    help="Narrate scanned two-up PDFs page by page.",
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug messages on the console.",
    ),
) -> None:
    if verbose:
        set_console_level("DEBUG")


@app.command("narrate")
def narrate_command(
    input_file: Path | None = typer.Option(
        None,
        "--input-file",
        "-i",
        help="Scanned PDF to narrate.",
        dir_okay=False,
    ),
    image_dir: Path | None = typer.Option(
        None,
        "--image-dir",
        help="Directory of pre-rendered page images, ordered by the number in their names.",
        file_okay=False,
    ),
    output_file: str = typer.Option(
        DEFAULT_OUTPUT_NAME,
        "--output-file",
        "-o",
        help="Output name (combined) or file name prefix (separate).",
        show_default=True,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Directory receiving the output files. Defaults to SPREADVOICE_OUTPUT_DIR or ./out.",
        file_okay=False,
    ),
    start_page: int = typer.Option(
        0,
        "--start-page",
        help="First PDF page to narrate (0-based).",
        show_default=True,
    ),
    end_page: int | None = typer.Option(
        None,
        "--end-page",
        help="Last PDF page to narrate (0-based, inclusive). Defaults to the last page.",
    ),
    voice: str = typer.Option(
        DEFAULT_VOICE,
        "--voice",
        help="Voice directory name under the TTS model root.",
        show_default=True,
    ),
    speed: float = typer.Option(
        DEFAULT_SPEED,
        "--speed",
        help="Speech speed multiplier.",
        show_default=True,
    ),
    speaker_id: int = typer.Option(
        DEFAULT_SPEAKER_ID,
        "--speaker-id",
        "-s",
        help="Speaker id for multi-speaker voices.",
        show_default=True,
    ),
    combine_pages: bool = typer.Option(
        True,
        "--combine-pages/--separate-pages",
        help="Write one combined file, or one file per logical page.",
        show_default=True,
    ),
    split_mode: SplitMode = typer.Option(
        SplitMode.REFERENCE,
        "--split-mode",
        help="Scale the reference layout, or split at the detected gutter.",
        case_sensitive=False,
        show_default=True,
    ),
    layout_file: Path | None = typer.Option(
        None,
        "--layout-file",
        help="JSON reference layout replacing the built-in one.",
        dir_okay=False,
    ),
    dpi: int | None = typer.Option(
        None,
        "--dpi",
        help="Rasterization DPI. Defaults to SPREADVOICE_DPI or 200.",
    ),
    rotation: int | None = typer.Option(
        None,
        "--rotation",
        help="Clockwise page rotation in degrees (multiple of 90). Defaults to 90.",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        help="Worker threads per stage. Defaults to the CPU count.",
    ),
    language: str | None = typer.Option(
        None,
        "--language",
        help="Tesseract language code. Defaults to SPREADVOICE_OCR_LANGUAGE or eng.",
    ),
    text_only: bool = typer.Option(
        False,
        "--text-only",
        help="Skip speech synthesis and write the recognized text instead.",
    ),
) -> int:
    try:
        config = NarrationConfig.from_settings(
            get_settings(),
            input_file=input_file,
            image_dir=image_dir,
            output_dir=output_dir,
            output_name=output_file,
            start_page=start_page,
            end_page=end_page,
            voice=voice,
            speed=speed,
            speaker_id=speaker_id,
            output_mode=OutputMode.COMBINED if combine_pages else OutputMode.SEPARATE,
            split_mode=split_mode,
            layout_file=layout_file,
            dpi=dpi,
            rotation=rotation,
            max_workers=workers,
            language=language,
            text_only=text_only,
        )
        config.validate()
        report = NarrationPipeline(config).run()
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc
    except TotalFailure as exc:
        logger.error(f"Nothing was narrated: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc
    except PartialFailure as exc:
        for failure in exc.failures:
            logger.error(f"Failed {failure.describe()}")
        logger.warning(
            f"{len(exc.failures)} logical page(s) failed ({exc.failed_indices}); "
            "the remaining pages were written."
        )
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE) from exc
    except KeyboardInterrupt as err:
        logger.info("Interrupted by user")
        raise typer.Exit(code=130) from err

    logger.info(f"Done: {', '.join(str(path) for path in report.artifacts)}")
    return EXIT_OK


@app.command("split")
def split_command(
    image: Path = typer.Argument(
        ...,
        help="Two-up page image to split at its gutter.",
        dir_okay=False,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Where to save the halves. Defaults to the image's directory.",
        file_okay=False,
    ),
) -> int:
    settings = get_settings()
    try:
        params = GutterParameters(
            dark_threshold=settings.layout.dark_threshold,
            left_margin_ratio=settings.layout.left_margin_ratio,
            min_coverage=settings.layout.min_coverage,
        )
        with Image.open(image) as img:
            gray = img.convert("L")
    except (OSError, ValueError) as exc:
        logger.error(f"Cannot split {image}: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    splitter = PageSplitter(SplitMode.GUTTER, gutter=params)
    column = splitter.split_column(PageBitmap(page_index=0, image=gray))
    try:
        left, right = split_image_at_column(gray, column)
    except ValueError as exc:
        logger.error(f"Cannot split {image}: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    destination = output_dir or image.parent
    destination.mkdir(parents=True, exist_ok=True)
    left_path = destination / f"{image.stem}_left.png"
    right_path = destination / f"{image.stem}_right.png"
    left.save(left_path)
    right.save(right_path)
    logger.info(f"Split {image.name} at column {column}: {left_path.name}, {right_path.name}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    try:
        return int(app(args=list(argv) if argv is not None else None, standalone_mode=False) or 0)
    except SystemExit as exc:
        return int(exc.code or 0)


if __name__ == "__main__":  # pragma: no cover
    app()
