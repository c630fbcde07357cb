"""External collaborators: OCR engines and speech synthesizers."""

from .base_ocr import OcrEngine
from .base_tts import AudioClip, SpeechSynthesizer
from .extractor import extract_region, post_process_text


__all__ = [
    "AudioClip",
    "OcrEngine",
    "SpeechSynthesizer",
    "extract_region",
    "post_process_text",
]
