from .assembler import (
    AudioArtifact,
    OutputMode,
    TextArtifact,
    assemble_audio,
    assemble_text,
    unit_file_pattern,
    write_artifacts,
)


__all__ = [
    "AudioArtifact",
    "OutputMode",
    "TextArtifact",
    "assemble_audio",
    "assemble_text",
    "unit_file_pattern",
    "write_artifacts",
]
