import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from assembler.config import Settings

logger = logging.getLogger(__name__)

# Characters with meaning to the option parser and to the filtergraph parser.
_OPTION_SPECIAL = "\\':"
_GRAPH_SPECIAL = "\\'[],;"


def escape_filter_value(value: str) -> str:
    """Escape a literal for use as a filter option value inside -vf"""
    for level in (_OPTION_SPECIAL, _GRAPH_SPECIAL):
        value = "".join("\\" + ch if ch in level else ch for ch in value)
    return value


# ffmpeg muxer names where they differ from the file extension
_MUXERS = {"mkv": "matroska", "m4v": "mp4", "ts": "mpegts"}


def muxer_for(extension: str) -> str:
    extension = extension.lstrip(".").lower()
    return _MUXERS.get(extension, extension)


def concat_manifest_line(path: Path) -> str:
    # The concat demuxer resolves relative entries against the manifest, not the cwd
    path = Path(path).resolve()
    if "\n" in str(path) or "\r" in str(path):
        raise ValueError(f"Line break in concat segment path: {str(path)!r}")
    quoted = str(path).replace("'", "'\\''")
    return f"file '{quoted}'"


@dataclass
class EncoderCommand:
    """A single external-tool call: what it does, its argv, and what it writes"""

    description: str
    args: List[str]
    output: Path


class FFmpegEncoder:
    def __init__(self, binary: str = "ffmpeg", timeout: Optional[float] = 3600,
                 font_size: int = 48, font_color: str = "white",
                 box_color: str = "black@0.5", y_offset: int = 100,
                 font_file: Optional[str] = None):
        self.binary = binary
        self.timeout = timeout
        self.font_size = font_size
        self.font_color = font_color
        self.box_color = box_color
        self.y_offset = y_offset
        self.font_file = font_file

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFmpegEncoder":
        return cls(
            binary=settings.ffmpeg_binary,
            timeout=settings.encoder_timeout,
            font_size=settings.overlay_font_size,
            font_color=settings.overlay_font_color,
            box_color=settings.overlay_box_color,
            y_offset=settings.overlay_y_offset,
            font_file=settings.overlay_font_file,
        )

    def generate_drawtext_filter(self, text_file: Path) -> str:
        """Centered text, pushed below the middle, on a translucent box"""
        options = [
            f"textfile={escape_filter_value(str(text_file))}",
            "expansion=none",
            "x=(w-text_w)/2",
            f"y=(h-text_h)/2+{self.y_offset}",
            f"fontsize={self.font_size}",
            f"fontcolor={self.font_color}",
            "box=1",
            f"boxcolor={self.box_color}",
        ]
        if self.font_file:
            options.insert(0, f"fontfile={escape_filter_value(self.font_file)}")
        return "drawtext=" + ":".join(options)

    def overlay_text_command(self, video: Path, text_file: Path, output: Path) -> EncoderCommand:
        args = [
            self.binary, '-y', '-i', str(video),
            '-vf', self.generate_drawtext_filter(text_file),
            '-c:a', 'copy', str(output)
        ]
        return EncoderCommand("overlay text onto video", args, output)

    def concat_command(self, manifest: Path, output: Path, output_format: str = "mp4") -> EncoderCommand:
        # Stream copy: segments are joined without re-encoding. The muxer is
        # explicit because the staged output name has no video extension.
        args = [
            self.binary, '-y', '-f', 'concat', '-safe', '0',
            '-i', str(manifest), '-c', 'copy',
            '-f', muxer_for(output_format), str(output)
        ]
        return EncoderCommand("concatenate ordered segments", args, output)

    @staticmethod
    def write_concat_manifest(manifest: Path, segments: Sequence[Path]) -> None:
        manifest.write_text("\n".join(concat_manifest_line(p) for p in segments) + "\n")

    def invoke(self, command: EncoderCommand) -> Tuple[bool, str]:
        """Run one external process and report (success, detail).

        On success detail is the output path. On failure it is the tool's
        diagnostic output and the output path must not be trusted.
        """
        logger.debug("Running %s: %s", command.description, command.args)
        try:
            result = subprocess.run(
                command.args, capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            return False, f"FFmpeg timed out after {self.timeout} seconds ({command.description})"
        except OSError as e:
            return False, f"Could not start {self.binary}: {e}"

        if result.returncode == 0:
            return True, str(command.output)
        return False, f"FFmpeg error: {result.stderr}"
