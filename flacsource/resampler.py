"""Audio resampling through ffmpeg's soxr resampler."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

SUPPORTED_SAMPLE_RATES = (44100, 48000, 88200, 96000, 176400, 192000)
SUPPORTED_BIT_DEPTHS = (16, 24, 32)
SUPPORTED_RESAMPLE_FORMATS = ("flac", "wav", "alac")

# bit depth -> (ffmpeg sample format, PCM codec used for WAV)
_SAMPLE_FORMATS = {
    16: ("s16", "pcm_s16le"),
    24: ("s32", "pcm_s24le"),
    32: ("s32", "pcm_s32le"),
}


class ResampleError(RuntimeError):
    """Raised when ffmpeg cannot be run or fails to resample."""


@dataclass
class ResampleOptions:
    """What to resample, and into which rate, depth and container."""

    input_path: str
    output_path: str
    sample_rate: int
    bit_depth: int
    dither: bool = False
    format: str = "flac"


def build_resample_args(options: ResampleOptions) -> list[str]:
    """Validate ``options`` and return the ffmpeg arguments for them."""
    if not options.input_path:
        raise ValueError("input_path required")
    if not options.output_path:
        raise ValueError("output_path required")
    if options.sample_rate not in SUPPORTED_SAMPLE_RATES:
        raise ValueError(f"unsupported sample rate: {options.sample_rate}")
    if options.bit_depth not in SUPPORTED_BIT_DEPTHS:
        raise ValueError(f"unsupported bit depth: {options.bit_depth}")
    fmt = options.format.lower()
    if fmt not in SUPPORTED_RESAMPLE_FORMATS:
        raise ValueError(f"unsupported format: {options.format}")

    sample_fmt, pcm_codec = _SAMPLE_FORMATS[options.bit_depth]

    audio_filter = f"aresample=resampler=soxr:precision=28:osr={options.sample_rate}"
    if options.dither:
        audio_filter += ":dither_method=triangular"

    codec = {"flac": "flac", "wav": pcm_codec, "alac": "alac"}[fmt]
    return [
        "-y",
        "-i", options.input_path,
        "-af", audio_filter,
        "-ar", str(options.sample_rate),
        "-sample_fmt", sample_fmt,
        "-c:a", codec,
        "-vn", options.output_path,
    ]


def resample(
    options: ResampleOptions,
    ffmpeg: str | None = None,
    timeout: float | None = None,
) -> None:
    """Convert an audio file to the requested sample rate and bit depth.

    Raises ValueError for bad options, FileNotFoundError when the input is
    missing and ResampleError when ffmpeg fails or exceeds ``timeout``.
    """
    if not options.input_path:
        raise ValueError("input_path required")
    if not Path(options.input_path).exists():
        raise FileNotFoundError(f"input not found: {options.input_path}")

    args = build_resample_args(options)
    Path(options.output_path).parent.mkdir(parents=True, exist_ok=True)

    command = [ffmpeg or "ffmpeg", *args]
    try:
        completed = subprocess.run(
            command, capture_output=True, text=True, timeout=timeout, check=False
        )
    except subprocess.TimeoutExpired as exc:
        raise ResampleError(f"ffmpeg resample timed out after {timeout}s") from exc
    except OSError as exc:
        raise ResampleError(f"ffmpeg resample failed: {exc}") from exc

    if completed.returncode != 0:
        raise ResampleError(
            f"ffmpeg resample failed: exit status {completed.returncode} - {completed.stderr}"
        )