import json
import sys

import pytest

from flacsource.resampler import (
    ResampleError,
    ResampleOptions,
    build_resample_args,
    resample,
)


def _fake_ffmpeg(tmp_path, exit_code=0, stderr=""):
    log_path = tmp_path / "args.json"
    script = tmp_path / "fake-ffmpeg"
    script.write_text(
        f"#!{sys.executable}\n"
        "import json, sys\n"
        f"open({str(log_path)!r}, 'w').write(json.dumps(sys.argv[1:]))\n"
        f"sys.stderr.write({stderr!r})\n"
        f"sys.exit({exit_code})\n"
    )
    script.chmod(0o755)
    return str(script), log_path


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "in.wav"
    path.write_bytes(b"RIFF")
    return str(path)


def test_build_args_flac_24bit():
    options = ResampleOptions("in.wav", "out.flac", 96000, 24, format="flac")
    assert build_resample_args(options) == [
        "-y", "-i", "in.wav",
        "-af", "aresample=resampler=soxr:precision=28:osr=96000",
        "-ar", "96000", "-sample_fmt", "s32",
        "-c:a", "flac", "-vn", "out.flac",
    ]


def test_build_args_wav_16bit_with_dither():
    options = ResampleOptions("in.wav", "out.wav", 44100, 16, dither=True, format="wav")
    assert build_resample_args(options) == [
        "-y", "-i", "in.wav",
        "-af", "aresample=resampler=soxr:precision=28:osr=44100:dither_method=triangular",
        "-ar", "44100", "-sample_fmt", "s16",
        "-c:a", "pcm_s16le", "-vn", "out.wav",
    ]


@pytest.mark.parametrize(
    ("fmt", "depth", "codec"),
    [("wav", 24, "pcm_s24le"), ("wav", 32, "pcm_s32le"), ("ALAC", 32, "alac"), ("Flac", 16, "flac")],
)
def test_build_args_codec(fmt, depth, codec):
    args = build_resample_args(ResampleOptions("a", "b", 48000, depth, format=fmt))
    assert args[args.index("-c:a") + 1] == codec


@pytest.mark.parametrize(
    ("options", "message"),
    [
        (ResampleOptions("in", "out", 12345, 16), "sample rate"),
        (ResampleOptions("in", "out", 48000, 20), "bit depth"),
        (ResampleOptions("in", "out", 48000, 16, format="mp3"), "format"),
        (ResampleOptions("in", "", 48000, 16), "output_path"),
        (ResampleOptions("", "out", 48000, 16), "input_path"),
    ],
)
def test_build_args_rejects_bad_options(options, message):
    with pytest.raises(ValueError, match=message):
        build_resample_args(options)


def test_resample_missing_input(tmp_path):
    options = ResampleOptions("/nonexistent/file.wav", str(tmp_path / "out.flac"), 48000, 16)
    with pytest.raises(FileNotFoundError):
        resample(options)


def test_resample_unsupported_rate(tmp_path, input_file):
    options = ResampleOptions(input_file, str(tmp_path / "out.flac"), 12345, 16)
    with pytest.raises(ValueError, match="unsupported sample rate"):
        resample(options)


def test_resample_runs_ffmpeg_and_creates_output_dir(tmp_path, input_file):
    ffmpeg, log_path = _fake_ffmpeg(tmp_path)
    output = tmp_path / "nested" / "dir" / "out.flac"
    options = ResampleOptions(input_file, str(output), 96000, 24, format="flac")

    resample(options, ffmpeg=ffmpeg)

    assert output.parent.is_dir()
    recorded = json.loads(log_path.read_text())
    assert recorded[:3] == ["-y", "-i", input_file]
    assert recorded[-2:] == ["-vn", str(output)]
    assert "aresample=resampler=soxr:precision=28:osr=96000" in recorded


def test_resample_reports_ffmpeg_failure(tmp_path, input_file):
    ffmpeg, _ = _fake_ffmpeg(tmp_path, exit_code=1, stderr="bad input")
    options = ResampleOptions(input_file, str(tmp_path / "out.wav"), 44100, 16, format="wav")
    with pytest.raises(ResampleError, match="bad input"):
        resample(options, ffmpeg=ffmpeg)


def test_resample_missing_ffmpeg_binary(tmp_path, input_file):
    options = ResampleOptions(input_file, str(tmp_path / "out.flac"), 48000, 16)
    with pytest.raises(ResampleError, match="ffmpeg resample failed"):
        resample(options, ffmpeg=str(tmp_path / "no-such-ffmpeg"))