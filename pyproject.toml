[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flacsource"
version = "0.1.0"
description = "Find lossless audio sources for music videos, resolve cross-platform music links, and prepare audio with ffmpeg and yt-dlp."
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = [
    "flac",
    "lossless",
    "music",
    "youtube",
    "yt-dlp",
    "ffmpeg",
    "resample",
    "song.link",
    "spotify",
    "tidal",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["flacsource"]

[tool.hatch.build.targets.sdist]
include = [
    "flacsource",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
