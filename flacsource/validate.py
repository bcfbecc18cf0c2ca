"""Input validation for URLs, playlist names, output paths and audio sources."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import SplitResult, urlsplit

MAX_URL_LENGTH = 2048

VALID_AUDIO_SOURCES = frozenset({"tidal", "qobuz", "amazon", "deezer"})

SYSTEM_PATHS = ("/etc", "/root", "/proc", "/sys", "/bin", "/sbin", "/usr/bin", "/dev", "/boot")

YOUTUBE_HOSTS = frozenset({"youtube.com", "www.youtube.com", "youtu.be", "music.youtube.com"})


class ValidationError(ValueError):
    """Raised when user-supplied input fails validation."""


def _parse_request_uri(raw_url: str) -> SplitResult:
    """Parse an absolute URI or absolute path, rejecting anything else."""
    if not raw_url:
        raise ValidationError("empty url")
    try:
        parts = urlsplit(raw_url)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if not parts.scheme and not raw_url.startswith("/"):
        raise ValidationError("invalid URI for request")
    return parts


def validate_youtube_url(raw_url: str) -> None:
    """Check that a URL is an https URL on an approved YouTube domain."""
    if len(raw_url) > MAX_URL_LENGTH:
        raise ValidationError(f"URL exceeds maximum length of {MAX_URL_LENGTH} characters")

    try:
        parts = _parse_request_uri(raw_url)
    except ValidationError as exc:
        raise ValidationError("invalid URL format") from exc

    if parts.scheme != "https":
        raise ValidationError("URL must use https")

    host = (parts.hostname or "").lower()
    if host not in YOUTUBE_HOSTS:
        raise ValidationError("URL must be from youtube.com, youtu.be, or music.youtube.com")


def sanitize_playlist_name(name: str) -> str:
    """Strip traversal sequences and path separators from a playlist name."""
    if "\x00" in name:
        raise ValidationError("playlist name contains null bytes")

    name = name.replace("..", "").replace("/", "").replace("\\", "").strip()
    if not name:
        raise ValidationError("playlist name is empty after sanitization")
    return name


def validate_output_directory(path: str) -> None:
    """Reject output directories that are, or lie inside, system paths."""
    if not path:
        return
    for system_path in SYSTEM_PATHS:
        if path == system_path or path.startswith(system_path + "/"):
            raise ValidationError(f"output directory cannot be a system path ({system_path})")


def validate_audio_sources(sources: Iterable[str]) -> None:
    """Check every source is a known, lowercase audio source name."""
    for source in sources:
        if source not in VALID_AUDIO_SOURCES:
            raise ValidationError(
                f"unknown audio source {source!r}: must be one of tidal, qobuz, amazon, deezer"
            )


def validate_track_url(raw_url: str) -> None:
    """Check that a music service URL parses and uses https."""
    try:
        parts = _parse_request_uri(raw_url)
    except ValidationError as exc:
        raise ValidationError(f"invalid track URL: {exc}") from exc
    if parts.scheme != "https":
        raise ValidationError(f"track URL must use https, got {parts.scheme!r}")