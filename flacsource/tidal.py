"""Tidal URL parsing, quality tiers and Spotify-to-Tidal resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from flacsource.songlink import SongLinkClient, is_spotify_url, resolve_music_url

_TIDAL_TRACK = re.compile(r"tidal\.com/(?:browse/)?track/(\d+)")
_TIDAL_ALBUM = re.compile(r"tidal\.com/(?:browse/)?album/(\d+)")
_TIDAL_PLAYLIST = re.compile(r"tidal\.com/(?:browse/)?playlist/([a-f0-9-]+)")

_TIDAL_PATTERNS = (
    (_TIDAL_TRACK, "track"),
    (_TIDAL_ALBUM, "album"),
    (_TIDAL_PLAYLIST, "playlist"),
)


class TidalError(RuntimeError):
    """Raised when a track cannot be found on Tidal."""


class TidalQuality(str, Enum):
    """Tidal audio quality tiers."""

    LOW = "LOW"
    HIGH = "HIGH"
    LOSSLESS = "LOSSLESS"
    HI_RES = "HI_RES"
    MAX = "MAX"


_QUALITY_LABELS = {
    TidalQuality.LOW: "Low (96 kbps AAC)",
    TidalQuality.HIGH: "High (320 kbps AAC)",
    TidalQuality.LOSSLESS: "Lossless (16-bit/44.1kHz FLAC)",
    TidalQuality.HI_RES: "Hi-Res (24-bit/96kHz MQA)",
    TidalQuality.MAX: "Max (24-bit/192kHz FLAC)",
}


@dataclass
class TidalTrackInfo:
    """Tidal-specific track metadata."""

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    isrc: str = ""
    duration: float = 0.0
    quality: str = ""
    cover_url: str = ""
    track_number: int = 0
    album_id: str = ""
    release_date: str = ""
    explicit: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "isrc": self.isrc,
            "duration": self.duration,
            "quality": self.quality,
        }
        optional = {
            "coverUrl": self.cover_url,
            "trackNumber": self.track_number,
            "albumId": self.album_id,
            "releaseDate": self.release_date,
            "explicit": self.explicit,
        }
        data.update({key: value for key, value in optional.items() if value})
        return data


def parse_tidal_url(raw_url: str) -> tuple[str, str]:
    """Return ``(id, content_type)`` for a Tidal track, album or playlist URL."""
    for pattern, content_type in _TIDAL_PATTERNS:
        match = pattern.search(raw_url)
        if match:
            return match.group(1), content_type
    raise ValueError(f"could not parse Tidal URL: {raw_url}")


def is_tidal_url(raw_url: str) -> bool:
    """Return True if ``raw_url`` is a Tidal track, album or playlist URL."""
    return any(pattern.search(raw_url) for pattern, _ in _TIDAL_PATTERNS)


def get_tidal_url_from_spotify(
    spotify_url: str, client: SongLinkClient | None = None
) -> str:
    """Resolve a Spotify URL to the matching Tidal URL through song.link."""
    if client is not None:
        info = client.resolve_spotify(spotify_url)
    else:
        if not is_spotify_url(spotify_url):
            raise ValueError(f"not a valid Spotify URL: {spotify_url}")
        info = resolve_music_url(spotify_url)

    if not info.urls.tidal_url:
        raise TidalError("track not available on Tidal")
    return info.urls.tidal_url


def tidal_quality_label(quality: TidalQuality | str) -> str:
    """Return a human-readable label for a quality tier; unknown tiers pass through."""
    try:
        tier = TidalQuality(quality)
    except ValueError:
        return str(quality)
    return _QUALITY_LABELS[tier]