"""Spotify track metadata through the public oEmbed endpoint."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

from flacsource.songlink import (
    SongLinkClient,
    SongLinkError,
    parse_spotify_url,
    resolve_music_url,
)

OEMBED_URL = "https://open.spotify.com/oembed"
REQUEST_TIMEOUT = 30.0

_SPOTIFY_URI = re.compile(r"spotify:track:([a-zA-Z0-9]+)")


class SpotifyError(RuntimeError):
    """Raised when Spotify metadata cannot be fetched."""


@dataclass
class SpotifyTrackInfo:
    """Metadata for a Spotify track."""

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    isrc: str = ""
    duration: float = 0.0
    cover_url: str = ""
    release_date: str = ""
    track_number: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "isrc": self.isrc,
            "duration": self.duration,
            "coverUrl": self.cover_url,
        }
        if self.release_date:
            data["releaseDate"] = self.release_date
        if self.track_number:
            data["trackNumber"] = self.track_number
        return data


def _track_url(track_id: str) -> str:
    return f"https://open.spotify.com/track/{track_id}"


def parse_spotify_title(full_title: str) -> tuple[str, str]:
    """Split an embed title of the form ``"Song - Artist"`` into ``(title, artist)``."""
    title, separator, artist = full_title.partition(" - ")
    if separator:
        return title.strip(), artist.strip()
    return full_title, ""


def get_spotify_track_info(
    track_id: str, session: requests.Session | None = None
) -> SpotifyTrackInfo:
    """Fetch track metadata from Spotify's oEmbed API, which needs no login."""
    getter = session.get if session is not None else requests.get
    try:
        response = getter(
            f"{OEMBED_URL}?url={_track_url(track_id)}", timeout=REQUEST_TIMEOUT
        )
    except requests.RequestException as exc:
        raise SpotifyError(f"failed to fetch Spotify embed: {exc}") from exc

    with response:
        if response.status_code != 200:
            raise SpotifyError(f"Spotify embed API returned {response.status_code}")
        try:
            embed = response.json()
        except ValueError as exc:
            raise SpotifyError(f"failed to parse embed response: {exc}") from exc

    if not isinstance(embed, dict):
        raise SpotifyError("failed to parse embed response: expected a JSON object")

    title, artist = parse_spotify_title(embed.get("title") or "")
    return SpotifyTrackInfo(
        id=track_id,
        title=title,
        artist=artist,
        cover_url=embed.get("thumbnail_url") or "",
    )


def get_spotify_track_info_from_url(
    spotify_url: str, session: requests.Session | None = None
) -> SpotifyTrackInfo:
    """Fetch metadata for the track a Spotify URL points to."""
    track_id, content_type = parse_spotify_url(spotify_url)
    if content_type != "track":
        raise ValueError(f"URL is not a track URL (got {content_type})")
    return get_spotify_track_info(track_id, session)


def extract_spotify_id(raw_url: str) -> str:
    """Return the ID from a Spotify track, album or playlist URL."""
    return parse_spotify_url(raw_url)[0]


def get_isrc_from_spotify(track_id: str, client: SongLinkClient | None = None) -> str:
    """Look up a track's ISRC through song.link."""
    url = _track_url(track_id)
    try:
        info = client.resolve(url) if client is not None else resolve_music_url(url)
    except SongLinkError as exc:
        raise SpotifyError(f"failed to resolve track: {exc}") from exc
    return info.isrc


def parse_spotify_uri(uri: str) -> str:
    """Return the track ID from a ``spotify:track:ID`` URI."""
    match = _SPOTIFY_URI.search(uri)
    if not match:
        raise ValueError(f"invalid Spotify URI: {uri}")
    return match.group(1)


def convert_spotify_uri_to_url(uri: str) -> str:
    """Turn a ``spotify:track:ID`` URI into an open.spotify.com URL."""
    return _track_url(parse_spotify_uri(uri))