"""Cross-platform music URL resolution through the song.link (Odesli) API."""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import requests

SONG_LINK_API_BASE = "https://api.song.link/v1-alpha.1/links"
USER_AGENT = "MKV-Video/1.0"
REQUEST_TIMEOUT = 30.0
# song.link allows 10 requests a minute; stay under that.
DEFAULT_MIN_INTERVAL = 7.0
DEFAULT_CACHE_TTL = 30 * 60.0

_SPOTIFY_TRACK = re.compile(r"spotify\.com/track/([a-zA-Z0-9]+)")
_SPOTIFY_ALBUM = re.compile(r"spotify\.com/album/([a-zA-Z0-9]+)")
_SPOTIFY_PLAYLIST = re.compile(r"spotify\.com/playlist/([a-zA-Z0-9]+)")
_SPOTIFY_INTL = re.compile(r"spotify\.com/intl-[a-z]+/track/([a-zA-Z0-9]+)")

# Order matters: the intl form is tried before the plain track form.
_SPOTIFY_PATTERNS = (
    (_SPOTIFY_INTL, "track"),
    (_SPOTIFY_TRACK, "track"),
    (_SPOTIFY_ALBUM, "album"),
    (_SPOTIFY_PLAYLIST, "playlist"),
)

# song.link platform key -> (URL field, ID field or None)
_PLATFORM_FIELDS = (
    ("spotify", "spotify_url", "spotify_id"),
    ("tidal", "tidal_url", "tidal_id"),
    ("qobuz", "qobuz_url", "qobuz_id"),
    ("amazonMusic", "amazon_url", "amazon_id"),
    ("deezer", "deezer_url", None),
    ("appleMusic", "apple_music_url", None),
    ("youtube", "youtube_url", None),
    ("youtubeMusic", "youtube_music_url", None),
    ("soundcloud", "soundcloud_url", None),
)

_URL_JSON_KEYS = {
    "spotify_url": "spotifyUrl",
    "tidal_url": "tidalUrl",
    "qobuz_url": "qobuzUrl",
    "amazon_url": "amazonUrl",
    "deezer_url": "deezerUrl",
    "apple_music_url": "appleMusicUrl",
    "youtube_url": "youtubeUrl",
    "youtube_music_url": "youtubeMusicUrl",
    "soundcloud_url": "soundcloudUrl",
    "page_url": "pageUrl",
}


class SongLinkError(RuntimeError):
    """Raised when the song.link API cannot resolve a URL."""


@dataclass
class SongLinkURLs:
    """Resolved URLs for every supported platform; empty when unavailable."""

    spotify_url: str = ""
    tidal_url: str = ""
    qobuz_url: str = ""
    amazon_url: str = ""
    deezer_url: str = ""
    apple_music_url: str = ""
    youtube_url: str = ""
    youtube_music_url: str = ""
    soundcloud_url: str = ""
    page_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            key: getattr(self, name)
            for name, key in _URL_JSON_KEYS.items()
            if getattr(self, name)
        }


@dataclass
class SongLinkTrackInfo:
    """Metadata and platform URLs for one song.link resolution."""

    title: str = ""
    artist: str = ""
    thumbnail: str = ""
    type: str = ""
    urls: SongLinkURLs = field(default_factory=SongLinkURLs)
    isrc: str = ""
    spotify_id: str = ""
    tidal_id: str = ""
    qobuz_id: str = ""
    amazon_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "artist": self.artist,
            "thumbnail": self.thumbnail,
            "type": self.type,
            "urls": self.urls.to_dict(),
        }
        optional = {
            "isrc": self.isrc,
            "spotifyId": self.spotify_id,
            "tidalId": self.tidal_id,
            "qobuzId": self.qobuz_id,
            "amazonId": self.amazon_id,
        }
        data.update({key: value for key, value in optional.items() if value})
        return data


class FlacSource(NamedTuple):
    """A platform offering FLAC, with its priority (1 is best)."""

    platform: str
    url: str
    priority: int


def parse_spotify_url(raw_url: str) -> tuple[str, str]:
    """Return ``(id, content_type)`` for a Spotify track, album or playlist URL."""
    for pattern, content_type in _SPOTIFY_PATTERNS:
        match = pattern.search(raw_url)
        if match:
            return match.group(1), content_type
    raise ValueError(f"could not parse Spotify URL: {raw_url}")


def is_spotify_url(raw_url: str) -> bool:
    """Return True if ``raw_url`` is a Spotify track, album or playlist URL."""
    return any(pattern.search(raw_url) for pattern, _ in _SPOTIFY_PATTERNS)


def extract_id_from_entity_unique_id(entity_id: str) -> str:
    """Return what follows the last ``::`` in an entity ID such as ``TIDAL_SONG::123``."""
    separator = entity_id.rfind("::")
    if separator < 0:
        return entity_id
    return entity_id[separator + 2:]


def parse_song_link_response(data: Mapping[str, Any]) -> SongLinkTrackInfo:
    """Build track info from a decoded song.link API response."""
    links = data.get("linksByPlatform") or {}
    url_fields: dict[str, str] = {"page_url": data.get("pageUrl") or ""}
    id_fields: dict[str, str] = {}

    for platform, url_field, id_field in _PLATFORM_FIELDS:
        if platform not in links:
            continue
        link = links[platform] or {}
        url_fields[url_field] = link.get("url") or ""
        if id_field:
            id_fields[id_field] = extract_id_from_entity_unique_id(
                link.get("entityUniqueId") or ""
            )

    info = SongLinkTrackInfo(urls=SongLinkURLs(**url_fields), **id_fields)

    entities = data.get("entitiesByUniqueId") or {}
    primary_id = data.get("entityUniqueId") or ""
    if primary_id in entities:
        entity = entities[primary_id] or {}
        info.title = entity.get("title") or ""
        info.artist = entity.get("artistName") or ""
        info.thumbnail = entity.get("thumbnailUrl") or ""
        info.type = entity.get("type") or ""

    return info


def get_best_flac_source(info: SongLinkTrackInfo) -> tuple[str, str]:
    """Return ``(platform, url)`` of the best FLAC source: Tidal, Qobuz, then Amazon."""
    for platform, url in (
        ("tidal", info.urls.tidal_url),
        ("qobuz", info.urls.qobuz_url),
        ("amazon", info.urls.amazon_url),
    ):
        if url:
            return platform, url
    return "", ""


def get_all_flac_sources(info: SongLinkTrackInfo) -> list[FlacSource]:
    """Return every available FLAC source, best first."""
    candidates = (
        ("tidal", info.urls.tidal_url, 1),
        ("qobuz", info.urls.qobuz_url, 2),
        ("amazon", info.urls.amazon_url, 3),
        ("deezer", info.urls.deezer_url, 4),
    )
    return [FlacSource(platform, url, priority) for platform, url, priority in candidates if url]


class SongLinkClient:
    """Rate-limited, caching client for the song.link API."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        api_base: str = SONG_LINK_API_BASE,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._session = session if session is not None else requests.Session()
        self.api_base = api_base
        self.min_interval = min_interval
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self._rate_lock = threading.Lock()
        self._last_request: float | None = None
        self._cache_lock = threading.Lock()
        self._cache: dict[str, tuple[float, SongLinkTrackInfo]] = {}

    def _cached(self, music_url: str) -> SongLinkTrackInfo | None:
        with self._cache_lock:
            entry = self._cache.get(music_url)
        if entry is not None and time.monotonic() - entry[0] < self.cache_ttl:
            return entry[1]
        return None

    def _wait_for_rate_limit(self) -> None:
        with self._rate_lock:
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.min_interval:
                    time.sleep(self.min_interval - elapsed)
            self._last_request = time.monotonic()

    def resolve(self, music_url: str) -> SongLinkTrackInfo:
        """Resolve any supported music platform URL into cross-platform URLs."""
        cached = self._cached(music_url)
        if cached is not None:
            return cached

        self._wait_for_rate_limit()

        try:
            response = self._session.get(
                self.api_base,
                params={"url": music_url},
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SongLinkError(f"API request failed: {exc}") from exc

        with response:
            if response.status_code == 429:
                raise SongLinkError("rate limited by song.link API, please wait")
            if response.status_code != 200:
                raise SongLinkError(f"API error {response.status_code}: {response.text}")
            try:
                data = response.json()
            except ValueError as exc:
                raise SongLinkError(f"failed to parse response: {exc}") from exc

        if not isinstance(data, Mapping):
            raise SongLinkError("failed to parse response: expected a JSON object")

        info = parse_song_link_response(data)
        with self._cache_lock:
            self._cache[music_url] = (time.monotonic(), info)
        return info

    def resolve_spotify(self, spotify_url: str) -> SongLinkTrackInfo:
        """Resolve a Spotify URL, rejecting anything that is not one."""
        if not is_spotify_url(spotify_url):
            raise ValueError(f"not a valid Spotify URL: {spotify_url}")
        return self.resolve(spotify_url)

    def resolve_isrc(self, isrc: str) -> SongLinkTrackInfo:
        """Resolve platform URLs for a track by its ISRC."""
        return self.resolve(f"https://open.spotify.com/search/isrc:{isrc}")


_default_client: SongLinkClient | None = None
_default_client_lock = threading.Lock()


def _shared_client() -> SongLinkClient:
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = SongLinkClient()
        return _default_client


def resolve_music_url(music_url: str) -> SongLinkTrackInfo:
    """Resolve ``music_url`` with the shared, rate-limited client."""
    return _shared_client().resolve(music_url)