"""YouTube URL parsing, thumbnails, format selectors and channel assets."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlsplit

import requests

log = logging.getLogger(__name__)

YOUTUBE_THUMBNAIL_BASE = "https://i.ytimg.com/vi"
THUMBNAIL_TIMEOUT = 5.0
ASSET_TIMEOUT = 30.0

_YOUTUBE = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/|youtube\.com/shorts/)"
    r"([a-zA-Z0-9_-]{11})"
)
_YOUTUBE_MUSIC = re.compile(r"music\.youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})")
_PLAYLIST = re.compile(r"[?&]list=([a-zA-Z0-9_-]+)")
_VIDEO_ID = re.compile(r"[a-zA-Z0-9_-]{11}")

_THUMBNAIL_CANDIDATES = ("maxresdefault.jpg", "sddefault.jpg", "hqdefault.jpg")

_CHANNEL_MARKERS = (
    "youtube.com/@",
    "youtube.com/channel/",
    "youtube.com/c/",
    "youtube.com/user/",
)

_HEIGHT_LIMITS = {"1080p": 1080, "720p": 720, "480p": 480, "360p": 360}


class YouTubeError(ValueError):
    """Raised when a YouTube URL or channel description cannot be used."""


@dataclass
class VideoInfo:
    """Metadata about a YouTube video."""

    id: str = ""
    title: str = ""
    artist: str = ""
    album: str = ""
    duration: float = 0.0
    isrc: str = ""
    thumbnail: str = ""
    url: str = ""
    upload_date: str = ""
    description: str = ""
    channel: str = ""
    view_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "thumbnail": self.thumbnail,
            "url": self.url,
        }
        optional = {
            "album": self.album,
            "isrc": self.isrc,
            "uploadDate": self.upload_date,
            "description": self.description,
            "channel": self.channel,
            "viewCount": self.view_count,
        }
        data.update({key: value for key, value in optional.items() if value})
        return data


@dataclass
class ChannelAssets:
    """Downloadable artwork of a YouTube channel."""

    channel_id: str = ""
    channel_name: str = ""
    avatar_url: str = ""
    banner_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "channelId": self.channel_id,
            "channelName": self.channel_name,
            "avatarUrl": self.avatar_url,
            "bannerUrl": self.banner_url,
        }


def parse_youtube_url(raw_url: str) -> str:
    """Extract the 11-character video ID from a YouTube URL or bare ID."""
    raw_url = raw_url.strip()
    if not raw_url:
        raise YouTubeError("empty URL")

    for pattern in (_YOUTUBE_MUSIC, _YOUTUBE):
        match = pattern.search(raw_url)
        if match:
            return match.group(1)

    try:
        query = parse_qs(urlsplit(raw_url).query)
    except ValueError:
        query = {}
    values = query.get("v")
    if values and len(values[0]) == 11:
        return values[0]

    if _VIDEO_ID.fullmatch(raw_url):
        return raw_url

    raise YouTubeError(f"could not extract video ID from URL: {raw_url}")


def is_playlist_url(raw_url: str) -> bool:
    """Return True if the URL carries a playlist ``list`` parameter."""
    return _PLAYLIST.search(raw_url) is not None


def extract_playlist_id(raw_url: str) -> str:
    """Return the playlist ID of a URL, or an empty string if there is none."""
    match = _PLAYLIST.search(raw_url)
    return match.group(1) if match else ""


def is_channel_url(raw_url: str) -> bool:
    """Return True for YouTube channel and user page URLs."""
    return any(marker in raw_url for marker in _CHANNEL_MARKERS)


def get_thumbnail_max(
    video_id: str,
    base_url: str = YOUTUBE_THUMBNAIL_BASE,
    session: requests.Session | None = None,
) -> str:
    """Return the highest-resolution thumbnail URL that answers a HEAD request."""
    head = session.head if session is not None else requests.head
    for candidate in _THUMBNAIL_CANDIDATES:
        url = f"{base_url}/{video_id}/{candidate}"
        try:
            response = head(url, timeout=THUMBNAIL_TIMEOUT, allow_redirects=True)
        except requests.RequestException:
            continue
        with response:
            if response.status_code == 200:
                return url
    return f"{base_url}/{video_id}/hqdefault.jpg"


def build_format_selector(quality: str) -> str:
    """Return the yt-dlp format selector for video plus audio at ``quality``."""
    height = _HEIGHT_LIMITS.get(quality)
    if height is None:
        return "bestvideo+bestaudio/best"
    return f"bestvideo[height<={height}]+bestaudio/best[height<={height}]"


def build_video_only_format_selector(quality: str) -> str:
    """Return the yt-dlp format selector for a video-only stream at ``quality``."""
    height = _HEIGHT_LIMITS.get(quality)
    if height is None:
        return "bestvideo"
    return f"bestvideo[height<={height}]"


def parse_channel_assets_json(body: bytes | str) -> ChannelAssets:
    """Read channel ID, name, avatar and banner URLs from yt-dlp's channel JSON."""
    try:
        raw = json.loads(body)
    except ValueError as exc:
        raise YouTubeError(f"parse channel JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise YouTubeError("parse channel JSON: expected a JSON object")

    assets = ChannelAssets(
        channel_id=raw.get("uploader_id") or "",
        channel_name=raw.get("channel") or "",
    )
    for thumbnail in raw.get("thumbnails") or []:
        thumb_id = (thumbnail.get("id") or "").lower()
        thumb_url = thumbnail.get("url") or ""
        if "avatar" in thumb_id and not assets.avatar_url:
            assets.avatar_url = thumb_url
        elif "banner" in thumb_id and not assets.banner_url:
            assets.banner_url = thumb_url
    return assets


def _download_file(url: str, path: Path, session: requests.Session | None) -> None:
    getter = session.get if session is not None else requests.get
    with getter(url, timeout=ASSET_TIMEOUT, stream=True) as response:
        if response.status_code != 200:
            raise YouTubeError(f"status {response.status_code}")
        with path.open("wb") as out:
            for chunk in response.iter_content(chunk_size=32 * 1024):
                out.write(chunk)


def download_channel_assets(
    assets: ChannelAssets | None,
    base_dir: str | Path,
    session: requests.Session | None = None,
) -> Path:
    """Save avatar and banner into ``base_dir/channels/<channel id>/``.

    A failed download is logged and skipped; the directory is returned.
    """
    if assets is None or not assets.channel_id:
        raise YouTubeError("invalid assets")

    directory = Path(base_dir) / "channels" / assets.channel_id
    directory.mkdir(parents=True, exist_ok=True)

    for kind, url in (("avatar", assets.avatar_url), ("banner", assets.banner_url)):
        if not url:
            continue
        try:
            _download_file(url, directory / f"{kind}.jpg", session)
        except (requests.RequestException, OSError, YouTubeError) as exc:
            log.warning("%s download failed: %s", kind, exc)
    return directory