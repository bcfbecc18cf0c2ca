"""yt-dlp driven playlist, channel and search listings, plus browser cookie lookup."""

from __future__ import annotations

import configparser
import json
import logging
import os
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NamedTuple

from flacsource.youtube_urls import (
    ChannelAssets,
    VideoInfo,
    YouTubeError,
    extract_playlist_id,
    is_channel_url,
    parse_channel_assets_json,
)

log = logging.getLogger(__name__)

BINARY_ENV_VAR = "FLACSOURCE_YTDLP_BIN"
DEFAULT_BINARY = "yt-dlp"

PLAYLIST_TIMEOUT = 60.0
CHANNEL_TIMEOUT = 120.0
SEARCH_TIMEOUT = 30.0
ASSETS_TIMEOUT = 30.0

DEFAULT_CHANNEL_MAX_VIDEOS = 100
DEFAULT_SEARCH_RESULTS = 5
SHORT_MAX_SECONDS = 60
LONG_FORM_MIN_SECONDS = 300

_FLAT_ARGS = ("--flat-playlist", "-j", "--no-warnings")
_TOPIC_SUFFIX = " - Topic"


class YtDlpError(RuntimeError):
    """Raised when yt-dlp cannot be run or returns nothing usable."""


@dataclass
class PlaylistVideo:
    """A video listed in a playlist or channel, with its 1-based position."""

    id: str
    title: str
    artist: str
    duration: float
    thumbnail: str
    url: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "thumbnail": self.thumbnail,
            "url": self.url,
            "position": self.position,
        }


@dataclass
class PlaylistInfo:
    """Playlist or channel metadata together with its videos."""

    id: str
    title: str
    author: str
    videos: list[PlaylistVideo]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "videos": [video.to_dict() for video in self.videos],
        }


@dataclass
class ChannelOpts:
    """How fetch_channel_uploads selects and limits results."""

    include_shorts: bool = False
    only_long_form: bool = False
    playlist_id: str = ""
    max_items: int = 0


@dataclass
class VideoInfoLite:
    """A lightweight record of one channel upload."""

    id: str = ""
    title: str = ""
    duration: float = 0.0
    upload_date: str = ""
    is_short: bool = False
    thumbnail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "upload_date": self.upload_date,
            "is_short": self.is_short,
            "thumbnail": self.thumbnail,
        }


class _FlatEntry(NamedTuple):
    id: str
    title: str
    duration: float
    channel: str
    uploader: str
    thumbnail: str
    playlist_title: str
    playlist_uploader: str
    view_count: int


def ytdlp_binary() -> str:
    """Return the yt-dlp executable, overridable through the environment."""
    return os.environ.get(BINARY_ENV_VAR) or DEFAULT_BINARY


def _text(entry: dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key} is not a string")
    return value


def _number(entry: dict[str, Any], key: str) -> float:
    value = entry.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} is not a number")
    return float(value)


def _iter_json_objects(output: str) -> Iterator[dict[str, Any]]:
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except ValueError:
            continue
        if isinstance(entry, dict):
            yield entry


def _iter_flat_entries(output: str) -> Iterator[_FlatEntry]:
    for raw in _iter_json_objects(output):
        try:
            yield _FlatEntry(
                id=_text(raw, "id"),
                title=_text(raw, "title"),
                duration=_number(raw, "duration"),
                channel=_text(raw, "channel"),
                uploader=_text(raw, "uploader"),
                thumbnail=_text(raw, "thumbnail"),
                playlist_title=_text(raw, "playlist_title"),
                playlist_uploader=_text(raw, "playlist_uploader"),
                view_count=int(_number(raw, "view_count")),
            )
        except TypeError:
            continue


def _artist(entry: _FlatEntry) -> str:
    artist = entry.channel or entry.uploader
    return artist.removesuffix(_TOPIC_SUFFIX)


def _thumbnail(entry: _FlatEntry) -> str:
    return entry.thumbnail or f"https://i.ytimg.com/vi/{entry.id}/hqdefault.jpg"


def _watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def _playlist_videos(entries: list[_FlatEntry]) -> list[PlaylistVideo]:
    return [
        PlaylistVideo(
            id=entry.id,
            title=entry.title,
            artist=_artist(entry),
            duration=entry.duration,
            thumbnail=_thumbnail(entry),
            url=_watch_url(entry.id),
            position=position,
        )
        for position, entry in enumerate(entries, start=1)
    ]


def _run(binary: str, args: list[str], timeout: float, what: str) -> str:
    try:
        completed = subprocess.run(
            [binary, *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise YtDlpError(f"{what}: timed out after {timeout}s") from exc
    except OSError as exc:
        raise YtDlpError(f"{what}: {exc}") from exc
    if completed.returncode != 0:
        raise YtDlpError(f"{what}: exit status {completed.returncode}")
    return completed.stdout


def parse_playlist_output(output: str, playlist_id: str = "") -> PlaylistInfo:
    """Build playlist info from yt-dlp ``--flat-playlist -j`` output."""
    title = ""
    author = ""
    valid: list[_FlatEntry] = []
    for entry in _iter_flat_entries(output):
        if not title and entry.playlist_title:
            title = entry.playlist_title
            author = entry.playlist_uploader
        if entry.id:
            valid.append(entry)

    if not valid:
        raise YtDlpError("playlist is empty or unavailable")
    return PlaylistInfo(id=playlist_id, title=title, author=author, videos=_playlist_videos(valid))


def _parse_channel_output(output: str) -> PlaylistInfo:
    valid = [entry for entry in _iter_flat_entries(output) if entry.id]
    if not valid:
        raise YtDlpError("channel is empty or unavailable")
    channel_name = valid[0].channel or valid[0].uploader
    return PlaylistInfo(
        id="", title=channel_name, author=channel_name, videos=_playlist_videos(valid)
    )


def parse_search_output(output: str) -> list[VideoInfo]:
    """Build search results from yt-dlp ``--flat-playlist -j`` output."""
    results: list[VideoInfo] = []
    for entry in _iter_flat_entries(output):
        if not entry.id:
            continue
        artist = _artist(entry)
        title = entry.title
        if artist and title.startswith(artist + " - "):
            title = title[len(artist) + 3:]
        results.append(
            VideoInfo(
                id=entry.id,
                title=title,
                artist=artist,
                duration=entry.duration,
                thumbnail=_thumbnail(entry),
                url=_watch_url(entry.id),
                view_count=entry.view_count,
            )
        )
    return results


def get_playlist_videos(playlist_url: str, binary: str | None = None) -> PlaylistInfo:
    """List every video of the playlist a URL refers to."""
    playlist_id = extract_playlist_id(playlist_url)
    if not playlist_id:
        raise YtDlpError(f"could not extract playlist ID from URL: {playlist_url}")
    canonical = f"https://www.youtube.com/playlist?list={playlist_id}"
    output = _run(
        binary or ytdlp_binary(),
        [*_FLAT_ARGS, canonical],
        PLAYLIST_TIMEOUT,
        "failed to fetch playlist",
    )
    return parse_playlist_output(output, playlist_id)


def get_channel_videos(
    channel_url: str,
    max_videos: int = DEFAULT_CHANNEL_MAX_VIDEOS,
    binary: str | None = None,
) -> PlaylistInfo:
    """List up to ``max_videos`` uploads of a YouTube channel."""
    if max_videos <= 0:
        max_videos = DEFAULT_CHANNEL_MAX_VIDEOS

    video_url = channel_url
    if "/videos" not in video_url:
        video_url = video_url.removesuffix("/") + "/videos"

    output = _run(
        binary or ytdlp_binary(),
        [*_FLAT_ARGS, "--playlist-end", str(max_videos), video_url],
        CHANNEL_TIMEOUT,
        "failed to fetch channel videos",
    )
    return _parse_channel_output(output)


def search_youtube(
    query: str,
    max_results: int = DEFAULT_SEARCH_RESULTS,
    cookies_browser: str = "",
    binary: str | None = None,
) -> list[VideoInfo]:
    """Search YouTube, optionally with a browser's cookies."""
    if max_results <= 0:
        max_results = DEFAULT_SEARCH_RESULTS

    args = list(_FLAT_ARGS)
    if cookies_browser:
        try:
            args += ["--cookies-from-browser", resolve_cookies_browser(cookies_browser)]
        except YtDlpError as exc:
            log.debug("ignoring browser cookies: %s", exc)
    args.append(f"ytsearch{max_results}:{query}")

    output = _run(binary or ytdlp_binary(), args, SEARCH_TIMEOUT, "search failed")
    return parse_search_output(output)


def get_channel_assets(channel_url: str, binary: str | None = None) -> ChannelAssets:
    """Fetch a channel's metadata and return its avatar and banner URLs."""
    if not is_channel_url(channel_url):
        raise YouTubeError(f"invalid channel URL: {channel_url!r}")
    output = _run(
        binary or ytdlp_binary(),
        ["-J", "--skip-download", "--playlist-items", "0", channel_url],
        ASSETS_TIMEOUT,
        "yt-dlp failed",
    )
    return parse_channel_assets_json(output)


def _join_profile(librewolf_dir: Path, relative: str) -> Path:
    return librewolf_dir / relative.lstrip("/")


def _profile_from_ini(librewolf_dir: Path) -> Path | None:
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    try:
        if not parser.read(librewolf_dir / "profiles.ini", encoding="utf-8"):
            return None
    except (configparser.Error, OSError, UnicodeDecodeError):
        return None

    for section in parser.sections():
        if section.startswith("Install"):
            path = parser.get(section, "Default", fallback="")
            if path and _join_profile(librewolf_dir, path).exists():
                return _join_profile(librewolf_dir, path)

    for section in parser.sections():
        if section.startswith("Profile") and parser.get(section, "Default", fallback="") == "1":
            path = parser.get(section, "Path", fallback="")
            if path and _join_profile(librewolf_dir, path).exists():
                return _join_profile(librewolf_dir, path)
    return None


def find_librewolf_profile(home: str | Path | None = None) -> Path:
    """Locate the default Librewolf profile under ``home`` (the user's home by default)."""
    home_dir = Path(home) if home is not None else Path.home()
    librewolf_dir = home_dir / ".librewolf"

    from_ini = _profile_from_ini(librewolf_dir)
    if from_ini is not None:
        return from_ini

    try:
        directories = sorted(entry for entry in librewolf_dir.iterdir() if entry.is_dir())
    except OSError as exc:
        raise YtDlpError(f"librewolf directory not found: {exc}") from exc

    for entry in directories:
        if entry.name.endswith(".default-default"):
            return entry
    for entry in directories:
        if ".default" in entry.name:
            return entry
    raise YtDlpError("no librewolf profile found")


def resolve_cookies_browser(browser: str, home: str | Path | None = None) -> str:
    """Turn a browser name into yt-dlp's form; Librewolf maps to ``firefox:<profile>``."""
    if browser == "librewolf":
        try:
            profile = find_librewolf_profile(home)
        except YtDlpError as exc:
            raise YtDlpError(f"failed to find librewolf profile: {exc}") from exc
        return f"firefox:{profile}"
    return browser


def _lite_from_entry(raw: dict[str, Any]) -> VideoInfoLite:
    duration = _number(raw, "duration")
    return VideoInfoLite(
        id=_text(raw, "id"),
        title=_text(raw, "title"),
        duration=duration,
        upload_date=_text(raw, "upload_date"),
        is_short=0 < duration < SHORT_MAX_SECONDS,
        thumbnail=_text(raw, "thumbnail"),
    )


def fetch_channel_uploads(
    channel_url: str,
    opts: ChannelOpts | None = None,
    binary: str | None = None,
) -> Iterator[VideoInfoLite]:
    """Stream a channel's uploads as yt-dlp reports them.

    The process starts on the first ``next()``; closing the generator stops it.
    Malformed lines are skipped. YtDlpError is raised if yt-dlp cannot start.
    """
    opts = opts if opts is not None else ChannelOpts()

    if opts.playlist_id:
        target = f"https://www.youtube.com/playlist?list={opts.playlist_id}"
    elif "/videos" not in channel_url and "playlist?" not in channel_url:
        target = channel_url.rstrip("/") + "/videos"
    else:
        target = channel_url

    args = list(_FLAT_ARGS)
    if opts.max_items > 0:
        args += ["--playlist-end", str(opts.max_items)]
    args.append(target)

    try:
        process = subprocess.Popen(
            [binary or ytdlp_binary(), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise YtDlpError(f"yt-dlp start: {exc}") from exc

    count = 0
    try:
        assert process.stdout is not None
        for line in process.stdout:
            line = line.strip()
            try:
                raw = json.loads(line)
                if not isinstance(raw, dict):
                    raise TypeError("not an object")
                video = _lite_from_entry(raw)
            except (ValueError, TypeError):
                log.debug("ytdlp: skipping malformed line %r", line)
                continue

            if opts.only_long_form and video.duration < LONG_FORM_MIN_SECONDS:
                continue

            yield video
            count += 1
            if opts.max_items > 0 and count >= opts.max_items:
                break
    finally:
        process.kill()
        process.wait()
        if process.stdout is not None:
            process.stdout.close()