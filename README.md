# flacsource

A library of helpers for finding lossless audio for music videos and for
preparing that audio for a music library.

## Modules

- `flacsource.validate` checks user input. `validate_youtube_url` accepts
  only https URLs on youtube.com, www.youtube.com, youtu.be or
  music.youtube.com, and no longer than 2048 characters.
  `validate_track_url` accepts only https URLs. `sanitize_playlist_name`
  removes `..`, `/` and `\` and trims whitespace, so a playlist name is safe
  to use as a folder name. `validate_output_directory` rejects system
  directories such as `/etc`, `/proc` and `/dev`, and anything inside them.
  `validate_audio_sources` accepts only `tidal`, `qobuz`, `amazon` and
  `deezer`, in lower case.
- `flacsource.retry` has `do_with_proxy_fallback`. It sends a `requests`
  request through a direct session. If that attempt fails, or the answer is
  403, 429 or 451, it sends the request again through a proxy session, when
  one is given. A `proxy_target` can change the scheme and host of the
  retried request. `should_retry_with_proxy` tells you which status codes
  lead to a retry.
- `flacsource.service_status` checks music services with HEAD requests.
  `probe_service` counts a 5xx answer or a failed request as `"down"`.
  `check_service_status` probes every service that is not cached, all in
  parallel. It keeps results in a `ServiceStatusCache`, whose entries
  expire after five minutes by default.
- `flacsource.resampler` converts audio with ffmpeg's soxr resampler.
  You describe the job with `ResampleOptions`, and `build_resample_args`
  returns the ffmpeg arguments for it. `resample` runs ffmpeg.
- `flacsource.songlink` resolves links through the song.link API.
  `SongLinkClient` waits at least 7 seconds between requests and caches
  answers for 30 minutes. It has `resolve`, `resolve_spotify` and
  `resolve_isrc`. `resolve_music_url` uses one client shared across the
  process. `get_best_flac_source` picks Tidal, then Qobuz, then Amazon.
  `get_all_flac_sources` lists every available source, Deezer included,
  best first. The module also parses Spotify URLs
  (`parse_spotify_url`, `is_spotify_url`).
- `flacsource.spotify` fetches track title, artist and cover from Spotify's
  oEmbed endpoint, which needs no login (`get_spotify_track_info`,
  `get_spotify_track_info_from_url`). It also parses `spotify:track:ID`
  URIs and looks up a track's ISRC through song.link.
- `flacsource.tidal` parses Tidal track, album and playlist URLs, and
  labels the `TidalQuality` tiers (`tidal_quality_label`).
  `get_tidal_url_from_spotify` finds the Tidal URL for a Spotify URL.
- `flacsource.youtube_urls` gets video IDs out of YouTube URLs and
  recognises playlist and channel URLs. It also has `get_thumbnail_max`,
  the yt-dlp format selectors for `1080p`, `720p`, `480p` and `360p` (any
  other value means best), and `download_channel_assets`. That function
  saves a channel's avatar and banner under
  `<base_dir>/channels/<channel id>/`.
- `flacsource.ytdlp` runs yt-dlp to list playlists
  (`get_playlist_videos`) and channels (`get_channel_videos`), to search
  (`search_youtube`) and to read channel artwork (`get_channel_assets`).
  `fetch_channel_uploads` is a generator that yields `VideoInfoLite` items
  as yt-dlp prints them. It can keep only long-form videos (5 minutes or
  more) and can stop after `max_items`. Closing the generator stops the
  process. For Librewolf, `resolve_cookies_browser` finds the profile and
  passes it to yt-dlp as `firefox:<profile>`.

## Requirements

- Python 3.10 or later
- `requests`
- `ffmpeg`, for resampling. By default it is looked up on the `PATH`; you
  can pass another binary through the `ffmpeg` argument of `resample`.
- `yt-dlp`, for playlists, channels and search. By default it is looked up
  on the `PATH`. The `FLACSOURCE_YTDLP_BIN` environment variable or the
  `binary` argument of each function can point to another binary.

## Examples

Validating input:

```python
from flacsource.validate import (
    ValidationError,
    sanitize_playlist_name,
    validate_audio_sources,
    validate_output_directory,
)

sanitize_playlist_name("../evil")       # "evil"
validate_audio_sources(["tidal", "qobuz"])

try:
    validate_output_directory("/etc")
except ValidationError as exc:
    print(exc)
```

Working with song.link results:

```python
from flacsource.songlink import (
    SongLinkTrackInfo,
    SongLinkURLs,
    extract_id_from_entity_unique_id,
    get_best_flac_source,
)

extract_id_from_entity_unique_id("TIDAL_SONG::12345")  # "12345"

info = SongLinkTrackInfo(urls=SongLinkURLs(qobuz_url="https://example.com/q/1"))
get_best_flac_source(info)  # ("qobuz", "https://example.com/q/1")
```

YouTube URLs and format selectors:

```python
from flacsource.youtube_urls import build_format_selector, parse_youtube_url

build_format_selector("720p")
# "bestvideo[height<=720]+bestaudio/best[height<=720]"

parse_youtube_url("abcdefghijk")  # a bare 11-character ID is returned unchanged
```

Streaming a channel's long-form uploads:

```python
from flacsource.ytdlp import ChannelOpts, fetch_channel_uploads

for video in fetch_channel_uploads(
    "https://www.youtube.com/@SomeChannel",
    ChannelOpts(only_long_form=True, max_items=20),
):
    print(video.id, video.title, video.duration)
```

Resampling to 96 kHz / 24-bit FLAC:

```python
from flacsource.resampler import ResampleOptions, resample

resample(ResampleOptions(
    input_path="in.wav",
    output_path="out/track.flac",
    sample_rate=96000,
    bit_depth=24,
    format="flac",
))
```

Supported sample rates are 44100, 48000, 88200, 96000, 176400 and
192000 Hz. Supported bit depths are 16, 24 and 32. Supported formats are
`flac`, `wav` and `alac`. Other values raise `ValueError` before ffmpeg is
started. Setting `dither=True` adds triangular dither.

## Errors

Failures are raised as exceptions. Each module has its own class:
`ValidationError` (a `ValueError`), `ResampleError`, `SongLinkError`,
`SpotifyError`, `TidalError`, `YouTubeError` and `YtDlpError`. Input that
cannot be parsed, such as a URL that is not a Spotify or Tidal URL, or
resample options that are not supported, raises `ValueError`. `resample`
raises `FileNotFoundError` when the input file is missing.

## What it does not do

flacsource is a library only. It has no command-line program, no download
queue and no storage of queue state or history. It does not download
FLAC files from music services and does not mux audio into video files.
It gives you the building blocks: validation, link resolution, yt-dlp
listings and ffmpeg resampling.