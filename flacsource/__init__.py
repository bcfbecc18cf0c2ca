"""Lossless audio sourcing helpers: input validation, proxy fallback, service checks, song.link, Spotify and Tidal resolution, yt-dlp listings and ffmpeg resampling."""

__version__ = "0.1.0"

__all__ = [
    "validate",
    "retry",
    "service_status",
    "resampler",
    "songlink",
    "spotify",
    "tidal",
    "youtube_urls",
    "ytdlp",
]