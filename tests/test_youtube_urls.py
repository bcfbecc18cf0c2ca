import pytest
import responses

from flacsource.youtube_urls import (
    ChannelAssets,
    VideoInfo,
    YouTubeError,
    build_format_selector,
    build_video_only_format_selector,
    download_channel_assets,
    extract_playlist_id,
    get_thumbnail_max,
    is_channel_url,
    is_playlist_url,
    parse_channel_assets_json,
    parse_youtube_url,
)

THUMB_BASE = "http://thumbs.test/vi"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_parse_channel_assets_json():
    body = b"""{
        "uploader_id": "UCabc",
        "channel_url": "https://youtube.com/channel/UCabc",
        "channel": "Test Channel",
        "thumbnails": [
            {"id": "avatar_uncropped", "url": "https://yt/avatar.jpg", "preference": 1},
            {"id": "banner_uncropped", "url": "https://yt/banner.jpg", "preference": 2}
        ]
    }"""
    assets = parse_channel_assets_json(body)
    assert assets.channel_id == "UCabc"
    assert assets.channel_name == "Test Channel"
    assert assets.avatar_url == "https://yt/avatar.jpg"
    assert assets.banner_url == "https://yt/banner.jpg"


def test_parse_channel_assets_json_keeps_first_match():
    body = (
        '{"thumbnails": [{"id": "Avatar_A", "url": "a1"}, '
        '{"id": "avatar_b", "url": "a2"}, {"id": "BANNER", "url": "b1"}]}'
    )
    assets = parse_channel_assets_json(body)
    assert assets.avatar_url == "a1"
    assert assets.banner_url == "b1"
    assert assets.channel_id == ""


def test_parse_channel_assets_json_invalid():
    with pytest.raises(YouTubeError, match="parse channel JSON"):
        parse_channel_assets_json("not json")


@pytest.mark.parametrize(
    "statuses, want_suffix",
    [
        ({"maxresdefault.jpg": 200, "sddefault.jpg": 200, "hqdefault.jpg": 200}, "maxresdefault.jpg"),
        ({"maxresdefault.jpg": 404, "sddefault.jpg": 200, "hqdefault.jpg": 200}, "sddefault.jpg"),
        ({"maxresdefault.jpg": 404, "sddefault.jpg": 404, "hqdefault.jpg": 200}, "hqdefault.jpg"),
    ],
)
def test_get_thumbnail_max(mocked, statuses, want_suffix):
    for name, status in statuses.items():
        mocked.add(responses.HEAD, f"{THUMB_BASE}/xxx/{name}", status=status)
    got = get_thumbnail_max("xxx", THUMB_BASE)
    assert got.endswith(want_suffix)
    assert got.startswith(THUMB_BASE)


def test_get_thumbnail_max_falls_back_when_all_fail(mocked):
    for name in ("maxresdefault.jpg", "sddefault.jpg", "hqdefault.jpg"):
        mocked.add(responses.HEAD, f"{THUMB_BASE}/xxx/{name}", status=404)
    assert get_thumbnail_max("xxx", THUMB_BASE) == f"{THUMB_BASE}/xxx/hqdefault.jpg"


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/shorts/dQw4w9WgXcQ",
        "https://music.youtube.com/watch?v=dQw4w9WgXcQ&list=PLxxx",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "  dQw4w9WgXcQ  ",
    ],
)
def test_parse_youtube_url(url):
    assert parse_youtube_url(url) == "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", ["", "   ", "https://example.com/video", "short"])
def test_parse_youtube_url_invalid(url):
    with pytest.raises(YouTubeError):
        parse_youtube_url(url)


def test_playlist_detection():
    url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ&list=PLabc_123-x"
    assert is_playlist_url(url) is True
    assert extract_playlist_id(url) == "PLabc_123-x"
    assert is_playlist_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ") is False
    assert extract_playlist_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == ""


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/@Test", True),
        ("https://www.youtube.com/channel/UCabc", True),
        ("https://www.youtube.com/c/Name", True),
        ("https://www.youtube.com/user/name", True),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", False),
    ],
)
def test_is_channel_url(url, expected):
    assert is_channel_url(url) is expected


def test_format_selectors():
    assert build_format_selector("1080p") == "bestvideo[height<=1080]+bestaudio/best[height<=1080]"
    assert build_format_selector("360p") == "bestvideo[height<=360]+bestaudio/best[height<=360]"
    assert build_format_selector("best") == "bestvideo+bestaudio/best"
    assert build_format_selector("weird") == "bestvideo+bestaudio/best"
    assert build_video_only_format_selector("720p") == "bestvideo[height<=720]"
    assert build_video_only_format_selector("best") == "bestvideo"


def test_video_info_to_dict_omits_empty_optional():
    data = VideoInfo(id="dQw4w9WgXcQ", title="T").to_dict()
    assert data["id"] == "dQw4w9WgXcQ"
    assert "album" not in data
    assert "viewCount" not in data
    assert VideoInfo(view_count=5).to_dict()["viewCount"] == 5


def test_download_channel_assets(mocked, tmp_path):
    mocked.add(responses.GET, "http://assets.test/avatar", body=b"AV")
    mocked.add(responses.GET, "http://assets.test/banner", status=404)
    assets = ChannelAssets(
        channel_id="UCabc",
        avatar_url="http://assets.test/avatar",
        banner_url="http://assets.test/banner",
    )
    directory = download_channel_assets(assets, tmp_path)
    assert directory == tmp_path / "channels" / "UCabc"
    assert (directory / "avatar.jpg").read_bytes() == b"AV"
    assert not (directory / "banner.jpg").exists()


def test_download_channel_assets_invalid(tmp_path):
    with pytest.raises(YouTubeError, match="invalid assets"):
        download_channel_assets(ChannelAssets(), tmp_path)
    with pytest.raises(YouTubeError, match="invalid assets"):
        download_channel_assets(None, tmp_path)