import pytest
import requests
import responses

from flacsource.songlink import SONG_LINK_API_BASE, SongLinkClient, SongLinkError
from flacsource.tidal import (
    TidalError,
    TidalQuality,
    TidalTrackInfo,
    get_tidal_url_from_spotify,
    is_tidal_url,
    parse_tidal_url,
    tidal_quality_label,
)

SPOTIFY_TRACK = "https://open.spotify.com/track/4PTG3Z6ehGkBFwjybzWkR8"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def client():
    return SongLinkClient(session=requests.Session(), min_interval=0)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://tidal.com/browse/track/12345", ("12345", "track")),
        ("https://tidal.com/track/678", ("678", "track")),
        ("https://listen.tidal.com/album/4242", ("4242", "album")),
        ("https://tidal.com/browse/playlist/ab12-cd34", ("ab12-cd34", "playlist")),
    ],
)
def test_parse_tidal_url(url, expected):
    assert parse_tidal_url(url) == expected


def test_parse_tidal_url_rejects_other_urls():
    with pytest.raises(ValueError, match="could not parse Tidal URL"):
        parse_tidal_url("https://open.spotify.com/track/abc")


@pytest.mark.parametrize(
    "url",
    [
        "https://tidal.com/browse/track/12345",
        "https://tidal.com/album/99",
        "https://tidal.com/playlist/abcdef",
    ],
)
def test_is_tidal_url_true(url):
    assert is_tidal_url(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://tidal.com/track/notanumber",
        "https://example.com/track/123",
    ],
)
def test_is_tidal_url_false(url):
    assert is_tidal_url(url) is False


@pytest.mark.parametrize(
    "quality, label",
    [
        (TidalQuality.LOW, "Low (96 kbps AAC)"),
        (TidalQuality.HIGH, "High (320 kbps AAC)"),
        (TidalQuality.LOSSLESS, "Lossless (16-bit/44.1kHz FLAC)"),
        (TidalQuality.HI_RES, "Hi-Res (24-bit/96kHz MQA)"),
        (TidalQuality.MAX, "Max (24-bit/192kHz FLAC)"),
    ],
)
def test_quality_labels(quality, label):
    assert tidal_quality_label(quality) == label


def test_quality_label_accepts_plain_string():
    assert tidal_quality_label("LOSSLESS") == tidal_quality_label(TidalQuality.LOSSLESS)


def test_quality_label_unknown_passes_through():
    assert tidal_quality_label("HI_RES_LOSSLESS") == "HI_RES_LOSSLESS"


def test_track_info_to_dict_omits_empty_optional_fields():
    data = TidalTrackInfo(id="1", title="Song").to_dict()
    assert data["id"] == "1"
    assert data["title"] == "Song"
    for key in ("coverUrl", "trackNumber", "albumId", "releaseDate", "explicit"):
        assert key not in data


def test_track_info_to_dict_includes_set_optional_fields():
    info = TidalTrackInfo(id="1", track_number=3, explicit=True, album_id="9")
    data = info.to_dict()
    assert data["trackNumber"] == 3
    assert data["explicit"] is True
    assert data["albumId"] == "9"


def test_get_tidal_url_from_spotify(mocked, client):
    tidal_url = "https://tidal.com/browse/track/77"
    mocked.add(
        responses.GET,
        SONG_LINK_API_BASE,
        json={
            "linksByPlatform": {
                "tidal": {"url": tidal_url, "entityUniqueId": "TIDAL_SONG::77"}
            }
        },
    )
    assert get_tidal_url_from_spotify(SPOTIFY_TRACK, client) == tidal_url


def test_get_tidal_url_from_spotify_without_tidal_link(mocked, client):
    mocked.add(
        responses.GET,
        SONG_LINK_API_BASE,
        json={"linksByPlatform": {"deezer": {"url": "https://www.deezer.com/track/1"}}},
    )
    with pytest.raises(TidalError, match="not available on Tidal"):
        get_tidal_url_from_spotify(SPOTIFY_TRACK, client)


def test_get_tidal_url_from_spotify_api_error(mocked, client):
    mocked.add(responses.GET, SONG_LINK_API_BASE, status=500, body="boom")
    with pytest.raises(SongLinkError):
        get_tidal_url_from_spotify(SPOTIFY_TRACK, client)


def test_get_tidal_url_from_spotify_rejects_non_spotify(client):
    with pytest.raises(ValueError, match="not a valid Spotify URL"):
        get_tidal_url_from_spotify("https://tidal.com/track/1", client)


def test_get_tidal_url_from_spotify_rejects_non_spotify_default_client():
    with pytest.raises(ValueError, match="not a valid Spotify URL"):
        get_tidal_url_from_spotify("https://example.com/song")