"""
End-to-end tests for the media extractor pipeline.

Each test feeds a complete (small) page through MediaExtractor and checks the
envelope callers receive.
"""

import pytest

from media_extractor import MediaExtractor, extract_html, extract_html_file
from media_extractor.config import HostConfig
from media_extractor.exceptions import InvalidInputError
from media_extractor.main import NO_CONTENT_MESSAGE
from media_extractor.schemas import ContentType, SeasonConfidence


@pytest.fixture
def extractor():
    return MediaExtractor(config=HostConfig())


SERIES_PAGE = """
<html><head><title>Loki Season 2 - HDHub4u</title></head>
<body>
  <h1 class="entry-title">Loki Season 2 - HDHub4u</h1>
  <h3>EPiSODE 3 <a href="https://ep3.example/dl">Download</a></h3>
  <h3><a href="https://ep1.example/dl">EPiSODE 1</a></h3>
  <h3>EPiSODE 2 <a href="https://ep2.example/dl">EPiSODE 2</a></h3>
</body></html>
"""

DIRECT_PAGE = """
<html><head><title>Movie X - SiteName</title></head>
<body>
  <h3><a href="https://hubdrive.wales/file/10">720p HEVC [850MB]</a></h3>
  <h4><a href="https://hdstream4u.com/watch/10">WATCH</a> | <a href="https://hubstream.art/p/10">PLAYER-2</a></h4>
  <h3><a href="https://hubcdn.fans/file/11">1080p x264 [2.1GB]</a></h3>
</body></html>
"""

MOVIE_PAGE = """
<html><head><title>Old Movie - SiteName</title></head>
<body>
  <div class="entry-content">
    <p>Download 720p [1.1GB] <a href="https://example.org/movie720">Click</a></p>
  </div>
</body></html>
"""


def test_series_episodes_in_ascending_order(extractor):
    response = extractor.extract(SERIES_PAGE)
    assert response.success
    bundle = response.data
    assert bundle.content_type == ContentType.SERIES
    assert [ep.episode_number for ep in bundle.episodes] == [1, 2, 3]
    assert [ep.intermediary_url for ep in bundle.episodes] == [
        "https://ep1.example/dl",
        "https://ep2.example/dl",
        "https://ep3.example/dl",
    ]
    assert bundle.direct_downloads is None
    assert response.message is None


def test_series_title_and_seasons(extractor):
    bundle = extractor.extract(SERIES_PAGE).data
    assert bundle.title == "Loki Season 2"
    assert all(ep.season == 2 for ep in bundle.episodes)
    assert all(ep.season_confidence == SeasonConfidence.HIGH for ep in bundle.episodes)
    assert list(bundle.seasons()) == [2]


def test_document_without_markers_is_not_an_error(extractor):
    response = extractor.extract("<html><body><p>Nothing to see here.</p></body></html>")
    assert response.success is True
    assert response.error is None
    assert response.message == NO_CONTENT_MESSAGE
    assert response.data.is_empty()
    assert response.data.content_type == ContentType.MOVIE
    assert response.to_dict()["data"]["downloads"] == []


def test_title_tag_site_suffix_is_stripped(extractor):
    bundle = extractor.extract(DIRECT_PAGE).data
    assert bundle.title == "Movie X"


def test_declared_site_name_limits_title_stripping(extractor):
    meta = '<meta property="og:site_name" content="MovieSite">'
    html = f'<html><head><title>Avengers - Endgame</title>{meta}</head><body></body></html>'
    assert extractor.extract(html).data.title == "Avengers - Endgame"

    html = f'<html><head><title>Movie X - MovieSite</title>{meta}</head><body></body></html>'
    assert extractor.extract(html).data.title == "Movie X"


def test_missing_title_reports_unknown(extractor):
    bundle = extractor.extract('<h3><a href="https://hubdrive.wales/f">720p [1GB]</a></h3>').data
    assert bundle.title == "Unknown Title"


@pytest.mark.parametrize("html", ["", "   ", None])
def test_invalid_input_raises(extractor, html):
    with pytest.raises(InvalidInputError):
        extractor.extract(html)


def test_direct_downloads_with_companions(extractor):
    response = extractor.extract(DIRECT_PAGE)
    bundle = response.data
    assert bundle.content_type == ContentType.MOVIE_DIRECT
    assert bundle.episodes is None
    assert [(d.quality, d.size) for d in bundle.direct_downloads] == [
        ("720p", "850MB"),
        ("1080p", "2.1GB"),
    ]
    first = bundle.direct_downloads[0]
    assert first.watch_url == "https://hdstream4u.com/watch/10"
    assert first.player_url == "https://hubstream.art/p/10"
    # Season fields belong to series pages only
    assert first.season is None


def test_series_with_direct_downloads_carries_both(extractor):
    html = """
        <h1>Dark Season 1</h1>
        <h3><a href="https://techyboy4u.com/ep1">EPiSODE 1</a></h3>
        <h3><a href="https://techyboy4u.com/ep2">EPiSODE 2</a></h3>
        <h3><a href="https://hubdrive.wales/pack">1080p Complete Pack [12GB]</a></h3>
    """
    bundle = extractor.extract(html).data
    assert bundle.content_type == ContentType.SERIES
    assert len(bundle.episodes) == 2
    assert [d.url for d in bundle.direct_downloads] == ["https://hubdrive.wales/pack"]
    assert bundle.direct_downloads[0].season == 1


def test_episode_links_are_not_repeated_as_direct_downloads(extractor):
    html = """
        <h3><a href="https://hubdrive.wales/e1">EPiSODE 1 720p [400MB]</a></h3>
        <h3><a href="https://hubdrive.wales/e2">EPiSODE 2 720p [400MB]</a></h3>
    """
    bundle = extractor.extract(html).data
    assert bundle.content_type == ContentType.SERIES
    assert [ep.intermediary_url for ep in bundle.episodes] == [
        "https://hubdrive.wales/e1",
        "https://hubdrive.wales/e2",
    ]
    assert bundle.direct_downloads is None


def test_series_from_span_rows(extractor):
    html = """
        <h4><span>EPiSODE 1</span></h4>
        <h4>720p x264 [300MB] <a href="https://hubdrive.wales/file/1">Drive</a></h4>
        <h4>1080p x264 [900MB] <a href="https://hubdrive.wales/file/2">Drive</a></h4>
    """
    bundle = extractor.extract(html).data
    assert bundle.content_type == ContentType.SERIES
    [episode] = bundle.episodes
    assert episode.drive_url_720p == "https://hubdrive.wales/file/1"
    assert episode.drive_url_1080p == "https://hubdrive.wales/file/2"
    assert [link.quality for link in episode.primary_links()] == ["1080p", "720p"]


def test_span_rows_may_repeat_the_episode_marker(extractor):
    html = """
        <h4><span>EPiSODE 1</span></h4>
        <h4>EPiSODE 1 720p [300MB] <a href="https://hubdrive.wales/file/1">Drive</a></h4>
    """
    [episode] = extractor.extract(html).data.episodes
    assert episode.drive_url_720p == "https://hubdrive.wales/file/1"


def test_movie_fallback(extractor):
    bundle = extractor.extract(MOVIE_PAGE).data
    assert bundle.content_type == ContentType.MOVIE
    assert bundle.title == "Old Movie"
    [download] = bundle.downloads
    assert download.url == "https://example.org/movie720"
    assert download.quality == "720p"
    assert download.size == "1.1GB"


def test_serialized_keys_use_wire_names(extractor):
    series = extractor.extract(SERIES_PAGE).to_dict()
    assert series["success"] is True
    assert series["data"]["contentType"] == "series"
    episode = series["data"]["episodes"][0]
    assert episode["episodeNumber"] == 1
    assert episode["techyboyUrl"] == "https://ep1.example/dl"
    assert episode["seasonConfidence"] == "high"
    assert "driveUrl720p" not in episode

    direct = extractor.extract(DIRECT_PAGE).to_dict()
    entry = direct["data"]["directDownloads"][0]
    assert entry["downloadUrl"] == "https://hubdrive.wales/file/10"
    assert entry["watchUrl"] == "https://hdstream4u.com/watch/10"
    assert "season" not in entry
    assert "kind" not in entry


def test_custom_hosts_are_recognised():
    html = '<p><a href="https://files.example/x">1080p x264 [2GB]</a></p>'
    assert extract_html(html, config=HostConfig()).data.is_empty()

    response = extract_html(html, config=HostConfig(drive_hosts=["files.example"]))
    assert response.data.content_type == ContentType.MOVIE_DIRECT
    assert [d.url for d in response.data.direct_downloads] == ["https://files.example/x"]


def test_sanitizer_warnings_reach_the_envelope(extractor):
    response = extractor.extract('<h3><a href=="https://hubdrive.wales/f">720p [1GB]</a></h3>')
    assert "Fixed malformed attributes (double equals)" in response.warnings
    assert [d.url for d in response.data.direct_downloads] == ["https://hubdrive.wales/f"]


def test_repeated_calls_are_independent(extractor):
    first = extractor.extract(SERIES_PAGE).to_dict()
    extractor.extract(DIRECT_PAGE)
    assert extractor.extract(SERIES_PAGE).to_dict() == first


def test_extract_file_uses_declared_charset(tmp_path):
    page = (
        '<html><head><meta charset="iso-8859-1"><title>Café - SiteName</title></head>'
        '<body><h3><a href="https://hubdrive.wales/f">720p [1GB]</a></h3></body></html>'
    )
    path = tmp_path / "page.html"
    path.write_bytes(page.encode("latin-1"))

    response = extract_html_file(path, config=HostConfig())
    assert response.data.title == "Café"
    assert response.data.content_type == ContentType.MOVIE_DIRECT
