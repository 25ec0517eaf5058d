"""
Tests for the pattern library (quality, size, episode and season normalizers).

All normalizers are total: they are fed junk and None as well as real labels
copied from listing pages.
"""

import pytest

from media_extractor.patterns import (
    extract_episode_number,
    extract_quality,
    extract_season_number,
    extract_size,
    guess_season,
    normalize,
    quality_or_special,
)
from media_extractor.schemas import SeasonConfidence


@pytest.mark.parametrize("text, expected", [
    ("4K HEVC 1080p", "4K"),
    ("1080p x264 4K Remux", "4K"),
    ("Movie 720p [1GB]", "720p"),
    ("2160p UHD HDR", "2160p"),
    ("UHD BluRay", "UHD"),
    ("HQ-Rip x264", "HQ-Rip"),
    ("HQ HDRip", "HQ"),
    ("Drive", "Unknown"),
    ("", "Unknown"),
    (None, "Unknown"),
])
def test_extract_quality(text, expected):
    assert extract_quality(text) == expected


def test_extract_quality_prefers_4k_over_resolution():
    """4K is probed before the generic resolution pattern can claim the label."""
    assert extract_quality("4K HEVC 1080p") == "4K"
    assert extract_quality("24K gold 720p") == "720p"


@pytest.mark.parametrize("text, expected", [
    ("Movie [1.2GB] 1.2GB Extra", "1.2GB"),
    ("Movie 700MB [1.4GB]", "1.4GB"),
    ("[Hindi 480p 400MB]", "400MB"),
    ("WEB-DL 530MB", "530MB"),
    ("Hindi 1.3 GB", "1.3 GB"),
    ("no size here", "Unknown"),
    (None, "Unknown"),
])
def test_extract_size(text, expected):
    assert extract_size(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("EPiSODE 12", 12),
    ("Episode5", 5),
    ("episode   3 – 720p", 3),
    ("Ep 3", 0),
    ("", 0),
    (None, 0),
])
def test_extract_episode_number(text, expected):
    assert extract_episode_number(text) == expected


def test_quality_or_special_marks_clips():
    assert quality_or_special("SAMPLE clip") == "Special"
    assert quality_or_special("CLiMAX scene") == "Special"
    assert quality_or_special("CLiMAX 720p") == "720p"
    assert quality_or_special("Drive") == "Unknown"


# ---------------------------------------------------------------------------
# Season guessing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("title, expected", [
    ("Loki Season 2", 2),
    ("Loki S02E05 720p", 2),
    ("Dark Series 3", 3),
    ("The Crown 3rd Season", 3),
    ("Some Movie (2023)", 1),
    ("Web Series 2024", 1),
    ("Web Series 10bit", 1),
    ("Dark Series 3 10bit", 3),
    ("", 1),
    (None, 1),
])
def test_extract_season_number_from_title(title, expected):
    assert extract_season_number(title) == expected


def test_series_number_glued_to_a_word_is_not_a_season():
    guess = guess_season("Web Series 10bit HEVC", "<p>Web Series 10bit</p>")
    assert guess.number == 1
    assert guess.confidence == SeasonConfidence.LOW


def test_title_match_is_high_confidence():
    guess = guess_season("Loki S02E05")
    assert guess.number == 2
    assert guess.confidence == SeasonConfidence.HIGH


def test_corpus_single_season_is_medium_confidence():
    guess = guess_season("Episode 1", "<p>Season 4 complete</p>")
    assert guess.number == 4
    assert guess.confidence == SeasonConfidence.MEDIUM


def test_corpus_several_seasons_picks_smallest_with_low_confidence():
    corpus = "<h2>Season 3</h2><p>...</p><h2>Season 2</h2>"
    guess = guess_season("Episode 1", corpus)
    assert guess.number == 2
    assert guess.confidence == SeasonConfidence.LOW


def test_corpus_ignores_out_of_range_numbers():
    assert extract_season_number("Episode 1", "Season 2024 release, Season 5") == 5


def test_default_season_is_low_confidence():
    guess = guess_season("Plain Title")
    assert guess.number == 1
    assert guess.confidence == SeasonConfidence.LOW


def test_archive_id_rule_moves_season_one_guess():
    corpus = "Season 1 links ... Season 2 links"
    url = "https://example.org/archives/12345"
    guess = guess_season("1080p [2GB]", corpus, url=url)
    assert guess.number == 2
    assert guess.confidence == SeasonConfidence.LOW


def test_archive_id_rule_needs_several_seasons_and_large_id():
    assert guess_season("1080p [2GB]", "Season 1 only", url="https://x/archives/12345").number == 1
    assert guess_season("1080p [2GB]", "Season 1 and Season 2",
                        url="https://x/archives/42").number == 1


def test_normalize_combines_all_normalizers():
    meta = normalize("EPiSODE 3 720p [400MB]")
    assert meta.quality == "720p"
    assert meta.size == "400MB"
    assert meta.episode_number == 3
    assert meta.season_number == 1

    meta = normalize("1080p [1GB]", title="Show S03E01")
    assert meta.season_number == 3
