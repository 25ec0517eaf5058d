"""
Pattern library: stateless normalizers over link and heading text.

Every function here is total. Unrecognised input yields "Unknown", 0 or the
default season; nothing raises.
"""

import re
from typing import Optional

from .schemas import NormalizedMeta, SeasonConfidence, SeasonGuess

UNKNOWN = "Unknown"
SPECIAL = "Special"

# Probed in this order. 4K goes before the generic resolution probe so
# "4K HEVC 1080p" reports 4K; HQ-Rip goes before its HQ prefix.
QUALITY_PATTERNS = [
    re.compile(r'(?<!\d)(4K)\b', re.IGNORECASE),
    re.compile(r'(\d+p)', re.IGNORECASE),
    re.compile(r'\b(UHD)\b', re.IGNORECASE),
    re.compile(r'\b(HQ-Rip)', re.IGNORECASE),
    re.compile(r'\b(HQ)\b', re.IGNORECASE),
]

SIZE_TOKEN = r'\d+(?:\.\d+)?\s*(?:MB|GB)'
BRACKETED_SIZE = re.compile(r'\[[^\]]*?(' + SIZE_TOKEN + r')[^\]]*\]', re.IGNORECASE)
BARE_SIZE = re.compile(r'(' + SIZE_TOKEN + r')', re.IGNORECASE)

EPISODE_PATTERN = re.compile(r'EPISODE\s*(\d+)', re.IGNORECASE)

SPECIAL_PATTERN = re.compile(r'SAMPLE|CLIMAX', re.IGNORECASE)
RELEASE_TOKENS = ('HQ-Rip', 'HQ ', 'HEVC', 'x264', 'x265')
RESOLUTION_PATTERN = re.compile(r'\d+p')

# --- Season detection ---

TITLE_SEASON_PATTERNS = [
    re.compile(r'season\s*(\d+)', re.IGNORECASE),
    re.compile(r'\bs(\d+)(?:e\d+)?', re.IGNORECASE),
    re.compile(r'series\s*(\d+)(?![a-z\d])', re.IGNORECASE),
    re.compile(r'(\d+)(?:st|nd|rd|th)?\s*season', re.IGNORECASE),
]

# Page-wide mentions; the bare "S<n>" form stays case-sensitive so ordinary
# words do not count as season markers.
CORPUS_SEASON_PATTERNS = [
    re.compile(r'season\s*(\d+)', re.IGNORECASE),
    re.compile(r'\bS(\d+)'),
    re.compile(r'series\s*(\d+)(?![a-z\d])', re.IGNORECASE),
]

EPISODE_CODE_PATTERN = re.compile(r'S(\d+)E\d+', re.IGNORECASE)
ARCHIVE_ID_PATTERN = re.compile(r'archives/(\d+)')
TAG_PATTERN = re.compile(r'<[^>]*>')

MAX_SEASON = 20         # page-wide mentions outside this range are noise
MAX_TITLE_SEASON = 99
ARCHIVE_SEASON_THRESHOLD = 10000
DEFAULT_SEASON = 1


def extract_quality(text: Optional[str]) -> str:
    """Quality label of a link or heading, e.g. "1080p", "4K", "HQ-Rip"."""
    if not text:
        return UNKNOWN
    for pattern in QUALITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return UNKNOWN


def extract_size(text: Optional[str]) -> str:
    """File size such as "1.2GB"; a bracketed size wins over a bare one."""
    if not text:
        return UNKNOWN
    match = BRACKETED_SIZE.search(text) or BARE_SIZE.search(text)
    return match.group(1) if match else UNKNOWN


def extract_episode_number(text: Optional[str]) -> int:
    """Episode number from "EPiSODE 7" style markers; 0 means not an episode."""
    if not text:
        return 0
    match = EPISODE_PATTERN.search(text)
    return int(match.group(1)) if match else 0


def quality_or_special(text: Optional[str]) -> str:
    """Like extract_quality, but SAMPLE / CLiMAX clips report "Special"."""
    quality = extract_quality(text)
    if quality == UNKNOWN and text and SPECIAL_PATTERN.search(text):
        return SPECIAL
    return quality


# --- Token predicates used by the strategies ---

def has_episode_marker(text: Optional[str]) -> bool:
    return bool(text) and EPISODE_PATTERN.search(text) is not None


def has_size_token(text: Optional[str]) -> bool:
    return bool(text) and ('MB' in text or 'GB' in text)


def has_special_token(text: Optional[str]) -> bool:
    return bool(text) and SPECIAL_PATTERN.search(text) is not None


def has_release_token(text: Optional[str]) -> bool:
    """Resolution or encoder tokens found in release names."""
    if not text:
        return False
    return bool(RESOLUTION_PATTERN.search(text)) or any(t in text for t in RELEASE_TOKENS)


def has_heading_quality_token(text: Optional[str]) -> bool:
    """Tokens that mark a heading's first link as a quality variant."""
    if not text:
        return False
    return any(token in text for token in ('p ', 'MB', 'GB', 'p⚡', 'HQ'))


# --- Seasons ---

def _clean_corpus(html_corpus: str) -> str:
    return re.sub(r'\s+', ' ', TAG_PATTERN.sub(' ', html_corpus))


def _seasons_in(corpus: str, patterns=CORPUS_SEASON_PATTERNS) -> list[int]:
    found = set()
    for pattern in patterns:
        for match in pattern.finditer(corpus):
            number = int(match.group(1))
            if 0 < number <= MAX_SEASON:
                found.add(number)
    return sorted(found)


def _season_near(number: int, text: str) -> bool:
    pattern = re.compile(rf'season\s*{number}(?!\d)|\bs0*{number}(?!\d)', re.IGNORECASE)
    return pattern.search(text) is not None


def guess_season(title: Optional[str], html_corpus: Optional[str] = None,
                 url: Optional[str] = None) -> SeasonGuess:
    """
    Best-effort season number for an entry, with a confidence flag.

    Order:
      1. season markers in the entry title ("Season 2", "S02E05", "2nd Season")
      2. season mentions in the page text; the first one also mentioned next
         to the title wins, else the smallest one found
      3. an S<n>E<m> code in the title
      4. season 1
    As a last resort, an archive id above 10000 in the URL of a page that
    mentions several seasons moves a season-1 guess to season 2.
    """
    title = title or ''
    guess = None

    for pattern in TITLE_SEASON_PATTERNS:
        match = pattern.search(title)
        # "Series 2024" is a year, not a season
        if match and 0 < int(match.group(1)) <= MAX_TITLE_SEASON:
            guess = SeasonGuess(number=int(match.group(1)), confidence=SeasonConfidence.HIGH)
            break

    corpus = _clean_corpus(html_corpus) if html_corpus else ''
    if guess is None and corpus:
        seasons = _seasons_in(corpus)
        if seasons:
            for number in seasons:
                if _season_near(number, title):
                    guess = SeasonGuess(number=number, confidence=SeasonConfidence.MEDIUM)
                    break
                if _season_near(number, corpus):
                    confidence = (SeasonConfidence.MEDIUM if len(seasons) == 1
                                  else SeasonConfidence.LOW)
                    guess = SeasonGuess(number=number, confidence=confidence)
                    break
            if guess is None:
                guess = SeasonGuess(number=seasons[0], confidence=SeasonConfidence.LOW)

    if guess is None:
        match = EPISODE_CODE_PATTERN.search(title)
        if match:
            guess = SeasonGuess(number=int(match.group(1)), confidence=SeasonConfidence.HIGH)

    if guess is None:
        guess = SeasonGuess(number=DEFAULT_SEASON, confidence=SeasonConfidence.LOW)

    if url and corpus and guess.number == DEFAULT_SEASON:
        explicit = _seasons_in(corpus, CORPUS_SEASON_PATTERNS[:1])
        archive = ARCHIVE_ID_PATTERN.search(url)
        if len(explicit) > 1 and archive and int(archive.group(1)) > ARCHIVE_SEASON_THRESHOLD:
            guess = SeasonGuess(number=2, confidence=SeasonConfidence.LOW)

    return guess


def extract_season_number(title: Optional[str], html_corpus: Optional[str] = None) -> int:
    """Season number for ``title``; see guess_season for the rules."""
    return guess_season(title, html_corpus).number


def normalize(text: Optional[str], title: Optional[str] = None,
              corpus: Optional[str] = None) -> NormalizedMeta:
    """All normalizers applied to one piece of display text."""
    return NormalizedMeta(
        quality=extract_quality(text),
        size=extract_size(text),
        episode_number=extract_episode_number(text),
        season_number=extract_season_number(title if title is not None else text, corpus),
    )
