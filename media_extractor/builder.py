"""
Bundle builder: shapes classified records into the final ContentBundle.

No extraction happens here. The builder picks the page title, sorts
episodes, and attaches season guesses for series pages.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from .classifier import Classification
from .config import HostConfig, get_default_config
from .document import Document
from .logger import get_module_logger
from .patterns import guess_season
from .schemas import ContentBundle, ContentType, EpisodeBundle

logger = get_module_logger("builder")

UNKNOWN_TITLE = "Unknown Title"

# "Movie X - SiteName" / "Movie X | SiteName" as written in <title>
TRAILING_SITE_SEGMENT = re.compile(r'\s+[-|–]\s+\S+\s*$')
SITE_NAME_META = ('meta[property="og:site_name"]', 'meta[name="application-name"]')


def _site_name_from_url(source_url: Optional[str]) -> Optional[str]:
    """Second-level domain label, e.g. "hdhub4u" for new1.hdhub4u.fo."""
    if not source_url:
        return None
    host = urlparse(source_url).hostname or ''
    labels = [label for label in host.split('.') if label and label != 'www']
    if len(labels) < 2:
        return labels[0] if labels else None
    return labels[-2]


def site_name_of(doc: Document) -> Optional[str]:
    """Site name the page declares in its og:site_name / application-name meta."""
    for selector in SITE_NAME_META:
        for node in doc.select(selector):
            content = (node.get('content') or '').strip()
            if content:
                return content
    return None


def strip_site_suffix(title: str, config: HostConfig, source_url: Optional[str] = None,
                      from_title_tag: bool = False,
                      site_name: Optional[str] = None) -> str:
    """
    Remove the site name the listing sites append to page titles.

    Configured suffixes are always removed. A trailing "- Name" segment is
    removed when Name is the source site's domain label. For <title> text, a
    declared ``site_name`` is removed as a trailing segment; only when the page
    declares none is any single-word trailing segment taken for the site name,
    so "Avengers - Endgame" without a declared site name loses "- Endgame".
    """
    for suffix in config.site_suffixes:
        if suffix and suffix in title:
            title = title.replace(suffix, '')
    title = title.strip()

    if from_title_tag and site_name:
        declared = re.compile(r'\s+[-|–]\s+' + re.escape(site_name) + r'\s*$', re.IGNORECASE)
        title = declared.sub('', title).strip()
        from_title_tag = False

    match = TRAILING_SITE_SEGMENT.search(title)
    if match:
        segment = re.sub(r'^[\s\-|–]+', '', match.group(0)).strip()
        site = _site_name_from_url(source_url)
        if from_title_tag or (site and segment.lower() == site.lower()):
            title = title[:match.start()].strip()
    return title


def extract_title(doc: Document, config: HostConfig) -> str:
    """First non-empty text among the title selectors, in priority order."""
    site_name = site_name_of(doc)
    for selector in config.title_selectors:
        for node in doc.select(selector):
            text = doc.text_of(node)
            if not text:
                continue
            title = strip_site_suffix(text, config, doc.source_url,
                                      from_title_tag=(node.name == 'title'),
                                      site_name=site_name)
            if title:
                return title
    return UNKNOWN_TITLE


class BundleBuilder:
    def __init__(self, config: Optional[HostConfig] = None):
        self.config = config or get_default_config()

    def build(self, doc: Document, classification: Classification) -> ContentBundle:
        title = extract_title(doc, self.config)
        episodes = sorted(classification.episodes, key=lambda ep: ep.episode_number)

        if classification.content_type == ContentType.SERIES:
            self._assign_seasons(doc, title, episodes, classification)
            bundle = ContentBundle(
                title=title,
                content_type=ContentType.SERIES,
                episodes=episodes,
                direct_downloads=classification.direct_downloads or None,
            )
        elif classification.content_type == ContentType.MOVIE_DIRECT:
            bundle = ContentBundle(
                title=title,
                content_type=ContentType.MOVIE_DIRECT,
                direct_downloads=classification.direct_downloads,
            )
        else:
            bundle = ContentBundle(
                title=title,
                content_type=ContentType.MOVIE,
                downloads=classification.downloads,
            )

        logger.debug(f"Built {bundle.content_type.value} bundle '{title}'")
        return bundle

    def _assign_seasons(self, doc: Document, title: str, episodes: list[EpisodeBundle],
                        classification: Classification) -> None:
        corpus = doc.plain_text()
        for episode in episodes:
            guess = guess_season(f"{title} {episode.episode}", corpus)
            episode.season = guess.number
            episode.season_confidence = guess.confidence
        for entry in classification.direct_downloads:
            guess = guess_season(entry.title, corpus, url=entry.url)
            entry.season = guess.number
            entry.season_confidence = guess.confidence

