"""
Candidate collector: independent strategies, one per structural pattern.

Each strategy scans the shared Document and returns its own list of
ExtractionCandidate objects. Strategies never mutate the document and never
see each other's output; reconciling overlaps is the Merger's job, so the
order of the strategy tuples below is significant (earlier strategies win).

Strategy groups:
  EPISODE_STRATEGIES   - episode headings and their drive rows
  DIRECT_STRATEGIES    - quality variants linking to drive/cdn hosts
  COMPANION_STRATEGIES - WATCH / PLAYER links for the associator
  MOVIE_STRATEGIES     - legacy "Download ... 720p" movie markup, run only
                         when nothing else matched
"""

from abc import ABC, abstractmethod
from typing import Optional

from bs4 import Tag

from .config import HostConfig, get_default_config, href_matches
from .document import Document
from .exceptions import StrategyError
from .logger import get_module_logger
from .patterns import (
    RESOLUTION_PATTERN,
    extract_episode_number,
    extract_quality,
    extract_size,
    has_episode_marker,
    has_heading_quality_token,
    has_release_token,
    has_size_token,
    has_special_token,
    quality_or_special,
)
from .schemas import CandidateRole, ExtractionCandidate

logger = get_module_logger("strategies")

HEADING_TAGS = ("h3", "h4")
DRIVE_LINK_TEXT = "Drive"
DRIVE_QUALITIES = (("720p", "drive_url_720p"), ("1080p", "drive_url_1080p"))
MOVIE_QUALITY_TOKENS = ("MB", "GB", "480p", "720p", "1080p")


def companion_slot(text: str) -> Optional[str]:
    """Record field a WATCH / PLAYER label fills, or None."""
    if "WATCH" in text:
        return "watch_url"
    if "PLAYER" in text:
        return "player_url"
    return None


class Strategy(ABC):
    """One self-contained scan of the document for one markup pattern."""

    name: str = "strategy"
    role: CandidateRole = CandidateRole.DIRECT

    @abstractmethod
    def collect(self, doc: Document, config: HostConfig) -> list[ExtractionCandidate]:
        """Return the candidates found in ``doc``."""

    def _candidate(self, doc: Document, anchor: Tag, href: str, text: str,
                   context: Optional[Tag] = None, **fields) -> ExtractionCandidate:
        return ExtractionCandidate(
            source_strategy=self.name,
            role=self.role,
            display_text=text,
            href=href,
            context=context if context is not None else anchor,
            position=doc.position(anchor),
            **fields
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# --- Episode strategies ---

class HeadingAnchorStrategy(Strategy):
    """
    <h3> episode headings: every anchor in an "EPiSODE n" heading is a link
    for that episode. The number comes from the anchor text, or from the
    heading when the anchor is labelled "Download" or similar.
    """

    name = "heading_anchor"
    role = CandidateRole.EPISODE

    def collect(self, doc, config):
        candidates = []
        for heading in doc.select("h3"):
            heading_text = doc.text_of(heading)
            if not has_episode_marker(heading_text):
                continue
            for anchor in doc.anchors(heading):
                text = doc.text_of(anchor)
                href = doc.href_of(anchor)
                if companion_slot(text):
                    continue
                number = extract_episode_number(text) or extract_episode_number(heading_text)
                if href and number > 0:
                    candidates.append(self._candidate(
                        doc, anchor, href, text, context=heading,
                        slot="intermediary_url",
                        episode_number=number,
                        episode_label=f"Episode {number}",
                    ))
        return candidates


class LabelledHeadingStrategy(Strategy):
    """<h4> "EPISODE n" headings linking to an episode-intermediary host."""

    name = "labelled_heading"
    role = CandidateRole.EPISODE

    def collect(self, doc, config):
        candidates = []
        for heading in doc.select("h4"):
            if not has_episode_marker(doc.text_of(heading)):
                continue

            # The last qualifying anchor in the heading is the episode link
            chosen = None
            for anchor in doc.anchors(heading):
                text = doc.text_of(anchor)
                href = doc.href_of(anchor)
                if has_episode_marker(text) and href_matches(href, config.intermediary_hosts):
                    chosen = (anchor, href, text)

            if chosen is None:
                continue
            anchor, href, text = chosen
            number = extract_episode_number(text)
            if number > 0:
                candidates.append(self._candidate(
                    doc, anchor, href, text, context=heading,
                    slot="intermediary_url",
                    episode_number=number,
                    episode_label=text,
                ))
        return candidates


class SpanSiblingsStrategy(Strategy):
    """
    An "EPiSODE n" span inside an <h4>, followed by quality rows.

    Layout:
        <h4><span>EPiSODE 1</span></h4>
        <h4>720p ... <a href="https://hubdrive...">Drive</a></h4>
        <h4>1080p ... <a href="https://hubdrive...">Drive</a></h4>

    Up to ``max_sibling_scan`` following <h4> siblings are read, stopping at
    a row marked with a different episode number. Rows repeating the same
    number are still read. The first Drive link per quality wins.
    """

    name = "span_siblings"
    role = CandidateRole.EPISODE

    def collect(self, doc, config):
        candidates = []
        processed = set()

        for marker in doc.select("h4 span, h4 strong"):
            number = extract_episode_number(doc.text_of(marker))
            if number <= 0 or number in processed:
                continue

            heading = doc.closest(marker, "h4")
            if heading is None:
                continue

            found = {}
            for row in doc.following_siblings(heading, "h4", config.max_sibling_scan):
                row_text = doc.text_of(row)
                row_number = extract_episode_number(row_text)
                if row_number and row_number != number:
                    break
                for quality, slot in DRIVE_QUALITIES:
                    if quality not in row_text or slot in found:
                        continue
                    for anchor in doc.anchors(row):
                        href = doc.href_of(anchor)
                        if (doc.text_of(anchor) == DRIVE_LINK_TEXT
                                and href_matches(href, config.drive_hosts)):
                            found[slot] = (anchor, href, row)
                            break

            if not found:
                continue

            for slot, (anchor, href, row) in found.items():
                candidates.append(self._candidate(
                    doc, anchor, href, doc.text_of(row), context=row,
                    slot=slot,
                    episode_number=number,
                    episode_label=f"Episode {number}",
                    quality=extract_quality(doc.text_of(row)),
                    size=extract_size(doc.text_of(row)),
                ))
            processed.add(number)
        return candidates


# --- Direct-download strategies ---

class DirectHeadingStrategy(Strategy):
    """<h3>/<h4> whose first anchor is labelled with a quality or size."""

    name = "direct_heading"
    role = CandidateRole.DIRECT

    def collect(self, doc, config):
        candidates = []
        for heading in doc.select(", ".join(HEADING_TAGS)):
            anchors = doc.anchors(heading)
            if not anchors:
                continue
            anchor = anchors[0]
            text = doc.text_of(anchor)
            href = doc.href_of(anchor)
            if href and has_heading_quality_token(text):
                candidates.append(self._candidate(
                    doc, anchor, href, text, context=heading,
                    quality=extract_quality(text),
                    size=extract_size(text),
                ))
        return candidates


class DeepAnchorStrategy(Strategy):
    """
    Low-precision fallback: any anchor anywhere whose text looks like a
    release and whose href is on a download host.
    """

    name = "deep_anchor"
    role = CandidateRole.DIRECT

    def matches(self, text: str) -> bool:
        return has_release_token(text) or has_size_token(text) or has_special_token(text)

    def collect(self, doc, config):
        candidates = []
        for anchor in doc.anchors():
            text = doc.text_of(anchor)
            href = doc.href_of(anchor)
            if not (href and text and self.matches(text)):
                continue
            if not href_matches(href, config.download_hosts):
                continue
            candidates.append(self._candidate(
                doc, anchor, href, text,
                quality=quality_or_special(text),
                size=extract_size(text),
            ))
        return candidates


class StyledTextStrategy(DeepAnchorStrategy):
    """Anchors whose label sits in a nested <span>/<em> (inline formatting)."""

    name = "styled_text"

    def matches(self, text: str) -> bool:
        return (bool(RESOLUTION_PATTERN.search(text))
                or has_size_token(text)
                or has_special_token(text))

    def collect(self, doc, config):
        candidates = []
        for inner in doc.select("a span, a em"):
            anchor = inner.find_parent("a")
            if anchor is None:
                continue
            text = doc.text_of(inner) or doc.text_of(anchor)
            href = doc.href_of(anchor)
            if not (href and text and self.matches(text)):
                continue
            if not href_matches(href, config.download_hosts):
                continue
            candidates.append(self._candidate(
                doc, anchor, href, text,
                quality=quality_or_special(text),
                size=extract_size(text),
            ))
        return candidates


# --- Companion links ---

class CompanionStrategy(Strategy):
    """WATCH / PLAYER links; attached to their entries by the associator."""

    name = "companion"
    role = CandidateRole.COMPANION

    def collect(self, doc, config):
        candidates = []
        for anchor in doc.anchors():
            text = doc.text_of(anchor)
            href = doc.href_of(anchor)
            slot = companion_slot(text)
            if href and slot:
                candidates.append(self._candidate(doc, anchor, href, text, slot=slot))
        return candidates


# --- Movie strategies ---

class MovieHeadingStrategy(Strategy):
    """Legacy movie markup: "Download 720p [1.2GB]" blocks with one link."""

    name = "movie_heading"
    role = CandidateRole.MOVIE
    selector = "h3, h4, .download-section, .entry-content p"

    def collect(self, doc, config):
        candidates = []
        for node in doc.select(self.selector):
            text = doc.text_of(node)
            if "Download" not in text and "DOWNLOAD" not in text:
                continue
            if not any(token in text for token in MOVIE_QUALITY_TOKENS):
                continue

            anchor = node.find("a")
            if anchor is None:
                following = node.find_next_sibling()
                anchor = following.find("a") if following is not None else None
            href = doc.href_of(anchor)
            if href:
                candidates.append(self._candidate(
                    doc, anchor, href, text, context=node,
                    quality=extract_quality(text),
                    size=extract_size(text),
                ))
        return candidates


class MovieDeepAnchorStrategy(Strategy):
    name = "movie_deep_anchor"
    role = CandidateRole.MOVIE

    def collect(self, doc, config):
        candidates = []
        for anchor in doc.anchors():
            text = doc.text_of(anchor)
            href = doc.href_of(anchor)
            if not (href and text):
                continue
            if not ("Download" in text or RESOLUTION_PATTERN.search(text) or has_size_token(text)):
                continue
            if href_matches(href, config.download_hosts):
                candidates.append(self._candidate(
                    doc, anchor, href, text,
                    quality=extract_quality(text),
                    size=extract_size(text),
                ))
        return candidates


EPISODE_STRATEGIES = (HeadingAnchorStrategy(), LabelledHeadingStrategy(), SpanSiblingsStrategy())
DIRECT_STRATEGIES = (DirectHeadingStrategy(), DeepAnchorStrategy(), StyledTextStrategy())
COMPANION_STRATEGIES = (CompanionStrategy(),)
MOVIE_STRATEGIES = (MovieHeadingStrategy(), MovieDeepAnchorStrategy())


class CandidateCollector:
    """Runs strategy groups over a document, in priority order."""

    def __init__(self, config: Optional[HostConfig] = None):
        self.config = config or get_default_config()

    def has_direct_hosts(self, doc: Document) -> bool:
        """True when any anchor points at a drive, stream or cdn host."""
        hosts = self.config.direct_marker_hosts
        return any(href_matches(doc.href_of(a), hosts) for a in doc.anchors())

    def run(self, doc: Document, strategies, warnings: Optional[list] = None) -> list[ExtractionCandidate]:
        """
        Run ``strategies`` in order and concatenate their candidates.

        A failing strategy is logged and skipped; the others still run.
        """
        candidates = []
        for strategy in strategies:
            try:
                found = strategy.collect(doc, self.config)
            except Exception as e:
                error = StrategyError(f"Strategy {strategy.name} failed: {e}", strategy=strategy.name)
                logger.warning(error.message)
                if warnings is not None:
                    warnings.append(error.message)
                continue
            logger.debug(f"{strategy.name}: {len(found)} candidates")
            candidates.extend(found)
        return candidates

    def collect_series(self, doc: Document, warnings: Optional[list] = None) -> list[ExtractionCandidate]:
        """Episode, direct-download and companion candidates."""
        strategies = list(EPISODE_STRATEGIES)
        if self.has_direct_hosts(doc):
            strategies.extend(DIRECT_STRATEGIES)
        strategies.extend(COMPANION_STRATEGIES)
        return self.run(doc, strategies, warnings)

    def collect_movie(self, doc: Document, warnings: Optional[list] = None) -> list[ExtractionCandidate]:
        """Legacy movie-page candidates."""
        return self.run(doc, MOVIE_STRATEGIES, warnings)
