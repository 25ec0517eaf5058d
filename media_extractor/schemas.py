"""
Pydantic schemas defining the contracts between pipeline stages.

Data flow through the pipeline:
  Document → strategies → ExtractionCandidate list
  ExtractionCandidate list → Merger → EpisodeBundle / LinkEntry records
  records → Classifier → Builder → ContentBundle
  ContentBundle → MediaExtractor → ExtractionResponse (transport envelope)

Attributes are snake_case; serialization uses the camelCase wire names
(``model_dump(by_alias=True)``) that API consumers already depend on.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LinkKind(str, Enum):
    DOWNLOAD = "download"
    WATCH = "watch"
    PLAYER = "player"
    STREAM = "stream"


class ContentType(str, Enum):
    SERIES = "series"
    MOVIE_DIRECT = "movie_direct"
    MOVIE = "movie"


class CandidateRole(str, Enum):
    """Which kind of record a candidate contributes to."""
    EPISODE = "episode"
    DIRECT = "direct"
    MOVIE = "movie"
    COMPANION = "companion"


class SeasonConfidence(str, Enum):
    HIGH = "high"       # explicit season marker in the entry's own title
    MEDIUM = "medium"   # season mention near the entry in the page text
    LOW = "low"         # fallback guess (smallest season seen, archive id, default)


# --- Strategy output ---

class ExtractionCandidate(BaseModel):
    """
    An unvalidated guess produced by exactly one strategy.

    ``slot`` names the record field the href belongs in, e.g. "drive_url_720p"
    for an episode or "url" for a download entry.
    """
    source_strategy: str
    display_text: str = ""
    href: str
    role: CandidateRole
    slot: str = "url"
    episode_number: int = 0
    episode_label: str = ""
    quality: str = "Unknown"
    size: str = "Unknown"
    position: int = -1  # document-order index of the context node
    # Heading (or anchor) the candidate was found in; never serialized
    context: Optional[Any] = Field(default=None, exclude=True, repr=False)


# --- Normalizer output ---

class NormalizedMeta(BaseModel):
    quality: str = "Unknown"
    size: str = "Unknown"
    episode_number: int = 0
    season_number: int = 1


class SeasonGuess(BaseModel):
    number: int = 1
    confidence: SeasonConfidence = SeasonConfidence.LOW


# --- Canonical records ---

class LinkEntry(BaseModel):
    """A download entry; keyed by ``url`` for deduplication."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    quality: str = "Unknown"
    size: str = "Unknown"
    url: str = Field(alias="downloadUrl")
    watch_url: Optional[str] = Field(default=None, alias="watchUrl")
    player_url: Optional[str] = Field(default=None, alias="playerUrl")
    # Only assigned for series pages
    season: Optional[int] = None
    season_confidence: Optional[SeasonConfidence] = Field(default=None, alias="seasonConfidence")
    # STREAM when the url is on a stream host; not part of the wire format
    kind: LinkKind = Field(default=LinkKind.DOWNLOAD, exclude=True)

    def companion_links(self) -> list["LinkEntry"]:
        return companion_links(self, self.title)


def companion_links(record, title: str) -> list[LinkEntry]:
    """The WATCH / PLAYER links of an entry or episode as typed LinkEntry objects."""
    links = []
    for kind, url in ((LinkKind.WATCH, record.watch_url), (LinkKind.PLAYER, record.player_url)):
        if url:
            links.append(LinkEntry(title=title, url=url, kind=kind, season=record.season))
    return links


class EpisodeBundle(BaseModel):
    """All links known for one episode number."""
    model_config = ConfigDict(populate_by_name=True)

    episode: str
    episode_number: int = Field(gt=0, alias="episodeNumber")
    drive_url_720p: Optional[str] = Field(default=None, alias="driveUrl720p")
    drive_url_1080p: Optional[str] = Field(default=None, alias="driveUrl1080p")
    intermediary_url: Optional[str] = Field(default=None, alias="techyboyUrl")
    watch_url: Optional[str] = Field(default=None, alias="watchUrl")
    player_url: Optional[str] = Field(default=None, alias="playerUrl")
    season: Optional[int] = None
    season_confidence: Optional[SeasonConfidence] = Field(default=None, alias="seasonConfidence")

    def primary_links(self) -> list[LinkEntry]:
        """Download links of this episode, highest quality first."""
        links = []
        for quality, url in (("1080p", self.drive_url_1080p), ("720p", self.drive_url_720p)):
            if url:
                links.append(LinkEntry(title=self.episode, quality=quality, url=url,
                                       season=self.season, kind=LinkKind.DOWNLOAD))
        if self.intermediary_url:
            links.append(LinkEntry(title=self.episode, url=self.intermediary_url,
                                   season=self.season, kind=LinkKind.DOWNLOAD))
        return links

    def companion_links(self) -> list[LinkEntry]:
        return companion_links(self, self.episode)


def group_by_season(entries) -> dict:
    """Group episodes or links by ``season`` (unset counts as 1), seasons ascending."""
    grouped: dict[int, list] = {}
    for entry in entries:
        grouped.setdefault(entry.season or 1, []).append(entry)
    return dict(sorted(grouped.items()))


# --- Final product ---

class ContentBundle(BaseModel):
    """Classified, typed extraction result for one document."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content_type: ContentType = Field(alias="contentType")
    episodes: Optional[list[EpisodeBundle]] = None
    downloads: Optional[list[LinkEntry]] = None
    direct_downloads: Optional[list[LinkEntry]] = Field(default=None, alias="directDownloads")

    def is_empty(self) -> bool:
        return not (self.episodes or self.downloads or self.direct_downloads)

    def seasons(self) -> dict[int, list[EpisodeBundle]]:
        """Episodes grouped by season number, seasons ascending."""
        return group_by_season(self.episodes or [])

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExtractionResponse(BaseModel):
    """
    Transport envelope.

    success=False with ``error`` set means the document could not be
    processed at all; success=True with an empty payload and a ``message``
    means the document was read but nothing matched.
    """
    success: bool
    data: Optional[ContentBundle] = None
    error: Optional[str] = None
    message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)  # Non-fatal issues from every stage

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
