"""
Classifier: decides what kind of page the merged records describe.

Precedence (first match wins):
  1. episodes and direct downloads → series, carrying both
  2. episodes only                 → series
  3. direct downloads only         → movie_direct
  4. nothing of the above          → movie, after re-scanning the page with
                                     the legacy movie strategies
"""

from typing import Optional

from pydantic import BaseModel, Field

from .document import Document
from .logger import get_module_logger
from .merger import MergeResult, Merger
from .schemas import ContentType, EpisodeBundle, LinkEntry
from .strategies import CandidateCollector

logger = get_module_logger("classifier")


class Classification(BaseModel):
    content_type: ContentType
    episodes: list[EpisodeBundle] = Field(default_factory=list)
    direct_downloads: list[LinkEntry] = Field(default_factory=list)
    downloads: list[LinkEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.episodes or self.direct_downloads or self.downloads)


class Classifier:
    def __init__(self, collector: CandidateCollector):
        self.collector = collector

    def classify(self, doc: Document, merged: MergeResult,
                 warnings: Optional[list] = None) -> Classification:
        episodes = merged.episode_list
        direct = merged.direct_list

        if episodes and direct:
            result = Classification(content_type=ContentType.SERIES,
                                    episodes=episodes, direct_downloads=direct)
        elif episodes:
            result = Classification(content_type=ContentType.SERIES, episodes=episodes)
        elif direct:
            result = Classification(content_type=ContentType.MOVIE_DIRECT, direct_downloads=direct)
        else:
            # Series-oriented strategies found nothing; try the movie layout
            movie_merger = Merger(self.collector.config)
            movie_merger.merge(self.collector.collect_movie(doc, warnings))
            result = Classification(content_type=ContentType.MOVIE,
                                    downloads=movie_merger.result.movie_list)

        logger.info(
            f"Classified as {result.content_type.value}: {len(result.episodes)} episodes, "
            f"{len(result.direct_downloads)} direct, {len(result.downloads)} downloads"
        )
        return result
