"""
Merger / deduplicator: folds strategy candidates into canonical records.

Merge rule: enrich, never overwrite, first wins. When a candidate's key is
already known, only the fields the existing record is missing are filled in.
This is what lets the low-precision fallback strategies run after the precise
ones without clobbering their results.

Keys:
  episodes          - episode number
  direct / movie    - href (exact string)

Episodes and direct downloads share one href key space: a link already held
by an episode is never repeated as a direct download.
"""

from typing import Optional

from .config import HostConfig, get_default_config, href_matches
from .logger import get_module_logger
from .patterns import UNKNOWN
from .schemas import CandidateRole, EpisodeBundle, ExtractionCandidate, LinkEntry, LinkKind

logger = get_module_logger("merger")

EPISODE_SLOTS = ("intermediary_url", "drive_url_720p", "drive_url_1080p", "watch_url", "player_url")


def _fill(record, field: str, value) -> bool:
    """Set ``field`` only if the record has no usable value for it yet."""
    if value in (None, "", UNKNOWN):
        return False
    current = getattr(record, field)
    if current not in (None, "", UNKNOWN):
        return False
    setattr(record, field, value)
    return True


class MergeResult:
    """
    Canonical records plus the candidate that first created each of them.

    ``origins`` is read by the link associator, which needs the heading and
    document position a record came from.
    """

    def __init__(self):
        self.episodes: dict[int, EpisodeBundle] = {}
        self.direct: dict[str, LinkEntry] = {}
        self.movie: dict[str, LinkEntry] = {}
        self.companions: list[ExtractionCandidate] = []
        self.origins: dict[tuple, ExtractionCandidate] = {}
        # Every href stored in an episode slot
        self.episode_hrefs: set[str] = set()

    @property
    def episode_list(self) -> list[EpisodeBundle]:
        return list(self.episodes.values())

    @property
    def direct_list(self) -> list[LinkEntry]:
        return list(self.direct.values())

    @property
    def movie_list(self) -> list[LinkEntry]:
        return list(self.movie.values())

    def origin(self, key: tuple) -> Optional[ExtractionCandidate]:
        return self.origins.get(key)

    def is_empty(self) -> bool:
        return not (self.episodes or self.direct or self.movie)


class Merger:
    """Stateful merge of candidate batches; merging the same batch twice is a no-op."""

    def __init__(self, config: Optional[HostConfig] = None):
        self.config = config or get_default_config()
        self.result = MergeResult()
        self._companion_keys: set[tuple] = set()

    def merge(self, candidates: list[ExtractionCandidate]) -> MergeResult:
        inserted = enriched = 0
        for candidate in candidates:
            outcome = self._merge_one(candidate)
            if outcome == "inserted":
                inserted += 1
            elif outcome == "enriched":
                enriched += 1
        logger.debug(f"Merged {len(candidates)} candidates: {inserted} new, {enriched} enriched")
        return self.result

    def _merge_one(self, candidate: ExtractionCandidate) -> Optional[str]:
        if candidate.role == CandidateRole.EPISODE:
            return self._merge_episode(candidate)
        if candidate.role == CandidateRole.COMPANION:
            key = (candidate.href, candidate.position, candidate.slot)
            if key not in self._companion_keys:
                self._companion_keys.add(key)
                self.result.companions.append(candidate)
                return "inserted"
            return None
        table = self.result.direct if candidate.role == CandidateRole.DIRECT else self.result.movie
        return self._merge_link(table, candidate)

    def _merge_episode(self, candidate: ExtractionCandidate) -> Optional[str]:
        number = candidate.episode_number
        if number <= 0:
            return None
        if candidate.slot not in EPISODE_SLOTS:
            logger.warning(f"Ignoring episode candidate with unknown slot {candidate.slot!r}")
            return None

        record = self.result.episodes.get(number)
        if record is None:
            record = EpisodeBundle(
                episode=candidate.episode_label or f"Episode {number}",
                episode_number=number,
            )
            setattr(record, candidate.slot, candidate.href)
            self.result.episodes[number] = record
            self.result.origins[("episode", number)] = candidate
            self.result.episode_hrefs.add(candidate.href)
            return "inserted"

        changed = _fill(record, candidate.slot, candidate.href)
        if changed:
            self.result.episode_hrefs.add(candidate.href)
        changed = _fill(record, "episode", candidate.episode_label) or changed
        return "enriched" if changed else None

    def _merge_link(self, table: dict[str, LinkEntry], candidate: ExtractionCandidate) -> Optional[str]:
        if candidate.role == CandidateRole.DIRECT and candidate.href in self.result.episode_hrefs:
            return None

        record = table.get(candidate.href)
        if record is None:
            kind = (LinkKind.STREAM if href_matches(candidate.href, self.config.stream_hosts)
                    else LinkKind.DOWNLOAD)
            table[candidate.href] = LinkEntry(
                title=candidate.display_text,
                quality=candidate.quality,
                size=candidate.size,
                url=candidate.href,
                kind=kind,
            )
            self.result.origins[(candidate.role.value, candidate.href)] = candidate
            return "inserted"

        changed = False
        for field, value in (("title", candidate.display_text),
                             ("quality", candidate.quality),
                             ("size", candidate.size)):
            changed = _fill(record, field, value) or changed
        return "enriched" if changed else None


def merge_candidates(candidates: list[ExtractionCandidate],
                     config: Optional[HostConfig] = None) -> MergeResult:
    """Convenience function to merge one batch of candidates."""
    return Merger(config).merge(candidates)
