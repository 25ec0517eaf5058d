"""
Link associator: attaches WATCH / PLAYER companion links to primary records.

Two policies, applied in order, each filling only empty slots:

1. heading_local_companions - companions inside the record's own heading,
   then (direct downloads only) inside the heading right after it.
2. nearest_preceding_record - positional fallback for companions inside an
   <h4> on a stream host that nothing claimed: they go to the closest direct
   download above them in the page, or the last one if none is above.

Both are heuristics over DOM adjacency and will misattribute links on pages
that interleave entries and players differently.
"""

from typing import Optional

from bs4 import Tag

from .config import HostConfig, get_default_config, href_matches
from .document import Document
from .logger import get_module_logger
from .merger import MergeResult
from .schemas import ExtractionCandidate, LinkEntry

logger = get_module_logger("associator")

HEADING_TAGS = ("h3", "h4")
COMPANION_HEADING = "h4"


def _is_inside(node: Tag, container: Tag) -> bool:
    return any(parent is container for parent in node.parents)


def _fill_slot(record, slot: str, href: str) -> bool:
    if getattr(record, slot, None):
        return False
    setattr(record, slot, href)
    return True


def heading_local_companions(doc: Document, heading: Tag,
                             companions: list[ExtractionCandidate],
                             include_next: bool = True) -> dict[str, ExtractionCandidate]:
    """
    Companion links belonging to ``heading``: first match per slot wins.

    Searches (a) anchors inside the heading, then (b) the immediately
    following sibling heading (same tag, or <h4>) when ``include_next``.
    """
    scopes = [heading]
    if include_next:
        following = doc.next_sibling_of(heading, {heading.name, COMPANION_HEADING})
        if following is not None:
            scopes.append(following)

    chosen: dict[str, ExtractionCandidate] = {}
    for scope in scopes:
        for companion in companions:
            if companion.slot in chosen:
                continue
            if _is_inside(companion.context, scope):
                chosen[companion.slot] = companion
    return chosen


def nearest_preceding_record(records: list[tuple[int, LinkEntry]], position: int) -> Optional[LinkEntry]:
    """
    The record closest above ``position`` in document order.

    Falls back to the last record when every record sits below the link.
    ``records`` is a list of (position, record) pairs.
    """
    if not records:
        return None
    preceding = [(pos, record) for pos, record in records if 0 <= pos < position]
    if preceding:
        return max(preceding, key=lambda pair: pair[0])[1]
    return records[-1][1]


class LinkAssociator:
    """Applies the companion-link policies to a MergeResult in place."""

    def __init__(self, config: Optional[HostConfig] = None):
        self.config = config or get_default_config()

    def associate(self, doc: Document, merged: MergeResult) -> MergeResult:
        companions = merged.companions
        if not companions:
            return merged

        consumed: set[int] = set()
        attached = 0

        # Episodes only look inside their own heading; the next heading is
        # usually the next episode.
        for number, episode in merged.episodes.items():
            attached += self._attach_local(doc, merged.origin(("episode", number)),
                                           episode, companions, consumed, include_next=False)

        for href, entry in merged.direct.items():
            attached += self._attach_local(doc, merged.origin(("direct", href)),
                                           entry, companions, consumed, include_next=True)

        attached += self._attach_positional(merged, companions, consumed)
        logger.debug(f"Attached {attached} companion links")
        return merged

    def _attach_local(self, doc, origin, record, companions, consumed, include_next) -> int:
        if origin is None or not isinstance(origin.context, Tag):
            return 0
        if origin.context.name not in HEADING_TAGS:
            return 0

        attached = 0
        for slot, companion in heading_local_companions(
                doc, origin.context, companions, include_next=include_next).items():
            consumed.add(id(companion))
            if _fill_slot(record, slot, companion.href):
                attached += 1
        return attached

    def _attach_positional(self, merged: MergeResult, companions, consumed) -> int:
        records = []
        for href, entry in merged.direct.items():
            origin = merged.origin(("direct", href))
            records.append((origin.position if origin else -1, entry))
        if not records:
            return 0
        records.sort(key=lambda pair: pair[0])

        attached = 0
        for companion in companions:
            if id(companion) in consumed:
                continue
            if not href_matches(companion.href, self.config.stream_hosts):
                continue
            if companion.context is None or companion.context.find_parent(COMPANION_HEADING) is None:
                continue
            target = nearest_preceding_record(records, companion.position)
            if target is not None and _fill_slot(target, companion.slot, companion.href):
                attached += 1
        return attached


def associate_links(doc: Document, merged: MergeResult,
                    config: Optional[HostConfig] = None) -> MergeResult:
    """Convenience function to run the associator once."""
    return LinkAssociator(config).associate(doc, merged)
