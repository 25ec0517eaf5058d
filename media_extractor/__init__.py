"""
Media Extractor

Pulls episodes, quality variants and download / watch / stream links out of
the loosely structured HTML of content-listing sites.

Public API surface:
  Orchestrator     — MediaExtractor, extract_html, extract_html_file
  Pipeline stages  — parse, CandidateCollector, Merger, LinkAssociator,
                     Classifier, BundleBuilder
  Normalizers      — extract_quality, extract_size, extract_episode_number,
                     extract_season_number, guess_season
  Data models      — ContentBundle, EpisodeBundle, LinkEntry, ExtractionResponse
  Configuration    — HostConfig, load_config
  Error types      — InvalidInputError (fatal), ConfigError (fatal),
                     StrategyError (partial), DocumentError (non-fatal)
  Caching          — BundleCache
"""

# --- Orchestrator ---
from .main import MediaExtractor, extract_html, extract_html_file

# --- Pipeline stages ---
from .document import Document, parse
from .strategies import CandidateCollector
from .merger import Merger, MergeResult, merge_candidates
from .associator import LinkAssociator, associate_links
from .classifier import Classifier, Classification
from .builder import BundleBuilder

# --- Normalizers ---
from .patterns import (
    extract_quality,
    extract_size,
    extract_episode_number,
    extract_season_number,
    guess_season,
)

# --- Data models ---
from .schemas import (
    ContentBundle,
    ContentType,
    EpisodeBundle,
    ExtractionCandidate,
    ExtractionResponse,
    LinkEntry,
    SeasonConfidence,
    group_by_season,
)

# --- Configuration ---
from .config import HostConfig, load_config

# --- Exceptions ---
from .exceptions import (
    MediaExtractorError,
    InvalidInputError,
    ConfigError,
    StrategyError,
    DocumentError,
)

# --- Cache (outside the core; used by the CLI) ---
from .bundle_cache import BundleCache

__version__ = "0.1.0"
__all__ = [
    "MediaExtractor",
    "extract_html",
    "extract_html_file",
    "Document",
    "parse",
    "CandidateCollector",
    "Merger",
    "MergeResult",
    "merge_candidates",
    "LinkAssociator",
    "associate_links",
    "Classifier",
    "Classification",
    "BundleBuilder",
    "extract_quality",
    "extract_size",
    "extract_episode_number",
    "extract_season_number",
    "guess_season",
    "ContentBundle",
    "ContentType",
    "EpisodeBundle",
    "ExtractionCandidate",
    "ExtractionResponse",
    "LinkEntry",
    "SeasonConfidence",
    "group_by_season",
    "HostConfig",
    "load_config",
    "MediaExtractorError",
    "InvalidInputError",
    "ConfigError",
    "StrategyError",
    "DocumentError",
    "BundleCache",
]
