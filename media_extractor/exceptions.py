"""
Custom exceptions for the media extractor.

Error philosophy:
  - InvalidInputError → FAIL HARD: no document text, nothing to extract.
  - ConfigError       → FAIL HARD: host configuration could not be loaded.
  - StrategyError     → PARTIAL RETURN: one strategy failed, the others still run.
  - DocumentError     → NON-FATAL: a parser in the fallback chain failed, the
                        next parser is tried.

Everything below the document level degrades to an empty result instead of
raising, so callers only ever see InvalidInputError or ConfigError.
"""

from typing import Optional


class MediaExtractorError(Exception):
    """Base exception for all media extractor errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- FAIL HARD: stops the pipeline ---

class InvalidInputError(MediaExtractorError):
    """
    Raised when the document text is missing or empty.

    This is the only hard failure of the extraction core.
    """

    def to_response(self) -> dict:
        """Convert to the failure envelope returned to API callers."""
        return {
            "success": False,
            "error": "Invalid input",
            "message": self.message,
        }


class ConfigError(MediaExtractorError):
    """Raised when the host configuration file is unreadable or invalid."""

    def __init__(self, message: str, path: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details)
        self.path = path


# --- PARTIAL RETURN: extraction continues with the other strategies ---

class StrategyError(MediaExtractorError):
    """
    Raised (and caught by the collector) when a single strategy fails.

    The collector logs it as a warning and keeps the candidates already
    produced by the strategies that ran before it.
    """

    def __init__(self, message: str, strategy: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.strategy = strategy


# --- NON-FATAL: parser degradation ---

class DocumentError(MediaExtractorError):
    """
    Raised when one parser in the fallback chain cannot build a tree.

    Non-fatal - the next parser is tried and a warning is recorded.
    """

    def __init__(self, message: str, parser: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.parser = parser  # "html5lib", "lxml" or "html.parser"
