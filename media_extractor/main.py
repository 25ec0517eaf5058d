"""
Main orchestrator for the media extractor.

Coordinates the pipeline:
  Document → CandidateCollector → Merger → LinkAssociator → Classifier → BundleBuilder
and wraps the bundle in the ExtractionResponse envelope callers consume.

The orchestrator never fetches anything. Callers hand over document text that
was already downloaded, together with the URL it came from.
"""

from pathlib import Path
from typing import Optional, Union

from .associator import LinkAssociator
from .builder import BundleBuilder
from .classifier import Classifier
from .config import HostConfig, get_default_config
from .document import Document, parse
from .logger import get_module_logger, setup_logger
from .merger import Merger
from .schemas import ContentBundle, ExtractionResponse
from .strategies import CandidateCollector

logger = get_module_logger("main")

NO_CONTENT_MESSAGE = "No content could be extracted from the provided document"


class MediaExtractor:
    """
    Main orchestrator for link extraction.

    One instance can serve many documents; every call builds its own
    Document, Merger and records, so calls share no mutable state.
    """

    def __init__(self, config: Optional[HostConfig] = None, log_level: int = None):
        if log_level is not None:
            setup_logger(level=log_level)

        self.config = config or get_default_config()
        self.collector = CandidateCollector(self.config)
        self.associator = LinkAssociator(self.config)
        self.classifier = Classifier(self.collector)
        self.builder = BundleBuilder(self.config)

    def extract_bundle(self, html: str, source_url: Optional[str] = None,
                       warnings: Optional[list] = None) -> ContentBundle:
        """
        Run the pipeline and return the bundle.

        Raises:
            InvalidInputError: if ``html`` is missing or empty
        """
        warnings = warnings if warnings is not None else []
        logger.info(f"Starting extraction{f' for {source_url}' if source_url else ''}")

        doc = parse(html, source_url=source_url)
        warnings.extend(doc.warnings)

        merger = Merger(self.config)
        merged = merger.merge(self.collector.collect_series(doc, warnings))
        self.associator.associate(doc, merged)

        classification = self.classifier.classify(doc, merged, warnings)
        return self.builder.build(doc, classification)

    def extract(self, html: str, source_url: Optional[str] = None) -> ExtractionResponse:
        """
        Extract links from one document.

        Returns a success envelope in both outcomes: with data when something
        matched, and with an empty payload plus a message when nothing did.

        Raises:
            InvalidInputError: if ``html`` is missing or empty
        """
        warnings = []
        bundle = self.extract_bundle(html, source_url=source_url, warnings=warnings)

        if bundle.is_empty():
            logger.info("No content extracted")
            return ExtractionResponse(success=True, data=bundle,
                                      message=NO_CONTENT_MESSAGE, warnings=warnings)

        logger.info(f"Complete: {bundle.content_type.value} '{bundle.title}'")
        return ExtractionResponse(success=True, data=bundle, warnings=warnings)

    def extract_file(self, file_path: Union[str, Path],
                     source_url: Optional[str] = None) -> ExtractionResponse:
        """Extract from a saved HTML page, decoding it with its declared charset."""
        file_path = Path(file_path)
        html = Document.decode_bytes(file_path.read_bytes())
        return self.extract(html, source_url=source_url)


def extract_html(html: str, source_url: Optional[str] = None,
                 config: Optional[HostConfig] = None) -> ExtractionResponse:
    """Convenience function to extract links from HTML."""
    return MediaExtractor(config=config).extract(html, source_url=source_url)


def extract_html_file(file_path: Union[str, Path], source_url: Optional[str] = None,
                      config: Optional[HostConfig] = None) -> ExtractionResponse:
    """Convenience function to extract links from an HTML file."""
    return MediaExtractor(config=config).extract_file(file_path, source_url=source_url)
