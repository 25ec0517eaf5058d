"""
Document model: wraps raw HTML into a queryable, read-only node tree.

Design principle: NEVER FAIL on bad HTML. Listing pages are hand-edited and
routinely malformed, so parsing always produces a best-effort tree. The only
hard failure is a missing or empty document.

Pipeline position: first stage. Every strategy reads the same Document
instance; nothing downstream mutates it.
"""

import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Comment, Tag

from .exceptions import DocumentError, InvalidInputError
from .logger import get_module_logger

logger = get_module_logger("document")

# html5lib implements the WHATWG algorithm and copes with the worst markup;
# lxml is faster but less faithful; html.parser is always available.
PARSER_CHAIN = ("html5lib", "lxml", "html.parser")

# Elements whose text is never visible content
STRIP_ELEMENTS = ["script", "style", "noscript"]


class Document:
    """
    Parsed HTML document with the query primitives the strategies need.

    Build instances with :func:`parse`.
    """

    # Browsers silently remap these charsets per the WHATWG Encoding Standard
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Detect the declared charset of saved HTML bytes.

        Scans the first 2048 bytes for <meta charset=...> or the legacy
        http-equiv form and applies the WHATWG browser mapping.
        Returns 'utf-8' when nothing is declared.
        """
        head_str = raw_bytes[:2048].decode('ascii', errors='ignore')

        charset = None
        m = re.search(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', head_str, re.IGNORECASE)
        if m:
            charset = m.group(1).strip().lower()

        if not charset:
            m = re.search(
                r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)',
                head_str, re.IGNORECASE
            )
            if m:
                charset = m.group(1).strip().lower()

        if not charset:
            return 'utf-8'
        return Document.WHATWG_CHARSET_MAP.get(charset, charset)

    @staticmethod
    def decode_bytes(raw_bytes: bytes) -> str:
        """Decode saved HTML with its declared charset; unknown charsets fall back to utf-8."""
        charset = Document.detect_charset_from_bytes(raw_bytes)
        try:
            return raw_bytes.decode(charset, errors='replace')
        except LookupError:
            logger.warning(f"Unknown charset {charset!r}, using utf-8")
            return raw_bytes.decode('utf-8', errors='replace')

    def __init__(self, html: str, soup: BeautifulSoup, parser: str,
                 source_url: Optional[str] = None, warnings: Optional[list[str]] = None):
        self.html = html
        self.soup = soup
        self.parser = parser
        self.source_url = source_url
        self.warnings = list(warnings or [])
        self._positions: Optional[dict[int, int]] = None
        self._plain_text: Optional[str] = None

    # --- Selection ---

    def select(self, selector: str) -> list[Tag]:
        """Elements matching a CSS selector (list), in document order."""
        try:
            return self.soup.select(selector)
        except (ValueError, NotImplementedError) as e:
            logger.warning(f"Invalid selector '{selector}': {e}")
            return []

    def select_by_attr(self, tag: str, attr: str, substring: str) -> list[Tag]:
        """Elements of ``tag`` whose ``attr`` value contains ``substring``."""
        matches = []
        for elem in self.soup.find_all(tag):
            value = elem.get(attr)
            if isinstance(value, list):  # class and rel come back as lists
                value = ' '.join(value)
            if value and substring in value:
                matches.append(elem)
        return matches

    def anchors(self, node: Optional[Tag] = None) -> list[Tag]:
        """All <a> elements in the document, or below ``node``."""
        return (node if node is not None else self.soup).find_all('a')

    # --- Node accessors ---

    @staticmethod
    def text_of(node: Optional[Tag]) -> str:
        if node is None:
            return ''
        return node.get_text().strip()

    @staticmethod
    def href_of(anchor: Optional[Tag]) -> Optional[str]:
        if anchor is None:
            return None
        href = anchor.get('href')
        if not href:
            return None
        return href.strip() or None

    # --- Traversal ---

    @staticmethod
    def closest(node: Tag, tag: str) -> Optional[Tag]:
        """The node itself or its nearest ancestor named ``tag``."""
        if node.name == tag:
            return node
        return node.find_parent(tag)

    @staticmethod
    def next_sibling_of(node: Tag, tags: Iterable[str]) -> Optional[Tag]:
        """
        The immediately following element sibling, only if its tag is in
        ``tags``. Text between the two elements is ignored.
        """
        sibling = node.find_next_sibling()
        if sibling is not None and sibling.name in tags:
            return sibling
        return None

    def following_siblings(self, node: Tag, tag: str, limit: int) -> list[Tag]:
        """
        Up to ``limit`` consecutive following siblings named ``tag``.

        The walk stops at the first element sibling with a different tag.
        """
        siblings = []
        current = self.next_sibling_of(node, (tag,))
        while current is not None and len(siblings) < limit:
            siblings.append(current)
            current = self.next_sibling_of(current, (tag,))
        return siblings

    def position(self, node: Optional[Tag]) -> int:
        """Document-order index of ``node`` (-1 when it is not in this tree)."""
        if node is None:
            return -1
        if self._positions is None:
            self._positions = {
                id(elem): index for index, elem in enumerate(self.soup.find_all(True))
            }
        return self._positions.get(id(node), -1)

    def plain_text(self) -> str:
        """Visible text of the whole page, whitespace collapsed."""
        if self._plain_text is None:
            self._plain_text = re.sub(r'\s+', ' ', self.soup.get_text(' ')).strip()
        return self._plain_text


def sanitize_html(html: str) -> tuple[str, list[str]]:
    """
    Fix string-level malformations before parsing.

    Returns:
        Tuple of (sanitized HTML, list of warnings)
    """
    warnings = []
    sanitized = html.encode('utf-8', errors='replace').decode('utf-8')

    if '\x00' in sanitized:
        sanitized = sanitized.replace('\x00', '')
        warnings.append("Removed NULL bytes")

    # <<p>> from copy-paste corruption
    double_bracket_pattern = r'<{2,}(\/?[a-zA-Z][^>]*?)>{2,}'
    if re.search(double_bracket_pattern, sanitized):
        sanitized = re.sub(double_bracket_pattern, r'<\1>', sanitized)
        warnings.append("Fixed double angle brackets")

    # href=="/path" is a common CMS bug
    malformed_attr_pattern = r'(\w+)==(["\'])'
    if re.search(malformed_attr_pattern, sanitized):
        sanitized = re.sub(malformed_attr_pattern, r'\1=\2', sanitized)
        warnings.append("Fixed malformed attributes (double equals)")

    sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

    control_chars = ''.join(chr(c) for c in range(32) if c not in (9, 10, 13))
    if any(c in sanitized for c in control_chars):
        sanitized = sanitized.translate(str.maketrans('', '', control_chars))
        warnings.append("Removed control characters")

    return sanitized, warnings


def _build_soup(html: str, warnings: list[str]) -> tuple[BeautifulSoup, str]:
    last_error = None
    for parser in PARSER_CHAIN:
        try:
            return BeautifulSoup(html, parser), parser
        except Exception as e:  # bs4 raises FeatureNotFound or parser-specific errors
            last_error = DocumentError(f"{parser} parsing failed: {e}", parser=parser)
            logger.warning(last_error.message)
            warnings.append(last_error.message)
    # html.parser only fails on bugs; surface the last parser error
    raise last_error


def _strip_invisible(soup: BeautifulSoup) -> None:
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    for elem in soup.find_all(STRIP_ELEMENTS):
        elem.decompose()


def parse(html: Optional[str], source_url: Optional[str] = None) -> Document:
    """
    Parse raw HTML into a Document.

    Args:
        html: Raw HTML string (possibly malformed)
        source_url: URL the page was fetched from (context only, never fetched)

    Raises:
        InvalidInputError: if ``html`` is None, not a string, or blank
    """
    if not isinstance(html, str) or not html.strip():
        raise InvalidInputError(
            "Document text is required",
            details={"source_url": source_url}
        )

    sanitized, warnings = sanitize_html(html)
    soup, parser = _build_soup(sanitized, warnings)
    _strip_invisible(soup)

    logger.debug(f"Parsed document with {parser} ({len(html)} chars, {len(warnings)} fixes)")
    return Document(html, soup, parser, source_url=source_url, warnings=warnings)
