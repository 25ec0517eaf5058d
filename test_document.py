"""
Tests for the document model: graceful parsing and the query primitives.
"""

import pytest

from media_extractor.document import Document, parse, sanitize_html
from media_extractor.exceptions import InvalidInputError


@pytest.mark.parametrize("html", ["", "   \n\t", None])
def test_parse_rejects_missing_document(html):
    with pytest.raises(InvalidInputError):
        parse(html)


def test_invalid_input_error_converts_to_failure_envelope():
    with pytest.raises(InvalidInputError) as exc_info:
        parse("")
    response = exc_info.value.to_response()
    assert response["success"] is False
    assert response["error"] == "Invalid input"


def test_malformed_html_still_parses():
    """Unclosed and misnested tags degrade to a best-effort tree."""
    html = "<div><h3>EPiSODE 1 <a href='https://x.example/1'>EPiSODE 1</a></div></p></span><h3>tail"
    doc = parse(html)
    assert len(doc.anchors()) == 1
    assert doc.href_of(doc.anchors()[0]) == "https://x.example/1"


def test_sanitize_records_fixes():
    sanitized, warnings = sanitize_html('<p>a\x00b</p><a href=="/x">x</a>')
    assert "\x00" not in sanitized
    assert 'href="/x"' in sanitized
    assert "Removed NULL bytes" in warnings
    assert "Fixed malformed attributes (double equals)" in warnings


def test_parse_keeps_sanitizer_warnings():
    doc = parse("<p>a\x00b</p>")
    assert "Removed NULL bytes" in doc.warnings


def test_select_by_attr_matches_substring():
    doc = parse("""
        <a href="https://hubdrive.wales/file/1">one</a>
        <a href="https://other.example/file/2">two</a>
        <a>no href</a>
    """)
    matches = doc.select_by_attr("a", "href", "hubdrive")
    assert [doc.text_of(a) for a in matches] == ["one"]


def test_closest_and_next_sibling():
    doc = parse("""
        <h3 id="first"><span id="marker">EPiSODE 1</span></h3>
        <h4 id="second">720p</h4>
    """)
    marker = doc.soup.find(id="marker")
    heading = doc.closest(marker, "h3")
    assert heading.get("id") == "first"
    assert doc.closest(heading, "h3") is heading
    assert doc.next_sibling_of(heading, {"h4"}).get("id") == "second"
    assert doc.next_sibling_of(heading, {"h3"}) is None


def test_following_siblings_is_bounded_and_stops_at_other_tags():
    doc = parse("""
        <h4 id="start">EPiSODE 1</h4>
        <h4>one</h4><h4>two</h4><h4>three</h4>
        <p>stop</p>
        <h4>four</h4>
    """)
    start = doc.soup.find(id="start")
    assert [doc.text_of(h) for h in doc.following_siblings(start, "h4", 10)] == ["one", "two", "three"]
    assert len(doc.following_siblings(start, "h4", 2)) == 2


def test_position_follows_document_order():
    doc = parse("<p><a id='a' href='/a'>a</a></p><p><a id='b' href='/b'>b</a></p>")
    first, second = doc.soup.find(id="a"), doc.soup.find(id="b")
    assert 0 <= doc.position(first) < doc.position(second)
    assert doc.position(None) == -1


def test_plain_text_skips_scripts_and_comments():
    doc = parse("<p>Season 2</p><script>var s = 'Season 9';</script><!-- Season 7 -->")
    text = doc.plain_text()
    assert "Season 2" in text
    assert "Season 9" not in text
    assert "Season 7" not in text


def test_text_and_href_helpers_tolerate_missing_nodes():
    assert Document.text_of(None) == ""
    assert Document.href_of(None) is None


@pytest.mark.parametrize("raw, expected", [
    (b'<html><head><meta charset="iso-8859-1"></head>', "windows-1252"),
    (b'<meta http-equiv="Content-Type" content="text/html; charset=Shift_JIS">', "shift_jis"),
    (b'<html><head><title>x</title></head>', "utf-8"),
])
def test_detect_charset_from_bytes(raw, expected):
    assert Document.detect_charset_from_bytes(raw) == expected


def test_decode_bytes_uses_declared_charset_and_falls_back_to_utf8():
    latin = '<meta charset="iso-8859-1"><p>Café</p>'.encode("latin-1")
    assert "Café" in Document.decode_bytes(latin)
    unknown = '<meta charset="x-unknown-9"><p>Café</p>'.encode("utf-8")
    assert "Café" in Document.decode_bytes(unknown)
