"""
Tests for media-type branching and tokenization.
"""

from ens_search.crawl.extract import classify_media_type, extract_document, html_body_text
from ens_search.models import UNRESOLVED_NAME, Occurrence

HTML = """<html>
  <head><title>Ignored title words</title></head>
  <body><p>the quick</p><div>brown <b>fox</b></div></body>
</html>"""


class TestClassifyMediaType:
    def test_known_types(self):
        assert classify_media_type("text/html; charset=utf-8") == "html"
        assert classify_media_type("text/plain") == "text"
        assert classify_media_type("application/json") == "text"

    def test_unknown_or_missing(self):
        assert classify_media_type("image/png") is None
        assert classify_media_type("") is None
        assert classify_media_type(None) is None


class TestExtractDocument:
    def test_html_uses_body_text_only(self):
        extraction = extract_document("QmHtml", "text/html", HTML)

        assert extraction is not None
        assert extraction.tokens == ["the", "quick", "brown", "fox"]
        assert "Ignored" not in extraction.occurrences

    def test_head_only_document_has_no_tokens(self):
        assert html_body_text("<head><title>x</title></head>").split() == []

    def test_implied_body_is_indexed(self):
        markup = "<!doctype html><title>Site</title><p>hello ens world</p>"
        extraction = extract_document("QmImplicit", "text/html", markup)

        assert extraction.tokens == ["hello", "ens", "world"]
        assert "Site" not in extraction.occurrences

    def test_plain_text_splits_on_whitespace(self):
        extraction = extract_document("QmText", "text/plain", "a  b\n\tc a")

        assert extraction.tokens == ["a", "b", "c", "a"]
        assert extraction.occurrences["a"] == {
            Occurrence(source_name=UNRESOLVED_NAME, content_id="QmText", position=0),
            Occurrence(source_name=UNRESOLVED_NAME, content_id="QmText", position=3),
        }

    def test_json_is_treated_as_text(self):
        extraction = extract_document("QmJson", "application/json", '{"name": "vitalik.eth"}')

        assert extraction.tokens == ['{"name":', '"vitalik.eth"}']

    def test_tokens_are_case_preserving(self):
        extraction = extract_document("QmCase", "text/plain", "IPFS ipfs")

        assert set(extraction.occurrences) == {"IPFS", "ipfs"}

    def test_unsupported_type_is_skipped(self):
        assert extract_document("QmPng", "image/png", "\x89PNG") is None
        assert extract_document("QmNone", None, "text") is None
