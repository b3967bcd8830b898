import pytest
from pydantic import ValidationError

from record_scraper.errors import DocumentParseError
from record_scraper.nodes import Element, Node
from record_scraper.parsing import DOCUMENT_TAG, parse_html


class TestParseHtml:
    """Test suite for building Element trees from HTML."""

    def test_document_root_owns_top_level_nodes(self):
        document = parse_html("<!DOCTYPE html><html><body><p>hi</p></body></html>")
        assert document.tag == DOCUMENT_TAG
        assert [child.tag for child in document.children] == ["html"]

    def test_text_keeps_document_order(self):
        document = parse_html("<p>a<b>b</b>c<i>d<u>e</u></i>f</p>")
        assert document.children[0].text == "abcdef"

    def test_comments_are_not_text(self):
        document = parse_html("<p>visible<!-- hidden --></p>")
        assert document.text == "visible"

    def test_multi_valued_attributes_are_joined(self):
        document = parse_html('<div class="row  active" id="main"></div>')
        assert document.children[0].attrs == {"class": "row active", "id": "main"}

    def test_empty_attribute_is_kept(self):
        document = parse_html('<a href="">x</a>')
        assert document.children[0].attrs["href"] == ""

    def test_bytes_and_bom(self):
        document = parse_html("\ufeff<p>ok</p>".encode("utf-8"))
        assert document.text == "ok"

    def test_non_text_input(self):
        with pytest.raises(DocumentParseError):
            parse_html(42)

    def test_elements_are_immutable_nodes(self):
        document = parse_html("<p>x</p>")
        assert isinstance(document, Node)
        with pytest.raises(ValidationError):
            document.tag = "changed"

    def test_empty_input(self):
        document = parse_html("")
        assert document == Element(tag=DOCUMENT_TAG)
