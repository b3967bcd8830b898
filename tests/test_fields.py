import pytest

from record_scraper.errors import ConfigurationError
from record_scraper.fields import Extract, ExtractMode, FieldSpec, resolve
from record_scraper.parsing import parse_html
from record_scraper.selectors import compile_path, select


def first_row(html, row_selector="tr"):
    return select(parse_html(html), compile_path(row_selector))[0]


class TestExtract:
    """Test suite for extraction mode definitions."""

    def test_default_is_text(self):
        assert Extract().mode is ExtractMode.TEXT
        assert Extract.text() == Extract()

    def test_attribute_mode(self):
        extract = Extract.attr("href")
        assert extract.mode is ExtractMode.ATTRIBUTE
        assert extract.attribute == "href"

    def test_attribute_mode_requires_name(self):
        with pytest.raises(ConfigurationError):
            Extract(ExtractMode.ATTRIBUTE)
        with pytest.raises(ConfigurationError):
            Extract.attr("")

    def test_text_mode_rejects_attribute_name(self):
        with pytest.raises(ConfigurationError):
            Extract(ExtractMode.TEXT, "href")


class TestResolve:
    """Test suite for resolving a field against a row."""

    def test_text_is_concatenated_and_trimmed(self):
        row = first_row("<table><tr><td>\n  <b>Jo</b>hn <i>Smith</i>\t</td></tr></table>")
        field = FieldSpec("name", compile_path("td"))
        assert resolve(row, field) == "John Smith"

    def test_inner_whitespace_is_kept(self):
        row = first_row("<table><tr><td> a   b </td></tr></table>")
        assert resolve(row, FieldSpec("v", compile_path("td"))) == "a   b"

    def test_attribute_value(self):
        row = first_row('<table><tr><td><a href="/x">Alice</a></td></tr></table>')
        field = FieldSpec("url", compile_path("td > a"), Extract.attr("href"))
        assert resolve(row, field) == "/x"

    def test_empty_attribute_is_empty_string(self):
        row = first_row('<table><tr><td><a href="">Alice</a></td></tr></table>')
        field = FieldSpec("url", compile_path("td > a"), Extract.attr("href"))
        assert resolve(row, field) == ""

    def test_missing_attribute_is_absent(self):
        row = first_row('<table><tr><td><a>Alice</a></td></tr></table>')
        field = FieldSpec("url", compile_path("td > a"), Extract.attr("href"))
        assert resolve(row, field) is None

    def test_missing_node_is_absent(self):
        row = first_row('<table><tr><td>no link</td></tr></table>')
        assert resolve(row, FieldSpec("name", compile_path("td > a"))) is None
        assert resolve(row, FieldSpec("url", compile_path("td > a"), Extract.attr("href"))) is None

    def test_empty_element_text_is_empty_string(self):
        row = first_row('<table><tr><td><span>  </span></td></tr></table>')
        assert resolve(row, FieldSpec("v", compile_path("span"))) == ""

    def test_first_match_wins(self):
        row = first_row('<ul><li><a href="/1">one</a><a href="/2">two</a></li></ul>', "li")
        assert resolve(row, FieldSpec("name", compile_path("a"))) == "one"
        assert resolve(row, FieldSpec("url", compile_path("a"), Extract.attr("href"))) == "/1"

    def test_empty_path_addresses_row_itself(self):
        row = first_row('<ul><li data-id="7">seven</li></ul>', "li")
        assert resolve(row, FieldSpec("id", compile_path(""), Extract.attr("data-id"))) == "7"
        assert resolve(row, FieldSpec("label", compile_path(""))) == "seven"
