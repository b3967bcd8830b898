"""
HTML parsing module for record_scraper.

Builds the immutable Element tree the extraction core reads from raw markup.
"""

import logging
from typing import List, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .errors import DocumentParseError
from .nodes import Element

logger = logging.getLogger(__name__)

DOCUMENT_TAG = "#document"


def _attr_value(value) -> str:
    # BeautifulSoup returns multi-valued attributes such as class as lists
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _build_tree(tag: Tag) -> Element:
    """Recursively convert a BeautifulSoup Tag into an Element."""
    contents: List[Union[Element, str]] = []
    for child in tag.children:
        if isinstance(child, Tag):
            contents.append(_build_tree(child))
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            # Comments, doctype and processing instructions carry no page text
            contents.append(str(child))

    attrs = {name: _attr_value(value) for name, value in tag.attrs.items()}
    return Element(tag=tag.name, attrs=attrs, contents=tuple(contents))


def parse_html(html: str) -> Element:
    """
    Parse raw HTML into an Element tree.

    Args:
        html: HTML markup

    Returns:
        Synthetic ``#document`` element owning the top-level nodes

    Raises:
        DocumentParseError: If the input is not text
    """
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    if not isinstance(html, str):
        raise DocumentParseError(f"Expected HTML text, got {type(html).__name__}")

    # Strip BOM left by some servers
    soup = BeautifulSoup(html.replace('\ufeff', ''), 'html.parser')
    root = _build_tree(soup)
    document = Element(tag=DOCUMENT_TAG, contents=root.contents)

    logger.debug(f"Parsed document with {len(document.children)} top-level elements")
    return document
