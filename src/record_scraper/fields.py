"""
Field resolver module for record_scraper.

Locates a field's source node inside a row and extracts its text or one of
its attributes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ConfigurationError
from .nodes import Node
from .selectors import PathPattern, select

logger = logging.getLogger(__name__)


class ExtractMode(str, Enum):
    """What to read from a field's source node."""
    TEXT = "text"
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class Extract:
    """Extraction mode plus the attribute name for attribute mode."""
    mode: ExtractMode = ExtractMode.TEXT
    attribute: Optional[str] = None

    def __post_init__(self):
        if self.mode is ExtractMode.ATTRIBUTE and not self.attribute:
            raise ConfigurationError("Attribute extraction requires an attribute name")
        if self.mode is ExtractMode.TEXT and self.attribute is not None:
            raise ConfigurationError("Text extraction does not take an attribute name")

    @classmethod
    def text(cls) -> "Extract":
        return cls(ExtractMode.TEXT)

    @classmethod
    def attr(cls, name: str) -> "Extract":
        return cls(ExtractMode.ATTRIBUTE, name)


@dataclass(frozen=True)
class FieldSpec:
    """
    Declarative rule for extracting one named value from within a row.

    Attributes:
        name: Key of the value in the resulting record
        path: Pattern locating the source node, relative to the row
        extract: Text or attribute extraction
    """
    name: str
    path: PathPattern
    extract: Extract = Extract()


def resolve(row: Node, field: FieldSpec) -> Optional[str]:
    """
    Resolve one field against a row.

    Only the first match in document order is used.

    Args:
        row: Row node the field path is evaluated from
        field: Field definition

    Returns:
        Trimmed text or attribute value, or None when the source node or the
        attribute is missing. An attribute present with an empty value
        yields ``""``.
    """
    matches = select(row, field.path)
    if not matches:
        logger.debug(f"Field '{field.name}': no node matches '{field.path}'")
        return None

    node = matches[0]
    if field.extract.mode is ExtractMode.TEXT:
        return node.text.strip()

    value = node.attrs.get(field.extract.attribute)
    if value is None:
        logger.debug(f"Field '{field.name}': attribute '{field.extract.attribute}' not present on <{node.tag}>")
    return value
