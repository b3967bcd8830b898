"""
Record mapper module for record_scraper.

Turns every row matched by a record definition into one record.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .fields import FieldSpec, resolve
from .nodes import Node
from .selectors import PathPattern, select

logger = logging.getLogger(__name__)

# Field name -> value; None marks a value absent from the source
Record = Dict[str, Optional[str]]

_NODE_ATTRIBUTES = ("tag", "attrs", "children")


def _looks_like_node(obj) -> bool:
    # Static lookup, so no node property (text in particular) is evaluated
    for name in _NODE_ATTRIBUTES:
        try:
            inspect.getattr_static(obj, name)
        except AttributeError:
            return False
    return True


@dataclass(frozen=True)
class RecordDef:
    """Row pattern plus the ordered fields extracted from each row."""
    row_pattern: PathPattern
    fields: Tuple[FieldSpec, ...]

    @property
    def field_names(self) -> List[str]:
        return [field.name for field in self.fields]

    def validate(self) -> None:
        """
        Check the definition before any extraction runs.

        Raises:
            ConfigurationError: On an empty row pattern, a missing or empty
                field name, or duplicate field names
        """
        if not isinstance(self.row_pattern, PathPattern) or not self.row_pattern:
            raise ConfigurationError("Record definition needs a non-empty row pattern")

        seen = set()
        for field in self.fields:
            if not isinstance(field, FieldSpec):
                raise ConfigurationError(f"Expected FieldSpec, got {type(field).__name__}")
            if not field.name:
                raise ConfigurationError("Field names must be non-empty strings")
            if field.name in seen:
                raise ConfigurationError(
                    f"Duplicate field name '{field.name}'",
                    context={"field": field.name},
                )
            seen.add(field.name)


def extract(document: Optional[Node], record_def: RecordDef) -> List[Record]:
    """
    Extract one record per row matched in the document.

    Args:
        document: Root node of the parsed document
        record_def: Row pattern and fields to extract

    Returns:
        Records in row (document) order. Every record has a key for every
        field; fields whose source is missing are None.

    Raises:
        ConfigurationError: If the document is None or the definition is
            malformed
    """
    if document is None:
        raise ConfigurationError("Cannot extract records from a None document")
    if not _looks_like_node(document):
        raise ConfigurationError(f"Document does not implement the Node contract: {type(document).__name__}")
    record_def.validate()

    rows = select(document, record_def.row_pattern)
    logger.debug(f"Row pattern '{record_def.row_pattern}' matched {len(rows)} rows")

    records: List[Record] = []
    for row in rows:
        record: Record = {}
        for field in record_def.fields:
            record[field.name] = resolve(row, field)
        records.append(record)

    return records
