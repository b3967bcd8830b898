"""
Extraction module for record_scraper.

Handles structured record extraction from HTML using JSON/CSS schemas.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .config import RecordSchema
from .mapper import Record, extract
from .parsing import parse_html
from .utils import resolve_record_urls

logger = logging.getLogger(__name__)


class JSONCSSExtractor:
    """Handles JSON/CSS structured extraction for one record schema."""

    def __init__(self, schema: Union[RecordSchema, Dict[str, Any]]):
        """
        Initialize JSONCSSExtractor.

        Args:
            schema: Record schema, or its JSON form
                (``{"name", "baseSelector", "fields"}``)

        Raises:
            pydantic.ValidationError: If the JSON form is malformed
            ConfigurationError: If a selector or the field list is invalid
        """
        if not isinstance(schema, RecordSchema):
            schema = RecordSchema.model_validate(schema)
        self.schema = schema
        self.record_def = schema.to_record_def()

    def extract(self, html: str, url: Optional[str] = None) -> List[Record]:
        """
        Extract records from HTML.

        Args:
            html: HTML content to extract from
            url: Page URL; when given, fields marked ``absolute`` are
                resolved against it

        Returns:
            One record per matched row, in document order
        """
        document = parse_html(html)
        records = extract(document, self.record_def)
        logger.debug(f"Schema '{self.schema.name}' extracted {len(records)} records")

        if url:
            records = resolve_record_urls(records, self.schema.absolute_fields, url)
        return records
