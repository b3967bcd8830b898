"""
Error types for record_scraper.

Missing structure in a document is never an error: it shows up as a ``None``
value in the extracted record. Only invalid input configuration is raised.
"""

from typing import Any, Dict, Optional


class RecordScraperError(Exception):
    """Base class for all record_scraper errors."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(RecordScraperError, ValueError):
    """Raised for a malformed record definition, selector or document root."""


class DocumentParseError(RecordScraperError):
    """Raised when markup cannot be turned into a node tree."""
