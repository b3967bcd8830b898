"""
record_scraper - Extract typed records from repeated structures in web pages

This package turns presentation-oriented markup into clean records:
- Structural path patterns (child/descendant steps) locating repeated rows
- Per-row field resolution to trimmed text or attribute values
- Explicit absent values instead of errors for missing structure
- Crawl4AI based fetching with pagination and sitemap expansion
- JSON and JSON Lines persistence strategies
"""

__version__ = "1.0.0"

from .nodes import Node, Element
from .selectors import Axis, Step, PathPattern, compile_path, select
from .fields import ExtractMode, Extract, FieldSpec, resolve
from .mapper import Record, RecordDef, extract
from .errors import RecordScraperError, ConfigurationError, DocumentParseError
from .parsing import parse_html
from .config import load_config, Config, Item, Defaults, RecordSchema, FieldConfig
from .extraction import JSONCSSExtractor
from .base import C4ABase
from .batch_runner import BatchRunner
from .persistence import PersistenceStrategy, FolderPerDomainStrategy, FilePerDomainStrategy, create_persistence_strategy, SavedFileInfo, SavedDomainFileInfo
from .cli import main

__all__ = [
    "Node",
    "Element",
    "Axis",
    "Step",
    "PathPattern",
    "compile_path",
    "select",
    "ExtractMode",
    "Extract",
    "FieldSpec",
    "resolve",
    "Record",
    "RecordDef",
    "extract",
    "RecordScraperError",
    "ConfigurationError",
    "DocumentParseError",
    "parse_html",
    "load_config",
    "Config",
    "Item",
    "Defaults",
    "RecordSchema",
    "FieldConfig",
    "JSONCSSExtractor",
    "C4ABase",
    "BatchRunner",
    "PersistenceStrategy",
    "FolderPerDomainStrategy",
    "FilePerDomainStrategy",
    "create_persistence_strategy",
    "SavedFileInfo",
    "SavedDomainFileInfo",
    "main",
]
