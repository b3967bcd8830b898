"""
Configuration module for record_scraper.

Uses Pydantic models for validation and parsing of configuration files.
Includes helpers for sitemap and pagination expansion and URL normalization.
"""

import json
import logging
import urllib.parse
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple, Union

import requests
from pydantic import BaseModel, Field, ConfigDict, model_validator
from xml.etree import ElementTree

from .fields import Extract, FieldSpec
from .mapper import RecordDef
from .selectors import compile_path

logger = logging.getLogger(__name__)

PAGE_PLACEHOLDER = "{page}"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


class RateLimiterConfig(BaseModel):
    """Configuration for rate limiting."""
    base_delay: Tuple[float, float] = (2.0, 4.0)
    max_delay: float = 30.0
    max_retries: int = 5
    rate_limit_codes: List[int] = Field(default_factory=lambda: [429, 503])


class Defaults(BaseModel):
    """Default configuration values applied to all items."""
    threads: int = 20
    rate_limiter: RateLimiterConfig = Field(default_factory=RateLimiterConfig, alias="rateLimiter")
    headless: bool = True
    proxy: Optional[str] = None
    browser_address: Optional[str] = Field(None, alias="browserAddress")  # CDP URL of a running browser
    user_data_dir: Optional[str] = Field(None, alias="userDataDir")
    page_timeout: int = Field(60000, alias="pageTimeout", ge=1)  # milliseconds

    model_config = ConfigDict(populate_by_name=True)


class FieldConfig(BaseModel):
    """One field of a record schema."""
    name: str
    selector: str = ""
    type: Literal["text", "attribute"] = "text"
    attribute: Optional[str] = None
    absolute: bool = False  # Resolve the value against the page URL

    def to_field_spec(self) -> FieldSpec:
        """Compile the selector and build the core field definition."""
        if self.type == "attribute":
            extract = Extract.attr(self.attribute)
        else:
            extract = Extract.text()
        return FieldSpec(name=self.name, path=compile_path(self.selector), extract=extract)


class RecordSchema(BaseModel):
    """Named row selector plus field list, in the JSON/CSS schema shape."""
    name: str
    base_selector: str = Field(alias="baseSelector")
    fields: List[FieldConfig] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_record_def(self) -> RecordDef:
        """
        Compile the schema into a validated RecordDef.

        Raises:
            ConfigurationError: If a selector or the field list is invalid
        """
        record_def = RecordDef(
            row_pattern=compile_path(self.base_selector),
            fields=tuple(field.to_field_spec() for field in self.fields),
        )
        record_def.validate()
        return record_def

    @property
    def absolute_fields(self) -> List[str]:
        return [field.name for field in self.fields if field.absolute]


class Item(BaseModel):
    """Configuration for a single page (or page range) to extract from."""
    url: str
    schema_name: str = Field(alias="schema")
    is_sitemap: bool = Field(False, alias="isSitemap")
    pages: Optional[int] = Field(None, ge=1)
    wait_for: Optional[str] = Field(None, alias="waitFor")

    model_config = ConfigDict(populate_by_name=True)


class Config(BaseModel):
    """Main configuration class."""
    persistence_strategy: str = Field("folder_per_domain", alias="persistenceStrategy")
    defaults: Defaults = Defaults()
    schemas: List[RecordSchema] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_schema_references(self) -> "Config":
        names = [schema.name for schema in self.schemas]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate schema names: {', '.join(duplicates)}")

        for item in self.items:
            if item.schema_name not in names:
                raise ValueError(f"Item {item.url} references unknown schema '{item.schema_name}'")
        return self

    def get_schema(self, name: str) -> RecordSchema:
        """Look up a schema by name."""
        for schema in self.schemas:
            if schema.name == name:
                return schema
        raise KeyError(f"Unknown schema: {name}")


def normalize_url(url: str, strip_tracking: bool = True) -> str:
    """
    Canonical form of a page URL, used to detect the same page listed twice.

    Drops the fragment and a trailing path slash; with ``strip_tracking``
    also drops ``utm_*`` query parameters.

    Args:
        url: URL to normalize
        strip_tracking: Whether to remove tracking parameters

    Returns:
        Normalized URL
    """
    url, _ = urllib.parse.urldefrag(url)
    parts = urllib.parse.urlsplit(url)

    query = parts.query
    if strip_tracking and query:
        params = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = urllib.parse.urlencode([(k, v) for k, v in params if not k.startswith("utm_")])

    path = parts.path.rstrip("/")
    return urllib.parse.urlunsplit((parts.scheme, parts.netloc, path, query, ""))


def get_urls_from_sitemap(sitemap_url: str, max_depth: int = 2) -> List[str]:
    """
    Collect page URLs listed in a sitemap.

    Sitemap indexes are followed up to ``max_depth`` levels. A sitemap that
    cannot be fetched or parsed contributes no URLs.

    Args:
        sitemap_url: URL of the sitemap or sitemap index
        max_depth: How many levels of nested sitemap indexes to follow

    Returns:
        Page URLs in sitemap order
    """
    logger.info(f"Fetching sitemap: {sitemap_url}")
    try:
        response = requests.get(sitemap_url, timeout=30)
        response.raise_for_status()
        root = ElementTree.fromstring(response.content)
    except (requests.RequestException, ElementTree.ParseError) as e:
        logger.error(f"Could not read sitemap {sitemap_url}: {e}")
        return []

    locations = [loc.text.strip() for loc in root.iter(f"{{{SITEMAP_NS}}}loc") if loc.text]

    if root.tag != f"{{{SITEMAP_NS}}}sitemapindex":
        logger.info(f"Sitemap {sitemap_url} lists {len(locations)} pages")
        return locations

    if max_depth <= 0:
        logger.warning(f"Not following nested sitemap index {sitemap_url}: depth limit reached")
        return []

    urls: List[str] = []
    for location in locations:
        urls.extend(get_urls_from_sitemap(location, max_depth - 1))
    return urls


def expand_sitemaps(items: List[Item]) -> List[Item]:
    """Replace each sitemap item by one item per page URL it lists."""
    expanded: List[Item] = []
    for item in items:
        if not item.is_sitemap:
            expanded.append(item)
            continue
        expanded.extend(
            item.model_copy(update={"url": normalize_url(url), "is_sitemap": False})
            for url in get_urls_from_sitemap(item.url)
        )
    return expanded


def expand_pages(items: List[Item]) -> List[Item]:
    """
    Expand paginated items into one item per page.

    An item whose URL contains ``{page}`` and sets ``pages`` becomes pages
    ``1..pages``; without ``pages`` only the first page is used.

    Args:
        items: List of items to process

    Returns:
        List of items with page templates filled in
    """
    expanded: List[Item] = []
    for item in items:
        if PAGE_PLACEHOLDER not in item.url:
            expanded.append(item)
            continue

        for page in range(1, (item.pages or 1) + 1):
            url = item.url.replace(PAGE_PLACEHOLDER, str(page))
            expanded.append(item.model_copy(update={"url": url, "pages": None}))
    return expanded


def deduplicate_items(items: List[Item]) -> List[Item]:
    """Keep the first item for each normalized URL, preserving order."""
    unique: Dict[str, Item] = {}
    for item in items:
        key = normalize_url(item.url)
        if key in unique:
            logger.debug(f"Skipping duplicate URL: {item.url}")
            continue
        unique[key] = item
    return list(unique.values())


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load and process configuration from JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Processed configuration object

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the file does not match the config models
        ConfigurationError: If a schema selector or field list is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    config = Config.model_validate(data)

    # Compile every schema now so selector errors surface before any fetch
    for schema in config.schemas:
        schema.to_record_def()

    logger.info("Expanding sitemaps and pages, normalizing URLs")
    config.items = expand_sitemaps(config.items)
    config.items = expand_pages(config.items)
    config.items = deduplicate_items(config.items)

    logger.info(f"Loaded {len(config.items)} items and {len(config.schemas)} schemas")

    return config
