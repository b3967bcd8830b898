"""
Batch runner module for record_scraper.

Fetches pages in parallel using arun_many with rate limiting, then extracts
records from each page independently.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from crawl4ai import CrawlResult

from .base import C4ABase
from .config import Config, Item
from .errors import RecordScraperError
from .extraction import JSONCSSExtractor
from .mapper import Record
from .persistence import PersistenceStrategy

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    records: int = 0


class BatchRunner:
    """Handles batch fetching and record extraction for a list of items."""

    def __init__(self, base: C4ABase, config: Config, persistence: PersistenceStrategy):
        """
        Initialize BatchRunner.

        Args:
            base: C4ABase instance for crawler operations
            config: Loaded configuration (defaults and schemas)
            persistence: Persistence strategy for saving records
        """
        self.base = base
        self.config = config
        self.persistence = persistence
        self.extractors: Dict[str, JSONCSSExtractor] = {
            schema.name: JSONCSSExtractor(schema) for schema in config.schemas
        }
        self.results: Dict[str, List[Record]] = {}
        self.stats = BatchStats()

    async def run(self, items: List[Item]) -> Dict[str, List[Record]]:
        """
        Fetch every item and extract its records.

        Args:
            items: List of items to process

        Returns:
            Mapping of page URL to the records extracted from it
        """
        if not items:
            logger.info("No items to process")
            return {}

        logger.info(f"Starting batch processing of {len(items)} items")
        self.stats.total = len(items)

        urls = [item.url for item in items]
        configs = [self.base.build_run_config(item) for item in items]
        items_by_url = {item.url: item for item in items}

        try:
            results = await self.base.crawler.arun_many(
                urls=urls,
                config=configs,
                concurrency=self.config.defaults.threads,
                rate_limiter=self.base.rate_limiter
            )
        except Exception as e:
            logger.error(f"Batch processing failed: {e}")
            raise

        await self._process_results(results, items_by_url)

        logger.info(
            f"Batch processing completed: {self.stats.success} success, {self.stats.failed} failed, "
            f"{self.stats.skipped} skipped, {self.stats.records} records"
        )

        return self.get_results()

    async def _process_results(self, results: List[CrawlResult], items_by_url: Dict[str, Item]) -> None:
        """
        Extract and save records from crawl results.

        Args:
            results: List of crawl results
            items_by_url: Items keyed by requested URL
        """
        for result in results:
            url = result.url
            item = items_by_url.get(url)

            if item is None:
                logger.error(f"Crawl result for unrequested URL {url}, skipping")
                self.stats.failed += 1
                continue

            if not result.success:
                logger.error(f"Failed to crawl {url}: {result.error_message}")
                self.stats.failed += 1
                continue

            try:
                records = self.extract_page(item, result.html)
            except RecordScraperError as e:
                logger.error(f"Failed to extract records from {url}: {e}")
                self.stats.failed += 1
                continue

            if not records:
                logger.warning(f"No rows matched on {url}, skipping")
                self.stats.skipped += 1
                continue

            path = await self.persistence.save(url, records)
            if not path:
                self.stats.failed += 1
                continue

            self.results[url] = records
            self.stats.success += 1
            self.stats.records += len(records)
            logger.debug(f"Saved {len(records)} records: {url} -> {path}")

    def extract_page(self, item: Item, html: Optional[str]) -> List[Record]:
        """
        Parse a fetched page and extract the item's records.

        Args:
            item: Item the page was fetched for
            html: Page HTML

        Returns:
            Extracted records, with URL fields resolved against the page URL
        """
        return self.extractors[item.schema_name].extract(html or "", url=item.url)

    def get_stats(self) -> BatchStats:
        """Get processing statistics."""
        return self.stats

    def get_results(self) -> Dict[str, List[Record]]:
        """Get extracted records keyed by URL."""
        return dict(self.results)
