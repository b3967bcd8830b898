"""
Base crawler module for record_scraper.

Owns the Crawl4AI browser used to fetch the pages records are extracted from,
and turns configuration into Crawl4AI browser and run settings.
"""

import logging
from typing import Optional

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig, RateLimiter

from .config import Defaults, Item

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]


class C4ABase:
    """
    Shared Crawl4AI state for a scraping run.

    Use as an async context manager; ``crawler`` is only available inside it.
    Browser settings come from ``Defaults``: headless mode, an optional proxy,
    an optional already-running browser (``browserAddress``) and an optional
    persistent profile directory (``userDataDir``).
    """

    def __init__(self, defaults: Defaults):
        self.defaults = defaults
        self.crawler: Optional[AsyncWebCrawler] = None
        self.browser_config = self._build_browser_config()
        self.rate_limiter = self._build_rate_limiter()

    def _build_browser_config(self) -> BrowserConfig:
        defaults = self.defaults
        options = {
            "headless": defaults.headless,
            "verbose": False,
            "proxy_config": {"server": defaults.proxy} if defaults.proxy else None,
            "extra_args": list(BROWSER_ARGS),
        }
        if defaults.browser_address:
            options["cdp_url"] = defaults.browser_address
        if defaults.user_data_dir:
            options["user_data_dir"] = defaults.user_data_dir
            options["use_persistent_context"] = True
        return BrowserConfig(**options)

    def _build_rate_limiter(self) -> RateLimiter:
        limits = self.defaults.rate_limiter
        return RateLimiter(
            base_delay=limits.base_delay,
            max_delay=limits.max_delay,
            max_retries=limits.max_retries,
            rate_limit_codes=limits.rate_limit_codes,
        )

    async def __aenter__(self):
        target = self.defaults.browser_address or "local browser"
        logger.info(f"Starting AsyncWebCrawler ({target})")
        self.crawler = AsyncWebCrawler(config=self.browser_config)
        await self.crawler.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.crawler:
            logger.info("Closing AsyncWebCrawler")
            await self.crawler.close()
            self.crawler = None

    def build_run_config(self, item: Item) -> CrawlerRunConfig:
        """
        Build the fetch settings for one item.

        Pages are always fetched fresh. When the item names ``waitFor``, the
        fetch waits until that CSS selector is present, for rows rendered
        client-side.

        Args:
            item: Item configuration

        Returns:
            Configured CrawlerRunConfig
        """
        return CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            wait_for=f"css:{item.wait_for}" if item.wait_for else None,
            page_timeout=self.defaults.page_timeout,
        )
