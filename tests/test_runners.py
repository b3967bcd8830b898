import json
from types import SimpleNamespace

import pytest

from record_scraper.base import C4ABase
from record_scraper.batch_runner import BatchRunner
from record_scraper.config import Config, Defaults, Item
from record_scraper.persistence import create_persistence_strategy

MEMBERS_PAGE = """
<html><body><section><table>
  <tbody>
    <tr><td><div><h3><a href="/alice/">Alice</a></h3></div></td></tr>
    <tr><td><div><h3>Ghost</h3></div></td></tr>
    <tr><td><div><h3><a href="/bob/">Bob</a></h3></div></td></tr>
  </tbody>
</table></section></body></html>
"""

CONFIG = {
    "schemas": [{
        "name": "members",
        "baseSelector": "tbody > tr",
        "fields": [
            {"name": "name", "selector": "td > div > h3 > a"},
            {"name": "url", "selector": "td > div > h3 > a", "type": "attribute",
             "attribute": "href", "absolute": True},
        ],
    }],
    "items": [
        {"url": "https://letterboxd.com/members/popular/page/1/", "schema": "members"},
        {"url": "https://letterboxd.com/members/popular/page/2/", "schema": "members"},
        {"url": "https://letterboxd.com/members/popular/page/3/", "schema": "members"},
    ],
}


class FakeCrawler:
    """Stands in for AsyncWebCrawler, serving canned HTML per URL."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def arun_many(self, urls, config, concurrency, rate_limiter):
        self.calls.append({"urls": urls, "concurrency": concurrency})
        return [
            SimpleNamespace(
                url=url,
                success=url in self.pages,
                html=self.pages.get(url),
                error_message=None if url in self.pages else "net::ERR_FAILED",
            )
            for url in urls
        ]


class FakeBase:
    """Minimal C4ABase double exposing what BatchRunner uses."""

    def __init__(self, crawler):
        self.crawler = crawler
        self.rate_limiter = None

    def build_run_config(self, item):
        return None


class TestBatchRunner:
    """Test suite for batch extraction."""

    @pytest.mark.asyncio
    async def test_batch_runner(self, tmp_path):
        """Pages with rows are saved, empty pages skipped, failed pages counted."""
        config = Config.model_validate(CONFIG)
        crawler = FakeCrawler({
            "https://letterboxd.com/members/popular/page/1/": MEMBERS_PAGE,
            "https://letterboxd.com/members/popular/page/2/": "<html><body><p>No members</p></body></html>",
        })
        persistence = create_persistence_strategy("folder_per_domain", str(tmp_path))

        runner = BatchRunner(FakeBase(crawler), config, persistence)
        results = await runner.run(config.items)

        assert crawler.calls[0]["concurrency"] == config.defaults.threads
        assert results == {
            "https://letterboxd.com/members/popular/page/1/": [
                {"name": "Alice", "url": "https://letterboxd.com/alice/"},
                {"name": None, "url": None},
                {"name": "Bob", "url": "https://letterboxd.com/bob/"},
            ],
        }

        stats = runner.get_stats()
        assert (stats.total, stats.success, stats.skipped, stats.failed, stats.records) == (3, 1, 1, 1, 3)

        saved = persistence.get_saved_files()
        assert len(saved) == 1
        payload = json.loads(open(saved[0].path, encoding="utf-8").read())
        assert payload["records"][0]["name"] == "Alice"

    @pytest.mark.asyncio
    async def test_no_items(self, tmp_path):
        config = Config.model_validate(CONFIG)
        crawler = FakeCrawler({})
        runner = BatchRunner(FakeBase(crawler), config, create_persistence_strategy("folder_per_domain", str(tmp_path)))
        assert await runner.run([]) == {}
        assert crawler.calls == []

    def test_extract_page(self, tmp_path):
        config = Config.model_validate(CONFIG)
        runner = BatchRunner(FakeBase(FakeCrawler({})), config, create_persistence_strategy("folder_per_domain", str(tmp_path)))
        records = runner.extract_page(config.items[0], MEMBERS_PAGE)
        assert [record["url"] for record in records] == [
            "https://letterboxd.com/alice/",
            None,
            "https://letterboxd.com/bob/",
        ]


class TestC4ABase:
    """Test suite for crawler configuration building (no browser launched)."""

    def test_build_run_config_waits_for_rows(self):
        base = C4ABase(Defaults(threads=1))
        item = Item(url="https://letterboxd.com/members/popular/", schema_name="members",
                    wait_for="tbody > tr:last-child")
        run_config = base.build_run_config(item)
        assert run_config.wait_for == "css:tbody > tr:last-child"

    def test_build_run_config_without_wait(self):
        base = C4ABase(Defaults(threads=1))
        run_config = base.build_run_config(Item(url="https://example.com", schema_name="s"))
        assert run_config.wait_for is None

    def test_browser_config_follows_defaults(self):
        base = C4ABase(Defaults(headless=False))
        assert base.browser_config.headless is False
        assert base.crawler is None

    def test_persistent_profile_and_timeout(self, tmp_path):
        defaults = Defaults.model_validate({"userDataDir": str(tmp_path), "pageTimeout": 15000})
        base = C4ABase(defaults)
        assert base.browser_config.user_data_dir == str(tmp_path)
        assert base.browser_config.use_persistent_context is True
        run_config = base.build_run_config(Item(url="https://example.com", schema_name="s"))
        assert run_config.page_timeout == 15000
