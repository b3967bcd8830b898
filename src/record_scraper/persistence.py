"""
Persistence module for record_scraper.

Writes extracted records to disk. Two layouts are available: one JSON
document per page inside a folder per domain, or one JSON Lines file per
domain with a line per record.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import DefaultDict, List, Set, Tuple

from .mapper import Record
from .utils import extract_domain, page_slug

logger = logging.getLogger(__name__)

UNKNOWN_DOMAIN = "unknown"


@dataclass
class SavedFileInfo:
    """One page's records written to their own file."""
    url: str
    path: str
    records: int


@dataclass
class SavedDomainFileInfo:
    """One flush of buffered pages into a domain's JSON Lines file."""
    domain: str
    path: str
    pages: int
    records: int
    urls: List[str] = field(default_factory=list)


class PersistenceStrategy(ABC):
    """Abstract base class for persistence strategies."""

    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    async def save(self, url: str, records: List[Record]) -> str:
        """
        Persist the records extracted from one page.

        Args:
            url: URL the records were extracted from
            records: Extracted records

        Returns:
            Path the records were (or will be) written to, empty string on failure
        """

    @abstractmethod
    async def finalize(self) -> None:
        """Write out anything still buffered."""


class FolderPerDomainStrategy(PersistenceStrategy):
    """Writes ``<output>/<domain>/<page slug>.json`` with ``{"url", "records"}``."""

    def __init__(self, output_dir: str):
        super().__init__(output_dir)
        self._saved_files: List[SavedFileInfo] = []

    def _page_path(self, url: str) -> Path:
        domain_dir = self.output_dir / (extract_domain(url) or UNKNOWN_DOMAIN)
        domain_dir.mkdir(parents=True, exist_ok=True)
        return domain_dir / f"{page_slug(url)}.json"

    async def save(self, url: str, records: List[Record]) -> str:
        file_path = self._page_path(url)
        try:
            file_path.write_text(
                json.dumps({"url": url, "records": records}, ensure_ascii=False, indent=2),
                encoding='utf-8',
            )
        except OSError as e:
            logger.error(f"Failed to save records for {url}: {e}")
            return ""

        self._saved_files.append(SavedFileInfo(url=url, path=str(file_path), records=len(records)))
        logger.debug(f"Saved {len(records)} records to: {file_path}")
        return str(file_path)

    async def finalize(self) -> None:
        logger.info(f"FolderPerDomainStrategy completed. Saved {len(self._saved_files)} files.")

    def get_saved_files(self) -> List[SavedFileInfo]:
        """Files written so far, in save order."""
        return list(self._saved_files)


class FilePerDomainStrategy(PersistenceStrategy):
    """
    Appends records to ``<output>/<domain>.jsonl``, one JSON object per line.

    Each line carries the page URL under ``_url`` next to the record fields.
    Pages are buffered per domain and flushed every ``buffer_size`` pages and
    at finalize. The first flush of a run truncates the file, so output from
    an earlier run is replaced rather than extended.
    """

    def __init__(self, output_dir: str, buffer_size: int = 100):
        super().__init__(output_dir)
        self.buffer_size = buffer_size
        self.buffers: DefaultDict[str, List[Tuple[str, List[Record]]]] = defaultdict(list)
        self._started: Set[str] = set()
        self._saved_files: List[SavedDomainFileInfo] = []

    def _domain_file(self, domain: str) -> Path:
        return self.output_dir / f"{domain}.jsonl"

    async def _flush_domain(self, domain: str) -> str:
        """
        Write a domain's buffered pages to its file.

        The buffer is cleared only once the write succeeds; on failure the
        pages stay buffered so a later flush or ``finalize`` retries them.
        """
        pages = self.buffers.get(domain)
        if not pages:
            return ""

        domain_file = self._domain_file(domain)
        lines = [
            json.dumps({"_url": url, **record}, ensure_ascii=False)
            for url, records in pages
            for record in records
        ]

        try:
            with open(domain_file, 'a' if domain in self._started else 'w', encoding='utf-8') as f:
                f.writelines(line + "\n" for line in lines)
        except OSError as e:
            logger.error(f"Failed to flush domain {domain}: {e}")
            return ""

        del self.buffers[domain]
        self._started.add(domain)
        self._saved_files.append(SavedDomainFileInfo(
            domain=domain,
            path=str(domain_file),
            pages=len(pages),
            records=len(lines),
            urls=[url for url, _ in pages],
        ))
        logger.info(f"Flushed {len(pages)} pages ({len(lines)} records) for {domain} to {domain_file}")
        return str(domain_file)

    async def save(self, url: str, records: List[Record]) -> str:
        """
        Buffer a page's records, flushing the domain when its buffer is full.

        Returns:
            Path of the domain file, empty string when a flush triggered by
            this page failed
        """
        domain = extract_domain(url) or UNKNOWN_DOMAIN
        self.buffers[domain].append((url, records))
        logger.debug(f"Buffered {len(records)} records for {domain}: {url}")

        if len(self.buffers[domain]) >= self.buffer_size:
            return await self._flush_domain(domain)

        return str(self._domain_file(domain))

    async def finalize(self) -> None:
        logger.info("Finalizing FilePerDomainStrategy - flushing all buffers")
        for domain in list(self.buffers):
            await self._flush_domain(domain)
        logger.info(f"FilePerDomainStrategy completed. Wrote {len(self._saved_files)} flushes.")

    def get_saved_files(self) -> List[SavedDomainFileInfo]:
        """Flushes performed so far, in order."""
        return list(self._saved_files)


def create_persistence_strategy(strategy: str, output_dir: str, **kwargs) -> PersistenceStrategy:
    """
    Factory function to create persistence strategy.

    Args:
        strategy: ``"folder_per_domain"`` or ``"file_per_domain"``
        output_dir: Output directory
        **kwargs: ``buffer_size`` for ``file_per_domain``

    Raises:
        ValueError: If strategy is not supported
    """
    if strategy == "folder_per_domain":
        return FolderPerDomainStrategy(output_dir)
    if strategy == "file_per_domain":
        return FilePerDomainStrategy(output_dir, kwargs.get("buffer_size", 100))
    raise ValueError(f"Unsupported persistence strategy: {strategy}")
