"""
Utility functions for record_scraper.

Naming helpers for output files and URL resolution of extracted values.
"""

import hashlib
import logging
import re
from typing import Iterable, List
from urllib.parse import urlparse, urljoin

from .mapper import Record

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def extract_domain(url: str) -> str:
    """
    Host name of a URL without a leading ``www.``.

    Returns an empty string when the URL has no host or cannot be parsed.
    """
    try:
        host = urlparse(url).hostname or ""
    except ValueError as e:
        logger.warning(f"Failed to extract domain from URL {url}: {e}")
        return ""
    return host[4:] if host.startswith('www.') else host


def sanitize_filename(filename: str, max_length: int = 120) -> str:
    """
    Make a string safe to use as a file name.

    Runs of characters outside ``[A-Za-z0-9._-]`` collapse to one underscore.
    Over-long names are cut, keeping a short extension intact.

    Args:
        filename: Raw name
        max_length: Maximum length of the result

    Returns:
        Sanitized filename, ``"unnamed"`` if nothing usable remains
    """
    sanitized = _UNSAFE_CHARS.sub('_', filename).strip('_')

    if len(sanitized) > max_length:
        stem, dot, ext = sanitized.rpartition('.')
        if dot and stem and len(ext) < 10:
            sanitized = stem[:max_length - len(ext) - 1] + '.' + ext
        else:
            sanitized = sanitized[:max_length]

    return sanitized or "unnamed"


def create_url_hash(url: str, algorithm: str = "md5") -> str:
    """
    Create hash of URL for unique identification.

    Args:
        url: URL to hash
        algorithm: Hash algorithm to use ("md5", "sha1" or "sha256")

    Returns:
        Hexadecimal hash string
    """
    if algorithm not in ("md5", "sha1", "sha256"):
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    return hashlib.new(algorithm, url.encode('utf-8')).hexdigest()


def page_slug(url: str, max_length: int = 120) -> str:
    """
    File-name stem identifying a page within its domain.

    Path segments and the query string are joined with underscores, so
    ``/members/popular/page/2/`` and ``/list?page=2`` get distinct slugs.
    The site root becomes ``index``. Slugs that would exceed ``max_length``
    are shortened and suffixed with a URL hash to stay unique.
    """
    parsed = urlparse(url)
    raw = parsed.path.strip('/')
    if parsed.query:
        raw = f"{raw}_{parsed.query}"

    slug = sanitize_filename(raw, max_length=len(raw)) if raw else "index"
    if len(slug) > max_length:
        slug = f"{slug[:max_length - 9]}_{create_url_hash(url)[:8]}"
    return slug


def resolve_record_urls(records: List[Record], field_names: Iterable[str], page_url: str) -> List[Record]:
    """
    Resolve relative URL values of the given fields against the page URL.

    Absent values stay None. Returns new records; the input is left untouched.

    Args:
        records: Extracted records
        field_names: Fields holding URLs
        page_url: URL of the page the records came from

    Returns:
        Records with absolute URLs in the given fields
    """
    field_names = list(field_names)
    if not field_names:
        return records

    resolved = []
    for record in records:
        updated = dict(record)
        for name in field_names:
            value = updated.get(name)
            if value is not None:
                updated[name] = urljoin(page_url, value)
        resolved.append(updated)
    return resolved
