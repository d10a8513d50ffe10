# fedlex_mirror/sitemap.py
"""
Resolution of the sitemap tree into the flat list of page URLs.

The result is cached in ``urls.txt``. Once the cache exists it is used as is;
delete the file to resolve the sitemaps again.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Set

from aiohttp import ClientError, ClientSession, ClientTimeout

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.logger import LOGGER_NAME
from fedlex_mirror.parser.sitemap_parser import SitemapIndex, UrlSet, parse_sitemap
from fedlex_mirror.utils import read_lines, remove_duplicates, write_lines

__all__ = ("SitemapError", "SitemapResolver", "load_page_urls")


class SitemapError(RuntimeError):
    """No page URL could be resolved from the configured sitemaps."""


class SitemapResolver:
    """Depth-first walk over sitemap indexes, leaves concatenated in order."""

    def __init__(self, session: ClientSession, timeout: float = 30.0) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)
        self.logger = logging.getLogger(LOGGER_NAME)

    async def resolve(self, roots: Iterable[str]) -> List[str]:
        visited: Set[str] = set()
        urls: List[str] = []
        for root in roots:
            urls.extend(await self._walk(root, visited))
        return remove_duplicates(urls)

    async def _walk(self, url: str, visited: Set[str]) -> List[str]:
        if url in visited:
            self.logger.debug("Sitemap already visited: %s", url)
            return []
        visited.add(url)

        self.logger.info("Parsing: %s", url)
        body = await self._download(url)
        if body is None:
            return []

        node = parse_sitemap(body)
        if isinstance(node, SitemapIndex):
            urls: List[str] = []
            for child in node.children:
                urls.extend(await self._walk(child, visited))
            return urls
        if isinstance(node, UrlSet):
            self.logger.info("  -> Found %d URLs", len(node.urls))
            return node.urls
        self.logger.warning("Error parsing sitemap %s: %s", url, node.reason)
        return []

    async def _download(self, url: str) -> Optional[bytes]:
        try:
            async with self.session.get(url, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    self.logger.warning("Error fetching sitemap %s: HTTP %d", url, resp.status)
                    return None
                return await resp.read()
        except (ClientError, asyncio.TimeoutError) as exc:
            self.logger.warning("Error fetching sitemap %s: %s: %s", url, exc.__class__.__name__, exc)
            return None


async def load_page_urls(session: ClientSession, config: MirrorConfig) -> List[str]:
    """
    Return every page URL of the site, from ``urls.txt`` when it holds any.

    Raises
    ------
    SitemapError
        The sitemaps yielded no URL at all; no cache is written then.
    """
    logger = logging.getLogger(LOGGER_NAME)
    cached = read_lines(config.urls_path)
    if cached:
        logger.info("Loaded %d URLs from cache %s", len(cached), config.urls_path)
        return cached

    logger.info("Fetching sitemaps...")
    resolver = SitemapResolver(session, timeout=config.sitemap_timeout)
    urls = await resolver.resolve(config.sitemaps)
    if not urls:
        raise SitemapError(f"no page URLs found in {len(config.sitemaps)} sitemap(s)")

    write_lines(config.urls_path, urls)
    logger.info("Cached %d URLs", len(urls))
    return urls
