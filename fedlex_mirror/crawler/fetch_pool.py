# === FILE: fedlex_mirror/crawler/fetch_pool.py ===
from __future__ import annotations

import asyncio
import errno
import logging
from pathlib import Path
from typing import List, Sequence, Set

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.crawler.fetcher import Fetcher
from fedlex_mirror.crawler.link_extractor import edge_targets, extract_hrefs, is_document_link, resolve_links
from fedlex_mirror.crawler.models import FetchResult
from fedlex_mirror.ledger import EdgeLedger, ProgressLedger
from fedlex_mirror.logger import LOGGER_NAME
from fedlex_mirror.stats import ProgressReporter, RunStats
from fedlex_mirror.utils import is_allowed_host

__all__ = ("FetchWorkerPool",)

# Storage exhaustion stops the run; any other OSError belongs to one mirror path.
_FATAL_ERRNOS = frozenset({errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)})


class FetchWorkerPool:
    """
    Downloads pending URLs into the mirror with a fixed number of workers.

    Per URL: fetch -> write mirror file -> record edges -> queue linked
    PDF/XML documents -> record progress. Documents found on a page are put
    on the same queue the workers are draining.
    """

    def __init__(
        self,
        config: MirrorConfig,
        fetcher: Fetcher,
        progress: ProgressLedger,
        edges: EdgeLedger,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.progress = progress
        self.edges = edges
        self.domains = set(config.allowed_domains)
        self.logger = logging.getLogger(LOGGER_NAME)
        self.stats = RunStats()
        self.reporter = ProgressReporter(self.stats, every=config.progress_every)
        self._seen: Set[str] = set()

    async def run(self, pending: Sequence[str]) -> RunStats:
        queue: asyncio.Queue[str] = asyncio.Queue()
        for url in pending:
            self._enqueue(queue, url)
        self.logger.info("Fetching %d URLs with %d workers", self.stats.total, self.config.fetch_concurrency)

        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self.config.fetch_concurrency)]
        joined = asyncio.create_task(queue.join())
        try:
            done, _ = await asyncio.wait([joined, *workers], return_when=asyncio.FIRST_COMPLETED)
            if joined not in done:
                # a worker only returns by raising; surface the fatal error
                for task in done:
                    task.result()
        finally:
            joined.cancel()
            for w in workers:
                w.cancel()
            await asyncio.gather(joined, *workers, return_exceptions=True)

        self.stats.finish()
        self.reporter.summary()
        return self.stats

    def _enqueue(self, queue: asyncio.Queue[str], url: str) -> bool:
        if url in self._seen or url in self.progress:
            return False
        if not is_allowed_host(url, self.domains):
            self.logger.debug("Skipping off-domain URL %s", url)
            return False
        self._seen.add(url)
        self.stats.total += 1
        queue.put_nowait(url)
        return True

    async def _worker(self, queue: asyncio.Queue[str]) -> None:
        while True:
            url = await queue.get()
            try:
                await self._process(url, queue)
            finally:
                queue.task_done()

    async def _process(self, url: str, queue: asyncio.Queue[str]) -> None:
        result = await self.fetcher.fetch(url)
        if result is None:
            self.reporter.record_failure()
            return

        try:
            self._persist(url, result.body)
        except OSError as exc:
            if exc.errno in _FATAL_ERRNOS:
                raise
            self.logger.error("Cannot store %s: %s", url, exc)
            self.reporter.record_failure()
            return

        links = self._links(result)
        written = self.edges.extend(url, edge_targets(url, links, self.domains))
        for link in links:
            if is_document_link(link, self.config.document_suffixes) and self._enqueue(queue, link):
                self.stats.documents += 1
                self.logger.debug("Queued document %s (linked from %s)", link, url)

        self.progress.append(url)
        self.reporter.record_done(edges=written)

    def _persist(self, url: str, body: bytes) -> Path:
        path = self.config.mirror_path(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
        return path

    def _links(self, result: FetchResult) -> List[str]:
        if not result.is_html:
            return []
        try:
            hrefs = extract_hrefs(result.body)
        except Exception as exc:
            self.logger.warning("Cannot parse HTML of %s: %s", result.url, exc)
            return []
        return resolve_links(result.final_url, hrefs)
