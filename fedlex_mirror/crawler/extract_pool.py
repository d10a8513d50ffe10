# === FILE: fedlex_mirror/crawler/extract_pool.py ===
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Protocol, Sequence

from playwright.async_api import Error as PlaywrightError

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.crawler.link_extractor import edge_targets, is_document_link, resolve_links
from fedlex_mirror.crawler.models import PendingPage
from fedlex_mirror.crawler.renderer import RenderError
from fedlex_mirror.ledger import EdgeLedger, ProgressLedger
from fedlex_mirror.logger import LOGGER_NAME
from fedlex_mirror.stats import ProgressReporter, RunStats
from fedlex_mirror.utils import remove_duplicates

__all__ = ("ExtractWorkerPool", "HrefSource", "pending_pages")


class HrefSource(Protocol):
    async def collect_hrefs(self, file_url: str) -> List[str]: ...


def pending_pages(config: MirrorConfig, fetched: Iterable[str], extracted: ProgressLedger) -> List[PendingPage]:
    """
    Fetched URLs still waiting for extraction, in ledger order.

    Only URLs whose mirror file exists are returned; linked documents
    (``.pdf``, ``.xml``) are not rendered.
    """
    pages: List[PendingPage] = []
    for url in remove_duplicates(list(fetched)):
        if url in extracted:
            continue
        if is_document_link(url, config.document_suffixes):
            continue
        path = config.mirror_path(url)
        if not path.is_file():
            continue
        pages.append(PendingPage(url, path))
    return pages


class ExtractWorkerPool:
    """
    Renders mirror files in fixed-size batches and records their links.

    A batch is finished only when every page in it succeeded, failed or hit
    ``render_timeout``; the next batch starts after that.
    """

    def __init__(
        self,
        config: MirrorConfig,
        renderer: HrefSource,
        progress: ProgressLedger,
        edges: EdgeLedger,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.progress = progress
        self.edges = edges
        self.domains = set(config.allowed_domains)
        self.batch_size = config.extract_concurrency
        self.logger = logging.getLogger(LOGGER_NAME)
        self.stats = RunStats()
        self.reporter = ProgressReporter(self.stats, every=config.progress_every)

    async def run(self, pages: Sequence[PendingPage]) -> RunStats:
        self.stats.total = len(pages)
        self.logger.info("URLs to process: %d (batches of %d)", len(pages), self.batch_size)
        for start in range(0, len(pages), self.batch_size):
            batch = pages[start:start + self.batch_size]
            results = await asyncio.gather(*(self._process(page) for page in batch), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
        self.stats.finish()
        self.reporter.summary()
        return self.stats

    async def _process(self, page: PendingPage) -> None:
        try:
            hrefs = await asyncio.wait_for(
                self.renderer.collect_hrefs(page.file_url),
                timeout=self.config.render_timeout,
            )
        except asyncio.TimeoutError:
            self.logger.error("Error %s: render timed out after %.1fs", page.url, self.config.render_timeout)
            self.reporter.record_failure()
            return
        except (RenderError, PlaywrightError) as exc:
            self.logger.error("Error %s: %s", page.url, exc)
            self.reporter.record_failure()
            return

        links = resolve_links(page.url, hrefs)
        written = self.edges.extend(page.url, edge_targets(page.url, links, self.domains, unique=True))
        self.progress.append(page.url)
        self.reporter.record_done(edges=written)
