# File: fedlex_mirror/engine.py
"""fedlex_mirror.engine: run-scoped orchestration of the fetch and extract commands.

Each run owns its ledgers and counters; they are created here and handed to
the worker pools.
"""

from __future__ import annotations

from typing import Dict, Optional

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.crawler.extract_pool import ExtractWorkerPool, HrefSource, pending_pages
from fedlex_mirror.crawler.fetch_pool import FetchWorkerPool
from fedlex_mirror.crawler.fetcher import Fetcher, open_session
from fedlex_mirror.crawler.renderer import PlaywrightRenderer
from fedlex_mirror.ledger import EdgeLedger, ProgressLedger
from fedlex_mirror.logger import logger
from fedlex_mirror.sitemap import load_page_urls
from fedlex_mirror.stats import RunStats
from fedlex_mirror.utils import read_lines

__all__ = ["run_fetch", "run_extract", "collect_status"]


async def run_fetch(config: MirrorConfig) -> RunStats:
    """Resolve (or load) the URL list and download every page not yet in ``progress.txt``."""
    progress = ProgressLedger(config.progress_path, fsync=config.fsync)
    progress.load()

    async with open_session(config) as session:
        all_urls = await load_page_urls(session, config)
        pending = progress.pending(all_urls)
        logger.info("Total URLs: %d, Already done: %d, Pending: %d", len(all_urls), len(progress), len(pending))
        if not pending:
            logger.info("All URLs already downloaded!")
            return RunStats().finish()

        with progress, EdgeLedger(config.edges_path, fsync=config.fsync) as edges:
            pool = FetchWorkerPool(config, Fetcher(session, config), progress, edges)
            return await pool.run(pending)


async def run_extract(config: MirrorConfig, renderer: Optional[HrefSource] = None) -> RunStats:
    """Render fetched pages from the mirror and append their links to ``edges.tsv``.

    *renderer* defaults to a headless Chromium; any object with an async
    ``collect_hrefs(file_url)`` (and async context manager support) works.
    """
    done = ProgressLedger(config.links_progress_path, fsync=config.fsync)
    done.load()
    pages = pending_pages(config, read_lines(config.progress_path), done)
    logger.info("URLs to process: %d", len(pages))
    if not pages:
        logger.info("No URLs to process!")
        return RunStats().finish()

    with done, EdgeLedger(config.edges_path, fsync=config.fsync) as edges:
        async with renderer or PlaywrightRenderer(config) as active:
            pool = ExtractWorkerPool(config, active, done, edges)
            return await pool.run(pages)


def _count_lines(path) -> int:
    return len(read_lines(path))


def collect_status(config: MirrorConfig) -> Dict[str, int]:
    """Line counts of the ledgers and the number of files in the mirror."""
    root = config.mirror_root
    mirror_files = sum(1 for p in root.rglob("*") if p.is_file()) if root.is_dir() else 0
    return {
        "urls": _count_lines(config.urls_path),
        "fetched": _count_lines(config.progress_path),
        "extracted": _count_lines(config.links_progress_path),
        "edges": _count_lines(config.edges_path),
        "mirror_files": mirror_files,
    }
