# fedlex_mirror/crawler/fetcher.py
"""
Fetcher module: one GET per page with a per-request pause and a single
cooldown retry on HTTP 429.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout, TCPConnector

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.crawler.models import FetchResult
from fedlex_mirror.logger import LOGGER_NAME

RATE_LIMITED = 429


def open_session(config: MirrorConfig) -> ClientSession:
    """Client session sized for the fetch pool."""
    return ClientSession(
        timeout=ClientTimeout(total=config.request_timeout),
        headers={"User-Agent": config.user_agent},
        connector=TCPConnector(limit=config.fetch_concurrency),
        raise_for_status=False,
    )


class Fetcher:
    """Handles HTTP fetching with the rate-limit cooldown and per-request delay."""

    def __init__(self, session: ClientSession, config: MirrorConfig) -> None:
        self.session = session
        self.config = config
        self.logger = logging.getLogger(LOGGER_NAME)

    async def fetch(self, url: str) -> Optional[FetchResult]:
        """
        Download *url*.

        Returns FetchResult for a 2xx response, None for anything else. A 429
        answer is retried exactly once after ``rate_limit_cooldown`` seconds;
        other failures are logged and not retried.
        """
        status, result = await self._get(url)
        if status == RATE_LIMITED:
            self.logger.warning("Rate limited on %s, cooling down %.1fs", url, self.config.rate_limit_cooldown)
            await asyncio.sleep(self.config.rate_limit_cooldown)
            status, result = await self._get(url)
        if result is None and status is not None:
            self.logger.error("Error %d: %s", status, url)
        return result

    async def _get(self, url: str) -> Tuple[Optional[int], Optional[FetchResult]]:
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                if not 200 <= resp.status < 300:
                    return resp.status, None
                body = await resp.read()
                return resp.status, FetchResult(
                    url=url,
                    final_url=str(resp.url),
                    status=resp.status,
                    content_type=resp.headers.get("Content-Type", ""),
                    body=body,
                )
        except (ClientError, asyncio.TimeoutError) as exc:
            self.logger.error("Error fetching %s: %s: %s", url, exc.__class__.__name__, exc)
            return None, None
        finally:
            if self.config.request_delay:
                await asyncio.sleep(self.config.request_delay)


__all__ = ["Fetcher", "open_session", "RATE_LIMITED"]
