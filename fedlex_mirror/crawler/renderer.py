# fedlex_mirror/crawler/renderer.py
"""
Headless Chromium (Playwright) rendering of mirror files.

Pages are opened from their ``file://`` location with scripts enabled.
Every request that is not for a local file is aborted, so rendering never
touches the network.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.logger import LOGGER_NAME

__all__ = ("RenderError", "PlaywrightRenderer")

_HREFS_JS = "anchors => anchors.map(a => a.getAttribute('href'))"


class RenderError(RuntimeError):
    """Navigation or script evaluation of a page failed."""


class PlaywrightRenderer:
    """One browser and one context per run, one tab per rendered page."""

    def __init__(self, config: MirrorConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(LOGGER_NAME)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> PlaywrightRenderer:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        self._context = await self._browser.new_context(java_script_enabled=True)
        await self._context.route("**/*", self._block_network)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._context = self._browser = self._playwright = None

    async def collect_hrefs(self, file_url: str) -> List[str]:
        """Load *file_url*, let its scripts run and return raw anchor hrefs."""
        if self._context is None:
            raise RuntimeError("Renderer not started")
        page = None
        try:
            page = await self._context.new_page()
            await page.goto(
                file_url,
                timeout=self.config.render_timeout * 1000,
                wait_until="domcontentloaded",
            )
            hrefs = await page.eval_on_selector_all("a[href]", _HREFS_JS)
        except PlaywrightError as exc:
            raise RenderError(exc.message) from exc
        finally:
            if page is not None:
                await self._close(page)
        return [h for h in hrefs if isinstance(h, str)]

    async def _close(self, page: Page) -> None:
        try:
            await page.close()
        except PlaywrightError as exc:
            self.logger.warning("Cannot close tab: %s", exc.message)

    async def _block_network(self, route: Route) -> None:
        if route.request.url.startswith("file:"):
            await route.continue_()
        else:
            self.logger.debug("Blocked request %s", route.request.url)
            await route.abort()
