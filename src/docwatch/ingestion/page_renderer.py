from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from docwatch import config
from docwatch.core.differ import normalize_text
from docwatch.exceptions import FetchError, RenderError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    title: str
    text: str


class PageRenderer(Protocol):
    async def render(self, url: str) -> RenderedPage: ...


class PlaywrightPageRenderer:
    """Loads a page in headless Chromium so script-generated content is present."""

    def __init__(self, timeout: float = config.FETCH_TIMEOUT_SECONDS, user_agent: str = config.USER_AGENT):
        self.timeout_ms = int(timeout * 1000)
        self.user_agent = user_agent

    async def render(self, url: str) -> RenderedPage:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                page = await browser.new_page(user_agent=self.user_agent)
                try:
                    await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                except PlaywrightTimeoutError as err:
                    raise FetchError(f"Timed out loading {url}") from err
                except PlaywrightError as err:
                    raise FetchError(f"Could not load {url}: {err}") from err

                try:
                    title = await page.title()
                    body_text = await page.inner_text("body", timeout=self.timeout_ms)
                except PlaywrightError as err:
                    raise RenderError(f"Could not extract content from {url}: {err}") from err
            finally:
                await browser.close()

        text = normalize_text(body_text)
        if not text:
            raise RenderError(f"No visible text on {url}")
        LOGGER.debug("Rendered %s (%d chars)", url, len(text))
        return RenderedPage(title=title.strip(), text=text)
