# g2history/scraper/session.py
"""
Browser session management for Playwright-based scraping.

Each fetch gets its own browser, context and page; everything is torn down
when the `async with` block exits, whether it returns or raises.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Page, async_playwright

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1920, "height": 1080}


@asynccontextmanager
async def browser_page(
    headless: bool = True,
    timeout_ms: int = 30000,
    user_agent: Optional[str] = USER_AGENT,
) -> AsyncIterator[Page]:
    """
    Open an isolated Chromium page.

    Args:
        headless: Run without a visible window
        timeout_ms: Default timeout applied to navigation and every wait on the page
        user_agent: User agent sent with every request

    Yields:
        A fresh Playwright page
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            context = await browser.new_context(
                viewport=VIEWPORT,
                user_agent=user_agent,
                locale="en-US",
            )
            context.set_default_timeout(timeout_ms)
            context.set_default_navigation_timeout(timeout_ms)
            page = await context.new_page()
            yield page
        finally:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("Browser close failed: %s", e)
