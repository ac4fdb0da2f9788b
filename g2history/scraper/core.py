# g2history/scraper/core.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from g2history.errors import FetchFailed
from . import matches as matches_adapter
from . import ranking as ranking_adapter
from .matches import UpcomingMatch
from .session import browser_page

logger = logging.getLogger(__name__)


class RemotePageFetcher:
    """Loads third-party pages in a headless browser and hands their HTML to site adapters."""

    def __init__(
        self,
        ranking_url: str = "https://lolpros.gg/team/g2-esports",
        matches_url: str = "https://liquipedia.net/leagueoflegends/G2_Esports",
        headless: bool = True,
        timeout_ms: int = 30000,
        page_factory: Optional[Callable[..., Any]] = None,
    ):
        self.ranking_url = ranking_url
        self.matches_url = matches_url
        self.headless = headless
        self.timeout_ms = timeout_ms
        self._page_factory = page_factory or browser_page

    @classmethod
    def from_settings(cls, settings) -> "RemotePageFetcher":
        return cls(
            ranking_url=settings.ranking_url,
            matches_url=settings.matches_url,
            headless=settings.scraper_headless,
            timeout_ms=settings.scraper_timeout_ms,
        )

    # --- Main entry points ---

    async def fetch_ranking(self) -> List[Dict[str, Any]]:
        """SoloQ ranking sorted by LP descending; an empty page gives an empty list."""
        html = await self._load_html(self.ranking_url, ready_selector=None)
        try:
            entries = ranking_adapter.parse_ranking_html(html)
        except Exception as exc:
            raise FetchFailed(self.ranking_url, exc) from exc
        logger.info("Fetched ranking: %d players from %s", len(entries), self.ranking_url)
        return entries

    async def fetch_upcoming_matches(self) -> List[UpcomingMatch]:
        """Unpersisted upcoming matches as listed on the team page."""
        html = await self._load_html(self.matches_url, ready_selector=matches_adapter.READY_SELECTOR)
        try:
            upcoming = matches_adapter.parse_upcoming_matches_html(html)
        except Exception as exc:
            raise FetchFailed(self.matches_url, exc) from exc
        logger.info("Fetched upcoming matches: %d from %s", len(upcoming), self.matches_url)
        return upcoming

    # --- Internal helpers ---

    async def _load_html(self, url: str, ready_selector: Optional[str]) -> str:
        """
        Navigate to `url` and return the rendered HTML.

        Waits for `ready_selector` when given, otherwise for network idle.
        Launch errors, navigation timeouts and a missing ready element all
        surface as FetchFailed; the browser is closed on every path.
        """
        logger.debug("Loading %s", url)
        try:
            async with self._page_factory(headless=self.headless, timeout_ms=self.timeout_ms) as page:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                if ready_selector:
                    await page.wait_for_selector(ready_selector, timeout=self.timeout_ms, state="attached")
                else:
                    await page.wait_for_load_state("networkidle", timeout=self.timeout_ms)
                return await page.content()
        except FetchFailed:
            raise
        except Exception as exc:
            logger.warning("Fetch failed for %s: %s", url, exc)
            raise FetchFailed(url, exc) from exc
