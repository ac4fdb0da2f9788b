"""
Remote page fetching for the ranking and upcoming-matches scrapes.

Playwright loads the page, BeautifulSoup site adapters extract records.
"""

from .core import RemotePageFetcher
from .matches import UpcomingMatch, match_id, normalize_date, parse_upcoming_matches_html
from .ranking import parse_ranking_html, sort_ranking
from .session import browser_page

__all__ = [
    'RemotePageFetcher',
    'UpcomingMatch',
    'match_id',
    'normalize_date',
    'parse_upcoming_matches_html',
    'parse_ranking_html',
    'sort_ranking',
    'browser_page',
]
