# g2history/scraper/ranking.py
"""
SoloQ ranking adapter for the lolpros.gg team page.

Selectors here track third-party markup and are expected to change; callers
only rely on the output shape of `parse_ranking_html`.
"""

import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

PLAYER_LINK_SELECTOR = "a[href*='/player/']"

TIERS = (
    "Iron",
    "Bronze",
    "Silver",
    "Gold",
    "Platinum",
    "Emerald",
    "Diamond",
    "Master",
    "Grandmaster",
    "Challenger",
)

_TIER_RE = re.compile(
    r"\b(?P<tier>" + "|".join(sorted(TIERS, key=len, reverse=True)) + r")\b"
    r"(?:\s+(?P<division>IV|I{1,3}|[1-4])(?![\w,.]))?",
    re.I,
)
_LP_RE = re.compile(r"(-?[\d,.]+)\s*LP\b", re.I)
_ARABIC_TO_ROMAN = {"1": "I", "2": "II", "3": "III", "4": "IV"}


def _parse_lp(text: str) -> int:
    match = _LP_RE.search(text or "")
    if not match:
        return 0
    clean = re.sub(r"[^\d-]", "", match.group(1))
    if clean in ("", "-"):
        return 0
    try:
        return int(clean)
    except ValueError:
        return 0


def _parse_tier(text: str) -> tuple:
    match = _TIER_RE.search(text or "")
    if not match:
        return (None, None)
    tier = match.group("tier").upper()
    division = match.group("division")
    if division:
        division = _ARABIC_TO_ROMAN.get(division, division.upper())
    return (tier, division)


def parse_ranking_row(row) -> Optional[Dict[str, Any]]:
    """Parse one player row; returns None when the row has no player link."""
    link = row.select_one(PLAYER_LINK_SELECTOR)
    if link is None:
        return None
    nickname = link.get_text(" ", strip=True)
    if not nickname:
        return None

    ranking_cell = row.select_one("[class*='rank']") or row
    text = ranking_cell.get_text(" ", strip=True)
    tier, division = _parse_tier(text)
    return {
        "nickname": nickname,
        "tier": tier,
        "lp": _parse_lp(text),
        "rank": division,
    }


def sort_ranking(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Order by LP descending; equal LP keeps page order."""
    return sorted(entries, key=lambda entry: entry.get("lp") or 0, reverse=True)


def parse_ranking_html(html: str) -> List[Dict[str, Any]]:
    """Extract `{nickname, tier, lp, rank}` records sorted by LP."""
    soup = BeautifulSoup(html, "html.parser")
    entries: List[Dict[str, Any]] = []
    seen = set()
    for row in soup.select("tr"):
        parsed = parse_ranking_row(row)
        if parsed is None:
            continue
        key = parsed["nickname"].lower()
        if key in seen:
            continue
        seen.add(key)
        entries.append(parsed)
    return sort_ranking(entries)
