# g2history/scraper/matches.py
"""
Upcoming-matches adapter for the Liquipedia team page.

The match-box selectors follow Liquipedia's markup at the time of writing.
Rows missing optional parts (logos, streams, tournament) still produce a
match with those fields set to None.
"""

import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

BASE_URL = "https://liquipedia.net"
READY_SELECTOR = "#mw-content-text"
MATCH_SELECTOR = "table.infobox_matches_content"
TWITCH_URL = "https://www.twitch.tv/{channel}"
YOUTUBE_URL = "https://www.youtube.com/{channel}"


def _slug(value: object) -> str:
    return re.sub(r"[^a-z0-9]+", "-", str(value or "").lower()).strip("-")


def normalize_date(timestamp: Optional[str] = None, text: Optional[str] = None) -> Optional[str]:
    """
    Normalize a match start to ISO-8601 UTC.

    Epoch timestamps win; otherwise the whitespace-collapsed source text is
    returned unchanged so the calendar layer can decide whether it parses.
    """
    if timestamp:
        try:
            moment = datetime.fromtimestamp(int(str(timestamp).strip()), tz=timezone.utc)
            return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
        except (ValueError, OverflowError, OSError):
            pass
    clean = re.sub(r"\s+", " ", text or "").strip()
    return clean or None


def match_id(team1: str, team2: str, date: Optional[str], best_of: Optional[str]) -> str:
    """Deterministic id: the same teams, start and format always map to the same id."""
    parts = [_slug(team1), _slug(team2), _slug(date), _slug(best_of)]
    return "-".join(part for part in parts if part)


@dataclass
class UpcomingMatch:
    team1: str
    team2: str
    date: Optional[str] = None
    bo: Optional[str] = None
    team1Logo: Optional[str] = None
    team2Logo: Optional[str] = None
    streams_twitch: Optional[str] = None
    streams_youtube: Optional[str] = None
    tournament_name: Optional[str] = None
    tournament_url: Optional[str] = None
    tournament_logo: Optional[str] = None
    id: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = match_id(self.team1, self.team2, self.date, self.bo)

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def _absolute(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return urljoin(BASE_URL, url)


def _team(cell) -> tuple:
    if cell is None:
        return (None, None)
    name_node = cell.select_one(".team-template-text a") or cell.select_one(".team-template-text")
    name = name_node.get_text(" ", strip=True) if name_node else ""
    if not name:
        link = cell.select_one("a[title]")
        name = (link.get("title") or "").strip() if link else ""
    logo = cell.select_one(".team-template-image-icon img") or cell.select_one("img")
    return (name or None, _absolute(logo.get("src")) if logo else None)


def _best_of(table) -> Optional[str]:
    node = table.select_one("td.versus abbr") or table.select_one("td.versus")
    text = node.get_text(" ", strip=True) if node else ""
    found = re.search(r"bo\s*(\d+)", text, re.I)
    return f"BO{found.group(1)}" if found else None


def _streams(timer) -> tuple:
    if timer is None:
        return (None, None)
    twitch = (timer.get("data-stream-twitch") or "").strip()
    youtube = (timer.get("data-stream-youtube") or "").strip()
    return (
        TWITCH_URL.format(channel=twitch.lower()) if twitch else None,
        YOUTUBE_URL.format(channel=youtube) if youtube else None,
    )


def parse_match_table(table) -> Optional[UpcomingMatch]:
    """Parse one Liquipedia match box; None when either team name is missing."""
    team1, team1_logo = _team(table.select_one("td.team-left"))
    team2, team2_logo = _team(table.select_one("td.team-right"))
    if not team1 or not team2:
        return None

    timer = table.select_one(".timer-object")
    date = normalize_date(
        timestamp=timer.get("data-timestamp") if timer else None,
        text=timer.get_text(" ", strip=True) if timer else None,
    )
    twitch, youtube = _streams(timer)

    tournament_name = tournament_url = tournament_logo = None
    tournament_link = table.select_one(".tournament-text a") or table.select_one(".match-filler a[title]")
    if tournament_link is not None:
        tournament_name = tournament_link.get_text(" ", strip=True) or tournament_link.get("title")
        tournament_url = _absolute(tournament_link.get("href"))
    tournament_icon = table.select_one(".league-icon-small-image img")
    if tournament_icon is not None:
        tournament_logo = _absolute(tournament_icon.get("src"))

    return UpcomingMatch(
        team1=team1,
        team2=team2,
        date=date,
        bo=_best_of(table),
        team1Logo=team1_logo,
        team2Logo=team2_logo,
        streams_twitch=twitch,
        streams_youtube=youtube,
        tournament_name=tournament_name,
        tournament_url=tournament_url,
        tournament_logo=tournament_logo,
    )


def parse_upcoming_matches_html(html: str) -> List[UpcomingMatch]:
    soup = BeautifulSoup(html, "html.parser")
    matches: List[UpcomingMatch] = []
    for table in soup.select(MATCH_SELECTOR):
        parsed = parse_match_table(table)
        if parsed is not None:
            matches.append(parsed)
    return matches
