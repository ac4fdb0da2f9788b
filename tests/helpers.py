# tests/helpers.py

import os
import tempfile
from typing import Any, Dict, List, Optional

from g2history.database import Database
from g2history.errors import FetchFailed
from g2history.scraper.matches import UpcomingMatch


def create_test_db() -> Database:
    """Create a fresh database in a temporary file."""
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    return Database(db_path)


def remove_test_db(db: Database) -> None:
    db.close()
    for suffix in ('', '-wal', '-shm'):
        path = db.db_path + suffix
        if os.path.exists(path):
            os.remove(path)


def seed_reference_data(db: Database) -> None:
    """Insert a small roster spanning two seasons."""
    for year_identifier, label in (('2023', 'Temporada 2023'), ('2024', 'Temporada 2024')):
        db.execute(
            "INSERT INTO years (year_identifier, label) VALUES (?, ?)",
            (year_identifier, label),
        )

    players = [
        (42, 'BrokenBlade', 'Sergen Çelik', 'Germany', 'Top', '2022,2023,2024'),
        (43, 'Caps', 'Rasmus Winther', 'Denmark', 'Mid', '2019,2020,2021,2022,2023,2024'),
        (44, 'Hans Sama', 'Steven Liv', 'France', 'ADC', '2023,2024'),
        (45, 'Mikyx', 'Mihael Mehle', 'Slovenia', 'Support', '2019,2020,2021,2023'),
    ]
    for row in players:
        db.execute(
            "INSERT INTO players (id, nickname, name, country, role, years) VALUES (?, ?, ?, ?, ?, ?)",
            row,
        )


def make_match(team2: str, date: str, bo: Optional[str] = 'BO3', **extra: Any) -> UpcomingMatch:
    return UpcomingMatch(team1='G2 Esports', team2=team2, date=date, bo=bo, **extra)


def sample_matches() -> List[UpcomingMatch]:
    return [
        make_match('Fnatic', '2025-06-21T16:00:00Z', tournament_name='LEC Summer 2025'),
        make_match('Team Vitality', '2025-06-14T18:00:00Z', tournament_name='LEC Summer 2025'),
        make_match('Karmine Corp', '2025-06-15T17:00:00Z', bo='BO5', streams_twitch='https://www.twitch.tv/lec'),
    ]


class FakeFetcher:
    """Stands in for RemotePageFetcher; counts calls and can be told to fail."""

    def __init__(
        self,
        matches: Optional[List[UpcomingMatch]] = None,
        ranking: Optional[List[Dict[str, Any]]] = None,
    ):
        self.matches = list(matches or [])
        self.ranking = list(ranking or [])
        self.fail_with: Optional[Exception] = None
        self.match_calls = 0
        self.ranking_calls = 0

    async def fetch_upcoming_matches(self) -> List[UpcomingMatch]:
        self.match_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.matches)

    async def fetch_ranking(self) -> List[Dict[str, Any]]:
        self.ranking_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.ranking)


def fetch_failure(url: str = 'https://liquipedia.net/leagueoflegends/G2_Esports') -> FetchFailed:
    return FetchFailed(url, TimeoutError('Timeout 30000ms exceeded'))
